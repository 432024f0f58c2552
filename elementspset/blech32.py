# Copyright (C) 2019 The python-elementspset developers
#
# This file is part of python-elementspset.
#
# It is subject to the license terms in the LICENSE file found in the top-level
# directory of this distribution.
#
# No part of python-elementspset, including this file, may be copied, modified,
# propagated, or distributed except according to the terms contained in the
# LICENSE file.

"""Address data of confidential segwit addresses"""

from typing import List, Optional, Type, TypeVar

from elementspset.liquid_addr import encode, decode
import bitcointx.core


class Blech32Error(bitcointx.core.AddressDataEncodingError):
    pass


T_CBlech32Data = TypeVar('T_CBlech32Data', bound='CBlech32Data')


class CBlech32Data(bytes):
    """Witness program of a confidential segwit address, with the
    blinding pubkey in front. str() gives the blech32 encoding."""
    blech32_hrp: str
    blech32_witness_version: int = -1
    _data_length: int

    def __new__(cls: Type[T_CBlech32Data], s: str) -> T_CBlech32Data:
        if getattr(cls, 'blech32_hrp', None) is None:
            raise TypeError(
                'CBlech32Data subclasses should define blech32_hrp attribute')
        witver, data = decode(cls.blech32_hrp, s)
        if witver is None or data is None:
            raise Blech32Error('Blech32 decoding error')

        return cls.blech32_match_progam_and_version(data, witver)

    def __init__(self, s: Optional[str]) -> None:
        # s is consumed by __new__(), from_bytes() passes None here
        pass

    @classmethod
    def blech32_get_match_candidates(cls: Type[T_CBlech32Data]
                                     ) -> List[Type[T_CBlech32Data]]:
        return [cls]

    @classmethod
    def blech32_match_progam_and_version(cls: Type[T_CBlech32Data],
                                         data: bytes, witver: int
                                         ) -> T_CBlech32Data:
        for candidate in cls.blech32_get_match_candidates():
            if candidate.blech32_witness_version == witver \
                    and len(data) == candidate._data_length:
                return candidate.from_bytes(data, witver=witver)

        raise Blech32Error(
            'witness program of length {} with version {} does not match '
            'any known confidential segwit address format'
            .format(len(data), witver))

    @classmethod
    def from_bytes(cls: Type[T_CBlech32Data], witprog: bytes,
                   witver: Optional[int] = None) -> T_CBlech32Data:
        if witver is None:
            witver = cls.blech32_witness_version
        if not (0 <= witver <= 16):
            raise ValueError(
                'witver must be in range 0 to 16 inclusive; got %r' % witver)
        if witver != cls.blech32_witness_version:
            raise ValueError(
                '{} requires witness version {}, got {}'
                .format(cls.__name__, cls.blech32_witness_version, witver))
        self = bytes.__new__(cls, witprog)
        self.__init__(None)  # type: ignore
        return self

    def to_bytes(self) -> bytes:
        """The data without witness version and checksum"""
        return b'' + self

    def __str__(self) -> str:
        return encode(self.__class__.blech32_hrp,
                      self.__class__.blech32_witness_version, self)

    def __repr__(self) -> str:
        return '%s(%r)' % (self.__class__.__name__, str(self))


__all__ = (
    'Blech32Error',
    'CBlech32Data',
)
