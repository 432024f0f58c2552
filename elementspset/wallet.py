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

# pylama:ignore=E501

from typing import Union, List, TypeVar, Type

from bitcointx.core.key import CPubKey
from bitcointx.core.script import CScript
from bitcointx.wallet import (
    WalletCoinClassDispatcher, WalletCoinClass,
    CCoinAddress, P2SHCoinAddress, P2WSHCoinAddress,
    P2PKHCoinAddress, P2WPKHCoinAddress,
    CBase58CoinAddress, CBech32CoinAddress,
    CCoinAddressError,
    CCoinKey, CCoinExtKey, CCoinExtPubKey
)
from bitcointx.util import (
    dispatcher_mapped_list, ensure_isinstance, ClassMappingDispatcher
)
from .core import CoreElementsClassDispatcher
import elementspset.blech32


class WalletElementsClassDispatcher(WalletCoinClassDispatcher,
                                    depends=[CoreElementsClassDispatcher]):
    ...


class WalletElementsClass(WalletCoinClass,
                          metaclass=WalletElementsClassDispatcher):
    ...


class WalletElementsLiquidV1ClassDispatcher(WalletElementsClassDispatcher,
                                            depends=[CoreElementsClassDispatcher]):
    ...


class WalletElementsLiquidV1Class(WalletCoinClass,
                                  metaclass=WalletElementsLiquidV1ClassDispatcher):
    ...


class CConfidentialAddressError(CCoinAddressError):
    """The address cannot be made confidential, or is not a valid
    confidential address"""


T_CCoinConfidentialAddress = TypeVar('T_CCoinConfidentialAddress',
                                     bound='CCoinConfidentialAddress')


class CCoinConfidentialAddress(CCoinAddress):
    """Address data is the 33-byte blinding pubkey followed by the data
    of the unconfidential address. The scriptPubKey is the one of the
    unconfidential address."""

    @classmethod
    def from_unconfidential(
        cls: Type[T_CCoinConfidentialAddress], unconfidential_adr: CCoinAddress,
        blinding_pubkey: Union[CPubKey, bytes, bytearray]
    ) -> T_CCoinConfidentialAddress:
        """Attach blinding pubkey to the address.

        CConfidentialAddressError is raised for the addresses that have
        no confidential form, and ValueError for invalid blinding pubkey"""
        ensure_isinstance(unconfidential_adr, CCoinAddress,
                          'unconfidential_adr')
        ensure_isinstance(blinding_pubkey, (CPubKey, bytes, bytearray),
                          'blinding_pubkey')
        pub = CPubKey(blinding_pubkey)
        if not pub.is_fullyvalid():
            raise ValueError('invalid blinding pubkey')

        if isinstance(unconfidential_adr, CCoinConfidentialAddress):
            raise CConfidentialAddressError(
                '{} is already confidential'.format(unconfidential_adr))

        # exact type match, so that the address of one chain does not
        # become confidential address of another
        matching = [conf_cls for conf_cls in _chain_confidential_classes()
                    if type(unconfidential_adr)  # noqa
                    is conf_cls._unconfidential_address_class]
        if not matching:
            raise CConfidentialAddressError(
                'no confidential address kind for {}'
                .format(unconfidential_adr.__class__.__name__))

        conf_cls = matching[0]
        if not issubclass(conf_cls, cls):
            raise TypeError('cannot make {} from {}'.format(
                cls.__name__, unconfidential_adr.__class__.__name__))

        return conf_cls.from_bytes(  # type: ignore
            bytes(pub) + bytes(unconfidential_adr))

    def _data(self) -> bytes:
        assert isinstance(self, bytes), \
            'confidential address classes must be bytes subclasses'
        return bytes(self)

    def to_unconfidential(self) -> CCoinAddress:
        return self._unconfidential_address_class.from_bytes(  # type: ignore
            self._data()[33:])

    @property
    def blinding_pubkey(self) -> CPubKey:
        return CPubKey(self._data()[:33])

    def to_scriptPubKey(self) -> CScript:
        return self.to_unconfidential().to_scriptPubKey()

    def to_redeemScript(self) -> CScript:
        return self.to_unconfidential().to_scriptPubKey()

    @classmethod
    def from_scriptPubKey(cls, scriptPubKey: CScript) -> None:  # type: ignore
        # the blinding pubkey is not in the script
        raise CCoinAddressError(
            'confidential address cannot be made from scriptPubKey')


class CBase58CoinConfidentialAddress(CCoinConfidentialAddress,
                                     CBase58CoinAddress):
    ...


T_CBlech32DataDispatched = TypeVar('T_CBlech32DataDispatched',
                                   bound='CBlech32DataDispatched')


class CBlech32DataDispatched(elementspset.blech32.CBlech32Data):
    """Blech32 data that decodes to the address class of the chain
    selected at the moment of decoding"""

    def __init__(self, _s: str) -> None:
        cls = self.__class__
        if cls.blech32_witness_version < 0:
            raise TypeError(
                '{} is abstract and cannot be instantiated'
                .format(cls.__name__))
        if len(self) != cls._data_length:
            raise TypeError('{} data must be {} bytes long'
                            .format(cls.__name__, cls._data_length))

    @classmethod
    def blech32_get_match_candidates(
        cls: Type[T_CBlech32DataDispatched]
    ) -> List[Type[T_CBlech32DataDispatched]]:
        assert isinstance(cls, ClassMappingDispatcher)
        candidates = dispatcher_mapped_list(cls)
        if candidates:
            return candidates
        if cls.blech32_witness_version < 0:
            raise TypeError(
                '{} has no dispatched subclasses and no witness version'
                .format(cls.__name__))
        return [cls]


class CBlech32CoinConfidentialAddress(CBlech32DataDispatched,
                                      CCoinConfidentialAddress):
    ...


# Concrete kinds. Data length includes the blinding pubkey.

class P2SHCoinConfidentialAddress(CBase58CoinConfidentialAddress,
                                  next_dispatch_final=True):
    _data_length = 20 + 33


class P2PKHCoinConfidentialAddress(CBase58CoinConfidentialAddress,
                                   next_dispatch_final=True):
    _data_length = 20 + 33


class P2WSHCoinConfidentialAddress(CBlech32CoinConfidentialAddress,
                                   next_dispatch_final=True):
    _data_length = 32 + 33
    blech32_witness_version = 0


class P2WPKHCoinConfidentialAddress(CBlech32CoinConfidentialAddress,
                                    next_dispatch_final=True):
    _data_length = 20 + 33
    blech32_witness_version = 0


class CElementsAddress(CCoinAddress, WalletElementsClass):
    ...


class CElementsConfidentialAddress(CCoinConfidentialAddress, CElementsAddress):
    ...


class CBase58ElementsAddress(CBase58CoinAddress, CElementsAddress):
    ...


class CBase58ElementsConfidentialAddress(CBase58CoinConfidentialAddress,
                                         CElementsConfidentialAddress,
                                         CBase58ElementsAddress):
    ...


class CBech32ElementsAddress(CBech32CoinAddress, CElementsAddress):
    bech32_hrp = 'ert'


class CBlech32ElementsConfidentialAddress(CBlech32CoinConfidentialAddress,
                                          CElementsConfidentialAddress):
    blech32_hrp = 'el'


class P2SHElementsAddress(P2SHCoinAddress, CBase58ElementsAddress):
    base58_prefix = bytes([75])


class P2PKHElementsAddress(P2PKHCoinAddress, CBase58ElementsAddress):
    base58_prefix = bytes([235])


class P2WSHElementsAddress(P2WSHCoinAddress, CBech32ElementsAddress):
    ...


class P2WPKHElementsAddress(P2WPKHCoinAddress, CBech32ElementsAddress):
    ...


class P2PKHElementsConfidentialAddress(CBase58ElementsConfidentialAddress,
                                       P2PKHCoinConfidentialAddress):
    base58_prefix = bytes([4, 235])
    _unconfidential_address_class = P2PKHElementsAddress


class P2SHElementsConfidentialAddress(CBase58ElementsConfidentialAddress,
                                      P2SHCoinConfidentialAddress):
    base58_prefix = bytes([4, 75])
    _unconfidential_address_class = P2SHElementsAddress


class P2WPKHElementsConfidentialAddress(CBlech32ElementsConfidentialAddress,
                                        P2WPKHCoinConfidentialAddress):
    _unconfidential_address_class = P2WPKHElementsAddress


class P2WSHElementsConfidentialAddress(CBlech32ElementsConfidentialAddress,
                                       P2WSHCoinConfidentialAddress):
    _unconfidential_address_class = P2WSHElementsAddress


class CElementsKey(CCoinKey, WalletElementsClass):
    base58_prefix = bytes([239])


class CElementsExtPubKey(CCoinExtPubKey, WalletElementsClass):
    base58_prefix = b'\x04\x35\x87\xCF'


class CElementsExtKey(CCoinExtKey, WalletElementsClass):
    base58_prefix = b'\x04\x35\x83\x94'


class CElementsLiquidV1Address(CCoinAddress, WalletElementsLiquidV1Class):
    ...


class CElementsLiquidV1ConfidentialAddress(CCoinConfidentialAddress, CElementsLiquidV1Address):
    ...


class CBase58ElementsLiquidV1Address(CBase58CoinAddress, CElementsLiquidV1Address):
    ...


class CBase58ElementsLiquidV1ConfidentialAddress(CBase58CoinConfidentialAddress,
                                                 CElementsLiquidV1ConfidentialAddress,
                                                 CBase58ElementsLiquidV1Address):
    ...


class CBech32ElementsLiquidV1Address(CBech32CoinAddress, CElementsLiquidV1Address):
    bech32_hrp = 'ex'


class CBlech32ElementsLiquidV1ConfidentialAddress(CBlech32CoinConfidentialAddress,
                                                  CElementsLiquidV1ConfidentialAddress):
    blech32_hrp = 'lq'


class P2SHElementsLiquidV1Address(P2SHCoinAddress, CBase58ElementsLiquidV1Address):
    base58_prefix = bytes([39])


class P2PKHElementsLiquidV1Address(P2PKHCoinAddress, CBase58ElementsLiquidV1Address):
    base58_prefix = bytes([57])


class P2WSHElementsLiquidV1Address(P2WSHCoinAddress, CBech32ElementsLiquidV1Address):
    ...


class P2WPKHElementsLiquidV1Address(P2WPKHCoinAddress, CBech32ElementsLiquidV1Address):
    ...


class P2PKHElementsLiquidV1ConfidentialAddress(CBase58ElementsLiquidV1ConfidentialAddress,
                                               P2PKHCoinConfidentialAddress):
    base58_prefix = bytes([12, 57])
    _unconfidential_address_class = P2PKHElementsLiquidV1Address


class P2SHElementsLiquidV1ConfidentialAddress(CBase58ElementsLiquidV1ConfidentialAddress,
                                              P2SHCoinConfidentialAddress):
    base58_prefix = bytes([12, 39])
    _unconfidential_address_class = P2SHElementsLiquidV1Address


class P2WPKHElementsLiquidV1ConfidentialAddress(CBlech32ElementsLiquidV1ConfidentialAddress,
                                                P2WPKHCoinConfidentialAddress):
    _unconfidential_address_class = P2WPKHElementsLiquidV1Address


class P2WSHElementsLiquidV1ConfidentialAddress(CBlech32ElementsLiquidV1ConfidentialAddress,
                                               P2WSHCoinConfidentialAddress):
    _unconfidential_address_class = P2WSHElementsLiquidV1Address


class CElementsLiquidV1Key(CCoinKey, WalletElementsLiquidV1Class):
    base58_prefix = bytes([128])


class CElementsLiquidV1ExtPubKey(CCoinExtPubKey, WalletElementsLiquidV1Class):
    base58_prefix = b'\x04\x88\xB2\x1E'


class CElementsLiquidV1ExtKey(CCoinExtKey, WalletElementsLiquidV1Class):
    base58_prefix = b'\x04\x88\xAD\xE4'


def _chain_confidential_classes() -> List[Type[CCoinConfidentialAddress]]:
    return [
        P2PKHElementsConfidentialAddress, P2SHElementsConfidentialAddress,
        P2WPKHElementsConfidentialAddress, P2WSHElementsConfidentialAddress,
        P2PKHElementsLiquidV1ConfidentialAddress,
        P2SHElementsLiquidV1ConfidentialAddress,
        P2WPKHElementsLiquidV1ConfidentialAddress,
        P2WSHElementsLiquidV1ConfidentialAddress,
    ]


__all__ = (
    'CConfidentialAddressError',
    'CCoinConfidentialAddress',
    'CBase58CoinConfidentialAddress',
    'CBlech32CoinConfidentialAddress',
    'P2SHCoinConfidentialAddress',
    'P2PKHCoinConfidentialAddress',
    'P2WSHCoinConfidentialAddress',
    'P2WPKHCoinConfidentialAddress',
    'CElementsAddress',
    'CElementsConfidentialAddress',
    'CBase58ElementsAddress',
    'CBase58ElementsConfidentialAddress',
    'CBech32ElementsAddress',
    'CBlech32ElementsConfidentialAddress',
    'P2SHElementsAddress',
    'P2PKHElementsAddress',
    'P2WSHElementsAddress',
    'P2WPKHElementsAddress',
    'P2PKHElementsConfidentialAddress',
    'P2SHElementsConfidentialAddress',
    'P2WPKHElementsConfidentialAddress',
    'P2WSHElementsConfidentialAddress',
    'CElementsKey',
    'CElementsExtPubKey',
    'CElementsExtKey',
    'CElementsLiquidV1Address',
    'CElementsLiquidV1ConfidentialAddress',
    'CBase58ElementsLiquidV1Address',
    'CBase58ElementsLiquidV1ConfidentialAddress',
    'CBech32ElementsLiquidV1Address',
    'CBlech32ElementsLiquidV1ConfidentialAddress',
    'P2SHElementsLiquidV1Address',
    'P2PKHElementsLiquidV1Address',
    'P2WSHElementsLiquidV1Address',
    'P2WPKHElementsLiquidV1Address',
    'P2PKHElementsLiquidV1ConfidentialAddress',
    'P2SHElementsLiquidV1ConfidentialAddress',
    'P2WPKHElementsLiquidV1ConfidentialAddress',
    'P2WSHElementsLiquidV1ConfidentialAddress',
    'CElementsLiquidV1Key',
    'CElementsLiquidV1ExtPubKey',
    'CElementsLiquidV1ExtKey',
)
