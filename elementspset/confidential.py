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

"""Declarative records for confidential values, assets and nonces.

Each record is a closed sum of three variants, selected by its type tag:
null, explicit (carrying the plain scalar) and confidential (carrying
a 33-byte commitment). The constructors only accept the field that the
tag calls for, so an instance always describes exactly one variant."""

from enum import Enum
from typing import Any, Dict, Optional, Type, TypeVar

from bitcointx.core import b2x, b2lx, lx, x
from bitcointx.core.key import CPubKey

from .core import (
    CAsset, CConfidentialAsset, CConfidentialNonce, CConfidentialValue,
    CConfidentialCommitmentBase
)
from .errors import (
    InvalidCommitment, InvalidFieldCombination, MalformedInput,
    MissingRequiredField
)

LIQUID_BITCOIN_ASSET_ID = \
    '6f0279e9ed041c3d710a9f57d0c02928416460c4b722ae3457a11eec381c526d'

ASSET_LABELS = {
    LIQUID_BITCOIN_ASSET_ID: 'liquid_bitcoin',
}

COMMITMENT_SIZE = 33


class ConfidentialType(Enum):
    NULL = 'null'
    EXPLICIT = 'explicit'
    CONFIDENTIAL = 'confidential'


def parse_hex(value: Any, field: str, *, reverse: bool = False) -> bytes:
    """Decode a JSON hex string, raising MalformedInput on failure.
    With reverse=True the string is in display (reversed) byte order."""
    if not isinstance(value, str):
        raise MalformedInput('expected hex string', field=field)
    try:
        return lx(value) if reverse else x(value)
    except ValueError as e:
        raise MalformedInput('invalid hex: {}'.format(e), field=field)


def _parse_type(json: Dict[str, Any], field: str) -> ConfidentialType:
    if not isinstance(json, dict):
        raise MalformedInput('expected an object', field=field)
    if 'type' not in json:
        raise MissingRequiredField('type is required', field=field)
    try:
        return ConfidentialType(json['type'])
    except ValueError:
        raise MalformedInput('unknown confidential type {!r}'
                             .format(json['type']), field=field)


def _check_point(commitment: bytes, prefixes: bytes, field: str) -> None:
    if len(commitment) != COMMITMENT_SIZE:
        raise InvalidCommitment(
            'commitment must be {} bytes, got {}'
            .format(COMMITMENT_SIZE, len(commitment)), field=field)
    if commitment[0] not in prefixes:
        raise InvalidCommitment(
            'invalid commitment prefix 0x{:02x}'.format(commitment[0]),
            field=field)
    # commitments use their own prefixes to encode the parity,
    # only the x coordinate needs to be on the curve
    if not CPubKey(b'\x02' + commitment[1:]).is_fullyvalid():
        raise InvalidCommitment('commitment is not a valid curve point',
                                field=field)


T_ConfidentialInfo = TypeVar('T_ConfidentialInfo', bound='ConfidentialInfo')


class ConfidentialInfo:
    """Common part of the value, asset and nonce records"""

    __slots__ = ['type', '_explicit', 'commitment']

    _field: str
    _scalar_name: str
    _commitment_prefixes: bytes
    _conf_class: Type[CConfidentialCommitmentBase]

    type: ConfidentialType
    commitment: Optional[bytes]

    def __init__(self, type: ConfidentialType, explicit: Any = None,
                 commitment: Optional[bytes] = None) -> None:
        if not isinstance(type, ConfidentialType):
            type = ConfidentialType(type)

        if type == ConfidentialType.EXPLICIT:
            if explicit is None:
                raise MissingRequiredField(
                    'explicit {} requires {}'.format(self._field,
                                                     self._scalar_name),
                    field=self._field)
            if commitment is not None:
                raise InvalidFieldCombination(
                    'explicit {} cannot have a commitment'.format(self._field),
                    field=self._field)
            self._check_explicit(explicit)
        elif type == ConfidentialType.CONFIDENTIAL:
            if commitment is None:
                raise MissingRequiredField(
                    'confidential {} requires commitment'.format(self._field),
                    field=self._field)
            if explicit is not None:
                raise InvalidFieldCombination(
                    'confidential {} cannot have {}'
                    .format(self._field, self._scalar_name),
                    field=self._field)
            self._check_commitment(bytes(commitment))
            commitment = bytes(commitment)
        elif explicit is not None or commitment is not None:
            raise InvalidFieldCombination(
                'null {} cannot have {} or commitment'
                .format(self._field, self._scalar_name), field=self._field)

        object.__setattr__(self, 'type', type)
        object.__setattr__(self, '_explicit', explicit)
        object.__setattr__(self, 'commitment', commitment)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError('{} is immutable'.format(self.__class__.__name__))

    def _check_explicit(self, explicit: Any) -> None:
        raise NotImplementedError

    def _check_commitment(self, commitment: bytes) -> None:
        _check_point(commitment, self._commitment_prefixes, self._field)

    def __eq__(self, other: Any) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return (self.type, self._explicit, self.commitment) == \
            (other.type, other._explicit, other.commitment)

    def __hash__(self) -> int:
        return hash((self.__class__, self.type, self._explicit,
                     self.commitment))

    def __repr__(self) -> str:
        return '{}({})'.format(self.__class__.__name__, self.to_json())

    @classmethod
    def null(cls: Type[T_ConfidentialInfo]) -> T_ConfidentialInfo:
        return cls(ConfidentialType.NULL)

    @classmethod
    def from_json(cls: Type[T_ConfidentialInfo], json: Dict[str, Any],
                  field: Optional[str] = None) -> T_ConfidentialInfo:
        field = field or cls._field
        type = _parse_type(json, field)
        commitment = None
        if json.get('commitment') is not None:
            commitment = parse_hex(json['commitment'], field)
        explicit = cls._explicit_from_json(json.get(cls._scalar_name), field)
        return cls(type, explicit, commitment)

    @classmethod
    def _explicit_from_json(cls, value: Any, field: str) -> Any:
        raise NotImplementedError

    def _explicit_to_json(self) -> Any:
        raise NotImplementedError

    def to_json(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {'type': self.type.value}
        if self.type == ConfidentialType.EXPLICIT:
            result[self._scalar_name] = self._explicit_to_json()
        elif self.type == ConfidentialType.CONFIDENTIAL:
            assert self.commitment is not None
            result['commitment'] = b2x(self.commitment)
        return result

    @classmethod
    def from_confidential(cls: Type[T_ConfidentialInfo],
                          conf: CConfidentialCommitmentBase
                          ) -> T_ConfidentialInfo:
        if conf.is_null():
            return cls(ConfidentialType.NULL)
        if conf.is_explicit():
            return cls(ConfidentialType.EXPLICIT,
                       cls._explicit_from_confidential(conf))
        return cls(ConfidentialType.CONFIDENTIAL, commitment=conf.commitment)

    @classmethod
    def _explicit_from_confidential(cls, conf: Any) -> Any:
        raise NotImplementedError

    def _explicit_to_confidential(self) -> CConfidentialCommitmentBase:
        raise NotImplementedError

    def to_confidential(self) -> Any:
        if self.type == ConfidentialType.NULL:
            return self._conf_class()
        if self.type == ConfidentialType.EXPLICIT:
            return self._explicit_to_confidential()
        assert self.commitment is not None
        return self._conf_class(self.commitment)

    @property
    def is_null(self) -> bool:
        return self.type == ConfidentialType.NULL

    @property
    def is_explicit(self) -> bool:
        return self.type == ConfidentialType.EXPLICIT

    @property
    def is_confidential(self) -> bool:
        return self.type == ConfidentialType.CONFIDENTIAL


class ConfidentialValueInfo(ConfidentialInfo):
    _field = 'value'
    _scalar_name = 'value'
    _commitment_prefixes = bytes([8, 9])
    _conf_class = CConfidentialValue

    @property
    def value(self) -> Optional[int]:
        return self._explicit

    def _check_explicit(self, explicit: Any) -> None:
        if not isinstance(explicit, int) or isinstance(explicit, bool):
            raise MalformedInput('value must be an integer', field=self._field)
        if not 0 <= explicit <= 0xffffffffffffffff:
            raise MalformedInput('value out of range', field=self._field)

    @classmethod
    def _explicit_from_json(cls, value: Any, field: str) -> Optional[int]:
        if value is not None and (not isinstance(value, int)
                                  or isinstance(value, bool)):
            raise MalformedInput('value must be an integer', field=field)
        return value

    def _explicit_to_json(self) -> int:
        return self._explicit

    @classmethod
    def _explicit_from_confidential(cls, conf: CConfidentialValue) -> int:
        return conf.to_amount()

    def _explicit_to_confidential(self) -> CConfidentialValue:
        return CConfidentialValue(self._explicit)


class ConfidentialAssetInfo(ConfidentialInfo):
    _field = 'asset'
    _scalar_name = 'asset'
    _commitment_prefixes = bytes([10, 11])
    _conf_class = CConfidentialAsset

    @property
    def asset(self) -> Optional[CAsset]:
        return self._explicit

    @property
    def label(self) -> Optional[str]:
        if self._explicit is None:
            return None
        return ASSET_LABELS.get(b2lx(self._explicit.data))

    def _check_explicit(self, explicit: Any) -> None:
        if not isinstance(explicit, CAsset):
            raise MalformedInput('asset must be an asset id',
                                 field=self._field)

    @classmethod
    def _explicit_from_json(cls, value: Any, field: str) -> Optional[CAsset]:
        if value is None:
            return None
        data = parse_hex(value, field, reverse=True)
        if len(data) != 32:
            raise MalformedInput('asset id must be 32 bytes', field=field)
        return CAsset(data)

    def _explicit_to_json(self) -> str:
        return b2lx(self._explicit.data)

    def to_json(self) -> Dict[str, Any]:
        result = super().to_json()
        if self.label is not None:
            result['label'] = self.label
        return result

    @classmethod
    def _explicit_from_confidential(cls, conf: CConfidentialAsset) -> CAsset:
        return conf.to_asset()

    def _explicit_to_confidential(self) -> CConfidentialAsset:
        return CConfidentialAsset(self._explicit)


class ConfidentialNonceInfo(ConfidentialInfo):
    _field = 'nonce'
    _scalar_name = 'nonce'
    _commitment_prefixes = bytes([2, 3])
    _conf_class = CConfidentialNonce

    @property
    def nonce(self) -> Optional[bytes]:
        return self._explicit

    def _check_explicit(self, explicit: Any) -> None:
        if not isinstance(explicit, bytes) or len(explicit) != 32:
            raise MalformedInput('nonce must be 32 bytes', field=self._field)

    def _check_commitment(self, commitment: bytes) -> None:
        if len(commitment) != COMMITMENT_SIZE \
                or commitment[0] not in self._commitment_prefixes \
                or not CPubKey(commitment).is_fullyvalid():
            raise InvalidCommitment('nonce commitment is not a valid pubkey',
                                    field=self._field)

    @classmethod
    def _explicit_from_json(cls, value: Any, field: str) -> Optional[bytes]:
        if value is None:
            return None
        return parse_hex(value, field, reverse=True)

    def _explicit_to_json(self) -> str:
        return b2lx(self._explicit)

    @classmethod
    def _explicit_from_confidential(cls, conf: CConfidentialNonce) -> bytes:
        return conf.to_explicit()

    def _explicit_to_confidential(self) -> CConfidentialNonce:
        return CConfidentialNonce.from_explicit(self._explicit)


__all__ = (
    'LIQUID_BITCOIN_ASSET_ID',
    'ConfidentialType',
    'ConfidentialInfo',
    'ConfidentialValueInfo',
    'ConfidentialAssetInfo',
    'ConfidentialNonceInfo',
    'parse_hex',
)
