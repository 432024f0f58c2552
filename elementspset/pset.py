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

# pylama:ignore=C901,E221,E501

"""Partially Signed Elements Transactions, version 2.

The maps of BIP-370 (PSBT version 2) are used for the transaction data,
and Elements-specific fields are stored as proprietary entries with the
'pset' prefix. Entries that are not recognized are preserved as is."""

import base64
import struct
from collections import OrderedDict
from enum import Enum
from io import BytesIO
from typing import (
    Any, Dict, List, Optional, Set, Tuple, Type, TypeVar
)

from bitcointx.core import Uint256, b2x
from bitcointx.core.key import CPubKey
from bitcointx.core.psbt import (
    PSBT_KeyDerivationInfo, PSBT_ProprietaryTypeData, PSBT_UnknownTypeData,
    PSBT_PROPRIETARY_TYPE, PSBT_SEPARATOR,
    read_psbt_keymap, ensure_empty_key_data, stream_serialize_field,
    stream_serialize_proprietary_fields, stream_serialize_unknown_fields,
    merge_proprietary_fields, merge_unknown_fields
)
from bitcointx.core.script import CScriptWitness
from bitcointx.core.serialize import (
    BytesSerializer, VarIntSerializer, Serializable, SerializationError,
    ser_read
)

from .core import (
    CAsset, CAssetIssuance, CConfidentialAsset, CConfidentialNonce,
    CConfidentialValue, CElementsOutPoint, CElementsScript,
    CElementsTransaction, CElementsTxIn, CElementsTxInWitness,
    CElementsTxOut, CElementsTxOutWitness, CElementsTxWitness,
    OUTPOINT_INDEX_MASK, OUTPOINT_ISSUANCE_FLAG, OUTPOINT_PEGIN_FLAG
)
from .errors import ExtractionFailed, InvalidFieldCombination, MalformedInput
from .util import elements_params

PSET_MAGIC = b'pset\xff'

PSET_ELEMENTS_PREFIX = b'pset'

PSET_VERSION = 2

# locktimes below this value are block heights
LOCKTIME_THRESHOLD = 500000000


class PSET_GlobalKeyType(Enum):
    XPUB               = 0x01
    TX_VERSION         = 0x02
    FALLBACK_LOCKTIME  = 0x03
    INPUT_COUNT        = 0x04
    OUTPUT_COUNT       = 0x05
    TX_MODIFIABLE      = 0x06
    VERSION            = 0xFB


class PSET_InKeyType(Enum):
    NON_WITNESS_UTXO         = 0x00
    WITNESS_UTXO             = 0x01
    PARTIAL_SIG              = 0x02
    SIGHASH_TYPE             = 0x03
    REDEEM_SCRIPT            = 0x04
    WITNESS_SCRIPT           = 0x05
    BIP32_DERIVATION         = 0x06
    FINAL_SCRIPTSIG          = 0x07
    FINAL_SCRIPTWITNESS      = 0x08
    RIPEMD160                = 0x0A
    SHA256                   = 0x0B
    HASH160                  = 0x0C
    HASH256                  = 0x0D
    PREVIOUS_TXID            = 0x0E
    OUTPUT_INDEX             = 0x0F
    SEQUENCE                 = 0x10
    REQUIRED_TIME_LOCKTIME   = 0x11
    REQUIRED_HEIGHT_LOCKTIME = 0x12


class PSET_OutKeyType(Enum):
    REDEEM_SCRIPT    = 0x00
    WITNESS_SCRIPT   = 0x01
    BIP32_DERIVATION = 0x02
    AMOUNT           = 0x03
    SCRIPT           = 0x04


class PSET_ElementsGlobalType(Enum):
    SCALAR        = 0x00
    TX_MODIFIABLE = 0x01


class PSET_ElementsInType(Enum):
    ISSUANCE_VALUE              = 0x00
    ISSUANCE_VALUE_COMMITMENT   = 0x01
    ISSUANCE_VALUE_RANGEPROOF   = 0x02
    ISSUANCE_KEYS_RANGEPROOF    = 0x03
    PEGIN_TX                    = 0x04
    PEGIN_TXOUT_PROOF           = 0x05
    PEGIN_GENESIS_HASH          = 0x06
    PEGIN_CLAIM_SCRIPT          = 0x07
    PEGIN_VALUE                 = 0x08
    PEGIN_WITNESS               = 0x09
    ISSUANCE_INFLATION_KEYS     = 0x0A
    ISSUANCE_INFLATION_KEYS_COMMITMENT = 0x0B
    ISSUANCE_BLINDING_NONCE     = 0x0C
    ISSUANCE_ASSET_ENTROPY      = 0x0D


class PSET_ElementsOutType(Enum):
    VALUE_COMMITMENT = 0x01
    ASSET            = 0x02
    ASSET_COMMITMENT = 0x03
    VALUE_RANGEPROOF = 0x04
    ASSET_SURJECTION_PROOF = 0x05
    BLINDING_PUBKEY  = 0x06
    ECDH_PUBKEY      = 0x07
    BLINDER_INDEX    = 0x08


PREIMAGE_KEY_SIZES = {
    PSET_InKeyType.RIPEMD160: 20,
    PSET_InKeyType.SHA256: 32,
    PSET_InKeyType.HASH160: 20,
    PSET_InKeyType.HASH256: 32,
}

T_ElementsType = TypeVar('T_ElementsType', PSET_ElementsGlobalType,
                         PSET_ElementsInType, PSET_ElementsOutType)


def _read_u32(value: bytes, what: str) -> int:
    if len(value) != 4:
        raise SerializationError(
            'Incorrect data length for {}'.format(what))
    return struct.unpack(b'<I', value)[0]


def _read_u64(value: bytes, what: str) -> int:
    if len(value) != 8:
        raise SerializationError(
            'Incorrect data length for {}'.format(what))
    return struct.unpack(b'<Q', value)[0]


def _read_bytes(value: bytes, size: int, what: str) -> bytes:
    if len(value) != size:
        raise SerializationError(
            'Incorrect data length for {}: expected {}, got {}'
            .format(what, size, len(value)))
    return value


def _read_pubkey(data: bytes, what: str) -> CPubKey:
    pub = CPubKey(data)
    if not pub.is_fullyvalid():
        raise SerializationError('Invalid pubkey encountered in {}'
                                 .format(what))
    return pub


def _read_commitment(value: bytes, what: str) -> bytes:
    return _read_bytes(value, 33, what)


def _pop_elements_fields(
    proprietary_fields: Dict[bytes, List[PSBT_ProprietaryTypeData]],
    enum_class: Type[T_ElementsType]
) -> List[Tuple[T_ElementsType, bytes, bytes]]:
    """Take out the recognized entries with 'pset' prefix. Unrecognized
    subtypes stay in proprietary_fields."""
    entries = proprietary_fields.pop(PSET_ELEMENTS_PREFIX, [])
    result = []
    remaining = []
    for pd in entries:
        try:
            result.append((enum_class(pd.subtype), pd.key_data, pd.value))
        except ValueError:
            remaining.append(pd)
    if remaining:
        proprietary_fields[PSET_ELEMENTS_PREFIX] = remaining
    return result


def _serialize_elements_field(subtype: Enum, f: BytesIO,
                              key_data: bytes = b'',
                              value: bytes = b'') -> None:
    prop_key = (BytesSerializer.serialize(PSET_ELEMENTS_PREFIX)
                + VarIntSerializer.serialize(subtype.value)
                + key_data)
    stream_serialize_field(PSBT_PROPRIETARY_TYPE, f, key_data=prop_key,
                           value=value)


def _serialize_stack(stack: List[bytes]) -> bytes:
    return CScriptWitness(stack).serialize()


def _deserialize_stack(value: bytes) -> List[bytes]:
    return list(CScriptWitness.deserialize(value).stack)


def _merge_optional(dst: Any, src: Any, attr: str) -> None:
    if getattr(dst, attr) is None:
        setattr(dst, attr, getattr(src, attr))


def _merge_map(dst: Dict[Any, Any], src: Dict[Any, Any]) -> None:
    for k, v in src.items():
        if k not in dst:
            dst[k] = v


class PSET_Global:
    """Global map of a PSET. Input and output counts are not stored,
    they are taken from the input and output lists of the PSET"""

    version: int
    tx_version: int
    fallback_locktime: Optional[int]
    tx_modifiable: Optional[int]
    xpubs: Dict[bytes, PSBT_KeyDerivationInfo]
    scalars: List[bytes]
    elements_tx_modifiable_flag: Optional[int]
    proprietary_fields: Dict[bytes, List[PSBT_ProprietaryTypeData]]
    unknown_fields: List[PSBT_UnknownTypeData]

    def __init__(self, *, version: int = PSET_VERSION, tx_version: int = 2,
                 fallback_locktime: Optional[int] = None,
                 tx_modifiable: Optional[int] = None,
                 xpubs: Optional[Dict[bytes, PSBT_KeyDerivationInfo]] = None,
                 scalars: Optional[List[bytes]] = None,
                 elements_tx_modifiable_flag: Optional[int] = None,
                 proprietary_fields: Optional[
                     Dict[bytes, List[PSBT_ProprietaryTypeData]]] = None,
                 unknown_fields: Optional[List[PSBT_UnknownTypeData]] = None
                 ) -> None:
        self.version = version
        self.tx_version = tx_version
        self.fallback_locktime = fallback_locktime
        self.tx_modifiable = tx_modifiable
        self.xpubs = OrderedDict(xpubs or {})
        self.scalars = list(scalars or [])
        self.elements_tx_modifiable_flag = elements_tx_modifiable_flag
        self.proprietary_fields = OrderedDict(proprietary_fields or {})
        self.unknown_fields = list(unknown_fields or [])

    @classmethod
    def stream_deserialize(cls, f: BytesIO) -> Tuple['PSET_Global', int, int]:
        """Read the global map, return it together with
        the input and output counts"""
        kwargs: Dict[str, Any] = {}
        xpubs: Dict[bytes, PSBT_KeyDerivationInfo] = OrderedDict()
        proprietary_fields: Dict[bytes, List[PSBT_ProprietaryTypeData]] = \
            OrderedDict()
        unknown_fields: List[PSBT_UnknownTypeData] = []
        version = None
        tx_version = None
        input_count = None
        output_count = None

        keys_seen: Set[bytes] = set()
        for key_type, key_data, value in \
                read_psbt_keymap(f, keys_seen, PSET_GlobalKeyType,
                                 proprietary_fields, unknown_fields):
            if key_type is PSET_GlobalKeyType.XPUB:
                if len(key_data) != 78:
                    raise SerializationError(
                        'Incorrect length of extended pubkey in {}'
                        .format(key_type.name))
                xpubs[key_data] = PSBT_KeyDerivationInfo.deserialize(value)
                continue

            ensure_empty_key_data(key_type, key_data)
            if key_type is PSET_GlobalKeyType.TX_VERSION:
                tx_version = struct.unpack(
                    b'<i', _read_bytes(value, 4, key_type.name))[0]
            elif key_type is PSET_GlobalKeyType.FALLBACK_LOCKTIME:
                kwargs['fallback_locktime'] = _read_u32(value, key_type.name)
            elif key_type is PSET_GlobalKeyType.INPUT_COUNT:
                input_count = VarIntSerializer.deserialize(value)
            elif key_type is PSET_GlobalKeyType.OUTPUT_COUNT:
                output_count = VarIntSerializer.deserialize(value)
            elif key_type is PSET_GlobalKeyType.TX_MODIFIABLE:
                kwargs['tx_modifiable'] = _read_bytes(value, 1,
                                                      key_type.name)[0]
            elif key_type is PSET_GlobalKeyType.VERSION:
                version = _read_u32(value, key_type.name)
            else:
                raise AssertionError('unhandled key type {}'.format(key_type))

        if version != PSET_VERSION:
            raise SerializationError('Unsupported PSET version {}'
                                     .format(version))
        for name, v in (('tx version', tx_version),
                        ('input count', input_count),
                        ('output count', output_count)):
            if v is None:
                raise SerializationError('PSET {} is missing'.format(name))

        scalars = []
        for subtype, key_data, value in _pop_elements_fields(
                proprietary_fields, PSET_ElementsGlobalType):
            if subtype is PSET_ElementsGlobalType.SCALAR:
                scalars.append(_read_bytes(key_data, 32, 'scalar'))
            elif subtype is PSET_ElementsGlobalType.TX_MODIFIABLE:
                kwargs['elements_tx_modifiable_flag'] = _read_bytes(
                    value, 1, 'elements tx modifiable flag')[0]

        glob = cls(version=version, tx_version=tx_version, xpubs=xpubs,
                   scalars=scalars, proprietary_fields=proprietary_fields,
                   unknown_fields=unknown_fields, **kwargs)
        return glob, input_count, output_count

    def stream_serialize(self, f: BytesIO, input_count: int,
                         output_count: int) -> None:
        for xpub in sorted(self.xpubs):
            stream_serialize_field(PSET_GlobalKeyType.XPUB, f, key_data=xpub,
                                   value=self.xpubs[xpub].serialize())
        stream_serialize_field(PSET_GlobalKeyType.TX_VERSION, f,
                               value=struct.pack(b'<i', self.tx_version))
        if self.fallback_locktime is not None:
            stream_serialize_field(
                PSET_GlobalKeyType.FALLBACK_LOCKTIME, f,
                value=struct.pack(b'<I', self.fallback_locktime))
        stream_serialize_field(PSET_GlobalKeyType.INPUT_COUNT, f,
                               value=VarIntSerializer.serialize(input_count))
        stream_serialize_field(PSET_GlobalKeyType.OUTPUT_COUNT, f,
                               value=VarIntSerializer.serialize(output_count))
        if self.tx_modifiable is not None:
            stream_serialize_field(PSET_GlobalKeyType.TX_MODIFIABLE, f,
                                   value=bytes([self.tx_modifiable]))
        stream_serialize_field(PSET_GlobalKeyType.VERSION, f,
                               value=struct.pack(b'<I', self.version))

        for scalar in sorted(set(self.scalars)):
            _serialize_elements_field(PSET_ElementsGlobalType.SCALAR, f,
                                      key_data=scalar)
        if self.elements_tx_modifiable_flag is not None:
            _serialize_elements_field(
                PSET_ElementsGlobalType.TX_MODIFIABLE, f,
                value=bytes([self.elements_tx_modifiable_flag]))

        stream_serialize_proprietary_fields(self.proprietary_fields, f)
        stream_serialize_unknown_fields(self.unknown_fields, f)
        f.write(PSBT_SEPARATOR)

    def merge(self, other: 'PSET_Global') -> None:
        if self.version != other.version:
            raise ValueError('PSET versions are different')
        if self.tx_version != other.tx_version:
            raise ValueError('transaction versions are different')

        if self.fallback_locktime is None:
            self.fallback_locktime = other.fallback_locktime
        elif other.fallback_locktime is not None \
                and self.fallback_locktime != other.fallback_locktime:
            raise ValueError('fallback locktimes are different')

        if other.tx_modifiable is not None:
            self.tx_modifiable = (self.tx_modifiable or 0) | other.tx_modifiable
        if other.elements_tx_modifiable_flag is not None:
            self.elements_tx_modifiable_flag = (
                (self.elements_tx_modifiable_flag or 0)
                | other.elements_tx_modifiable_flag)

        for xpub, dinfo in other.xpubs.items():
            if xpub in self.xpubs:
                mine = self.xpubs[xpub]
                if mine.master_fp != dinfo.master_fp \
                        or tuple(mine.path) != tuple(dinfo.path):
                    raise ValueError(
                        'extended pubkey {} has conflicting key origins'
                        .format(b2x(xpub)))
            else:
                self.xpubs[xpub] = dinfo

        for scalar in other.scalars:
            if scalar not in self.scalars:
                self.scalars.append(scalar)

        merge_proprietary_fields(self.proprietary_fields,
                                 other.proprietary_fields)
        merge_unknown_fields(self.unknown_fields, other.unknown_fields)


class PSET_Input:
    """Input map of a PSET. previous_output_index keeps the issuance
    and peg-in flags, as the outpoint index of the serialized
    transaction does"""

    previous_txid: bytes
    previous_output_index: int
    sequence: Optional[int]
    required_time_locktime: Optional[int]
    required_height_locktime: Optional[int]
    non_witness_utxo: Optional[CElementsTransaction]
    witness_utxo: Optional[CElementsTxOut]
    partial_sigs: Dict[CPubKey, bytes]
    sighash_type: Optional[int]
    redeem_script: Optional[CElementsScript]
    witness_script: Optional[CElementsScript]
    derivation_map: Dict[CPubKey, PSBT_KeyDerivationInfo]
    final_script_sig: Optional[CElementsScript]
    final_script_witness: Optional[CScriptWitness]
    ripemd160_preimages: Dict[bytes, bytes]
    sha256_preimages: Dict[bytes, bytes]
    hash160_preimages: Dict[bytes, bytes]
    hash256_preimages: Dict[bytes, bytes]
    issuance_value: Optional[CConfidentialValue]
    issuance_value_rangeproof: Optional[bytes]
    issuance_keys_rangeproof: Optional[bytes]
    issuance_inflation_keys: Optional[CConfidentialValue]
    issuance_blinding_nonce: Optional[bytes]
    issuance_asset_entropy: Optional[bytes]
    pegin_tx: Optional[bytes]
    pegin_txout_proof: Optional[bytes]
    pegin_genesis_hash: Optional[bytes]
    pegin_claim_script: Optional[CElementsScript]
    pegin_value: Optional[int]
    pegin_witness: Optional[List[bytes]]
    proprietary_fields: Dict[bytes, List[PSBT_ProprietaryTypeData]]
    unknown_fields: List[PSBT_UnknownTypeData]

    _optional_fields = (
        'sequence', 'required_time_locktime', 'required_height_locktime',
        'non_witness_utxo', 'witness_utxo', 'sighash_type', 'redeem_script',
        'witness_script', 'final_script_sig', 'final_script_witness',
        'issuance_value', 'issuance_value_rangeproof',
        'issuance_keys_rangeproof', 'issuance_inflation_keys',
        'issuance_blinding_nonce', 'issuance_asset_entropy', 'pegin_tx',
        'pegin_txout_proof', 'pegin_genesis_hash', 'pegin_claim_script',
        'pegin_value', 'pegin_witness',
    )

    _map_fields = (
        'partial_sigs', 'derivation_map', 'ripemd160_preimages',
        'sha256_preimages', 'hash160_preimages', 'hash256_preimages',
    )

    def __init__(self, previous_txid: bytes, previous_output_index: int,
                 **kwargs: Any) -> None:
        if len(previous_txid) != 32:
            raise ValueError('previous txid must be 32 bytes')
        self.previous_txid = bytes(previous_txid)
        self.previous_output_index = previous_output_index
        for name in self._optional_fields:
            setattr(self, name, kwargs.pop(name, None))
        for name in self._map_fields:
            setattr(self, name, OrderedDict(kwargs.pop(name, None) or {}))
        self.proprietary_fields = OrderedDict(
            kwargs.pop('proprietary_fields', None) or {})
        self.unknown_fields = list(kwargs.pop('unknown_fields', None) or [])
        if kwargs:
            raise TypeError('unexpected arguments: {}'
                            .format(', '.join(kwargs)))

    @property
    def prevout_index(self) -> int:
        return self.previous_output_index & OUTPOINT_INDEX_MASK

    @property
    def has_issuance(self) -> bool:
        return bool(self.previous_output_index & OUTPOINT_ISSUANCE_FLAG)

    @property
    def is_pegin(self) -> bool:
        return bool(self.previous_output_index & OUTPOINT_PEGIN_FLAG)

    def is_final(self) -> bool:
        return self.final_script_sig is not None \
            or self.final_script_witness is not None

    @classmethod
    def from_txin(cls, txin: CElementsTxIn,
                  witness: CElementsTxInWitness) -> 'PSET_Input':
        n = txin.prevout.n
        if n != 0xffffffff:
            if txin.is_pegin:
                n |= OUTPOINT_PEGIN_FLAG
            if not txin.assetIssuance.is_null():
                n |= OUTPOINT_ISSUANCE_FLAG

        inp = cls(txin.prevout.hash, n, sequence=txin.nSequence)

        ai = txin.assetIssuance
        if not ai.is_null():
            if not ai.nAmount.is_null():
                inp.issuance_value = ai.nAmount
            if not ai.nInflationKeys.is_null():
                inp.issuance_inflation_keys = ai.nInflationKeys
            inp.issuance_blinding_nonce = ai.assetBlindingNonce.data
            inp.issuance_asset_entropy = ai.assetEntropy.data
            if len(witness.issuanceAmountRangeproof):
                inp.issuance_value_rangeproof = \
                    bytes(witness.issuanceAmountRangeproof)
            if len(witness.inflationKeysRangeproof):
                inp.issuance_keys_rangeproof = \
                    bytes(witness.inflationKeysRangeproof)

        if txin.is_pegin and not witness.pegin_witness.is_null():
            inp.pegin_witness = list(witness.pegin_witness.stack)

        return inp

    def to_txin(self) -> Tuple[CElementsTxIn, CElementsTxInWitness]:
        issuance = CAssetIssuance()
        if self.issuance_value is not None \
                or self.issuance_inflation_keys is not None:
            issuance = CAssetIssuance(
                Uint256(self.issuance_blinding_nonce or b'\x00'*32),
                Uint256(self.issuance_asset_entropy or b'\x00'*32),
                self.issuance_value or CConfidentialValue(),
                self.issuance_inflation_keys or CConfidentialValue())

        txin = CElementsTxIn(
            CElementsOutPoint(self.previous_txid, self.prevout_index),
            self.final_script_sig or CElementsScript(),
            0xffffffff if self.sequence is None else self.sequence,
            issuance, self.is_pegin)
        witness = CElementsTxInWitness(
            self.final_script_witness or CScriptWitness(),
            self.issuance_value_rangeproof or b'',
            self.issuance_keys_rangeproof or b'',
            CScriptWitness(self.pegin_witness or []))
        return txin, witness

    def get_utxo(self) -> Optional[CElementsTxOut]:
        """The spent output, from witness utxo, or from
        non-witness utxo when witness utxo is absent"""
        if self.witness_utxo is not None:
            return self.witness_utxo
        if self.non_witness_utxo is not None:
            vout = self.prevout_index
            if vout < len(self.non_witness_utxo.vout):
                return self.non_witness_utxo.vout[vout]
        return None

    @classmethod
    def stream_deserialize(cls, f: BytesIO, index: int) -> 'PSET_Input':
        kwargs: Dict[str, Any] = {}
        partial_sigs: Dict[CPubKey, bytes] = OrderedDict()
        derivation_map: Dict[CPubKey, PSBT_KeyDerivationInfo] = OrderedDict()
        preimages: Dict[PSET_InKeyType, Dict[bytes, bytes]] = {
            kt: OrderedDict() for kt in PREIMAGE_KEY_SIZES}
        proprietary_fields: Dict[bytes, List[PSBT_ProprietaryTypeData]] = \
            OrderedDict()
        unknown_fields: List[PSBT_UnknownTypeData] = []
        previous_txid = None
        previous_output_index = None

        def descr(msg: str) -> str:
            return '{} for input at index {}'.format(msg, index)

        keys_seen: Set[bytes] = set()
        for key_type, key_data, value in \
                read_psbt_keymap(f, keys_seen, PSET_InKeyType,
                                 proprietary_fields, unknown_fields):

            if key_type is PSET_InKeyType.PARTIAL_SIG:
                pub = _read_pubkey(key_data, descr(key_type.name))
                partial_sigs[pub] = value
                continue
            if key_type is PSET_InKeyType.BIP32_DERIVATION:
                pub = _read_pubkey(key_data, descr(key_type.name))
                derivation_map[pub] = PSBT_KeyDerivationInfo.deserialize(value)
                continue
            if key_type in PREIMAGE_KEY_SIZES:
                if len(key_data) != PREIMAGE_KEY_SIZES[key_type]:
                    raise SerializationError(
                        descr('Incorrect hash length in {}'
                              .format(key_type.name)))
                preimages[key_type][key_data] = value
                continue

            ensure_empty_key_data(key_type, key_data, descr(''))
            if key_type is PSET_InKeyType.NON_WITNESS_UTXO:
                kwargs['non_witness_utxo'] = \
                    CElementsTransaction.deserialize(value)
            elif key_type is PSET_InKeyType.WITNESS_UTXO:
                kwargs['witness_utxo'] = CElementsTxOut.deserialize(value)
            elif key_type is PSET_InKeyType.SIGHASH_TYPE:
                kwargs['sighash_type'] = _read_u32(value, descr(key_type.name))
            elif key_type is PSET_InKeyType.REDEEM_SCRIPT:
                kwargs['redeem_script'] = CElementsScript(value)
            elif key_type is PSET_InKeyType.WITNESS_SCRIPT:
                kwargs['witness_script'] = CElementsScript(value)
            elif key_type is PSET_InKeyType.FINAL_SCRIPTSIG:
                kwargs['final_script_sig'] = CElementsScript(value)
            elif key_type is PSET_InKeyType.FINAL_SCRIPTWITNESS:
                kwargs['final_script_witness'] = \
                    CScriptWitness.deserialize(value)
            elif key_type is PSET_InKeyType.PREVIOUS_TXID:
                previous_txid = _read_bytes(value, 32, descr(key_type.name))
            elif key_type is PSET_InKeyType.OUTPUT_INDEX:
                previous_output_index = _read_u32(value, descr(key_type.name))
            elif key_type is PSET_InKeyType.SEQUENCE:
                kwargs['sequence'] = _read_u32(value, descr(key_type.name))
            elif key_type is PSET_InKeyType.REQUIRED_TIME_LOCKTIME:
                locktime = _read_u32(value, descr(key_type.name))
                if locktime < LOCKTIME_THRESHOLD:
                    raise SerializationError(
                        descr('Required time locktime is below threshold'))
                kwargs['required_time_locktime'] = locktime
            elif key_type is PSET_InKeyType.REQUIRED_HEIGHT_LOCKTIME:
                locktime = _read_u32(value, descr(key_type.name))
                if locktime == 0 or locktime >= LOCKTIME_THRESHOLD:
                    raise SerializationError(
                        descr('Required height locktime is out of range'))
                kwargs['required_height_locktime'] = locktime
            else:
                raise AssertionError('unhandled key type {}'.format(key_type))

        if previous_txid is None or previous_output_index is None:
            raise SerializationError(
                descr('Previous txid and output index are required'))

        for subtype, key_data, value in _pop_elements_fields(
                proprietary_fields, PSET_ElementsInType):
            what = descr(subtype.name)
            if key_data:
                raise SerializationError(
                    'Unexpected data after key type {}'.format(what))
            if subtype is PSET_ElementsInType.ISSUANCE_VALUE:
                kwargs['issuance_value'] = CConfidentialValue(
                    _read_u64(value, what))
            elif subtype is PSET_ElementsInType.ISSUANCE_VALUE_COMMITMENT:
                kwargs['issuance_value'] = CConfidentialValue(
                    _read_commitment(value, what))
            elif subtype is PSET_ElementsInType.ISSUANCE_VALUE_RANGEPROOF:
                kwargs['issuance_value_rangeproof'] = value
            elif subtype is PSET_ElementsInType.ISSUANCE_KEYS_RANGEPROOF:
                kwargs['issuance_keys_rangeproof'] = value
            elif subtype is PSET_ElementsInType.PEGIN_TX:
                kwargs['pegin_tx'] = value
            elif subtype is PSET_ElementsInType.PEGIN_TXOUT_PROOF:
                kwargs['pegin_txout_proof'] = value
            elif subtype is PSET_ElementsInType.PEGIN_GENESIS_HASH:
                kwargs['pegin_genesis_hash'] = _read_bytes(value, 32, what)
            elif subtype is PSET_ElementsInType.PEGIN_CLAIM_SCRIPT:
                kwargs['pegin_claim_script'] = CElementsScript(value)
            elif subtype is PSET_ElementsInType.PEGIN_VALUE:
                kwargs['pegin_value'] = _read_u64(value, what)
            elif subtype is PSET_ElementsInType.PEGIN_WITNESS:
                kwargs['pegin_witness'] = _deserialize_stack(value)
            elif subtype is PSET_ElementsInType.ISSUANCE_INFLATION_KEYS:
                kwargs['issuance_inflation_keys'] = CConfidentialValue(
                    _read_u64(value, what))
            elif subtype is PSET_ElementsInType.ISSUANCE_INFLATION_KEYS_COMMITMENT:
                kwargs['issuance_inflation_keys'] = CConfidentialValue(
                    _read_commitment(value, what))
            elif subtype is PSET_ElementsInType.ISSUANCE_BLINDING_NONCE:
                kwargs['issuance_blinding_nonce'] = _read_bytes(value, 32,
                                                                what)
            elif subtype is PSET_ElementsInType.ISSUANCE_ASSET_ENTROPY:
                kwargs['issuance_asset_entropy'] = _read_bytes(value, 32, what)

        return cls(previous_txid, previous_output_index,
                   partial_sigs=partial_sigs, derivation_map=derivation_map,
                   ripemd160_preimages=preimages[PSET_InKeyType.RIPEMD160],
                   sha256_preimages=preimages[PSET_InKeyType.SHA256],
                   hash160_preimages=preimages[PSET_InKeyType.HASH160],
                   hash256_preimages=preimages[PSET_InKeyType.HASH256],
                   proprietary_fields=proprietary_fields,
                   unknown_fields=unknown_fields, **kwargs)

    def stream_serialize(self, f: BytesIO) -> None:
        if self.non_witness_utxo is not None:
            stream_serialize_field(PSET_InKeyType.NON_WITNESS_UTXO, f,
                                   value=self.non_witness_utxo.serialize())
        if self.witness_utxo is not None:
            stream_serialize_field(PSET_InKeyType.WITNESS_UTXO, f,
                                   value=self.witness_utxo.serialize())
        for pub in sorted(self.partial_sigs):
            stream_serialize_field(PSET_InKeyType.PARTIAL_SIG, f,
                                   key_data=pub, value=self.partial_sigs[pub])
        if self.sighash_type is not None:
            stream_serialize_field(PSET_InKeyType.SIGHASH_TYPE, f,
                                   value=struct.pack(b'<I', self.sighash_type))
        if self.redeem_script is not None:
            stream_serialize_field(PSET_InKeyType.REDEEM_SCRIPT, f,
                                   value=self.redeem_script)
        if self.witness_script is not None:
            stream_serialize_field(PSET_InKeyType.WITNESS_SCRIPT, f,
                                   value=self.witness_script)
        for pub in sorted(self.derivation_map):
            stream_serialize_field(PSET_InKeyType.BIP32_DERIVATION, f,
                                   key_data=pub,
                                   value=self.derivation_map[pub].serialize())
        if self.final_script_sig is not None:
            stream_serialize_field(PSET_InKeyType.FINAL_SCRIPTSIG, f,
                                   value=self.final_script_sig)
        if self.final_script_witness is not None:
            stream_serialize_field(PSET_InKeyType.FINAL_SCRIPTWITNESS, f,
                                   value=self.final_script_witness.serialize())
        for key_type, preimages in (
                (PSET_InKeyType.RIPEMD160, self.ripemd160_preimages),
                (PSET_InKeyType.SHA256, self.sha256_preimages),
                (PSET_InKeyType.HASH160, self.hash160_preimages),
                (PSET_InKeyType.HASH256, self.hash256_preimages)):
            for h in sorted(preimages):
                stream_serialize_field(key_type, f, key_data=h,
                                       value=preimages[h])
        stream_serialize_field(PSET_InKeyType.PREVIOUS_TXID, f,
                               value=self.previous_txid)
        stream_serialize_field(
            PSET_InKeyType.OUTPUT_INDEX, f,
            value=struct.pack(b'<I', self.previous_output_index))
        if self.sequence is not None:
            stream_serialize_field(PSET_InKeyType.SEQUENCE, f,
                                   value=struct.pack(b'<I', self.sequence))
        if self.required_time_locktime is not None:
            stream_serialize_field(
                PSET_InKeyType.REQUIRED_TIME_LOCKTIME, f,
                value=struct.pack(b'<I', self.required_time_locktime))
        if self.required_height_locktime is not None:
            stream_serialize_field(
                PSET_InKeyType.REQUIRED_HEIGHT_LOCKTIME, f,
                value=struct.pack(b'<I', self.required_height_locktime))

        def confidential_value(value: Optional[CConfidentialValue],
                               explicit_type: PSET_ElementsInType,
                               commitment_type: PSET_ElementsInType) -> None:
            if value is None or value.is_null():
                return
            if value.is_explicit():
                _serialize_elements_field(
                    explicit_type, f,
                    value=struct.pack(b'<Q', value.to_amount()))
            else:
                _serialize_elements_field(commitment_type, f,
                                          value=value.commitment)

        def optional(subtype: PSET_ElementsInType,
                     value: Optional[bytes]) -> None:
            if value is not None:
                _serialize_elements_field(subtype, f, value=value)

        confidential_value(self.issuance_value,
                           PSET_ElementsInType.ISSUANCE_VALUE,
                           PSET_ElementsInType.ISSUANCE_VALUE_COMMITMENT)
        optional(PSET_ElementsInType.ISSUANCE_VALUE_RANGEPROOF,
                 self.issuance_value_rangeproof)
        optional(PSET_ElementsInType.ISSUANCE_KEYS_RANGEPROOF,
                 self.issuance_keys_rangeproof)
        optional(PSET_ElementsInType.PEGIN_TX, self.pegin_tx)
        optional(PSET_ElementsInType.PEGIN_TXOUT_PROOF,
                 self.pegin_txout_proof)
        optional(PSET_ElementsInType.PEGIN_GENESIS_HASH,
                 self.pegin_genesis_hash)
        optional(PSET_ElementsInType.PEGIN_CLAIM_SCRIPT,
                 self.pegin_claim_script)
        if self.pegin_value is not None:
            optional(PSET_ElementsInType.PEGIN_VALUE,
                     struct.pack(b'<Q', self.pegin_value))
        if self.pegin_witness is not None:
            optional(PSET_ElementsInType.PEGIN_WITNESS,
                     _serialize_stack(self.pegin_witness))
        confidential_value(
            self.issuance_inflation_keys,
            PSET_ElementsInType.ISSUANCE_INFLATION_KEYS,
            PSET_ElementsInType.ISSUANCE_INFLATION_KEYS_COMMITMENT)
        optional(PSET_ElementsInType.ISSUANCE_BLINDING_NONCE,
                 self.issuance_blinding_nonce)
        optional(PSET_ElementsInType.ISSUANCE_ASSET_ENTROPY,
                 self.issuance_asset_entropy)

        stream_serialize_proprietary_fields(self.proprietary_fields, f)
        stream_serialize_unknown_fields(self.unknown_fields, f)
        f.write(PSBT_SEPARATOR)

    def merge(self, other: 'PSET_Input') -> None:
        if self.previous_txid != other.previous_txid \
                or self.previous_output_index != other.previous_output_index:
            raise ValueError('inputs spend different outputs')
        for name in self._optional_fields:
            _merge_optional(self, other, name)
        for name in self._map_fields:
            _merge_map(getattr(self, name), getattr(other, name))
        merge_proprietary_fields(self.proprietary_fields,
                                 other.proprietary_fields)
        merge_unknown_fields(self.unknown_fields, other.unknown_fields)


class PSET_Output:
    """Output map of a PSET. The ECDH pubkey is the nonce
    of the transaction output"""

    amount: CConfidentialValue
    asset: CConfidentialAsset
    script_pubkey: CElementsScript
    redeem_script: Optional[CElementsScript]
    witness_script: Optional[CElementsScript]
    derivation_map: Dict[CPubKey, PSBT_KeyDerivationInfo]
    value_rangeproof: Optional[bytes]
    asset_surjection_proof: Optional[bytes]
    blinding_key: Optional[CPubKey]
    ecdh_pubkey: Optional[CPubKey]
    blinder_index: Optional[int]
    proprietary_fields: Dict[bytes, List[PSBT_ProprietaryTypeData]]
    unknown_fields: List[PSBT_UnknownTypeData]

    _optional_fields = (
        'redeem_script', 'witness_script', 'value_rangeproof',
        'asset_surjection_proof', 'blinding_key', 'ecdh_pubkey',
        'blinder_index',
    )

    def __init__(self, amount: CConfidentialValue = CConfidentialValue(),
                 asset: CConfidentialAsset = CConfidentialAsset(),
                 script_pubkey: CElementsScript = CElementsScript(),
                 **kwargs: Any) -> None:
        self.amount = amount
        self.asset = asset
        self.script_pubkey = CElementsScript(script_pubkey)
        for name in self._optional_fields:
            setattr(self, name, kwargs.pop(name, None))
        self.derivation_map = OrderedDict(kwargs.pop('derivation_map', None)
                                          or {})
        self.proprietary_fields = OrderedDict(
            kwargs.pop('proprietary_fields', None) or {})
        self.unknown_fields = list(kwargs.pop('unknown_fields', None) or [])
        if kwargs:
            raise TypeError('unexpected arguments: {}'
                            .format(', '.join(kwargs)))

    @classmethod
    def from_txout(cls, txout: CElementsTxOut,
                   witness: Optional[CElementsTxOutWitness]) -> 'PSET_Output':
        outp = cls(txout.nValue, txout.nAsset, txout.scriptPubKey)
        if txout.nNonce.is_commitment():
            outp.ecdh_pubkey = CPubKey(txout.nNonce.commitment)
        if witness is not None:
            if len(witness.rangeproof):
                outp.value_rangeproof = bytes(witness.rangeproof)
            if len(witness.surjectionproof):
                outp.asset_surjection_proof = bytes(witness.surjectionproof)
        return outp

    def to_txout(self) -> Tuple[CElementsTxOut, CElementsTxOutWitness]:
        nonce = CConfidentialNonce()
        if self.ecdh_pubkey is not None:
            nonce = CConfidentialNonce(bytes(self.ecdh_pubkey))
        txout = CElementsTxOut(self.amount, self.script_pubkey, self.asset,
                               nonce)
        witness = CElementsTxOutWitness(self.asset_surjection_proof or b'',
                                        self.value_rangeproof or b'')
        return txout, witness

    @classmethod
    def stream_deserialize(cls, f: BytesIO, index: int) -> 'PSET_Output':
        kwargs: Dict[str, Any] = {}
        derivation_map: Dict[CPubKey, PSBT_KeyDerivationInfo] = OrderedDict()
        proprietary_fields: Dict[bytes, List[PSBT_ProprietaryTypeData]] = \
            OrderedDict()
        unknown_fields: List[PSBT_UnknownTypeData] = []
        amount = CConfidentialValue()
        asset = CConfidentialAsset()
        script_pubkey = None

        def descr(msg: str) -> str:
            return '{} for output at index {}'.format(msg, index)

        keys_seen: Set[bytes] = set()
        for key_type, key_data, value in \
                read_psbt_keymap(f, keys_seen, PSET_OutKeyType,
                                 proprietary_fields, unknown_fields):
            if key_type is PSET_OutKeyType.BIP32_DERIVATION:
                pub = _read_pubkey(key_data, descr(key_type.name))
                derivation_map[pub] = PSBT_KeyDerivationInfo.deserialize(value)
                continue

            ensure_empty_key_data(key_type, key_data, descr(''))
            if key_type is PSET_OutKeyType.REDEEM_SCRIPT:
                kwargs['redeem_script'] = CElementsScript(value)
            elif key_type is PSET_OutKeyType.WITNESS_SCRIPT:
                kwargs['witness_script'] = CElementsScript(value)
            elif key_type is PSET_OutKeyType.AMOUNT:
                amount = CConfidentialValue(
                    _read_u64(value, descr(key_type.name)))
            elif key_type is PSET_OutKeyType.SCRIPT:
                script_pubkey = CElementsScript(value)
            else:
                raise AssertionError('unhandled key type {}'.format(key_type))

        if script_pubkey is None:
            raise SerializationError(descr('Output script is required'))

        for subtype, key_data, value in _pop_elements_fields(
                proprietary_fields, PSET_ElementsOutType):
            what = descr(subtype.name)
            if key_data:
                raise SerializationError(
                    'Unexpected data after key type {}'.format(what))
            # commitments take the place of explicit amount and asset
            if subtype is PSET_ElementsOutType.VALUE_COMMITMENT:
                amount = CConfidentialValue(_read_commitment(value, what))
            elif subtype is PSET_ElementsOutType.ASSET:
                if not asset.is_commitment():
                    asset = CConfidentialAsset(
                        CAsset(_read_bytes(value, 32, what)))
            elif subtype is PSET_ElementsOutType.ASSET_COMMITMENT:
                asset = CConfidentialAsset(_read_commitment(value, what))
            elif subtype is PSET_ElementsOutType.VALUE_RANGEPROOF:
                kwargs['value_rangeproof'] = value
            elif subtype is PSET_ElementsOutType.ASSET_SURJECTION_PROOF:
                kwargs['asset_surjection_proof'] = value
            elif subtype is PSET_ElementsOutType.BLINDING_PUBKEY:
                kwargs['blinding_key'] = _read_pubkey(value, what)
            elif subtype is PSET_ElementsOutType.ECDH_PUBKEY:
                kwargs['ecdh_pubkey'] = _read_pubkey(value, what)
            elif subtype is PSET_ElementsOutType.BLINDER_INDEX:
                kwargs['blinder_index'] = _read_u32(value, what)

        return cls(amount, asset, script_pubkey,
                   derivation_map=derivation_map,
                   proprietary_fields=proprietary_fields,
                   unknown_fields=unknown_fields, **kwargs)

    def stream_serialize(self, f: BytesIO) -> None:
        if self.redeem_script is not None:
            stream_serialize_field(PSET_OutKeyType.REDEEM_SCRIPT, f,
                                   value=self.redeem_script)
        if self.witness_script is not None:
            stream_serialize_field(PSET_OutKeyType.WITNESS_SCRIPT, f,
                                   value=self.witness_script)
        for pub in sorted(self.derivation_map):
            stream_serialize_field(PSET_OutKeyType.BIP32_DERIVATION, f,
                                   key_data=pub,
                                   value=self.derivation_map[pub].serialize())
        if self.amount.is_explicit():
            stream_serialize_field(
                PSET_OutKeyType.AMOUNT, f,
                value=struct.pack(b'<Q', self.amount.to_amount()))
        stream_serialize_field(PSET_OutKeyType.SCRIPT, f,
                               value=self.script_pubkey)

        if self.amount.is_commitment():
            _serialize_elements_field(PSET_ElementsOutType.VALUE_COMMITMENT,
                                      f, value=self.amount.commitment)
        if self.asset.is_explicit():
            _serialize_elements_field(PSET_ElementsOutType.ASSET, f,
                                      value=self.asset.to_asset().data)
        elif self.asset.is_commitment():
            _serialize_elements_field(PSET_ElementsOutType.ASSET_COMMITMENT,
                                      f, value=self.asset.commitment)
        if self.value_rangeproof is not None:
            _serialize_elements_field(PSET_ElementsOutType.VALUE_RANGEPROOF,
                                      f, value=self.value_rangeproof)
        if self.asset_surjection_proof is not None:
            _serialize_elements_field(
                PSET_ElementsOutType.ASSET_SURJECTION_PROOF, f,
                value=self.asset_surjection_proof)
        if self.blinding_key is not None:
            _serialize_elements_field(PSET_ElementsOutType.BLINDING_PUBKEY,
                                      f, value=self.blinding_key)
        if self.ecdh_pubkey is not None:
            _serialize_elements_field(PSET_ElementsOutType.ECDH_PUBKEY, f,
                                      value=self.ecdh_pubkey)
        if self.blinder_index is not None:
            _serialize_elements_field(
                PSET_ElementsOutType.BLINDER_INDEX, f,
                value=struct.pack(b'<I', self.blinder_index))

        stream_serialize_proprietary_fields(self.proprietary_fields, f)
        stream_serialize_unknown_fields(self.unknown_fields, f)
        f.write(PSBT_SEPARATOR)

    def merge(self, other: 'PSET_Output') -> None:
        if self.amount.is_null():
            self.amount = other.amount
        if self.asset.is_null():
            self.asset = other.asset
        if not len(self.script_pubkey):
            self.script_pubkey = other.script_pubkey
        for name in self._optional_fields:
            _merge_optional(self, other, name)
        _merge_map(self.derivation_map, other.derivation_map)
        merge_proprietary_fields(self.proprietary_fields,
                                 other.proprietary_fields)
        merge_unknown_fields(self.unknown_fields, other.unknown_fields)


T_PartiallySignedElementsTransaction = TypeVar(
    'T_PartiallySignedElementsTransaction',
    bound='PartiallySignedElementsTransaction')


class PartiallySignedElementsTransaction(Serializable):
    """A PSET: global map, then one map per input and per output.
    The objects are mutable and are edited in place"""

    glob: PSET_Global
    inputs: List[PSET_Input]
    outputs: List[PSET_Output]

    def __init__(self, glob: Optional[PSET_Global] = None,
                 inputs: Optional[List[PSET_Input]] = None,
                 outputs: Optional[List[PSET_Output]] = None) -> None:
        self.glob = glob or PSET_Global()
        self.inputs = list(inputs or [])
        self.outputs = list(outputs or [])

    @classmethod
    def from_tx(cls: Type[T_PartiallySignedElementsTransaction],
                tx: CElementsTransaction
                ) -> T_PartiallySignedElementsTransaction:
        """Create PSET for the transaction. Final scripts of the inputs
        are not carried over"""
        glob = PSET_Global(tx_version=tx.nVersion,
                           fallback_locktime=tx.nLockTime)
        inputs = []
        for i, txin in enumerate(tx.vin):
            wit = (tx.wit.vtxinwit[i] if tx.wit.vtxinwit
                   else CElementsTxInWitness())
            inputs.append(PSET_Input.from_txin(txin, wit))
        outputs = []
        for i, txout in enumerate(tx.vout):
            outwit = tx.wit.vtxoutwit[i] if tx.wit.vtxoutwit else None
            outputs.append(PSET_Output.from_txout(txout, outwit))
        return cls(glob, inputs, outputs)

    @classmethod
    def stream_deserialize(cls: Type[T_PartiallySignedElementsTransaction],
                           f: BytesIO, **kwargs: Any
                           ) -> T_PartiallySignedElementsTransaction:
        magic = ser_read(f, len(PSET_MAGIC))
        if magic != PSET_MAGIC:
            raise SerializationError('Invalid PSET magic bytes')

        with elements_params():
            glob, input_count, output_count = PSET_Global.stream_deserialize(f)
            inputs = [PSET_Input.stream_deserialize(f, i)
                      for i in range(input_count)]
            outputs = [PSET_Output.stream_deserialize(f, i)
                       for i in range(output_count)]

        return cls(glob, inputs, outputs)

    def stream_serialize(self, f: BytesIO, **kwargs: Any) -> None:
        f.write(PSET_MAGIC)
        with elements_params():
            self.glob.stream_serialize(f, len(self.inputs), len(self.outputs))
            for inp in self.inputs:
                inp.stream_serialize(f)
            for outp in self.outputs:
                outp.stream_serialize(f)

    @classmethod
    def from_base64(cls: Type[T_PartiallySignedElementsTransaction],
                    b64_data: str) -> T_PartiallySignedElementsTransaction:
        return cls.deserialize(base64.b64decode(b64_data, validate=True))

    def to_base64(self) -> str:
        return base64.b64encode(self.serialize()).decode('ascii')

    def clone(self: T_PartiallySignedElementsTransaction
              ) -> T_PartiallySignedElementsTransaction:
        return self.__class__.deserialize(self.serialize())

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, PartiallySignedElementsTransaction):
            return NotImplemented
        return self.serialize() == other.serialize()

    def __hash__(self) -> int:
        return hash(self.serialize())

    def get_locktime(self) -> int:
        """Transaction locktime, computed from the required locktimes
        of the inputs and the fallback locktime"""
        with_time = [inp.required_time_locktime for inp in self.inputs
                     if inp.required_time_locktime is not None]
        with_height = [inp.required_height_locktime for inp in self.inputs
                       if inp.required_height_locktime is not None]
        with_any = [inp for inp in self.inputs
                    if inp.required_time_locktime is not None
                    or inp.required_height_locktime is not None]

        if not with_any:
            return self.glob.fallback_locktime or 0

        # height is preferred when every input with a requirement supports it
        if len(with_height) == len(with_any):
            return max(with_height)
        if len(with_time) == len(with_any):
            return max(with_time)

        raise InvalidFieldCombination(
            'inputs have conflicting locktime requirements')

    def get_unsigned_tx(self) -> CElementsTransaction:
        """The transaction described by the PSET, with final scripts
        and witnesses of the inputs that have them"""
        with elements_params():
            vin = []
            vinwit = []
            for inp in self.inputs:
                txin, txinwit = inp.to_txin()
                vin.append(txin)
                vinwit.append(txinwit)
            vout = []
            voutwit = []
            for outp in self.outputs:
                txout, txoutwit = outp.to_txout()
                vout.append(txout)
                voutwit.append(txoutwit)

            return CElementsTransaction(
                vin, vout, self.get_locktime(), self.glob.tx_version,
                CElementsTxWitness(vinwit, voutwit))

    def extract_transaction(self) -> CElementsTransaction:
        for i, inp in enumerate(self.inputs):
            if not inp.is_final():
                raise ExtractionFailed('input is not finalized', index=i)
        return self.get_unsigned_tx()

    def merge(self, other: 'PartiallySignedElementsTransaction') -> None:
        """Merge the other PSET into this one. The fields of this PSET
        take priority, missing fields are taken from the other PSET.
        Raises ValueError if the PSETs describe different transactions"""
        if len(self.inputs) != len(other.inputs):
            raise ValueError('PSETs have different number of inputs')
        if len(self.outputs) != len(other.outputs):
            raise ValueError('PSETs have different number of outputs')

        self.glob.merge(other.glob)
        for i, (inp, other_inp) in enumerate(zip(self.inputs, other.inputs)):
            try:
                inp.merge(other_inp)
            except ValueError as e:
                raise ValueError('input {}: {}'.format(i, e))
        for i, (outp, other_outp) in enumerate(zip(self.outputs,
                                                   other.outputs)):
            outp.merge(other_outp)


def parse_pset(data: bytes) -> PartiallySignedElementsTransaction:
    """Deserialize PSET, MalformedInput on failure"""
    try:
        return PartiallySignedElementsTransaction.deserialize(data)
    except (SerializationError, ValueError) as e:
        raise MalformedInput('invalid PSET: {}'.format(e))


def create_pset(tx_bytes: bytes) -> str:
    """Create PSET from an unsigned raw transaction, return it in base64"""
    from .tx import deserialize_transaction
    with elements_params():
        tx = deserialize_transaction(tx_bytes)
        return PartiallySignedElementsTransaction.from_tx(tx).to_base64()


__all__ = (
    'PSET_MAGIC',
    'PSET_VERSION',
    'PSET_GlobalKeyType',
    'PSET_InKeyType',
    'PSET_OutKeyType',
    'PSET_ElementsGlobalType',
    'PSET_ElementsInType',
    'PSET_ElementsOutType',
    'PSET_Global',
    'PSET_Input',
    'PSET_Output',
    'PartiallySignedElementsTransaction',
    'parse_pset',
    'create_pset',
)
