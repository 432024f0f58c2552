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

"""Consensus serialization of Elements transactions.

The classes here plug into the class dispatch of python-bitcointx, so that
while Elements chain parameters are selected, CTransaction, CTxIn and the
other generic classes resolve to their Elements counterparts below.

Compared to bitcoin, an Elements transaction has
  - a flag byte that is always present (0 or 1, no segwit marker),
  - issuance and peg-in bits in the high bits of the prevout index,
  - explicit-or-committed asset, value and nonce in each output,
  - the locktime before the witness, and
  - a witness for each output (surjection proof and range proof)."""

import struct
from io import BytesIO
from typing import List, Tuple, Iterable, Optional, Type, TypeVar, Any, Union

from bitcointx.core import (
    CoreCoinClassDispatcher, CoreCoinClass, CoreCoinParams,
    Uint256, bytes_repr, b2x, b2lx,
    COutPoint, CMutableOutPoint,

    CTransaction, CTxIn, CTxOut, CTxWitness, CTxInWitness, CTxOutWitness,

    CMutableTransaction, CMutableTxIn, CMutableTxOut, CMutableTxWitness,
    CMutableTxInWitness, CMutableTxOutWitness,
)

from bitcointx.util import (
    no_bool_use_as_property, ensure_isinstance,
    ReadOnlyField, WriteableField
)
from bitcointx.core.script import CScriptWitness, CScript
from bitcointx.core.serialize import (
    ImmutableSerializable, SerializationError,
    BytesSerializer, VectorSerializer,
    ser_read
)

from .script import CElementsScript, ScriptElementsClassDispatcher

# High bits of the serialized prevout index
OUTPOINT_ISSUANCE_FLAG = (1 << 31)
OUTPOINT_PEGIN_FLAG = (1 << 30)
OUTPOINT_INDEX_MASK = 0x3fffffff

NULL_INDEX = 0xffffffff

# value, asset, genesis hash, claim script, mainchain tx, txout proof
PEGIN_WITNESS_SIZE = 6


def _set_fields(obj: object, **fields: Any) -> None:
    for name, value in fields.items():
        object.__setattr__(obj, name, value)


def _read_u32(f: BytesIO) -> int:
    return int(struct.unpack(b'<I', ser_read(f, 4))[0])


class CoreElementsClassDispatcher(CoreCoinClassDispatcher,
                                  depends=[ScriptElementsClassDispatcher]):
    ...


class CoreElementsClass(CoreCoinClass, metaclass=CoreElementsClassDispatcher):
    ...


class CoreElementsParams(CoreCoinParams, CoreElementsClass):
    ...


class WitnessSerializationError(SerializationError):
    pass


class TxInSerializationError(SerializationError):
    pass


T_CConfidentialCommitmentBase = TypeVar('T_CConfidentialCommitmentBase',
                                        bound='CConfidentialCommitmentBase')


class CConfidentialCommitmentBase(ImmutableSerializable):
    """Serialized form of an asset, value or nonce field.

    Empty bytes mean the field is null. Otherwise the first byte is 1
    for an explicit field, or one of the two class prefixes for a 33-byte
    commitment. Null is written as a single zero byte."""

    __slots__: List[str] = ['commitment']

    _explicitSize: int
    _prefixA: int
    _prefixB: int

    _committedSize: int = 33

    commitment: bytes

    def __init__(self, commitment: Union[bytes, bytearray] = b'') -> None:
        ensure_isinstance(commitment, (bytes, bytearray), 'commitment')
        if len(commitment) not in (0, self._explicitSize, self._committedSize):
            raise ValueError(
                '{}: unexpected length {}'
                .format(self.__class__.__name__, len(commitment)))
        _set_fields(self, commitment=bytes(commitment))

    @classmethod
    def stream_deserialize(cls: Type[T_CConfidentialCommitmentBase],
                           f: BytesIO, **kwargs: Any
                           ) -> T_CConfidentialCommitmentBase:
        prefix = ser_read(f, 1)[0]
        if prefix == 0:
            return cls()
        if prefix == 1:
            size = cls._explicitSize
        elif prefix in (cls._prefixA, cls._prefixB):
            size = cls._committedSize
        else:
            raise WitnessSerializationError(
                'bad prefix 0x{:02x} for {}'.format(prefix, cls.__name__))
        return cls(bytes([prefix]) + ser_read(f, size - 1))

    def stream_serialize(self, f: BytesIO, **kwargs: Any) -> None:
        f.write(self.commitment or b'\x00')

    @no_bool_use_as_property
    def is_null(self) -> bool:
        return not self.commitment

    @no_bool_use_as_property
    def is_explicit(self) -> bool:
        return (len(self.commitment) == self._explicitSize
                and self.commitment[0] == 1)

    @no_bool_use_as_property
    def is_commitment(self) -> bool:
        return (len(self.commitment) == self._committedSize
                and self.commitment[0] in (self._prefixA, self._prefixB))

    @no_bool_use_as_property
    def is_valid(self) -> bool:
        return self.is_null() or self.is_explicit() or self.is_commitment()

    def _explicit_repr(self) -> str:
        raise NotImplementedError

    def __repr__(self) -> str:
        if self.is_explicit():
            arg = self._explicit_repr()
        elif self.is_null():
            arg = ''
        else:
            arg = bytes_repr(self.commitment)
        return '{}({})'.format(self.__class__.__name__, arg)


class CAsset(Uint256):
    """Asset id. Shown in reversed byte order, the same way as txids"""

    def to_hex(self) -> str:
        return b2lx(self.data)

    def __repr__(self) -> str:
        return "CAsset(lx('{}'))".format(self.to_hex())


class CConfidentialAsset(CConfidentialCommitmentBase):
    _explicitSize = 33
    _prefixA = 10
    _prefixB = 11

    def __init__(self, asset: Union[CAsset, bytes, bytearray] = b'') -> None:
        ensure_isinstance(asset, (CAsset, bytes, bytearray), 'asset')
        if isinstance(asset, CAsset):
            asset = b'\x01' + asset.data
        super().__init__(asset)

    def to_asset(self) -> CAsset:
        if not self.is_explicit():
            raise TypeError('asset is not explicit')
        return CAsset(self.commitment[1:])

    def _explicit_repr(self) -> str:
        return repr(self.to_asset())


class CConfidentialValue(CConfidentialCommitmentBase):
    _explicitSize = 9
    _prefixA = 8
    _prefixB = 9

    def __init__(self, value: Union[int, bytes, bytearray] = b'') -> None:
        ensure_isinstance(value, (int, bytes, bytearray), 'value')
        if isinstance(value, int):
            if value < 0 or value > 0xffffffffffffffff:
                raise ValueError('explicit value out of range')
            value = b'\x01' + struct.pack(b'>Q', value)
        super().__init__(value)

    def to_amount(self) -> int:
        if not self.is_explicit():
            raise TypeError('value is not explicit')
        return int(struct.unpack(b'>Q', self.commitment[1:])[0])

    def _explicit_repr(self) -> str:
        return str(self.to_amount())


class CConfidentialNonce(CConfidentialCommitmentBase):
    """Output nonce. A commitment here is the ECDH pubkey of the sender"""

    _explicitSize = 33
    _prefixA = 2
    _prefixB = 3

    @classmethod
    def from_explicit(cls, nonce: Union[bytes, bytearray]
                      ) -> 'CConfidentialNonce':
        if len(nonce) != 32:
            raise ValueError('explicit nonce must be 32 bytes')
        return cls(b'\x01' + bytes(nonce))

    def to_explicit(self) -> bytes:
        if not self.is_explicit():
            raise TypeError('nonce is not explicit')
        return self.commitment[1:]

    def _explicit_repr(self) -> str:
        return "x('{}')".format(b2x(self.commitment))


class CElementsOutPoint(COutPoint, CoreElementsClass):
    __slots__: List[str] = []


class CElementsMutableOutPoint(CElementsOutPoint, CMutableOutPoint,
                               mutable_of=CElementsOutPoint):
    __slots__: List[str] = []


T_CAssetIssuance = TypeVar('T_CAssetIssuance', bound='CAssetIssuance')


class CAssetIssuance(ImmutableSerializable):
    """Issuance data attached to an input.

    For a new asset assetBlindingNonce is zero and assetEntropy is the
    contract hash. For a reissuance assetBlindingNonce is the blinding
    factor of the spent reissuance token, and assetEntropy is the
    entropy of the asset."""

    __slots__: List[str] = ['assetBlindingNonce', 'assetEntropy', 'nAmount',
                            'nInflationKeys']

    assetBlindingNonce: ReadOnlyField[Uint256]
    assetEntropy: ReadOnlyField[Uint256]
    nAmount: ReadOnlyField[CConfidentialValue]
    nInflationKeys: ReadOnlyField[CConfidentialValue]

    def __init__(self, assetBlindingNonce: Uint256 = Uint256(),
                 assetEntropy: Uint256 = Uint256(),
                 nAmount: CConfidentialValue = CConfidentialValue(),
                 nInflationKeys: CConfidentialValue = CConfidentialValue()
                 ) -> None:
        ensure_isinstance(assetBlindingNonce, Uint256, 'assetBlindingNonce')
        ensure_isinstance(assetEntropy, Uint256, 'assetEntropy')
        ensure_isinstance(nAmount, CConfidentialValue, 'nAmount')
        ensure_isinstance(nInflationKeys, CConfidentialValue, 'nInflationKeys')
        _set_fields(self, assetBlindingNonce=assetBlindingNonce,
                    assetEntropy=assetEntropy, nAmount=nAmount,
                    nInflationKeys=nInflationKeys)

    @no_bool_use_as_property
    def is_null(self) -> bool:
        return self.nAmount.is_null() and self.nInflationKeys.is_null()

    @classmethod
    def stream_deserialize(cls: Type[T_CAssetIssuance], f: BytesIO,
                           **kwargs: Any) -> T_CAssetIssuance:
        nonce = Uint256.stream_deserialize(f)
        entropy = Uint256.stream_deserialize(f)
        amount = CConfidentialValue.stream_deserialize(f)
        keys = CConfidentialValue.stream_deserialize(f)
        return cls(nonce, entropy, amount, keys)

    def stream_serialize(self, f: BytesIO, **kwargs: Any) -> None:
        for field in (self.assetBlindingNonce, self.assetEntropy,
                      self.nAmount, self.nInflationKeys):
            field.stream_serialize(f)

    def __repr__(self) -> str:
        return 'CAssetIssuance({}, {}, {!r}, {!r})'.format(
            bytes_repr(self.assetBlindingNonce.data),
            bytes_repr(self.assetEntropy.data),
            self.nAmount, self.nInflationKeys)


T_CElementsTxIn = TypeVar('T_CElementsTxIn', bound='CElementsTxIn')


class CElementsTxIn(CTxIn, CoreElementsClass):
    """Transaction input. prevout.n never carries the issuance and peg-in
    flags here, they are kept in assetIssuance and is_pegin instead and
    only appear in the serialized form."""

    __slots__: List[str] = ['prevout', 'scriptSig', 'nSequence',
                            'assetIssuance', 'is_pegin']

    prevout: ReadOnlyField[CElementsOutPoint]  # type: ignore
    scriptSig: ReadOnlyField[CElementsScript]  # type: ignore
    nSequence: ReadOnlyField[int]
    assetIssuance: ReadOnlyField[CAssetIssuance]
    is_pegin: ReadOnlyField[bool]

    def __init__(self, prevout: Optional[CElementsOutPoint] = None,
                 scriptSig: CScript = CElementsScript(),
                 nSequence: int = 0xffffffff,
                 assetIssuance: CAssetIssuance = CAssetIssuance(),
                 is_pegin: bool = False) -> None:
        ensure_isinstance(assetIssuance, CAssetIssuance, 'assetIssuance')
        ensure_isinstance(is_pegin, bool, 'is_pegin')
        super().__init__(prevout, CElementsScript(scriptSig), nSequence)
        _set_fields(self, assetIssuance=assetIssuance, is_pegin=is_pegin)

    @classmethod
    def stream_deserialize(cls: Type[T_CElementsTxIn], f: BytesIO,
                           **kwargs: Any) -> T_CElementsTxIn:
        outpoint = CElementsOutPoint.stream_deserialize(f)
        scriptSig = CElementsScript(BytesSerializer.stream_deserialize(f))
        nSequence = _read_u32(f)

        n = outpoint.n
        if n == NULL_INDEX:
            # coinbase
            return cls(outpoint, scriptSig, nSequence)

        issuance = CAssetIssuance()
        if n & OUTPOINT_ISSUANCE_FLAG:
            issuance = CAssetIssuance.stream_deserialize(f)

        return cls(CElementsOutPoint(outpoint.hash, n & OUTPOINT_INDEX_MASK),
                   scriptSig, nSequence, issuance,
                   bool(n & OUTPOINT_PEGIN_FLAG))

    def stream_serialize(self, f: BytesIO, for_sighash: bool = False,
                         **kwargs: Any) -> None:
        n = self.prevout.n
        with_issuance = False
        if n != NULL_INDEX:
            if n & ~OUTPOINT_INDEX_MASK:
                raise TxInSerializationError(
                    'prevout index must not have the flag bits set')
            with_issuance = not self.assetIssuance.is_null()
            # the sighash commits to the issuance separately
            if not for_sighash:
                if with_issuance:
                    n |= OUTPOINT_ISSUANCE_FLAG
                if self.is_pegin:
                    n |= OUTPOINT_PEGIN_FLAG

        f.write(self.prevout.hash)
        f.write(struct.pack(b'<I', n))
        BytesSerializer.stream_serialize(self.scriptSig, f)
        f.write(struct.pack(b'<I', self.nSequence))
        if with_issuance:
            self.assetIssuance.stream_serialize(f)

    @classmethod
    def from_instance(cls: Type[T_CElementsTxIn],  # type: ignore
                      txin: 'CElementsTxIn') -> T_CElementsTxIn:
        return cls._from_instance(
            txin, COutPoint.from_outpoint(txin.prevout), txin.scriptSig,
            txin.nSequence, txin.assetIssuance, txin.is_pegin)

    @classmethod
    def from_txin(cls: Type[T_CElementsTxIn],  # type: ignore
                  txin: 'CElementsTxIn') -> T_CElementsTxIn:
        return cls.from_instance(txin)

    def __repr__(self) -> str:
        return '{}({!r}, {!r}, 0x{:x}, {!r}, is_pegin={})'.format(
            self.__class__.__name__, self.prevout, self.scriptSig,
            self.nSequence, self.assetIssuance, self.is_pegin)


class CElementsMutableTxIn(CElementsTxIn, CMutableTxIn,  # type: ignore
                           mutable_of=CElementsTxIn):
    __slots__: List[str] = []

    prevout: WriteableField[CElementsMutableOutPoint]  # type: ignore
    scriptSig: WriteableField[CElementsScript]
    nSequence: WriteableField[int]
    assetIssuance: WriteableField[CAssetIssuance]
    is_pegin: WriteableField[bool]


T_CElementsTxOut = TypeVar('T_CElementsTxOut', bound='CElementsTxOut')


class CElementsTxOut(CTxOut, CoreElementsClass):
    """Transaction output. The serialized field order is asset, value,
    nonce, scriptPubKey, but the constructor takes value and scriptPubKey
    first, like the bitcoin CTxOut does."""

    __slots__: List[str] = ['nValue', 'scriptPubKey', 'nAsset', 'nNonce']

    nValue: ReadOnlyField[CConfidentialValue]  # type: ignore
    scriptPubKey: ReadOnlyField[CElementsScript]  # type: ignore
    nAsset: ReadOnlyField[CConfidentialAsset]
    nNonce: ReadOnlyField[CConfidentialNonce]

    def __init__(self, nValue: CConfidentialValue = CConfidentialValue(),
                 scriptPubKey: CScript = CElementsScript(),
                 nAsset: CConfidentialAsset = CConfidentialAsset(),
                 nNonce: CConfidentialNonce = CConfidentialNonce()) -> None:
        ensure_isinstance(nValue, CConfidentialValue, 'nValue')
        ensure_isinstance(nAsset, CConfidentialAsset, 'nAsset')
        ensure_isinstance(nNonce, CConfidentialNonce, 'nNonce')
        # the base class only knows integer values
        super().__init__(-1, CElementsScript(scriptPubKey))
        _set_fields(self, nValue=nValue, nAsset=nAsset, nNonce=nNonce)

    @classmethod
    def stream_deserialize(cls: Type[T_CElementsTxOut], f: BytesIO,
                           **kwargs: Any) -> T_CElementsTxOut:
        nAsset = CConfidentialAsset.stream_deserialize(f)
        nValue = CConfidentialValue.stream_deserialize(f)
        nNonce = CConfidentialNonce.stream_deserialize(f)
        spk = CElementsScript(BytesSerializer.stream_deserialize(f))
        return cls(nValue, spk, nAsset, nNonce)

    def stream_serialize(self, f: BytesIO, **kwargs: Any) -> None:
        for field in (self.nAsset, self.nValue, self.nNonce):
            field.stream_serialize(f)
        BytesSerializer.stream_serialize(self.scriptPubKey, f)

    @no_bool_use_as_property
    def is_null(self) -> bool:
        return (self.nAsset.is_null() and self.nValue.is_null()
                and self.nNonce.is_null() and not self.scriptPubKey)

    @no_bool_use_as_property
    def is_fee(self) -> bool:
        """Fee outputs have empty scriptPubKey and explicit asset and value"""
        return (not self.scriptPubKey
                and self.nValue.is_explicit() and self.nAsset.is_explicit())

    @classmethod
    def from_instance(cls: Type[T_CElementsTxOut],  # type: ignore
                      txout: 'CElementsTxOut') -> T_CElementsTxOut:
        return cls._from_instance(txout, txout.nValue, txout.scriptPubKey,
                                  txout.nAsset, txout.nNonce)

    @classmethod
    def from_txout(cls: Type[T_CElementsTxOut],  # type: ignore
                   txout: 'CElementsTxOut') -> T_CElementsTxOut:
        return cls.from_instance(txout)

    def __repr__(self) -> str:
        return '{}({!r}, {!r}, {!r}, {!r})'.format(
            self.__class__.__name__, self.nValue, self.scriptPubKey,
            self.nAsset, self.nNonce)


class CElementsMutableTxOut(CElementsTxOut, CMutableTxOut,  # type: ignore
                            mutable_of=CElementsTxOut):
    __slots__: List[str] = []

    nValue: WriteableField[CConfidentialValue]
    scriptPubKey: WriteableField[CElementsScript]
    nAsset: WriteableField[CConfidentialAsset]
    nNonce: WriteableField[CConfidentialNonce]


T_CElementsTxInWitness = TypeVar('T_CElementsTxInWitness',
                                 bound='CElementsTxInWitness')


class CElementsTxInWitness(CTxInWitness, CoreElementsClass):
    """Input witness: two issuance range proofs, the script witness and
    the peg-in witness, serialized in that order"""

    __slots__: List[str] = ['scriptWitness', 'issuanceAmountRangeproof',
                            'inflationKeysRangeproof', 'pegin_witness']

    scriptWitness: ReadOnlyField[CScriptWitness]
    issuanceAmountRangeproof: ReadOnlyField[CElementsScript]
    inflationKeysRangeproof: ReadOnlyField[CElementsScript]
    pegin_witness: ReadOnlyField[CScriptWitness]

    def __init__(self, scriptWitness: CScriptWitness = CScriptWitness(),
                 issuanceAmountRangeproof: Union[bytes, bytearray] = b'',
                 inflationKeysRangeproof: Union[bytes, bytearray] = b'',
                 pegin_witness: CScriptWitness = CScriptWitness()) -> None:
        ensure_isinstance(scriptWitness, CScriptWitness, 'scriptWitness')
        ensure_isinstance(pegin_witness, CScriptWitness, 'pegin_witness')
        ensure_isinstance(issuanceAmountRangeproof, (bytes, bytearray),
                          'issuanceAmountRangeproof')
        ensure_isinstance(inflationKeysRangeproof, (bytes, bytearray),
                          'inflationKeysRangeproof')
        _set_fields(
            self, scriptWitness=scriptWitness, pegin_witness=pegin_witness,
            issuanceAmountRangeproof=CElementsScript(issuanceAmountRangeproof),
            inflationKeysRangeproof=CElementsScript(inflationKeysRangeproof))

    @no_bool_use_as_property
    def is_null(self) -> bool:
        return (not self.issuanceAmountRangeproof
                and not self.inflationKeysRangeproof
                and self.scriptWitness.is_null()
                and self.pegin_witness.is_null())

    @classmethod
    def stream_deserialize(cls: Type[T_CElementsTxInWitness], f: BytesIO,
                           **kwargs: Any) -> T_CElementsTxInWitness:
        amount_proof = BytesSerializer.stream_deserialize(f)
        keys_proof = BytesSerializer.stream_deserialize(f)
        script_witness = CScriptWitness.stream_deserialize(f)
        pegin_witness = CScriptWitness.stream_deserialize(f)
        return cls(script_witness, amount_proof, keys_proof, pegin_witness)

    def stream_serialize(self, f: BytesIO, **kwargs: Any) -> None:
        BytesSerializer.stream_serialize(self.issuanceAmountRangeproof, f)
        BytesSerializer.stream_serialize(self.inflationKeysRangeproof, f)
        self.scriptWitness.stream_serialize(f)
        self.pegin_witness.stream_serialize(f)

    @classmethod
    def from_instance(cls: Type[T_CElementsTxInWitness],  # type: ignore
                      wit: 'CElementsTxInWitness') -> T_CElementsTxInWitness:
        return cls._from_instance(
            wit, wit.scriptWitness, wit.issuanceAmountRangeproof,
            wit.inflationKeysRangeproof, wit.pegin_witness)

    @classmethod
    def from_txin_witness(cls: Type[T_CElementsTxInWitness],  # type: ignore
                          wit: 'CElementsTxInWitness'
                          ) -> T_CElementsTxInWitness:
        return cls.from_instance(wit)


class CElementsMutableTxInWitness(CElementsTxInWitness,  # type: ignore
                                  CMutableTxInWitness,
                                  mutable_of=CElementsTxInWitness):
    __slots__: List[str] = []

    scriptWitness: WriteableField[CScriptWitness]
    issuanceAmountRangeproof: WriteableField[CElementsScript]
    inflationKeysRangeproof: WriteableField[CElementsScript]
    pegin_witness: WriteableField[CScriptWitness]


T_CElementsTxOutWitness = TypeVar('T_CElementsTxOutWitness',
                                  bound='CElementsTxOutWitness')


class CElementsTxOutWitness(CTxOutWitness, CoreElementsClass):
    """Output witness: surjection proof and range proof"""

    __slots__: List[str] = ['surjectionproof', 'rangeproof']

    surjectionproof: ReadOnlyField[bytes]
    rangeproof: ReadOnlyField[bytes]

    def __init__(self, surjectionproof: Union[bytes, bytearray] = b'',
                 rangeproof: Union[bytes, bytearray] = b'') -> None:
        ensure_isinstance(surjectionproof, (bytes, bytearray),
                          'surjectionproof')
        ensure_isinstance(rangeproof, (bytes, bytearray), 'rangeproof')
        _set_fields(self, surjectionproof=bytes(surjectionproof),
                    rangeproof=bytes(rangeproof))

    @no_bool_use_as_property
    def is_null(self) -> bool:
        return not self.surjectionproof and not self.rangeproof

    @classmethod
    def stream_deserialize(cls: Type[T_CElementsTxOutWitness], f: BytesIO,
                           **kwargs: Any) -> T_CElementsTxOutWitness:
        surjectionproof = BytesSerializer.stream_deserialize(f)
        return cls(surjectionproof, BytesSerializer.stream_deserialize(f))

    def stream_serialize(self, f: BytesIO, **kwargs: Any) -> None:
        BytesSerializer.stream_serialize(self.surjectionproof, f)
        BytesSerializer.stream_serialize(self.rangeproof, f)

    @classmethod
    def from_instance(cls: Type[T_CElementsTxOutWitness],  # type: ignore
                      wit: 'CElementsTxOutWitness'
                      ) -> T_CElementsTxOutWitness:
        return cls._from_instance(wit, wit.surjectionproof, wit.rangeproof)

    @classmethod
    def from_txout_witness(cls: Type[T_CElementsTxOutWitness],
                           wit: 'CElementsTxOutWitness'
                           ) -> T_CElementsTxOutWitness:
        return cls.from_instance(wit)


class CElementsMutableTxOutWitness(CElementsTxOutWitness,
                                   CMutableTxOutWitness,
                                   mutable_of=CElementsTxOutWitness):
    __slots__: List[str] = []

    surjectionproof: WriteableField[bytes]
    rangeproof: WriteableField[bytes]


T_CElementsTxWitness = TypeVar('T_CElementsTxWitness',
                               bound='CElementsTxWitness')


class CElementsTxWitness(CTxWitness, CoreElementsClass):
    """Witnesses of all inputs followed by witnesses of all outputs"""

    __slots__: List[str] = ['vtxinwit', 'vtxoutwit']

    vtxinwit: ReadOnlyField[Tuple[CElementsTxInWitness]]  # type: ignore
    vtxoutwit: ReadOnlyField[Tuple[CElementsTxOutWitness]]

    def __init__(self, vtxinwit: Iterable[CElementsTxInWitness] = (),
                 vtxoutwit: Iterable[CElementsTxOutWitness] = ()) -> None:
        inwits = [CTxInWitness.from_txin_witness(w) for w in vtxinwit]
        outwits = [CTxOutWitness.from_txout_witness(w) for w in vtxoutwit]
        if self.is_immutable():
            _set_fields(self, vtxinwit=tuple(inwits),
                        vtxoutwit=tuple(outwits))
        else:
            _set_fields(self, vtxinwit=inwits, vtxoutwit=outwits)

    @no_bool_use_as_property
    def is_null(self) -> bool:
        return (all(w.is_null() for w in self.vtxinwit)
                and all(w.is_null() for w in self.vtxoutwit))

    # An instance method: the number of witnesses to read is taken from
    # the number of placeholder witnesses, which the caller sets from
    # the lengths of vin and vout.
    def stream_deserialize(self: T_CElementsTxWitness,  # type: ignore
                           f: BytesIO, **kwargs: Any) -> T_CElementsTxWitness:
        inwits = [CElementsTxInWitness.stream_deserialize(f)
                  for _ in self.vtxinwit]
        outwits = [CElementsTxOutWitness.stream_deserialize(f)
                   for _ in self.vtxoutwit]
        return self.__class__(inwits, outwits)

    def stream_serialize(self, f: BytesIO, **kwargs: Any) -> None:
        for inwit in self.vtxinwit:
            inwit.stream_serialize(f)
        for outwit in self.vtxoutwit:
            outwit.stream_serialize(f)

    @classmethod
    def from_instance(cls: Type[T_CElementsTxWitness],  # type: ignore
                      witness: 'CElementsTxWitness') -> T_CElementsTxWitness:
        return cls._from_instance(witness, witness.vtxinwit, witness.vtxoutwit)

    @classmethod
    def from_witness(cls: Type[T_CElementsTxWitness],  # type: ignore
                     witness: 'CElementsTxWitness') -> T_CElementsTxWitness:
        return cls.from_instance(witness)


class CElementsMutableTxWitness(CElementsTxWitness,  # type: ignore
                                CMutableTxWitness,
                                mutable_of=CElementsTxWitness):
    __slots__: List[str] = []

    vtxinwit: WriteableField[List[CElementsMutableTxInWitness]]  # type: ignore
    vtxoutwit: WriteableField[List[CElementsMutableTxOutWitness]]  # type: ignore


T_CElementsTransaction = TypeVar('T_CElementsTransaction',
                                 bound='CElementsTransaction')


class CElementsTransaction(CTransaction, CoreElementsClass):
    __slots__: List[str] = []

    vin: ReadOnlyField[Tuple[CElementsTxIn]]  # type: ignore
    vout: ReadOnlyField[Tuple[CElementsTxOut]]  # type: ignore
    wit: ReadOnlyField[CElementsTxWitness]  # type: ignore

    @classmethod
    def stream_deserialize(cls: Type[T_CElementsTransaction], f: BytesIO,
                           **kwargs: Any) -> T_CElementsTransaction:
        """Read a transaction in the consensus format.

        Transactions with zero inputs are accepted, so that unfinished
        transactions can be decoded."""
        nVersion = struct.unpack(b'<i', ser_read(f, 4))[0]
        flag = ser_read(f, 1)[0]
        if flag > 1:
            raise SerializationError(
                'unknown transaction serialization flag {}'.format(flag))

        vin = VectorSerializer.stream_deserialize(f, element_class=CTxIn)
        vout = VectorSerializer.stream_deserialize(f, element_class=CTxOut)
        nLockTime = _read_u32(f)
        if not flag:
            return cls(vin, vout, nLockTime, nVersion)

        placeholder = CTxWitness([CTxInWitness() for _ in vin],
                                 [CTxOutWitness() for _ in vout])
        return cls(vin, vout, nLockTime, nVersion,
                   placeholder.stream_deserialize(f))

    def stream_serialize(self, f: BytesIO,
                         include_witness: bool = True,
                         for_sighash: bool = False,
                         **kwargs: Any) -> None:
        with_witness = include_witness and not self.wit.is_null()
        if with_witness:
            for wits, items in ((self.wit.vtxinwit, self.vin),
                                (self.wit.vtxoutwit, self.vout)):
                if wits and len(wits) != len(items):
                    raise SerializationError(
                        'witness count does not match inputs or outputs')

        f.write(struct.pack(b'<i', self.nVersion))
        # legacy sighash serializes without the flag byte
        if with_witness:
            f.write(b'\x01')
        elif not for_sighash:
            f.write(b'\x00')
        VectorSerializer.stream_serialize(self.vin, f,
                                          for_sighash=for_sighash)
        VectorSerializer.stream_serialize(self.vout, f)
        f.write(struct.pack(b'<I', self.nLockTime))
        if with_witness:
            self.wit.stream_serialize(f)

    @property
    def num_issuances(self) -> int:
        """Count of issued amounts and issued inflation keys"""
        return sum(int(not txin.assetIssuance.nAmount.is_null())
                   + int(not txin.assetIssuance.nInflationKeys.is_null())
                   for txin in self.vin)

    def get_weight(self) -> int:
        """Non-witness bytes weigh 4, witness bytes weigh 1"""
        stripped_size = len(self.serialize(include_witness=False))
        return stripped_size * 3 + len(self.serialize())

    def get_virtual_size(self) -> int:
        return (self.get_weight() + 3) // 4


class CElementsMutableTransaction(CElementsTransaction,  # type: ignore
                                  CMutableTransaction,
                                  mutable_of=CElementsTransaction):

    vin: WriteableField[List[CElementsMutableTxIn]]  # type: ignore
    vout: WriteableField[List[CElementsMutableTxOut]]  # type: ignore
    wit: WriteableField[CElementsMutableTxWitness]  # type: ignore


__all__ = (
    'OUTPOINT_ISSUANCE_FLAG',
    'OUTPOINT_PEGIN_FLAG',
    'OUTPOINT_INDEX_MASK',
    'PEGIN_WITNESS_SIZE',
    'CoreElementsClassDispatcher',
    'CoreElementsClass',
    'CoreElementsParams',
    'WitnessSerializationError',
    'TxInSerializationError',
    'CConfidentialCommitmentBase',
    'CAsset',
    'CConfidentialAsset',
    'CConfidentialValue',
    'CConfidentialNonce',
    'CElementsOutPoint',
    'CElementsMutableOutPoint',
    'CAssetIssuance',
    'CElementsTxIn',
    'CElementsMutableTxIn',
    'CElementsTxOut',
    'CElementsMutableTxOut',
    'CElementsTxInWitness',
    'CElementsMutableTxInWitness',
    'CElementsTxOutWitness',
    'CElementsMutableTxOutWitness',
    'CElementsTxWitness',
    'CElementsMutableTxWitness',
    'CElementsTransaction',
    'CElementsMutableTransaction',
)
