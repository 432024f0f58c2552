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

"""Declarative JSON records of Elements transactions.

The records mirror the JSON objects accepted by the transaction builder
and produced by the transaction decoder. All fields are optional at the
record level: the builder decides which of them are required. to_json()
omits fields that are None."""

import struct
from typing import (
    Any, Callable, Dict, List, NamedTuple, Optional, Tuple, TypeVar
)

import bitcointx
from bitcointx import ChainParams
from bitcointx.core import b2x, b2lx, CTransaction
from bitcointx.core.script import CScript, CScriptInvalidError, OPCODE_NAMES, \
    OP_RETURN, OP_CHECKSIG, OP_PUSHDATA1
from bitcointx.core.serialize import BytesSerializer, SerializationError
from bitcointx.wallet import CCoinAddress, CCoinAddressError

from .confidential import (
    ConfidentialAssetInfo, ConfidentialNonceInfo, ConfidentialValueInfo,
    parse_hex
)
from .core import (
    CElementsTransaction, CElementsTxIn, CElementsTxInWitness, CElementsTxOut,
    CElementsScript, PEGIN_WITNESS_SIZE
)
from .core.script import ELEMENTS_OPCODE_NAMES
from .errors import MalformedInput
from .util import elements_params

T = TypeVar('T')

# mainchain networks of the Elements networks, for pegout addresses
MAINCHAIN_NETWORKS = {
    'elements': 'bitcoin/regtest',
    'elements/liquidv1': 'bitcoin',
}


def _drop_none(d: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in d.items() if v is not None}


def _get(json: Dict[str, Any], key: str, parse: Callable[[Any], T]
         ) -> Optional[T]:
    value = json.get(key)
    if value is None:
        return None
    return parse(value)


def _ensure_dict(json: Any, field: str) -> Dict[str, Any]:
    if not isinstance(json, dict):
        raise MalformedInput('expected an object', field=field)
    return json


def _int_parser(field: str, max_value: int) -> Callable[[Any], int]:
    def parse(value: Any) -> int:
        if not isinstance(value, int) or isinstance(value, bool) \
                or not 0 <= value <= max_value:
            raise MalformedInput('expected an integer in range 0..{}'
                                 .format(max_value), field=field)
        return value
    return parse


def _bool_parser(field: str) -> Callable[[Any], bool]:
    def parse(value: Any) -> bool:
        if not isinstance(value, bool):
            raise MalformedInput('expected a boolean', field=field)
        return value
    return parse


def _hex_parser(field: str, *, reverse: bool = False,
                size: Optional[int] = None) -> Callable[[Any], bytes]:
    def parse(value: Any) -> bytes:
        data = parse_hex(value, field, reverse=reverse)
        if size is not None and len(data) != size:
            raise MalformedInput('expected {} bytes, got {}'
                                 .format(size, len(data)), field=field)
        return data
    return parse


def _hex_list_parser(field: str) -> Callable[[Any], List[bytes]]:
    def parse(value: Any) -> List[bytes]:
        if not isinstance(value, list):
            raise MalformedInput('expected a list of hex strings', field=field)
        return [parse_hex(v, field) for v in value]
    return parse


def _hex_or_none(data: Optional[bytes]) -> Optional[str]:
    return None if data is None else b2x(data)


def script_asm(script: CScript) -> str:
    """Human-readable script assembly, with pushes shown
    as OP_PUSHBYTES_<n> <hex>"""
    parts = []
    try:
        for op, data, _ in script.raw_iter():
            if op == 0:
                parts.append('OP_0')
            elif data is not None:
                if op < OP_PUSHDATA1:
                    parts.append('OP_PUSHBYTES_{}'.format(len(data)))
                else:
                    parts.append(OPCODE_NAMES[op])
                if len(data):
                    parts.append(b2x(data))
            elif op in ELEMENTS_OPCODE_NAMES:
                parts.append(ELEMENTS_OPCODE_NAMES[op])
            elif op in OPCODE_NAMES:
                parts.append(OPCODE_NAMES[op])
            else:
                parts.append('OP_UNKNOWN_{}'.format(int(op)))
    except CScriptInvalidError:
        parts.append('<push past end>')
    return ' '.join(parts)


def _is_p2pk(script: CScript) -> bool:
    return ((len(script) == 35 and script[0] == 33)
            or (len(script) == 67 and script[0] == 65)) \
        and script[-1] == OP_CHECKSIG


def script_type(script: CScript) -> str:
    if len(script) == 0:
        return 'fee'
    if _is_p2pk(script):
        return 'p2pk'
    if script.is_p2pkh():
        return 'p2pkh'
    if script[0] == OP_RETURN:
        return 'opreturn'
    if script.is_p2sh():
        return 'p2sh'
    if script.is_witness_v0_keyhash():
        return 'p2wpkh'
    if script.is_witness_v0_scripthash():
        return 'p2wsh'
    return 'unknown'


def script_address(script: CScript) -> Optional[str]:
    """Address of the script for the current chain params,
    None for scripts that have no standard address"""
    if script_type(script) not in ('p2pkh', 'p2sh', 'p2wpkh', 'p2wsh'):
        return None
    try:
        return str(CCoinAddress.from_scriptPubKey(script))
    except CCoinAddressError:
        return None


class InputScriptInfo(NamedTuple):
    hex: Optional[bytes] = None
    asm: Optional[str] = None

    @classmethod
    def from_json(cls, json: Any, field: str = 'script_sig'
                  ) -> 'InputScriptInfo':
        json = _ensure_dict(json, field)
        return cls(hex=_get(json, 'hex', _hex_parser(field)),
                   asm=json.get('asm'))

    @classmethod
    def from_script(cls, script: CScript) -> 'InputScriptInfo':
        return cls(hex=bytes(script), asm=script_asm(script))

    def to_json(self) -> Dict[str, Any]:
        return _drop_none({'hex': _hex_or_none(self.hex), 'asm': self.asm})


class OutputScriptInfo(NamedTuple):
    hex: Optional[bytes] = None
    asm: Optional[str] = None
    type: Optional[str] = None
    address: Optional[str] = None

    @classmethod
    def from_json(cls, json: Any, field: str = 'script_pub_key'
                  ) -> 'OutputScriptInfo':
        json = _ensure_dict(json, field)
        address = json.get('address')
        if address is not None and not isinstance(address, str):
            raise MalformedInput('address must be a string', field=field)
        return cls(hex=_get(json, 'hex', _hex_parser(field)),
                   asm=json.get('asm'), type=json.get('type'),
                   address=address)

    @classmethod
    def from_script(cls, script: CScript) -> 'OutputScriptInfo':
        """Describe the script, with the address for the current
        chain params"""
        return cls(hex=bytes(script), asm=script_asm(script),
                   type=script_type(script), address=script_address(script))

    def to_json(self) -> Dict[str, Any]:
        return _drop_none({'hex': _hex_or_none(self.hex), 'asm': self.asm,
                           'type': self.type, 'address': self.address})


class AssetIssuanceInfo(NamedTuple):
    asset_blinding_nonce: Optional[bytes] = None
    asset_entropy: Optional[bytes] = None
    amount: Optional[ConfidentialValueInfo] = None
    inflation_keys: Optional[ConfidentialValueInfo] = None

    @classmethod
    def from_json(cls, json: Any, field: str = 'asset_issuance'
                  ) -> 'AssetIssuanceInfo':
        json = _ensure_dict(json, field)
        return cls(
            asset_blinding_nonce=_get(
                json, 'asset_blinding_nonce',
                _hex_parser('asset_blinding_nonce', size=32)),
            asset_entropy=_get(json, 'asset_entropy',
                               _hex_parser('asset_entropy', size=32)),
            amount=_get(json, 'amount',
                        lambda v: ConfidentialValueInfo.from_json(v, 'amount')),
            inflation_keys=_get(
                json, 'inflation_keys',
                lambda v: ConfidentialValueInfo.from_json(v, 'inflation_keys')))

    def to_json(self) -> Dict[str, Any]:
        return _drop_none({
            'asset_blinding_nonce': _hex_or_none(self.asset_blinding_nonce),
            'asset_entropy': _hex_or_none(self.asset_entropy),
            'amount': self.amount.to_json() if self.amount else None,
            'inflation_keys': (self.inflation_keys.to_json()
                               if self.inflation_keys else None),
        })


class PeginDataInfo(NamedTuple):
    outpoint: Optional[str] = None
    value: Optional[int] = None
    asset: Optional[ConfidentialAssetInfo] = None
    genesis_hash: Optional[bytes] = None
    claim_script: Optional[bytes] = None
    mainchain_tx_hex: Optional[bytes] = None
    merkle_proof: Optional[bytes] = None

    @classmethod
    def from_json(cls, json: Any, field: str = 'pegin_data'
                  ) -> 'PeginDataInfo':
        json = _ensure_dict(json, field)
        outpoint = json.get('outpoint')
        if outpoint is not None and not isinstance(outpoint, str):
            raise MalformedInput('outpoint must be a string',
                                 field='pegin_data.outpoint')
        return cls(
            outpoint=outpoint,
            value=_get(json, 'value',
                       _int_parser('pegin_data.value', 0xffffffffffffffff)),
            asset=_get(json, 'asset',
                       lambda v: ConfidentialAssetInfo.from_json(
                           v, 'pegin_data.asset')),
            genesis_hash=_get(json, 'genesis_hash',
                              _hex_parser('pegin_data.genesis_hash',
                                          reverse=True, size=32)),
            claim_script=_get(json, 'claim_script',
                              _hex_parser('pegin_data.claim_script')),
            mainchain_tx_hex=_get(json, 'mainchain_tx_hex',
                                  _hex_parser('pegin_data.mainchain_tx_hex')),
            merkle_proof=_get(json, 'merkle_proof',
                              _hex_parser('pegin_data.merkle_proof')))

    @classmethod
    def from_pegin_witness(cls, outpoint: str, stack: List[bytes]
                           ) -> Optional['PeginDataInfo']:
        """Recover the pegin data from a pegin witness stack,
        None if the stack does not have the expected layout"""
        if len(stack) != PEGIN_WITNESS_SIZE:
            return None
        if len(stack[0]) != 8 or len(stack[1]) != 32 or len(stack[2]) != 32:
            return None
        try:
            claim_script, mainchain_tx, merkle_proof = (
                BytesSerializer.deserialize(item) for item in stack[3:])
        except SerializationError:
            return None
        return cls(
            outpoint=outpoint,
            value=struct.unpack(b'<Q', stack[0])[0],
            asset=ConfidentialAssetInfo.from_json(
                {'type': 'explicit', 'asset': b2lx(stack[1])}),
            genesis_hash=stack[2],
            claim_script=claim_script,
            mainchain_tx_hex=mainchain_tx,
            merkle_proof=merkle_proof)

    def to_json(self) -> Dict[str, Any]:
        return _drop_none({
            'outpoint': self.outpoint,
            'value': self.value,
            'asset': self.asset.to_json() if self.asset else None,
            'genesis_hash': (None if self.genesis_hash is None
                             else b2lx(self.genesis_hash)),
            'claim_script': _hex_or_none(self.claim_script),
            'mainchain_tx_hex': _hex_or_none(self.mainchain_tx_hex),
            'merkle_proof': _hex_or_none(self.merkle_proof),
        })


class InputWitnessInfo(NamedTuple):
    amount_rangeproof: Optional[bytes] = None
    inflation_keys_rangeproof: Optional[bytes] = None
    script_witness: Optional[List[bytes]] = None
    pegin_witness: Optional[List[bytes]] = None

    @classmethod
    def from_json(cls, json: Any, field: str = 'witness'
                  ) -> 'InputWitnessInfo':
        json = _ensure_dict(json, field)
        return cls(
            amount_rangeproof=_get(json, 'amount_rangeproof',
                                   _hex_parser('witness.amount_rangeproof')),
            inflation_keys_rangeproof=_get(
                json, 'inflation_keys_rangeproof',
                _hex_parser('witness.inflation_keys_rangeproof')),
            script_witness=_get(json, 'script_witness',
                                _hex_list_parser('witness.script_witness')),
            pegin_witness=_get(json, 'pegin_witness',
                               _hex_list_parser('witness.pegin_witness')))

    def to_json(self) -> Dict[str, Any]:
        return _drop_none({
            'amount_rangeproof': _hex_or_none(self.amount_rangeproof),
            'inflation_keys_rangeproof':
                _hex_or_none(self.inflation_keys_rangeproof),
            'script_witness': (None if self.script_witness is None
                               else [b2x(w) for w in self.script_witness]),
            'pegin_witness': (None if self.pegin_witness is None
                              else [b2x(w) for w in self.pegin_witness]),
        })


class InputInfo(NamedTuple):
    prevout: Optional[str] = None
    txid: Optional[bytes] = None
    vout: Optional[int] = None
    script_sig: Optional[InputScriptInfo] = None
    sequence: Optional[int] = None
    is_pegin: Optional[bool] = None
    has_issuance: Optional[bool] = None
    asset_issuance: Optional[AssetIssuanceInfo] = None
    witness: Optional[InputWitnessInfo] = None
    pegin_data: Optional[PeginDataInfo] = None

    @classmethod
    def from_json(cls, json: Any, field: str = 'inputs') -> 'InputInfo':
        json = _ensure_dict(json, field)
        prevout = json.get('prevout')
        if prevout is not None and not isinstance(prevout, str):
            raise MalformedInput('prevout must be a string', field='prevout')
        return cls(
            prevout=prevout,
            txid=_get(json, 'txid', _hex_parser('txid', reverse=True,
                                                size=32)),
            vout=_get(json, 'vout', _int_parser('vout', 0xffffffff)),
            script_sig=_get(json, 'script_sig', InputScriptInfo.from_json),
            sequence=_get(json, 'sequence',
                          _int_parser('sequence', 0xffffffff)),
            is_pegin=_get(json, 'is_pegin', _bool_parser('is_pegin')),
            has_issuance=_get(json, 'has_issuance',
                              _bool_parser('has_issuance')),
            asset_issuance=_get(json, 'asset_issuance',
                                AssetIssuanceInfo.from_json),
            witness=_get(json, 'witness', InputWitnessInfo.from_json),
            pegin_data=_get(json, 'pegin_data', PeginDataInfo.from_json))

    @classmethod
    def from_txin(cls, txin: CElementsTxIn, witness: Any) -> 'InputInfo':
        prevout = '{}:{}'.format(b2lx(txin.prevout.hash), txin.prevout.n)
        has_issuance = not txin.assetIssuance.is_null()
        issuance = None
        if has_issuance:
            ai = txin.assetIssuance
            issuance = AssetIssuanceInfo(
                asset_blinding_nonce=ai.assetBlindingNonce.data,
                asset_entropy=ai.assetEntropy.data,
                amount=ConfidentialValueInfo.from_confidential(ai.nAmount),
                inflation_keys=ConfidentialValueInfo.from_confidential(
                    ai.nInflationKeys))

        witness_info = None
        pegin_data = None
        if not witness.is_null():
            witness_info = InputWitnessInfo(
                amount_rangeproof=(bytes(witness.issuanceAmountRangeproof)
                                   or None),
                inflation_keys_rangeproof=(
                    bytes(witness.inflationKeysRangeproof) or None),
                script_witness=(list(witness.scriptWitness.stack)
                                or None),
                pegin_witness=(list(witness.pegin_witness.stack)
                               or None))
        if txin.is_pegin:
            pegin_data = PeginDataInfo.from_pegin_witness(
                prevout, list(witness.pegin_witness.stack))

        return cls(
            prevout=prevout,
            txid=txin.prevout.hash,
            vout=txin.prevout.n,
            script_sig=InputScriptInfo.from_script(txin.scriptSig),
            sequence=txin.nSequence,
            is_pegin=txin.is_pegin,
            has_issuance=has_issuance,
            asset_issuance=issuance,
            witness=witness_info,
            pegin_data=pegin_data)

    def to_json(self) -> Dict[str, Any]:
        return _drop_none({
            'prevout': self.prevout,
            'txid': None if self.txid is None else b2lx(self.txid),
            'vout': self.vout,
            'script_sig': self.script_sig.to_json() if self.script_sig else None,
            'sequence': self.sequence,
            'is_pegin': self.is_pegin,
            'has_issuance': self.has_issuance,
            'asset_issuance': (self.asset_issuance.to_json()
                               if self.asset_issuance else None),
            'witness': self.witness.to_json() if self.witness else None,
            'pegin_data': self.pegin_data.to_json() if self.pegin_data else None,
        })


class PegoutDataInfo(NamedTuple):
    value: Optional[int] = None
    asset: Optional[ConfidentialAssetInfo] = None
    genesis_hash: Optional[bytes] = None
    script_pub_key: Optional[OutputScriptInfo] = None
    extra_data: Optional[List[bytes]] = None

    @classmethod
    def from_json(cls, json: Any, field: str = 'pegout_data'
                  ) -> 'PegoutDataInfo':
        json = _ensure_dict(json, field)
        return cls(
            value=_get(json, 'value',
                       _int_parser('pegout_data.value', 0xffffffffffffffff)),
            asset=_get(json, 'asset',
                       lambda v: ConfidentialAssetInfo.from_json(
                           v, 'pegout_data.asset')),
            genesis_hash=_get(json, 'genesis_hash',
                              _hex_parser('pegout_data.genesis_hash',
                                          reverse=True, size=32)),
            script_pub_key=_get(json, 'script_pub_key',
                                lambda v: OutputScriptInfo.from_json(
                                    v, 'pegout_data.script_pub_key')),
            extra_data=_get(json, 'extra_data',
                            _hex_list_parser('pegout_data.extra_data')))

    def to_json(self) -> Dict[str, Any]:
        return _drop_none({
            'value': self.value,
            'asset': self.asset.to_json() if self.asset else None,
            'genesis_hash': (None if self.genesis_hash is None
                             else b2lx(self.genesis_hash)),
            'script_pub_key': (self.script_pub_key.to_json()
                               if self.script_pub_key else None),
            'extra_data': (None if self.extra_data is None
                           else [b2x(d) for d in self.extra_data]),
        })


class OutputWitnessInfo(NamedTuple):
    surjection_proof: Optional[bytes] = None
    rangeproof: Optional[bytes] = None

    @classmethod
    def from_json(cls, json: Any, field: str = 'witness'
                  ) -> 'OutputWitnessInfo':
        json = _ensure_dict(json, field)
        return cls(
            surjection_proof=_get(json, 'surjection_proof',
                                  _hex_parser('witness.surjection_proof')),
            rangeproof=_get(json, 'rangeproof',
                            _hex_parser('witness.rangeproof')))

    def to_json(self) -> Dict[str, Any]:
        return _drop_none({
            'surjection_proof': _hex_or_none(self.surjection_proof),
            'rangeproof': _hex_or_none(self.rangeproof),
        })


class OutputInfo(NamedTuple):
    value: Optional[ConfidentialValueInfo] = None
    asset: Optional[ConfidentialAssetInfo] = None
    nonce: Optional[ConfidentialNonceInfo] = None
    script_pub_key: Optional[OutputScriptInfo] = None
    pegout_data: Optional[PegoutDataInfo] = None
    witness: Optional[OutputWitnessInfo] = None
    is_fee: Optional[bool] = None

    @classmethod
    def from_json(cls, json: Any, field: str = 'outputs') -> 'OutputInfo':
        json = _ensure_dict(json, field)
        return cls(
            value=_get(json, 'value', ConfidentialValueInfo.from_json),
            asset=_get(json, 'asset', ConfidentialAssetInfo.from_json),
            nonce=_get(json, 'nonce', ConfidentialNonceInfo.from_json),
            script_pub_key=_get(json, 'script_pub_key',
                                OutputScriptInfo.from_json),
            pegout_data=_get(json, 'pegout_data', PegoutDataInfo.from_json),
            witness=_get(json, 'witness', OutputWitnessInfo.from_json),
            is_fee=_get(json, 'is_fee', _bool_parser('is_fee')))

    @classmethod
    def from_txout(cls, txout: CElementsTxOut, witness: Any) -> 'OutputInfo':
        spk = CElementsScript(txout.scriptPubKey)
        pegout_data = None
        pd = spk.get_pegout_data()
        if pd is not None:
            pegout_data = PegoutDataInfo(
                value=(txout.nValue.to_amount()
                       if txout.nValue.is_explicit() else None),
                asset=ConfidentialAssetInfo.from_confidential(txout.nAsset),
                genesis_hash=pd.genesis_hash,
                script_pub_key=_mainchain_script_info(pd.script_pubkey),
                extra_data=list(pd.extra_data))

        witness_info = None
        if witness is not None and not witness.is_null():
            witness_info = OutputWitnessInfo(
                surjection_proof=bytes(witness.surjectionproof) or None,
                rangeproof=bytes(witness.rangeproof) or None)

        return cls(
            value=ConfidentialValueInfo.from_confidential(txout.nValue),
            asset=ConfidentialAssetInfo.from_confidential(txout.nAsset),
            nonce=ConfidentialNonceInfo.from_confidential(txout.nNonce),
            script_pub_key=OutputScriptInfo.from_script(spk),
            pegout_data=pegout_data,
            witness=witness_info,
            is_fee=txout.is_fee())

    def to_json(self) -> Dict[str, Any]:
        return _drop_none({
            'value': self.value.to_json() if self.value else None,
            'asset': self.asset.to_json() if self.asset else None,
            'nonce': self.nonce.to_json() if self.nonce else None,
            'script_pub_key': (self.script_pub_key.to_json()
                               if self.script_pub_key else None),
            'pegout_data': (self.pegout_data.to_json()
                            if self.pegout_data else None),
            'witness': self.witness.to_json() if self.witness else None,
            'is_fee': self.is_fee,
        })


def _mainchain_script_info(script: CScript) -> OutputScriptInfo:
    mainchain = MAINCHAIN_NETWORKS.get(
        bitcointx.get_current_chain_params().NAME, 'bitcoin')
    with ChainParams(mainchain):
        return OutputScriptInfo.from_script(CScript(script))


class TransactionInfo(NamedTuple):
    txid: Optional[str] = None
    hash: Optional[str] = None
    size: Optional[int] = None
    weight: Optional[int] = None
    vsize: Optional[int] = None
    version: Optional[int] = None
    locktime: Optional[int] = None
    inputs: Optional[List[InputInfo]] = None
    outputs: Optional[List[OutputInfo]] = None

    @classmethod
    def from_json(cls, json: Any) -> 'TransactionInfo':
        json = _ensure_dict(json, 'transaction')

        def parse_list(key: str, parse: Callable[[Any, str], T]
                       ) -> Optional[List[T]]:
            value = json.get(key)
            if value is None:
                return None
            if not isinstance(value, list):
                raise MalformedInput('expected a list', field=key)
            return [parse(item, key) for item in value]

        version = _get(json, 'version', _int_parser('version', 0xffffffff))
        return cls(
            txid=json.get('txid'), hash=json.get('hash'),
            size=json.get('size'), weight=json.get('weight'),
            vsize=json.get('vsize'),
            # version is signed in the serialization
            version=(None if version is None
                     else struct.unpack(b'<i', struct.pack(b'<I', version))[0]),
            locktime=_get(json, 'locktime', _int_parser('locktime', 0xffffffff)),
            inputs=parse_list('inputs', InputInfo.from_json),
            outputs=parse_list('outputs', OutputInfo.from_json))

    @classmethod
    def from_transaction(cls, tx: CElementsTransaction) -> 'TransactionInfo':
        """Describe the transaction. Addresses are shown for the current
        chain params"""
        wit = tx.wit
        return cls(
            txid=b2lx(tx.GetTxid()),
            hash=b2lx(tx.GetHash()),
            size=len(tx.serialize()),
            weight=tx.get_weight(),
            vsize=tx.get_virtual_size(),
            version=tx.nVersion,
            locktime=tx.nLockTime,
            inputs=[InputInfo.from_txin(
                txin, wit.vtxinwit[i] if wit.vtxinwit else CElementsTxInWitness())
                for i, txin in enumerate(tx.vin)],
            outputs=[OutputInfo.from_txout(
                txout, wit.vtxoutwit[i] if wit.vtxoutwit else None)
                for i, txout in enumerate(tx.vout)])

    def to_json(self) -> Dict[str, Any]:
        return _drop_none({
            'txid': self.txid,
            'hash': self.hash,
            'size': self.size,
            'weight': self.weight,
            'vsize': self.vsize,
            'version': self.version,
            'locktime': self.locktime,
            'inputs': (None if self.inputs is None
                       else [i.to_json() for i in self.inputs]),
            'outputs': (None if self.outputs is None
                        else [o.to_json() for o in self.outputs]),
        })


def deserialize_transaction(data: bytes) -> CElementsTransaction:
    """Deserialize Elements transaction, MalformedInput on failure.
    Elements chain params must be selected."""
    try:
        tx = CTransaction.deserialize(data)
    except (SerializationError, ValueError) as e:
        raise MalformedInput('invalid transaction: {}'.format(e))
    assert isinstance(tx, CElementsTransaction)
    return tx


def decode_transaction(data: bytes, network: Optional[str] = None
                       ) -> Dict[str, Any]:
    """Decode raw transaction bytes into a JSON-ready dict"""
    with elements_params(network):
        tx = deserialize_transaction(data)
        return TransactionInfo.from_transaction(tx).to_json()


def parse_outpoint(value: str, field: str = 'prevout') -> Tuple[bytes, int]:
    """Parse "<txid>:<vout>" into (hash bytes, vout)"""
    txid_hex, sep, vout_str = value.partition(':')
    if not sep:
        raise MalformedInput('outpoint must be <txid>:<vout>', field=field)
    txid = _hex_parser(field, reverse=True, size=32)(txid_hex)
    try:
        vout = int(vout_str, 10)
    except ValueError:
        raise MalformedInput('invalid vout {!r}'.format(vout_str), field=field)
    if not 0 <= vout <= 0xffffffff:
        raise MalformedInput('vout out of range', field=field)
    return (txid, vout)


__all__ = (
    'script_asm',
    'script_type',
    'script_address',
    'parse_outpoint',
    'InputScriptInfo',
    'OutputScriptInfo',
    'AssetIssuanceInfo',
    'PeginDataInfo',
    'InputWitnessInfo',
    'InputInfo',
    'PegoutDataInfo',
    'OutputWitnessInfo',
    'OutputInfo',
    'TransactionInfo',
    'deserialize_transaction',
    'decode_transaction',
)
