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

"""Build Elements transactions from their JSON records.

The builder is strict about everything that ends up in the transaction
and permissive about everything else: fields that are not used produce
warnings, collected into BuildResult.warnings and logged."""

import json
import logging
import struct
from typing import (
    Any, Dict, List, NamedTuple, Optional, Tuple, Type, Union
)

from bitcointx import (
    BitcoinMainnetParams, ChainParams, ChainParamsBase,
    get_registered_chain_params
)
from bitcointx.core import CTransaction, Uint256
from bitcointx.core.script import CScript, CScriptWitness, OP_RETURN
from bitcointx.core.serialize import BytesSerializer
from bitcointx.wallet import CCoinAddress, CCoinAddressError

from .confidential import ConfidentialNonceInfo
from .core import (
    CAssetIssuance, CElementsOutPoint, CElementsScript, CElementsTransaction,
    CElementsTxIn, CElementsTxInWitness, CElementsTxOut,
    CElementsTxOutWitness, CElementsTxWitness
)
from .errors import (
    ConflictingPrevout, IncompleteIssuance, InvalidFieldCombination,
    MalformedInput, MissingPrevout, MissingRequiredField,
    MixedNetworkAddresses, PegoutMismatch, UnsupportedFeature
)
from .tx import (
    InputInfo, OutputInfo, OutputScriptInfo, PeginDataInfo, PegoutDataInfo,
    TransactionInfo, parse_outpoint
)
from .util import elements_params, get_elements_params_list

log = logging.getLogger(__name__)

# computed on decode, never consulted on build
IGNORED_TRANSACTION_FIELDS = ('txid', 'hash', 'size', 'weight', 'vsize')


class FieldWarning(NamedTuple):
    location: str
    field: str
    message: str

    def __str__(self) -> str:
        return '{}: field "{}": {}'.format(self.location, self.field,
                                           self.message)


class BuildResult(NamedTuple):
    tx: CElementsTransaction
    warnings: List[FieldWarning]


class _BuildContext:
    """State shared by all inputs and outputs of one transaction build"""

    def __init__(self) -> None:
        self.warnings: List[FieldWarning] = []
        # chain params name of the first address seen in the outputs
        self.network: Optional[str] = None

    def warn(self, location: str, field: str, message: str) -> None:
        warning = FieldWarning(location, field, message)
        log.warning(str(warning))
        self.warnings.append(warning)


def _parse_address(address: str,
                   candidates: List[Type[ChainParamsBase]]
                   ) -> Tuple[CScript, str]:
    for params_cls in candidates:
        with ChainParams(params_cls):
            try:
                addr = CCoinAddress(address)
            except CCoinAddressError:
                continue
            return CScript(addr.to_scriptPubKey()), params_cls.NAME
    raise MalformedInput('invalid address {!r}'.format(address),
                         field='address')


def _mainchain_params_list() -> List[Type[ChainParamsBase]]:
    return [p for p in get_registered_chain_params()
            if issubclass(p, BitcoinMainnetParams)]


def _resolve_script(info: OutputScriptInfo, ctx: _BuildContext,
                    location: str, *, index: int,
                    mainchain: bool = False) -> CScript:
    if info.type is not None:
        ctx.warn(location, 'type', 'field "type" is ignored')

    if info.hex is not None:
        if info.asm is not None:
            ctx.warn(location, 'asm', 'both "hex" and "asm" given, '
                     'using "hex"')
        if info.address is not None:
            ctx.warn(location, 'address', 'both "hex" and "address" given, '
                     'using "hex"')
        return CScript(info.hex)

    if info.asm is not None:
        raise UnsupportedFeature('decoding script assembly is not supported',
                                 field='asm', index=index)

    if info.address is not None:
        if mainchain:
            script, _ = _parse_address(info.address,
                                       _mainchain_params_list())
            return script

        script, network = _parse_address(info.address,
                                         get_elements_params_list())
        if ctx.network is None:
            ctx.network = network
        elif ctx.network != network:
            raise MixedNetworkAddresses(
                'addresses for different networks are used in the outputs: '
                '{} and {}'.format(ctx.network, network),
                field='address', index=index)
        return script

    raise MissingRequiredField(
        'script_pub_key requires one of "hex", "asm" or "address"',
        field='script_pub_key', index=index)


def _required(value: Any, field: str, index: int) -> Any:
    if value is None:
        raise MissingRequiredField('{} is required'.format(field),
                                   field=field, index=index)
    return value


def _build_outpoint(info: InputInfo, index: int) -> CElementsOutPoint:
    op_from_txid = None
    if info.txid is not None:
        if info.vout is None:
            raise MissingRequiredField('"txid" given without "vout"',
                                       field='vout', index=index)
        op_from_txid = (info.txid, info.vout)
    elif info.vout is not None:
        raise MissingRequiredField('"vout" given without "txid"',
                                   field='txid', index=index)

    op_from_prevout = None
    if info.prevout is not None:
        op_from_prevout = parse_outpoint(info.prevout)

    if op_from_txid is not None and op_from_prevout is not None:
        if op_from_txid != op_from_prevout:
            raise ConflictingPrevout(
                '"prevout" and "txid"/"vout" refer to different outpoints',
                field='prevout', index=index)

    outpoint = op_from_prevout or op_from_txid
    if outpoint is None:
        raise MissingPrevout(
            'no previous output given, use "prevout" or "txid"/"vout"',
            index=index)

    return CElementsOutPoint(*outpoint)


def _build_issuance(info: InputInfo, ctx: _BuildContext, location: str,
                    index: int) -> CAssetIssuance:
    has_issuance = info.has_issuance
    if has_issuance is None:
        has_issuance = info.asset_issuance is not None

    if not has_issuance:
        if info.asset_issuance is not None:
            ctx.warn(location, 'asset_issuance',
                     '"asset_issuance" is ignored because '
                     '"has_issuance" is false')
        return CAssetIssuance()

    ai = info.asset_issuance
    if ai is None:
        raise IncompleteIssuance(
            '"has_issuance" is true but "asset_issuance" is missing',
            field='asset_issuance', index=index)
    for field in ('asset_blinding_nonce', 'asset_entropy', 'amount',
                  'inflation_keys'):
        if getattr(ai, field) is None:
            raise IncompleteIssuance(
                'asset issuance requires "{}"'.format(field),
                field='asset_issuance.' + field, index=index)

    return CAssetIssuance(Uint256(ai.asset_blinding_nonce),
                          Uint256(ai.asset_entropy),
                          ai.amount.to_confidential(),
                          ai.inflation_keys.to_confidential())


def _build_script_sig(info: InputInfo, ctx: _BuildContext, location: str,
                      index: int) -> CElementsScript:
    ss = info.script_sig
    if ss is None:
        return CElementsScript()
    if ss.hex is not None:
        if ss.asm is not None:
            ctx.warn(location, 'script_sig.asm',
                     'both "hex" and "asm" given, using "hex"')
        return CElementsScript(ss.hex)
    if ss.asm is not None:
        raise UnsupportedFeature('decoding script assembly is not supported',
                                 field='script_sig.asm', index=index)
    raise MissingRequiredField('script_sig requires "hex"',
                               field='script_sig', index=index)


def pegin_witness_stack(pd: PeginDataInfo, index: int = 0) -> List[bytes]:
    """Six-item peg-in witness: value, asset, genesis hash, claim script,
    mainchain tx and merkle proof, each serialized on its own"""
    value = _required(pd.value, 'pegin_data.value', index)
    asset = _required(pd.asset, 'pegin_data.asset', index)
    if not asset.is_explicit:
        raise InvalidFieldCombination('pegin asset must be explicit',
                                      field='pegin_data.asset', index=index)
    genesis_hash = _required(pd.genesis_hash, 'pegin_data.genesis_hash',
                             index)
    claim_script = _required(pd.claim_script, 'pegin_data.claim_script',
                             index)
    mainchain_tx = _required(pd.mainchain_tx_hex,
                             'pegin_data.mainchain_tx_hex', index)
    merkle_proof = _required(pd.merkle_proof, 'pegin_data.merkle_proof',
                             index)
    return [
        struct.pack(b'<Q', value),
        asset.asset.data,
        genesis_hash,
        BytesSerializer.serialize(claim_script),
        BytesSerializer.serialize(mainchain_tx),
        BytesSerializer.serialize(merkle_proof),
    ]


def _build_input_witness(info: InputInfo, outpoint: CElementsOutPoint,
                         ctx: _BuildContext, location: str, index: int
                         ) -> CElementsTxInWitness:
    wit = info.witness
    pd = info.pegin_data

    pegin_stack: List[bytes] = []
    if wit is not None and wit.pegin_witness is not None:
        if pd is not None:
            ctx.warn(location, 'pegin_data', '"pegin_data" is ignored '
                     'because "witness.pegin_witness" is given')
        pegin_stack = wit.pegin_witness
    elif pd is not None:
        pd_outpoint = parse_outpoint(
            _required(pd.outpoint, 'pegin_data.outpoint', index),
            field='pegin_data.outpoint')
        if pd_outpoint != (outpoint.hash, outpoint.n):
            raise InvalidFieldCombination(
                'pegin outpoint does not match the input prevout',
                field='pegin_data.outpoint', index=index)
        pegin_stack = pegin_witness_stack(pd, index)

    if wit is None:
        return CElementsTxInWitness(pegin_witness=CScriptWitness(pegin_stack))

    return CElementsTxInWitness(
        CScriptWitness(wit.script_witness or []),
        wit.amount_rangeproof or b'',
        wit.inflation_keys_rangeproof or b'',
        CScriptWitness(pegin_stack))


def build_input(info: InputInfo, ctx: _BuildContext, index: int
                ) -> Tuple[CElementsTxIn, CElementsTxInWitness]:
    location = 'inputs[{}]'.format(index)
    outpoint = _build_outpoint(info, index)
    issuance = _build_issuance(info, ctx, location, index)

    # the flag only sets the outpoint bit, pegin data is used either way
    is_pegin = info.is_pegin
    if is_pegin is None:
        is_pegin = info.pegin_data is not None

    txin = CElementsTxIn(
        outpoint,
        _build_script_sig(info, ctx, location, index),
        0xffffffff if info.sequence is None else info.sequence,
        issuance, is_pegin)

    witness = _build_input_witness(info, outpoint, ctx, location, index)
    return txin, witness


def _build_pegout_script(pd: PegoutDataInfo, info: OutputInfo,
                         ctx: _BuildContext, location: str, index: int
                         ) -> CScript:
    value = _required(pd.value, 'pegout_data.value', index)
    asset = _required(pd.asset, 'pegout_data.asset', index)
    if not info.value.is_explicit or info.value.value != value:
        raise PegoutMismatch(
            'value in "pegout_data" does not correspond to output value',
            field='pegout_data.value', index=index)
    if asset != info.asset:
        raise PegoutMismatch(
            'asset in "pegout_data" does not correspond to output asset',
            field='pegout_data.asset', index=index)

    genesis_hash = _required(pd.genesis_hash, 'pegout_data.genesis_hash',
                             index)
    spk = _required(pd.script_pub_key, 'pegout_data.script_pub_key', index)
    inner = _resolve_script(spk, ctx, location + '.pegout_data.script_pub_key',
                            index=index, mainchain=True)
    return CScript([OP_RETURN, genesis_hash, bytes(inner)]
                   + list(pd.extra_data or []))


def build_output(info: OutputInfo, ctx: _BuildContext, index: int
                 ) -> Tuple[CElementsTxOut, CElementsTxOutWitness]:
    location = 'outputs[{}]'.format(index)
    _required(info.value, 'value', index)
    _required(info.asset, 'asset', index)
    nonce = info.nonce or ConfidentialNonceInfo.null()

    if info.is_fee is not None:
        ctx.warn(location, 'is_fee', 'field "is_fee" is ignored')

    if info.script_pub_key is not None:
        if info.pegout_data is not None:
            ctx.warn(location, 'pegout_data', '"pegout_data" is ignored '
                     'because "script_pub_key" is given')
        script = _resolve_script(info.script_pub_key, ctx,
                                 location + '.script_pub_key', index=index)
    elif info.pegout_data is not None:
        script = _build_pegout_script(info.pegout_data, info, ctx, location,
                                      index)
    else:
        # no destination: fee output
        script = CScript()

    txout = CElementsTxOut(info.value.to_confidential(), script,
                           info.asset.to_confidential(),
                           nonce.to_confidential())

    wit = info.witness
    if wit is None:
        return txout, CElementsTxOutWitness()
    return txout, CElementsTxOutWitness(wit.surjection_proof or b'',
                                        wit.rangeproof or b'')


def build_transaction(info: Union[TransactionInfo, Dict[str, Any]]
                      ) -> BuildResult:
    """Build a transaction from its record, failing on the first
    inconsistency. Accepts the record or its JSON dict."""
    if not isinstance(info, TransactionInfo):
        info = TransactionInfo.from_json(info)

    ctx = _BuildContext()
    for field in IGNORED_TRANSACTION_FIELDS:
        if getattr(info, field) is not None:
            ctx.warn('transaction', field,
                     'field "{}" is ignored'.format(field))

    if info.version is None:
        raise MissingRequiredField('version is required', field='version')
    if info.locktime is None:
        raise MissingRequiredField('locktime is required', field='locktime')

    with elements_params():
        vin = []
        vinwit = []
        for i, input_info in enumerate(info.inputs or []):
            txin, txinwit = build_input(input_info, ctx, i)
            vin.append(txin)
            vinwit.append(txinwit)

        vout = []
        voutwit = []
        for i, output_info in enumerate(info.outputs or []):
            txout, txoutwit = build_output(output_info, ctx, i)
            vout.append(txout)
            voutwit.append(txoutwit)

        tx = CTransaction(vin, vout, info.locktime, info.version,
                          CElementsTxWitness(vinwit, voutwit))
        assert isinstance(tx, CElementsTransaction)

    return BuildResult(tx, ctx.warnings)


def create_transaction(info: Union[str, bytes, Dict[str, Any]]
                       ) -> Tuple[bytes, List[FieldWarning]]:
    """Build a transaction from JSON text (or an already parsed dict),
    return its serialization and the warnings"""
    if isinstance(info, (str, bytes)):
        try:
            info = json.loads(info)
        except ValueError as e:
            raise MalformedInput('invalid JSON: {}'.format(e))

    result = build_transaction(info)
    with elements_params():
        return result.tx.serialize(), result.warnings


__all__ = (
    'FieldWarning',
    'BuildResult',
    'pegin_witness_stack',
    'build_input',
    'build_output',
    'build_transaction',
    'create_transaction',
)
