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

"""JSON records of PSET contents.

Maps and optional fields that are absent in the PSET are omitted from
the records. Hashes and keys are shown as hex of their serialized form."""

from typing import Any, Dict, List, Optional

import bitcointx.base58
from bitcointx.core import Hash, b2x
from bitcointx.core.key import CPubKey
from bitcointx.core.psbt import (
    PSBT_KeyDerivationInfo, PSBT_ProprietaryTypeData, PSBT_UnknownTypeData,
    PSBT_PROPRIETARY_TYPE
)
from bitcointx.core.script import (
    SIGHASH_ALL, SIGHASH_NONE, SIGHASH_SINGLE, SIGHASH_ANYONECANPAY
)
from bitcointx.core.serialize import BytesSerializer, VarIntSerializer

from .confidential import ConfidentialAssetInfo, ConfidentialValueInfo
from .errors import MalformedInput
from .pset import (
    PartiallySignedElementsTransaction, PSET_Global, PSET_Input, PSET_Output,
    parse_pset
)
from .tx import (
    InputScriptInfo, OutputInfo, OutputScriptInfo, TransactionInfo,
    _drop_none, _hex_or_none
)
from .util import elements_params

SIGHASH_NAMES = {
    SIGHASH_ALL: 'ALL',
    SIGHASH_NONE: 'NONE',
    SIGHASH_SINGLE: 'SINGLE',
    SIGHASH_ALL | SIGHASH_ANYONECANPAY: 'ALL|ANYONECANPAY',
    SIGHASH_NONE | SIGHASH_ANYONECANPAY: 'NONE|ANYONECANPAY',
    SIGHASH_SINGLE | SIGHASH_ANYONECANPAY: 'SINGLE|ANYONECANPAY',
}

SIGHASH_VALUES = {name: value for value, name in SIGHASH_NAMES.items()}


def sighashtype_to_string(sighash_type: int) -> str:
    """Name of the sighash type, or its hex value if it is non-standard"""
    return SIGHASH_NAMES.get(sighash_type, '0x{:x}'.format(sighash_type))


def sighashtype_from_string(name: str) -> int:
    try:
        return SIGHASH_VALUES[name]
    except KeyError:
        raise MalformedInput('invalid sighash type {!r}'.format(name),
                             field='sighash_type')


def xpub_to_string(data: bytes) -> str:
    """base58check encoding of the serialized extended pubkey"""
    return bitcointx.base58.encode(data + Hash(data)[:4])


def _keypaths(derivation_map: Dict[CPubKey, PSBT_KeyDerivationInfo]
              ) -> Optional[Dict[str, Any]]:
    if not derivation_map:
        return None
    return {b2x(pub): _key_origin(dinfo)
            for pub, dinfo in derivation_map.items()}


def _key_origin(dinfo: PSBT_KeyDerivationInfo) -> Dict[str, str]:
    return {
        'master_fingerprint': b2x(dinfo.master_fp),
        'path': str(dinfo.path),
    }


def _hex_map(m: Dict[bytes, bytes]) -> Optional[Dict[str, str]]:
    if not m:
        return None
    return {b2x(k): b2x(v) for k, v in m.items()}


def _proprietary(proprietary_fields: Dict[bytes, List[PSBT_ProprietaryTypeData]]
                 ) -> Optional[Dict[str, str]]:
    result = {}
    for prefix, entries in proprietary_fields.items():
        for pd in entries:
            key = (VarIntSerializer.serialize(PSBT_PROPRIETARY_TYPE)
                   + BytesSerializer.serialize(prefix)
                   + VarIntSerializer.serialize(pd.subtype) + pd.key_data)
            result[b2x(key)] = b2x(pd.value)
    return result or None


def _unknown(unknown_fields: List[PSBT_UnknownTypeData]
             ) -> Optional[Dict[str, str]]:
    result = {}
    for ud in unknown_fields:
        key = VarIntSerializer.serialize(ud.key_type) + ud.key_data
        result[b2x(key)] = b2x(ud.value)
    return result or None


def _script(script: Optional[bytes]) -> Optional[Dict[str, Any]]:
    if script is None:
        return None
    return OutputScriptInfo.from_script(script).to_json()


def _input_script(script: Optional[bytes]) -> Optional[Dict[str, Any]]:
    if script is None:
        return None
    return InputScriptInfo.from_script(script).to_json()


def _value(value: Any) -> Optional[Dict[str, Any]]:
    if value is None:
        return None
    return ConfidentialValueInfo.from_confidential(value).to_json()


def global_info(glob: PSET_Global, num_inputs: int, num_outputs: int
                ) -> Dict[str, Any]:
    return _drop_none({
        'version': glob.version,
        'tx_version': glob.tx_version,
        'num_inputs': num_inputs,
        'num_outputs': num_outputs,
        'fallback_locktime': glob.fallback_locktime or 0,
        'tx_modifiable': glob.tx_modifiable or 0,
        'xpub': ({xpub_to_string(xpub): _key_origin(dinfo)
                  for xpub, dinfo in glob.xpubs.items()}
                 or None),
        'scalars': [b2x(s) for s in glob.scalars] or None,
        'elements_tx_modifiable_flag': glob.elements_tx_modifiable_flag or 0,
        'proprietary': _proprietary(glob.proprietary_fields),
        'unknown': _unknown(glob.unknown_fields),
    })


def input_info(inp: PSET_Input) -> Dict[str, Any]:
    non_witness_utxo = None
    if inp.non_witness_utxo is not None:
        non_witness_utxo = TransactionInfo.from_transaction(
            inp.non_witness_utxo).to_json()
    witness_utxo = None
    if inp.witness_utxo is not None:
        witness_utxo = OutputInfo.from_txout(inp.witness_utxo, None).to_json()

    return _drop_none({
        'non_witness_utxo': non_witness_utxo,
        'witness_utxo': witness_utxo,
        'partial_sigs': ({b2x(pub): b2x(sig)
                          for pub, sig in inp.partial_sigs.items()}
                         or None),
        'sighash_type': (None if inp.sighash_type is None
                         else sighashtype_to_string(inp.sighash_type)),
        'redeem_script': _script(inp.redeem_script),
        'witness_script': _script(inp.witness_script),
        'hd_keypaths': _keypaths(inp.derivation_map),
        'final_script_sig': _input_script(inp.final_script_sig),
        'final_script_witness': (
            None if inp.final_script_witness is None
            else [b2x(item) for item in inp.final_script_witness.stack]),
        'ripemd160_preimages': _hex_map(inp.ripemd160_preimages),
        'sha256_preimages': _hex_map(inp.sha256_preimages),
        'hash160_preimages': _hex_map(inp.hash160_preimages),
        'hash256_preimages': _hex_map(inp.hash256_preimages),
        'previous_txid': b2x(inp.previous_txid),
        'previous_output_index': inp.previous_output_index,
        'sequence': 0xffffffff if inp.sequence is None else inp.sequence,
        'required_time_locktime': inp.required_time_locktime,
        'required_height_locktime': inp.required_height_locktime,
        'issuance_value': _value(inp.issuance_value),
        'issuance_value_rangeproof': _hex_or_none(
            inp.issuance_value_rangeproof),
        'issuance_keys_rangeproof': _hex_or_none(inp.issuance_keys_rangeproof),
        'issuance_inflation_keys': _value(inp.issuance_inflation_keys),
        'issuance_blinding_nonce': _hex_or_none(inp.issuance_blinding_nonce),
        'issuance_asset_entropy': _hex_or_none(inp.issuance_asset_entropy),
        'pegin_tx': _hex_or_none(inp.pegin_tx),
        'pegin_txout_proof': _hex_or_none(inp.pegin_txout_proof),
        'pegin_genesis_hash': _hex_or_none(inp.pegin_genesis_hash),
        'pegin_claim_script': _input_script(inp.pegin_claim_script),
        'pegin_value': inp.pegin_value,
        'pegin_witness': (None if inp.pegin_witness is None
                          else [b2x(item) for item in inp.pegin_witness]),
        'proprietary': _proprietary(inp.proprietary_fields),
        'unknown': _unknown(inp.unknown_fields),
    })


def output_info(outp: PSET_Output) -> Dict[str, Any]:
    return _drop_none({
        'redeem_script': _script(outp.redeem_script),
        'witness_script': _script(outp.witness_script),
        'hd_keypaths': _keypaths(outp.derivation_map),
        'amount': _value(outp.amount),
        'script_pubkey': _script(outp.script_pubkey),
        'asset': ConfidentialAssetInfo.from_confidential(outp.asset).to_json(),
        'value_rangeproof': _hex_or_none(outp.value_rangeproof),
        'asset_surjection_proof': _hex_or_none(outp.asset_surjection_proof),
        'blinding_key': _hex_or_none(outp.blinding_key),
        'ecdh_pubkey': _hex_or_none(outp.ecdh_pubkey),
        'blinder_index': outp.blinder_index,
        'proprietary': _proprietary(outp.proprietary_fields),
        'unknown': _unknown(outp.unknown_fields),
    })


def pset_info(pset: PartiallySignedElementsTransaction) -> Dict[str, Any]:
    """JSON-ready description of the PSET. Addresses are shown
    for the current chain params"""
    return {
        'global': global_info(pset.glob, len(pset.inputs), len(pset.outputs)),
        'inputs': [input_info(inp) for inp in pset.inputs],
        'outputs': [output_info(outp) for outp in pset.outputs],
    }


def decode_pset(data: bytes, network: Optional[str] = None) -> Dict[str, Any]:
    """Decode raw PSET bytes into a JSON-ready dict"""
    with elements_params(network):
        return pset_info(parse_pset(data))


__all__ = (
    'sighashtype_to_string',
    'sighashtype_from_string',
    'xpub_to_string',
    'global_info',
    'input_info',
    'output_info',
    'pset_info',
    'decode_pset',
)
