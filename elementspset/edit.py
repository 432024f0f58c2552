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

"""Editing of the fields of one PSET input or output.

Field values are given as text, in the same format as on the command
line of PSET tools:

    non_witness_utxo      hex of the full previous transaction
    witness_utxo          hex of the spent output
    partial_sigs          '<pubkey>:<signature>,...'
    partial_sigs_add      '<pubkey>:<signature>', or a list of these
    sighash_type          'ALL', 'NONE|ANYONECANPAY', ...
    redeem_script         hex
    witness_script        hex
    hd_keypaths           '<pubkey>:<master-fp>:<path>,...'
    hd_keypaths_add       '<pubkey>:<master-fp>:<path>', or a list of these
    final_script_sig      hex
    final_script_witness  comma-separated hex values

Fields without '_add' suffix replace the current value. Fields with
'_add' suffix insert into the current map, and fail if the key is
already there."""

import logging
from collections import OrderedDict
from typing import Any, Dict, List, Optional, Tuple, Union

from bitcointx.core import b2x
from bitcointx.core.key import BIP32Path, CPubKey
from bitcointx.core.psbt import PSBT_KeyDerivationInfo
from bitcointx.core.script import CScriptWitness
from bitcointx.core.serialize import SerializationError

from .builder import FieldWarning
from .confidential import parse_hex
from .core import CElementsScript, CElementsTxOut
from .errors import (
    AmbiguousEditTarget, DuplicateKey, IndexOutOfRange, InvalidFingerprint,
    MalformedInput
)
from .pset import PartiallySignedElementsTransaction, PSET_Input, PSET_Output
from .pset_info import sighashtype_from_string
from .tx import deserialize_transaction
from .util import elements_params

log = logging.getLogger(__name__)

INPUT_FIELDS = (
    'non_witness_utxo', 'witness_utxo', 'partial_sigs', 'partial_sigs_add',
    'sighash_type', 'redeem_script', 'witness_script', 'hd_keypaths',
    'hd_keypaths_add', 'final_script_sig', 'final_script_witness',
)

OUTPUT_FIELDS = (
    'redeem_script', 'witness_script', 'hd_keypaths', 'hd_keypaths_add',
)


def _parse_pubkey(value: str, field: str) -> CPubKey:
    pub = CPubKey(parse_hex(value, field))
    if not pub.is_fullyvalid():
        raise MalformedInput('invalid pubkey {}'.format(value), field=field)
    return pub


def parse_partial_sig_pair(pair: str, field: str = 'partial_sigs'
                           ) -> Tuple[CPubKey, bytes]:
    """Parse '<pubkey>:<signature>'"""
    pub_str, sep, sig_str = pair.partition(':')
    if not sep:
        raise MalformedInput(
            'invalid partial sig pair: missing signature', field=field)
    return _parse_pubkey(pub_str, field), parse_hex(sig_str, field)


def parse_hd_keypath_triplet(triplet: str, field: str = 'hd_keypaths'
                             ) -> Tuple[CPubKey, PSBT_KeyDerivationInfo]:
    """Parse '<pubkey>:<master-fp>:<path>'"""
    parts = triplet.split(':', 2)
    if len(parts) < 2:
        raise MalformedInput(
            'invalid HD keypath triplet: missing fingerprint', field=field)
    if len(parts) < 3:
        raise MalformedInput(
            'invalid HD keypath triplet: missing HD path', field=field)
    pub_str, fp_str, path_str = parts

    pub = _parse_pubkey(pub_str, field)
    fp = parse_hex(fp_str, field)
    if len(fp) != 4:
        raise InvalidFingerprint(
            'invalid HD keypath fingerprint size: {} instead of 4'
            .format(len(fp)), field=field)
    try:
        path = BIP32Path(path_str)
    except ValueError as e:
        raise MalformedInput('invalid derivation path format: {}'.format(e),
                             field=field)
    return pub, PSBT_KeyDerivationInfo(fp, path)


def _as_list(value: Union[str, List[str]]) -> List[str]:
    if isinstance(value, str):
        return [value]
    return list(value)


def _add_entries(target: Dict[CPubKey, Any],
                 entries: List[Tuple[CPubKey, Any]],
                 field: str, what: str) -> None:
    seen = set()
    for pub, _ in entries:
        if pub in target or pub in seen:
            raise DuplicateKey(
                'public key {} is already in {}'.format(b2x(pub), what),
                field=field)
        seen.add(pub)
    for pub, value in entries:
        target[pub] = value


def _edit_common(target: Union[PSET_Input, PSET_Output],
                 fields: Dict[str, Any]) -> None:
    if 'redeem_script' in fields:
        target.redeem_script = CElementsScript(
            parse_hex(fields['redeem_script'], 'redeem_script'))
    if 'witness_script' in fields:
        target.witness_script = CElementsScript(
            parse_hex(fields['witness_script'], 'witness_script'))
    if 'hd_keypaths' in fields:
        target.derivation_map = OrderedDict(
            parse_hd_keypath_triplet(t)
            for t in fields['hd_keypaths'].split(','))
    if 'hd_keypaths_add' in fields:
        _add_entries(target.derivation_map,
                     [parse_hd_keypath_triplet(t, 'hd_keypaths_add')
                      for t in _as_list(fields['hd_keypaths_add'])],
                     'hd_keypaths_add', 'HD keypaths')


def edit_input(inp: PSET_Input, fields: Dict[str, Any]) -> None:
    if 'non_witness_utxo' in fields:
        inp.non_witness_utxo = deserialize_transaction(
            parse_hex(fields['non_witness_utxo'], 'non_witness_utxo'))

    if 'witness_utxo' in fields:
        raw = parse_hex(fields['witness_utxo'], 'witness_utxo')
        try:
            inp.witness_utxo = CElementsTxOut.deserialize(raw)
        except (SerializationError, ValueError) as e:
            raise MalformedInput('invalid witness utxo: {}'.format(e),
                                 field='witness_utxo')

    if 'partial_sigs' in fields:
        inp.partial_sigs = OrderedDict(
            parse_partial_sig_pair(p)
            for p in fields['partial_sigs'].split(','))
    if 'partial_sigs_add' in fields:
        _add_entries(inp.partial_sigs,
                     [parse_partial_sig_pair(p, 'partial_sigs_add')
                      for p in _as_list(fields['partial_sigs_add'])],
                     'partial_sigs_add', 'partial sigs')

    if 'sighash_type' in fields:
        inp.sighash_type = sighashtype_from_string(fields['sighash_type'])

    _edit_common(inp, fields)

    if 'final_script_sig' in fields:
        inp.final_script_sig = CElementsScript(
            parse_hex(fields['final_script_sig'], 'final_script_sig'))

    if 'final_script_witness' in fields:
        inp.final_script_witness = CScriptWitness(
            [parse_hex(h, 'final_script_witness')
             for h in fields['final_script_witness'].split(',')])


def edit_output(outp: PSET_Output, fields: Dict[str, Any]) -> None:
    _edit_common(outp, fields)


def edit_pset(pset: PartiallySignedElementsTransaction,
              input_index: Optional[int] = None,
              output_index: Optional[int] = None,
              **fields: Any) -> List[FieldWarning]:
    """Edit the fields of one input or one output of the PSET in place.
    Return the list of warnings about the fields that were not used.

    The PSET is not changed if an exception is raised."""

    for name in fields:
        if name not in INPUT_FIELDS:
            raise TypeError('unknown PSET field {}'.format(name))

    if input_index is None and output_index is None:
        raise AmbiguousEditTarget('no input or output index provided')
    if input_index is not None and output_index is not None:
        raise AmbiguousEditTarget(
            'can only edit an input or an output at a time')

    warnings = []
    fields = {k: v for k, v in fields.items() if v is not None}

    with elements_params():
        if input_index is not None:
            if not 0 <= input_index < len(pset.inputs):
                raise IndexOutOfRange('input index out of range',
                                      index=input_index)
            # edit a copy, so that a failure leaves the PSET unchanged
            inp = pset.clone().inputs[input_index]
            edit_input(inp, fields)
            pset.inputs[input_index] = inp
        else:
            assert output_index is not None
            if not 0 <= output_index < len(pset.outputs):
                raise IndexOutOfRange('output index out of range',
                                      index=output_index)
            location = 'outputs[{}]'.format(output_index)
            for name in list(fields):
                if name not in OUTPUT_FIELDS:
                    w = FieldWarning(location, name,
                                     'field applies to inputs only, ignored')
                    log.warning('%s', w)
                    warnings.append(w)
                    del fields[name]
            outp = pset.clone().outputs[output_index]
            edit_output(outp, fields)
            pset.outputs[output_index] = outp

    return warnings


__all__ = (
    'INPUT_FIELDS',
    'OUTPUT_FIELDS',
    'parse_partial_sig_pair',
    'parse_hd_keypath_triplet',
    'edit_input',
    'edit_output',
    'edit_pset',
)
