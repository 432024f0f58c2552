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

# pylama:ignore=C901

"""Signing and finalization of PSET inputs.

Spending scripts are recognized by their templates: p2pk, p2pkh, p2wpkh,
and p2sh, p2wsh, p2sh-p2wsh with a single-key or a standard multisig
script inside. Other scripts cannot be signed or finalized."""

import hashlib
import logging
from abc import ABC, abstractmethod
from typing import List, Optional, Tuple, Union

from bitcointx.base58 import Base58Error
from bitcointx.core import Hash160, b2x, x
from bitcointx.core.key import CKey, CPubKey
from bitcointx.core.script import (
    CScriptInvalidError, CScriptOp, CScriptWitness, SIGHASH_ALL,
    SIGVERSION_BASE, SIGVERSION_WITNESS_V0, SIGVERSION_Type,
    OP_CHECKMULTISIG, OP_CHECKSIG, OP_DUP, OP_EQUALVERIFY, OP_HASH160
)

from .core import CConfidentialValue, CElementsScript, CElementsTransaction
from .errors import (
    FinalizationFailed, IndexOutOfRange, InvalidPrivateKey, MissingUtxo,
    NotMiniscript
)
from .pset import PartiallySignedElementsTransaction, PSET_Input
from .util import elements_params
from .wallet import CElementsKey, CElementsLiquidV1Key

log = logging.getLogger(__name__)


class KeyTemplate:
    """Single-key or multisig script: the keys (or the key hash)
    that can satisfy the script"""

    def __init__(self, kind: str, required: int = 1,
                 pubkeys: Optional[List[bytes]] = None,
                 keyhash: Optional[bytes] = None) -> None:
        self.kind = kind
        self.required = required
        self.pubkeys = pubkeys or []
        self.keyhash = keyhash

    @classmethod
    def from_script(cls, script: CElementsScript) -> Optional['KeyTemplate']:
        try:
            ops = list(script)
        except CScriptInvalidError:
            return None

        if len(ops) == 2 and isinstance(ops[0], bytes) \
                and len(ops[0]) in (33, 65) and ops[1] == OP_CHECKSIG:
            return cls('pk', pubkeys=[ops[0]])

        if len(ops) == 5 and ops[0] == OP_DUP and ops[1] == OP_HASH160 \
                and isinstance(ops[2], bytes) and len(ops[2]) == 20 \
                and ops[3] == OP_EQUALVERIFY and ops[4] == OP_CHECKSIG:
            return cls('pkh', keyhash=ops[2])

        if len(ops) >= 4 and ops[-1] == OP_CHECKMULTISIG:
            # iteration decodes OP_1..OP_16 into plain ints
            m, n = ops[0], ops[-2]
            if isinstance(m, (bytes, CScriptOp)) \
                    or isinstance(n, (bytes, CScriptOp)):
                return None
            pubkeys = ops[1:-2]
            if not 1 <= m <= n <= 16 or n != len(pubkeys):
                return None
            if not all(isinstance(pub, bytes) and len(pub) in (33, 65)
                       for pub in pubkeys):
                return None
            return cls('multi', required=m, pubkeys=list(pubkeys))

        return None

    def satisfy(self, partial_sigs: dict) -> Optional[List[bytes]]:
        """Stack items that satisfy the script, without the script itself,
        or None if there are not enough signatures"""
        if self.kind == 'pk':
            sig = partial_sigs.get(self.pubkeys[0])
            return None if sig is None else [sig]

        if self.kind == 'pkh':
            for pub, sig in partial_sigs.items():
                if Hash160(pub) == self.keyhash:
                    return [sig, bytes(pub)]
            return None

        sigs = [partial_sigs[pub] for pub in self.pubkeys
                if pub in partial_sigs]
        if len(sigs) < self.required:
            return None
        # dummy element for the CHECKMULTISIG bug
        return [b''] + sigs[:self.required]


class ScriptInterpreter:
    """Spending conditions of an input, recognized from the spent
    scriptPubKey and the redeem and witness scripts"""

    kind: str
    script_code: CElementsScript
    sigversion: SIGVERSION_Type
    template: KeyTemplate
    redeem_script: Optional[CElementsScript]
    witness_script: Optional[CElementsScript]

    def __init__(self, kind: str, script_code: CElementsScript,
                 sigversion: SIGVERSION_Type, template: KeyTemplate,
                 redeem_script: Optional[CElementsScript] = None,
                 witness_script: Optional[CElementsScript] = None) -> None:
        self.kind = kind
        self.script_code = script_code
        self.sigversion = sigversion
        self.template = template
        self.redeem_script = redeem_script
        self.witness_script = witness_script

    @property
    def is_witness(self) -> bool:
        return self.sigversion == SIGVERSION_WITNESS_V0

    @classmethod
    def from_txdata(cls, script_pubkey: CElementsScript,
                    script_sig: CElementsScript,
                    witness: CScriptWitness) -> 'ScriptInterpreter':
        """script_sig may contain a push of the redeem script,
        the last item of the witness may be the witness script"""
        spk = CElementsScript(script_pubkey)

        def from_witness_program(prefix: str, program_spk: CElementsScript
                                 ) -> 'ScriptInterpreter':
            if program_spk.is_witness_v0_keyhash():
                keyhash = bytes(program_spk)[2:22]
                return cls(prefix + 'p2wpkh', _p2pkh_script(keyhash),
                           SIGVERSION_WITNESS_V0,
                           KeyTemplate('pkh', keyhash=keyhash))
            assert program_spk.is_witness_v0_scripthash()
            if not len(witness.stack):
                raise NotMiniscript('witness script is missing')
            ws = CElementsScript(witness.stack[-1])
            if hashlib.sha256(ws).digest() != bytes(program_spk)[2:34]:
                raise NotMiniscript('witness script does not match '
                                    'the witness program')
            template = KeyTemplate.from_script(ws)
            if template is None:
                raise NotMiniscript('unsupported witness script')
            return cls(prefix + 'p2wsh', ws, SIGVERSION_WITNESS_V0,
                       template, witness_script=ws)

        if spk.is_witness_v0_keyhash() or spk.is_witness_v0_scripthash():
            return from_witness_program('', spk)

        if spk.is_p2sh():
            try:
                pushes = list(script_sig)
            except CScriptInvalidError:
                raise NotMiniscript('invalid script_sig')
            if not pushes or not isinstance(pushes[-1], bytes):
                raise NotMiniscript('redeem script is missing')
            rs = CElementsScript(pushes[-1])
            if Hash160(rs) != bytes(spk)[2:22]:
                raise NotMiniscript('redeem script does not match '
                                    'the script hash')
            if rs.is_witness_v0_keyhash() or rs.is_witness_v0_scripthash():
                interp = from_witness_program('p2sh-', rs)
                interp.redeem_script = rs
                return interp
            template = KeyTemplate.from_script(rs)
            if template is None:
                raise NotMiniscript('unsupported redeem script')
            return cls('p2sh', rs, SIGVERSION_BASE, template,
                       redeem_script=rs)

        template = KeyTemplate.from_script(spk)
        if template is None:
            raise NotMiniscript('unsupported scriptPubKey {}'.format(b2x(spk)))
        return cls('p2' + template.kind, spk, SIGVERSION_BASE, template)

    def finalize(
        self, partial_sigs: dict
    ) -> Optional[Tuple[CElementsScript, Optional[CScriptWitness]]]:
        """(final script_sig, final witness) from the signatures,
        or None if they are not enough"""
        items = self.template.satisfy(partial_sigs)
        if items is None:
            return None

        if not self.is_witness:
            if self.redeem_script is not None:
                items.append(bytes(self.redeem_script))
            return CElementsScript(items), None

        if self.witness_script is not None:
            items.append(bytes(self.witness_script))
        script_sig = CElementsScript()
        if self.redeem_script is not None:
            script_sig = CElementsScript([bytes(self.redeem_script)])
        return script_sig, CScriptWitness(items)


def _p2pkh_script(keyhash: bytes) -> CElementsScript:
    return CElementsScript([OP_DUP, OP_HASH160, keyhash, OP_EQUALVERIFY,
                            OP_CHECKSIG])


def spending_context(inp: PSET_Input) -> Tuple[CElementsScript,
                                                CScriptWitness]:
    """script_sig and witness that identify the scripts of the input
    before it is signed"""
    script_sig = CElementsScript()
    if inp.redeem_script is not None:
        script_sig = CElementsScript([bytes(inp.redeem_script)])
    witness = CScriptWitness()
    if inp.witness_script is not None:
        witness = CScriptWitness([bytes(inp.witness_script)])
    return script_sig, witness


def interpreter_for_input(inp: PSET_Input, index: int
                          ) -> Tuple[ScriptInterpreter, CConfidentialValue]:
    utxo = inp.get_utxo()
    if utxo is None:
        raise MissingUtxo('no UTXO information for input', index=index)
    script_sig, witness = spending_context(inp)
    try:
        interp = ScriptInterpreter.from_txdata(utxo.scriptPubKey, script_sig,
                                               witness)
    except NotMiniscript as e:
        raise NotMiniscript(str(e), index=index)
    return interp, utxo.nValue


class SigningBackend(ABC):
    """Cryptographic operations of the signing and finalize pipelines"""

    @abstractmethod
    def derive_sighash(self, tx: CElementsTransaction, index: int,
                       interpreter: ScriptInterpreter,
                       amount: CConfidentialValue, sighash_type: int) -> bytes:
        ...

    @abstractmethod
    def sign(self, message: bytes, key: CKey) -> bytes:
        """DER-encoded signature, without the sighash byte"""

    @abstractmethod
    def finalize(self, pset: PartiallySignedElementsTransaction) -> None:
        """Set final script_sig and witness for every input, raise
        FinalizationFailed for an input that cannot be finalized"""


class StandardSigningBackend(SigningBackend):

    def derive_sighash(self, tx: CElementsTransaction, index: int,
                       interpreter: ScriptInterpreter,
                       amount: CConfidentialValue, sighash_type: int) -> bytes:
        return interpreter.script_code.sighash(
            tx, index, sighash_type, amount=amount,
            sigversion=interpreter.sigversion)

    def sign(self, message: bytes, key: CKey) -> bytes:
        return key.sign(message)

    def finalize(self, pset: PartiallySignedElementsTransaction) -> None:
        for index, inp in enumerate(pset.inputs):
            if inp.is_final():
                continue
            try:
                interp, _ = interpreter_for_input(inp, index)
            except (MissingUtxo, NotMiniscript) as e:
                raise FinalizationFailed(str(e), index=index) from e

            result = interp.finalize(inp.partial_sigs)
            if result is None:
                raise FinalizationFailed('not enough signatures for {} input'
                                         .format(interp.kind), index=index)

            log.debug('finalized %s input %d', interp.kind, index)
            inp.final_script_sig, inp.final_script_witness = result
            if not len(inp.final_script_sig):
                inp.final_script_sig = None

            inp.partial_sigs.clear()
            inp.sighash_type = None
            inp.redeem_script = None
            inp.witness_script = None
            inp.derivation_map.clear()


def parse_private_key(private_key: str, compressed: bool = True) -> CKey:
    """Private key from WIF or hex of the secret. The compressed flag
    selects the pubkey form, regardless of the WIF suffix"""
    secret = None
    for key_class in (CElementsKey, CElementsLiquidV1Key):
        try:
            secret = key_class(private_key).secret_bytes
            break
        except (Base58Error, ValueError):
            continue

    if secret is None:
        try:
            secret = x(private_key)
        except ValueError:
            raise InvalidPrivateKey('private key is not WIF or hex')

    try:
        return CKey(secret, compressed=compressed)
    except ValueError as e:
        raise InvalidPrivateKey('invalid private key: {}'.format(e))


def sign_input(pset: PartiallySignedElementsTransaction, index: int,
               private_key: Union[str, CKey], compressed: bool = True,
               backend: Optional[SigningBackend] = None) -> CPubKey:
    """Sign the input with the key, and put the signature into partial
    sigs of the input, replacing existing signature for the same pubkey.
    Return the pubkey"""
    backend = backend or StandardSigningBackend()
    if not 0 <= index < len(pset.inputs):
        raise IndexOutOfRange('input index out of range', index=index)

    if isinstance(private_key, CKey):
        key = private_key
    else:
        key = parse_private_key(private_key, compressed=compressed)

    inp = pset.inputs[index]
    with elements_params():
        interp, amount = interpreter_for_input(inp, index)
        sighash_type = (SIGHASH_ALL if inp.sighash_type is None
                        else inp.sighash_type)
        tx = pset.get_unsigned_tx()
        message = backend.derive_sighash(tx, index, interp, amount,
                                         sighash_type)
        sig = backend.sign(message, key) + bytes([sighash_type & 0xff])

    log.debug('signed %s input %d, pubkey %s', interp.kind, index,
              b2x(key.pub))
    inp.partial_sigs[key.pub] = sig
    return key.pub


def finalize_pset(pset: PartiallySignedElementsTransaction,
                  backend: Optional[SigningBackend] = None) -> bytes:
    """Finalize all inputs of the PSET, and return the serialized final
    transaction. The PSET is changed only when every input is finalized
    and the transaction is extracted"""
    backend = backend or StandardSigningBackend()
    finalized = pset.clone()
    with elements_params():
        backend.finalize(finalized)
        tx_bytes = finalized.extract_transaction().serialize()

    pset.inputs[:] = finalized.inputs
    return tx_bytes


__all__ = (
    'KeyTemplate',
    'ScriptInterpreter',
    'SigningBackend',
    'StandardSigningBackend',
    'spending_context',
    'interpreter_for_input',
    'parse_private_key',
    'sign_input',
    'finalize_pset',
)
