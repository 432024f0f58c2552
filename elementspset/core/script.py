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

# pylama:ignore=E501,C901

import struct
from io import BytesIO
from typing import Optional, Tuple, NamedTuple

from bitcointx.util import no_bool_use_as_property, ensure_isinstance
from bitcointx.core import Hash
from bitcointx.core.script import (
    ScriptCoinClassDispatcher, ScriptCoinClass,
    CScript, CScriptOp,
    SIGVERSION_BASE, SIGVERSION_WITNESS_V0,
    CScriptInvalidError,
    RawBitcoinSignatureHash,
    OP_RETURN,
    SIGHASH_NONE,
    SIGHASH_SINGLE,
    SIGHASH_ANYONECANPAY,
    SIGHASH_Type, SIGVERSION_Type,
)
from bitcointx.core.serialize import BytesSerializer
import elementspset.core

# Elements-specific opcodes that standard script templates may contain.
# They are not registered in bitcointx script.OPCODE_NAMES, to not pollute
# bitcoin-specific tables, and will be shown as unknown opcodes.
OP_CHECKSIGFROMSTACK = CScriptOp(0xc1)
OP_CHECKSIGFROMSTACKVERIFY = CScriptOp(0xc2)

ELEMENTS_OPCODE_NAMES = {
    OP_CHECKSIGFROMSTACK: 'OP_CHECKSIGFROMSTACK',
    OP_CHECKSIGFROMSTACKVERIFY: 'OP_CHECKSIGFROMSTACKVERIFY',
}


class PegoutData(NamedTuple):
    genesis_hash: bytes
    script_pubkey: CScript
    extra_data: Tuple[bytes, ...]


class ScriptElementsClassDispatcher(ScriptCoinClassDispatcher):
    ...


class ScriptElementsClass(ScriptCoinClass,
                          metaclass=ScriptElementsClassDispatcher):
    ...


def RawElementsSignatureHash(
    script: CScript,
    txTo: 'elementspset.core.CElementsTransaction',
    inIdx: int,
    hashtype: SIGHASH_Type,
    amount: Optional['elementspset.core.CConfidentialValue'] = None,
    sigversion: SIGVERSION_Type = SIGVERSION_BASE
) -> Tuple[bytes, Optional[str]]:
    """Consensus-correct SignatureHash for Elements transactions

    Returns (hash, err) to precisely match the consensus-critical behavior of
    the SIGHASH_SINGLE bug. (inIdx is *not* checked for validity)

    For segwit v0 the amount is the confidential value of the spent output,
    serialized as-is, and the hash commits to the asset issuances of the
    inputs.
    """
    if sigversion not in (SIGVERSION_BASE, SIGVERSION_WITNESS_V0):
        raise ValueError('unexpected sigversion')

    if sigversion == SIGVERSION_BASE:
        # legacy sighash is the same as in bitcoin, without the amount
        return RawBitcoinSignatureHash(script, txTo, inIdx, hashtype,
                                       amount=None, sigversion=sigversion)

    ensure_isinstance(amount, elementspset.core.CConfidentialValue, 'amount')
    assert isinstance(amount, elementspset.core.CConfidentialValue)

    base_type = hashtype & 0x1f
    anyonecanpay = bool(hashtype & SIGHASH_ANYONECANPAY)

    hashPrevouts = b'\x00'*32
    hashSequence = b'\x00'*32
    hashIssuance = b'\x00'*32
    hashOutputs = b'\x00'*32

    if not anyonecanpay:
        prevouts = BytesIO()
        issuances = BytesIO()
        for vin in txTo.vin:
            vin.prevout.stream_serialize(prevouts)
            if vin.assetIssuance.is_null():
                issuances.write(b'\x00')
            else:
                vin.assetIssuance.stream_serialize(issuances)
        hashPrevouts = Hash(prevouts.getvalue())
        hashIssuance = Hash(issuances.getvalue())

    if not anyonecanpay and base_type not in (SIGHASH_SINGLE, SIGHASH_NONE):
        hashSequence = Hash(b''.join(struct.pack("<I", vin.nSequence)
                                     for vin in txTo.vin))

    if base_type not in (SIGHASH_SINGLE, SIGHASH_NONE):
        hashOutputs = Hash(b''.join(vout.serialize() for vout in txTo.vout))
    elif base_type == SIGHASH_SINGLE and inIdx < len(txTo.vout):
        hashOutputs = Hash(txTo.vout[inIdx].serialize())

    txin = txTo.vin[inIdx]

    f = BytesIO()
    f.write(struct.pack("<i", txTo.nVersion))
    f.write(hashPrevouts)
    f.write(hashSequence)
    f.write(hashIssuance)
    txin.prevout.stream_serialize(f)
    BytesSerializer.stream_serialize(script, f)
    f.write(amount.commitment)
    f.write(struct.pack("<I", txin.nSequence))
    if not txin.assetIssuance.is_null():
        txin.assetIssuance.stream_serialize(f)
    f.write(hashOutputs)
    f.write(struct.pack("<I", txTo.nLockTime))
    f.write(struct.pack("<I", hashtype))

    return (Hash(f.getvalue()), None)


class CElementsScript(CScript, ScriptElementsClass):

    @no_bool_use_as_property
    def is_unspendable(self) -> bool:
        # empty scriptPubKey marks a fee output
        return not len(self) or super().is_unspendable()

    # amount is a CConfidentialValue rather than int, so the signatures
    # of sighash() and raw_sighash() differ from the ones of CScript
    def sighash(self,  # type: ignore
                txTo: 'elementspset.core.CElementsTransaction', inIdx: int,
                hashtype: SIGHASH_Type,
                amount: Optional['elementspset.core.CConfidentialValue'] = None,
                sigversion: SIGVERSION_Type = SIGVERSION_BASE) -> bytes:
        h, err = self.raw_sighash(txTo, inIdx, SIGHASH_Type(hashtype),
                                  amount=amount, sigversion=sigversion)
        if err is not None:
            raise ValueError(err)
        return h

    def raw_sighash(self,  # type: ignore
                    txTo: 'elementspset.core.CElementsTransaction',
                    inIdx: int,
                    hashtype: SIGHASH_Type,
                    amount: Optional['elementspset.core.CConfidentialValue'] = None,
                    sigversion: SIGVERSION_Type = SIGVERSION_BASE
                    ) -> Tuple[bytes, Optional[str]]:
        return RawElementsSignatureHash(self, txTo, inIdx, hashtype,
                                        amount=amount, sigversion=sigversion)

    def get_pegout_data(self) -> Optional[PegoutData]:
        """Parse OP_RETURN <genesis hash> <script> <extra data...>.
        Returns None if the script is not a pegout script."""
        pushes = []
        try:
            for pos, (op, data, _) in enumerate(self.raw_iter()):
                if pos == 0:
                    if op != OP_RETURN:
                        return None
                elif data is None:
                    return None
                else:
                    pushes.append(data)
        except CScriptInvalidError:
            return None

        if len(pushes) < 2 or len(pushes[0]) != 32 or not pushes[1]:
            return None

        return PegoutData(pushes[0], self.__class__(pushes[1]),
                          tuple(pushes[2:]))

    @no_bool_use_as_property
    def is_pegout(self) -> bool:
        return self.get_pegout_data() is not None


__all__ = (
    'OP_CHECKSIGFROMSTACK',
    'OP_CHECKSIGFROMSTACKVERIFY',
    'ELEMENTS_OPCODE_NAMES',
    'PegoutData',
    'CElementsScript',
    'RawElementsSignatureHash',
)
