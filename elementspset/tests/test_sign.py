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

import hashlib

from bitcointx.core import Hash160, b2x
from bitcointx.core.script import (
    CScriptWitness, SIGHASH_ALL, SIGHASH_SINGLE, SIGVERSION_BASE,
    SIGVERSION_WITNESS_V0, OP_CHECKMULTISIG, OP_CHECKSIG, OP_DUP, OP_EQUAL,
    OP_EQUALVERIFY, OP_HASH160, OP_RETURN
)

from elementspset.core import CElementsScript
from elementspset.errors import (
    FinalizationFailed, IndexOutOfRange, InvalidPrivateKey, MissingUtxo,
    NotMiniscript
)
from elementspset.sign import (
    KeyTemplate, ScriptInterpreter, finalize_pset, parse_private_key,
    sign_input
)
from elementspset.tx import deserialize_transaction
from elementspset.wallet import CElementsKey

from .common import (
    ElementsTestCase, OTHER_TXID, PREV_TXID, make_key, make_pset, make_utxo,
    p2wpkh_script
)


def p2pkh_script(keyhash: bytes) -> CElementsScript:
    return CElementsScript([OP_DUP, OP_HASH160, keyhash, OP_EQUALVERIFY,
                            OP_CHECKSIG])


class Test_Templates(ElementsTestCase):

    def test_key_templates(self) -> None:
        key1 = make_key(b'tmpl-1')
        key2 = make_key(b'tmpl-2')

        t = KeyTemplate.from_script(CElementsScript([key1.pub, OP_CHECKSIG]))
        assert t is not None
        self.assertEqual(t.kind, 'pk')

        t = KeyTemplate.from_script(p2pkh_script(Hash160(key1.pub)))
        assert t is not None
        self.assertEqual(t.kind, 'pkh')
        self.assertEqual(t.keyhash, Hash160(key1.pub))

        t = KeyTemplate.from_script(
            CElementsScript([1, key1.pub, key2.pub, 2, OP_CHECKMULTISIG]))
        assert t is not None
        self.assertEqual(t.kind, 'multi')
        self.assertEqual(t.required, 1)
        self.assertEqual(t.pubkeys, [key1.pub, key2.pub])

        for bad in (CElementsScript([3, key1.pub, key2.pub, 2,
                                     OP_CHECKMULTISIG]),
                    CElementsScript([1, key1.pub, 1, OP_CHECKMULTISIG,
                                     OP_CHECKSIG]),
                    CElementsScript([1, key1.pub, key2.pub, 3,
                                     OP_CHECKMULTISIG]),
                    CElementsScript([OP_RETURN]),
                    CElementsScript(b'\x4c')):
            self.assertIsNone(KeyTemplate.from_script(bad))

    def test_interpreter(self) -> None:
        key = make_key(b'interp')
        spk = p2wpkh_script(key)
        interp = ScriptInterpreter.from_txdata(spk, CElementsScript(),
                                               CScriptWitness())
        self.assertEqual(interp.kind, 'p2wpkh')
        self.assertTrue(interp.is_witness)
        self.assertEqual(interp.script_code, p2pkh_script(Hash160(key.pub)))

        p2sh = CElementsScript([OP_HASH160, Hash160(spk), OP_EQUAL])
        interp = ScriptInterpreter.from_txdata(
            p2sh, CElementsScript([bytes(spk)]), CScriptWitness())
        self.assertEqual(interp.kind, 'p2sh-p2wpkh')
        self.assertEqual(interp.redeem_script, spk)

        interp = ScriptInterpreter.from_txdata(
            p2pkh_script(Hash160(key.pub)), CElementsScript(),
            CScriptWitness())
        self.assertEqual(interp.kind, 'p2pkh')
        self.assertEqual(interp.sigversion, SIGVERSION_BASE)

        with self.assertRaises(NotMiniscript):
            ScriptInterpreter.from_txdata(p2sh, CElementsScript(),
                                          CScriptWitness())
        with self.assertRaises(NotMiniscript):
            ScriptInterpreter.from_txdata(CElementsScript([OP_RETURN]),
                                          CElementsScript(),
                                          CScriptWitness())


class Test_SignAndFinalize(ElementsTestCase):

    def test_p2wpkh(self) -> None:
        key = make_key(b'sign-p2wpkh')
        pset = make_pset()
        utxo = make_utxo(p2wpkh_script(key))
        pset.inputs[0].witness_utxo = utxo

        pub = sign_input(pset, 0, key)
        self.assertEqual(pub, key.pub)
        sig = pset.inputs[0].partial_sigs[pub]
        self.assertEqual(sig[-1], SIGHASH_ALL)

        sighash = p2pkh_script(Hash160(pub)).sighash(
            pset.get_unsigned_tx(), 0, SIGHASH_ALL, amount=utxo.nValue,
            sigversion=SIGVERSION_WITNESS_V0)
        self.assertTrue(pub.verify(sighash, sig[:-1]))

        tx = deserialize_transaction(finalize_pset(pset))
        inp = pset.inputs[0]
        self.assertEqual(list(inp.final_script_witness.stack),
                         [sig, bytes(pub)])
        self.assertIsNone(inp.final_script_sig)
        self.assertEqual(len(inp.partial_sigs), 0)
        self.assertIsNone(inp.sighash_type)
        self.assertEqual(list(tx.wit.vtxinwit[0].scriptWitness.stack),
                         [sig, bytes(pub)])
        self.assertEqual(len(tx.vin[0].scriptSig), 0)

    def test_sighash_type(self) -> None:
        key = make_key(b'sign-single')
        pset = make_pset()
        pset.inputs[0].witness_utxo = make_utxo(p2wpkh_script(key))
        pset.inputs[0].sighash_type = SIGHASH_SINGLE
        sign_input(pset, 0, key)
        self.assertEqual(pset.inputs[0].partial_sigs[key.pub][-1],
                         SIGHASH_SINGLE)

    def test_p2pkh(self) -> None:
        key = make_key(b'sign-p2pkh')
        pset = make_pset()
        utxo = make_utxo(p2pkh_script(Hash160(key.pub)))
        pset.inputs[0].witness_utxo = utxo

        pub = sign_input(pset, 0, b2x(key.secret_bytes))
        sig = pset.inputs[0].partial_sigs[pub]
        sighash = utxo.scriptPubKey.sighash(
            pset.get_unsigned_tx(), 0, SIGHASH_ALL,
            sigversion=SIGVERSION_BASE)
        self.assertTrue(pub.verify(sighash, sig[:-1]))

        tx = deserialize_transaction(finalize_pset(pset))
        self.assertEqual(list(tx.vin[0].scriptSig), [sig, bytes(pub)])
        self.assertIsNone(pset.inputs[0].final_script_witness)

    def test_p2wsh_multisig(self) -> None:
        key1 = make_key(b'multi-1')
        key2 = make_key(b'multi-2')
        ws = CElementsScript([2, key1.pub, key2.pub, 2, OP_CHECKMULTISIG])
        spk = CElementsScript([0, hashlib.sha256(ws).digest()])

        pset = make_pset()
        pset.inputs[0].witness_utxo = make_utxo(spk)
        pset.inputs[0].witness_script = ws

        # second key signs first, the order of signatures follows the script
        sign_input(pset, 0, key2)
        with self.assertRaises(FinalizationFailed) as cm:
            finalize_pset(pset.clone())
        self.assertEqual(cm.exception.index, 0)

        sign_input(pset, 0, key1)
        sigs = pset.inputs[0].partial_sigs
        sig1, sig2 = sigs[key1.pub], sigs[key2.pub]

        finalize_pset(pset)
        inp = pset.inputs[0]
        self.assertEqual(list(inp.final_script_witness.stack),
                         [b'', sig1, sig2, bytes(ws)])
        self.assertIsNone(inp.witness_script)

    def test_p2sh_p2wpkh(self) -> None:
        key = make_key(b'sign-p2sh-p2wpkh')
        rs = p2wpkh_script(key)
        pset = make_pset()
        pset.inputs[0].witness_utxo = make_utxo(
            CElementsScript([OP_HASH160, Hash160(rs), OP_EQUAL]))
        pset.inputs[0].redeem_script = rs

        pub = sign_input(pset, 0, key)
        sig = pset.inputs[0].partial_sigs[pub]
        finalize_pset(pset)
        inp = pset.inputs[0]
        self.assertEqual(list(inp.final_script_sig), [bytes(rs)])
        self.assertEqual(list(inp.final_script_witness.stack),
                         [sig, bytes(pub)])
        self.assertIsNone(inp.redeem_script)

    def test_errors(self) -> None:
        key = make_key(b'sign-errors')
        pset = make_pset()
        with self.assertRaises(MissingUtxo) as cm:
            sign_input(pset, 0, key)
        self.assertEqual(cm.exception.index, 0)
        with self.assertRaises(IndexOutOfRange):
            sign_input(pset, 1, key)
        with self.assertRaises(FinalizationFailed):
            finalize_pset(pset)

        pset.inputs[0].witness_utxo = make_utxo(
            CElementsScript([OP_RETURN, b'data']))
        with self.assertRaises(NotMiniscript):
            sign_input(pset, 0, key)

        pset.inputs[0].witness_utxo = make_utxo(p2wpkh_script(key))
        with self.assertRaises(FinalizationFailed):
            finalize_pset(pset)

    def test_finalize_all_or_nothing(self) -> None:
        key = make_key(b'sign-two-inputs')
        pset = make_pset(inputs=[{'prevout': PREV_TXID + ':0'},
                                 {'prevout': OTHER_TXID + ':0'}])
        for inp in pset.inputs:
            inp.witness_utxo = make_utxo(p2wpkh_script(key))
        pub = sign_input(pset, 0, key)

        before = pset.serialize()
        with self.assertRaises(FinalizationFailed) as cm:
            finalize_pset(pset)
        self.assertEqual(cm.exception.index, 1)
        self.assertEqual(pset.serialize(), before)
        self.assertIsNone(pset.inputs[0].final_script_witness)
        self.assertIn(pub, pset.inputs[0].partial_sigs)

        sign_input(pset, 1, key)
        finalize_pset(pset)
        self.assertTrue(all(inp.is_final() for inp in pset.inputs))

    def test_parse_private_key(self) -> None:
        key = make_key(b'wif')
        wif = str(CElementsKey.from_secret_bytes(key.secret_bytes))
        self.assertEqual(parse_private_key(wif).secret_bytes,
                         key.secret_bytes)
        self.assertEqual(parse_private_key(b2x(key.secret_bytes)).pub,
                         key.pub)

        uncompressed = parse_private_key(wif, compressed=False)
        self.assertFalse(uncompressed.pub.is_compressed())
        self.assertEqual(len(uncompressed.pub), 65)

        with self.assertRaises(InvalidPrivateKey):
            parse_private_key('not a key')
