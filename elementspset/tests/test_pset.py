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

import base64

from bitcointx.core import lx, x
from bitcointx.core.key import BIP32Path, CPubKey
from bitcointx.core.psbt import PSBT_KeyDerivationInfo, PSBT_UnknownTypeData
from bitcointx.core.script import CScriptWitness

from elementspset.core import (
    CConfidentialAsset, CConfidentialValue, OUTPOINT_ISSUANCE_FLAG,
    OUTPOINT_PEGIN_FLAG
)
from elementspset.errors import (
    ExtractionFailed, InvalidFieldCombination, MalformedInput
)
from elementspset.pset import (
    PSET_MAGIC, PartiallySignedElementsTransaction, PSET_Global, PSET_Input,
    create_pset, parse_pset
)

from .common import (
    ElementsTestCase, ISSUANCE, PEGIN_DATA, PREV_TXID, PUB1, PUB2, LBTC,
    explicit_value, make_pset, make_tx
)


def reparse(pset: PartiallySignedElementsTransaction
            ) -> PartiallySignedElementsTransaction:
    return parse_pset(pset.serialize())


class Test_PSET(ElementsTestCase):

    def test_from_tx(self) -> None:
        tx = make_tx()
        pset = PartiallySignedElementsTransaction.from_tx(tx)
        self.assertEqual(pset.glob.version, 2)
        self.assertEqual(pset.glob.tx_version, 2)
        self.assertEqual(pset.glob.fallback_locktime, 0)
        self.assertEqual(len(pset.inputs), 1)
        self.assertEqual(len(pset.outputs), 2)

        inp = pset.inputs[0]
        self.assertEqual(inp.previous_txid, lx(PREV_TXID))
        self.assertEqual(inp.previous_output_index, 0)
        self.assertEqual(inp.sequence, 0xffffffff)
        self.assertIsNone(inp.witness_utxo)
        self.assertFalse(inp.is_final())

        outp = pset.outputs[0]
        self.assertEqual(outp.amount.to_amount(), 99000)
        self.assertEqual(outp.asset.to_asset(), LBTC)
        self.assertEqual(bytes(outp.script_pubkey), x('0014' + '11' * 20))
        self.assertIsNone(outp.ecdh_pubkey)
        self.assertEqual(len(pset.outputs[1].script_pubkey), 0)

        self.assertEqual(pset.get_unsigned_tx().serialize(), tx.serialize())

    def test_serialization(self) -> None:
        pset = make_pset()
        data = pset.serialize()
        self.assertTrue(data.startswith(PSET_MAGIC))
        self.assertEqual(reparse(pset).serialize(), data)
        self.assertEqual(pset, reparse(pset))

        b64 = pset.to_base64()
        self.assertEqual(base64.b64decode(b64), data)
        self.assertEqual(
            PartiallySignedElementsTransaction.from_base64(b64), pset)
        self.assertEqual(create_pset(make_tx().serialize()), b64)

        clone = pset.clone()
        self.assertIsNot(clone, pset)
        clone.inputs[0].sequence = 1
        self.assertEqual(pset.inputs[0].sequence, 0xffffffff)

    def test_parse_errors(self) -> None:
        data = make_pset().serialize()
        with self.assertRaises(MalformedInput):
            parse_pset(b'psbt\xff' + data[5:])
        with self.assertRaises(MalformedInput):
            parse_pset(data[:-1])
        with self.assertRaises(MalformedInput):
            parse_pset(data + b'\x00')
        with self.assertRaises(MalformedInput):
            parse_pset(b'')

        pset = make_pset()
        pset.glob.version = 0
        with self.assertRaises(MalformedInput):
            reparse(pset)

        with self.assertRaises(ValueError):
            PSET_Input(b'\x00' * 31, 0)

    def test_issuance_and_pegin(self) -> None:
        tx = make_tx(inputs=[
            {'prevout': PREV_TXID + ':2', 'asset_issuance': ISSUANCE},
            {'prevout': PREV_TXID + ':1', 'pegin_data': PEGIN_DATA},
        ])
        pset = reparse(PartiallySignedElementsTransaction.from_tx(tx))

        inp0, inp1 = pset.inputs
        self.assertEqual(inp0.previous_output_index,
                         2 | OUTPOINT_ISSUANCE_FLAG)
        self.assertEqual(inp0.prevout_index, 2)
        self.assertTrue(inp0.has_issuance)
        self.assertFalse(inp0.is_pegin)
        self.assertEqual(inp0.issuance_value, CConfidentialValue(1000))
        self.assertIsNone(inp0.issuance_inflation_keys)
        self.assertEqual(inp0.issuance_asset_entropy, x('33' * 32))

        self.assertEqual(inp1.previous_output_index, 1 | OUTPOINT_PEGIN_FLAG)
        self.assertTrue(inp1.is_pegin)
        self.assertEqual(len(inp1.pegin_witness), 6)

        self.assertEqual(pset.get_unsigned_tx().serialize(), tx.serialize())

    def test_optional_fields(self) -> None:
        pset = make_pset()
        inp = pset.inputs[0]
        inp.required_height_locktime = 100
        inp.sha256_preimages[b'\x11' * 32] = b'preimage'
        inp.pegin_value = 50000
        inp.pegin_genesis_hash = b'\x22' * 32
        inp.unknown_fields.append(
            PSBT_UnknownTypeData(key_type=0xf0, key_data=b'k', value=b'v'))

        outp = pset.outputs[0]
        outp.blinding_key = CPubKey(x(PUB1))
        outp.ecdh_pubkey = CPubKey(x(PUB2))
        outp.blinder_index = 0
        outp.value_rangeproof = b'\xaa' * 10
        outp.derivation_map[CPubKey(x(PUB1))] = PSBT_KeyDerivationInfo(
            b'\x01\x02\x03\x04', BIP32Path("m/84'/1'/0'/0/1"))

        pset.glob.xpubs[b'\x05' * 78] = PSBT_KeyDerivationInfo(
            b'\x01\x02\x03\x04', BIP32Path("m/84'/1'/0'"))
        pset.glob.scalars.append(b'\x33' * 32)
        pset.glob.tx_modifiable = 3

        pset2 = reparse(pset)
        self.assertEqual(pset2, pset)
        inp2 = pset2.inputs[0]
        self.assertEqual(inp2.required_height_locktime, 100)
        self.assertEqual(dict(inp2.sha256_preimages),
                         {b'\x11' * 32: b'preimage'})
        self.assertEqual(inp2.pegin_value, 50000)
        self.assertEqual(inp2.pegin_genesis_hash, b'\x22' * 32)
        self.assertEqual(inp2.unknown_fields, inp.unknown_fields)

        outp2 = pset2.outputs[0]
        self.assertEqual(outp2.blinding_key, CPubKey(x(PUB1)))
        self.assertEqual(outp2.ecdh_pubkey, CPubKey(x(PUB2)))
        self.assertEqual(outp2.blinder_index, 0)
        self.assertEqual(outp2.value_rangeproof, b'\xaa' * 10)
        self.assertEqual(str(outp2.derivation_map[CPubKey(x(PUB1))].path),
                         "m/84'/1'/0'/0/1")

        self.assertEqual(list(pset2.glob.xpubs), [b'\x05' * 78])
        self.assertEqual(pset2.glob.scalars, [b'\x33' * 32])
        self.assertEqual(pset2.glob.tx_modifiable, 3)

        # ecdh pubkey is the nonce of the transaction output
        self.assertEqual(pset2.get_unsigned_tx().vout[0].nNonce.commitment,
                         x(PUB2))

    def test_commitments(self) -> None:
        pset = make_pset()
        outp = pset.outputs[0]
        outp.amount = CConfidentialValue(x('08' + PUB1[2:]))
        outp.asset = CConfidentialAsset(x('0a' + PUB1[2:]))
        outp2 = reparse(pset).outputs[0]
        self.assertEqual(outp2.amount, outp.amount)
        self.assertEqual(outp2.asset, outp.asset)
        self.assertTrue(outp2.amount.is_commitment())

    def test_locktime(self) -> None:
        pset = make_pset(inputs=[{'prevout': PREV_TXID + ':0'},
                                 {'prevout': PREV_TXID + ':1'}],
                         locktime=77)
        inp0, inp1 = pset.inputs
        self.assertEqual(pset.get_locktime(), 77)

        inp0.required_height_locktime = 100
        inp1.required_height_locktime = 200
        self.assertEqual(pset.get_locktime(), 200)

        # height is preferred when every input allows it
        inp0.required_time_locktime = 500000100
        self.assertEqual(pset.get_locktime(), 200)

        inp1.required_height_locktime = None
        inp1.required_time_locktime = 500000200
        inp0.required_height_locktime = None
        self.assertEqual(pset.get_locktime(), 500000200)

        inp1.required_time_locktime = None
        inp1.required_height_locktime = 100
        with self.assertRaises(InvalidFieldCombination):
            pset.get_locktime()

        inp0.required_time_locktime = None
        self.assertEqual(pset.get_unsigned_tx().nLockTime, 100)

    def test_extract(self) -> None:
        pset = make_pset()
        with self.assertRaises(ExtractionFailed) as cm:
            pset.extract_transaction()
        self.assertEqual(cm.exception.index, 0)

        pset.inputs[0].final_script_witness = CScriptWitness([b'\x01'])
        tx = pset.extract_transaction()
        self.assertEqual(list(tx.wit.vtxinwit[0].scriptWitness.stack),
                         [b'\x01'])

    def test_merge(self) -> None:
        pset = make_pset()
        other = pset.clone()
        other.inputs[0].redeem_script = None
        other.inputs[0].sighash_type = 1
        other.glob.scalars.append(b'\x44' * 32)
        pset.merge(other)
        self.assertEqual(pset.inputs[0].sighash_type, 1)
        self.assertEqual(pset.glob.scalars, [b'\x44' * 32])

        different = make_pset(inputs=[{'prevout': PREV_TXID + ':5'}])
        with self.assertRaises(ValueError):
            pset.merge(different)

        fewer_outputs = make_pset(outputs=[
            {'value': explicit_value(1000),
             'asset': {'type': 'explicit', 'asset': LBTC.to_hex()}}])
        with self.assertRaises(ValueError):
            pset.merge(fewer_outputs)

        glob = PSET_Global(tx_version=1)
        with self.assertRaises(ValueError):
            PSET_Global().merge(glob)
