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

import struct

from bitcointx.core import b2lx, b2x, lx, x
from bitcointx.core.script import OP_RETURN, OP_CHECKSIG, OP_2

from elementspset.core import (
    CElementsOutPoint, CElementsScript, CElementsTransaction, CElementsTxIn,
    OUTPOINT_ISSUANCE_FLAG, OUTPOINT_PEGIN_FLAG, TxInSerializationError
)
from elementspset.core.script import OP_CHECKSIGFROMSTACK
from elementspset.errors import MalformedInput
from elementspset.tx import (
    decode_transaction, deserialize_transaction, parse_outpoint, script_asm,
    script_type
)

from .common import (
    ElementsTestCase, GENESIS_HASH, ISSUANCE, PEGIN_DATA, PREV_TXID, PUB1,
    LIQUID_BITCOIN_ASSET_ID_JSON, explicit_asset, explicit_value, make_tx
)


class Test_Scripts(ElementsTestCase):

    def test_script_asm(self) -> None:
        spk = CElementsScript(x('0014' + '11' * 20))
        self.assertEqual(script_asm(spk), 'OP_0 OP_PUSHBYTES_20 ' + '11' * 20)
        self.assertEqual(script_asm(CElementsScript()), '')
        self.assertEqual(
            script_asm(CElementsScript([x(PUB1), OP_CHECKSIG])),
            'OP_PUSHBYTES_33 {} OP_CHECKSIG'.format(PUB1))
        self.assertEqual(script_asm(CElementsScript([OP_CHECKSIGFROMSTACK])),
                         'OP_CHECKSIGFROMSTACK')
        self.assertEqual(script_asm(CElementsScript(x('4c05aa'))),
                         '<push past end>')

    def test_script_type(self) -> None:
        self.assertEqual(script_type(CElementsScript()), 'fee')
        self.assertEqual(script_type(CElementsScript([x(PUB1), OP_CHECKSIG])),
                         'p2pk')
        self.assertEqual(script_type(CElementsScript(
            x('76a914' + '11' * 20 + '88ac'))), 'p2pkh')
        self.assertEqual(script_type(CElementsScript(
            x('a914' + '11' * 20 + '87'))), 'p2sh')
        self.assertEqual(script_type(CElementsScript(
            x('0014' + '11' * 20))), 'p2wpkh')
        self.assertEqual(script_type(CElementsScript(
            x('0020' + '11' * 32))), 'p2wsh')
        self.assertEqual(script_type(CElementsScript([OP_RETURN, b'abc'])),
                         'opreturn')
        self.assertEqual(script_type(CElementsScript([OP_2])), 'unknown')

    def test_pegout_data(self) -> None:
        mainchain_spk = x('0014' + '44' * 20)
        spk = CElementsScript([OP_RETURN, lx(GENESIS_HASH), mainchain_spk,
                               b'extra'])
        pd = spk.get_pegout_data()
        assert pd is not None
        self.assertTrue(spk.is_pegout())
        self.assertEqual(pd.genesis_hash, lx(GENESIS_HASH))
        self.assertEqual(bytes(pd.script_pubkey), mainchain_spk)
        self.assertEqual(pd.extra_data, (b'extra',))

        self.assertFalse(CElementsScript([OP_RETURN, b'abc']).is_pegout())
        self.assertFalse(CElementsScript([OP_RETURN, lx(GENESIS_HASH)])
                         .is_pegout())
        self.assertFalse(CElementsScript([OP_RETURN, lx(GENESIS_HASH),
                                          OP_CHECKSIG]).is_pegout())
        self.assertFalse(CElementsScript(mainchain_spk).is_pegout())

    def test_parse_outpoint(self) -> None:
        self.assertEqual(parse_outpoint(PREV_TXID + ':5'),
                         (lx(PREV_TXID), 5))
        for bad in (PREV_TXID, PREV_TXID + ':x', PREV_TXID[2:] + ':1',
                    PREV_TXID + ':-1', PREV_TXID + ':4294967296'):
            with self.assertRaises(MalformedInput):
                parse_outpoint(bad)


class Test_Transaction(ElementsTestCase):

    def test_serialization(self) -> None:
        tx = make_tx()
        data = tx.serialize()
        # version, then the flag byte, zero without witness
        self.assertEqual(data[:5], x('0200000000'))
        self.assertEqual(data[6:38], lx(PREV_TXID))
        self.assertEqual(data[38:42], x('00000000'))

        tx2 = CElementsTransaction.deserialize(data)
        self.assertEqual(tx2.serialize(), data)
        self.assertEqual(tx2.GetTxid(), tx.GetTxid())
        self.assertEqual(tx.get_weight(), len(data) * 4)
        self.assertEqual(tx.get_virtual_size(), len(data))

    def test_txin_flags(self) -> None:
        txin = CElementsTxIn(CElementsOutPoint(lx(PREV_TXID), 3),
                             is_pegin=True)
        data = txin.serialize()
        n = struct.unpack(b'<I', data[32:36])[0]
        self.assertEqual(n, 3 | OUTPOINT_PEGIN_FLAG)
        txin2 = CElementsTxIn.deserialize(data)
        self.assertEqual(txin2.prevout.n, 3)
        self.assertTrue(txin2.is_pegin)

        with self.assertRaises(TxInSerializationError):
            CElementsTxIn(CElementsOutPoint(lx(PREV_TXID),
                                            3 | OUTPOINT_ISSUANCE_FLAG)
                          ).serialize()

    def test_decode(self) -> None:
        tx = make_tx()
        info = decode_transaction(tx.serialize())

        self.assertEqual(info['txid'], b2lx(tx.GetTxid()))
        self.assertEqual(info['hash'], info['txid'])
        self.assertEqual(info['size'], len(tx.serialize()))
        self.assertEqual(info['weight'], info['size'] * 4)
        self.assertEqual(info['vsize'], info['size'])
        self.assertEqual(info['version'], 2)
        self.assertEqual(info['locktime'], 0)

        inp, = info['inputs']
        self.assertEqual(inp['prevout'], PREV_TXID + ':0')
        self.assertEqual(inp['txid'], PREV_TXID)
        self.assertEqual(inp['vout'], 0)
        self.assertEqual(inp['sequence'], 0xffffffff)
        self.assertEqual(inp['script_sig'], {'hex': '', 'asm': ''})
        self.assertFalse(inp['is_pegin'])
        self.assertFalse(inp['has_issuance'])
        self.assertNotIn('asset_issuance', inp)
        self.assertNotIn('witness', inp)

        out0, out1 = info['outputs']
        self.assertEqual(out0['value'], explicit_value(99000))
        self.assertEqual(out0['asset'], LIQUID_BITCOIN_ASSET_ID_JSON)
        self.assertEqual(out0['nonce'], {'type': 'null'})
        self.assertEqual(out0['script_pub_key']['type'], 'p2wpkh')
        self.assertEqual(out0['script_pub_key']['hex'], '0014' + '11' * 20)
        self.assertTrue(out0['script_pub_key']['address'].startswith('ert1'))
        self.assertFalse(out0['is_fee'])
        self.assertNotIn('pegout_data', out0)

        self.assertEqual(out1['script_pub_key'],
                         {'hex': '', 'asm': '', 'type': 'fee'})
        self.assertTrue(out1['is_fee'])

    def test_decode_liquid(self) -> None:
        info = decode_transaction(make_tx().serialize(), network='liquid')
        self.assertTrue(
            info['outputs'][0]['script_pub_key']['address'].startswith('ex1'))

    def test_decode_errors(self) -> None:
        data = make_tx().serialize()
        with self.assertRaises(MalformedInput):
            decode_transaction(data[:-1])
        with self.assertRaises(MalformedInput):
            decode_transaction(data + b'\x00')
        with self.assertRaises(MalformedInput):
            # unknown serialization flag
            decode_transaction(data[:4] + b'\x02' + data[5:])
        with self.assertRaises(ValueError):
            decode_transaction(data, network='bitcoin')

    def test_issuance(self) -> None:
        tx = make_tx(inputs=[{'prevout': PREV_TXID + ':2',
                              'asset_issuance': ISSUANCE}])
        self.assertEqual(tx.num_issuances, 1)
        data = tx.serialize()
        n = struct.unpack(b'<I', data[38:42])[0]
        self.assertEqual(n, 2 | OUTPOINT_ISSUANCE_FLAG)

        inp = decode_transaction(data)['inputs'][0]
        self.assertEqual(inp['prevout'], PREV_TXID + ':2')
        self.assertTrue(inp['has_issuance'])
        self.assertEqual(inp['asset_issuance'], ISSUANCE)

        tx2 = deserialize_transaction(data)
        self.assertEqual(tx2.vin[0].prevout.n, 2)
        self.assertEqual(tx2.vin[0].assetIssuance.nAmount.to_amount(), 1000)

    def test_pegin(self) -> None:
        tx = make_tx(inputs=[{'prevout': PREV_TXID + ':1',
                              'pegin_data': PEGIN_DATA}])
        data = tx.serialize()
        # witness is present
        self.assertEqual(data[4], 1)
        self.assertEqual(tx.get_weight(),
                         len(tx.serialize(include_witness=False)) * 3
                         + len(data))

        info = decode_transaction(data)
        self.assertNotEqual(info['txid'], info['hash'])
        inp = info['inputs'][0]
        self.assertTrue(inp['is_pegin'])
        self.assertEqual(inp['vout'], 1)

        pegin_witness = inp['witness']['pegin_witness']
        self.assertEqual(len(pegin_witness), 6)
        self.assertEqual(pegin_witness[0], b2x(struct.pack(b'<Q', 50000)))
        self.assertEqual(pegin_witness[1], b2x(lx(LIQUID_BITCOIN_ASSET_ID_JSON['asset'])))
        self.assertEqual(pegin_witness[2], b2x(lx(GENESIS_HASH)))
        self.assertEqual(pegin_witness[4], '04deadbeef')

        self.assertEqual(inp['pegin_data'], dict(
            PEGIN_DATA, asset=LIQUID_BITCOIN_ASSET_ID_JSON))

    def test_pegout(self) -> None:
        mainchain_spk = '0014' + '44' * 20
        tx = make_tx(outputs=[{
            'value': explicit_value(5000),
            'asset': explicit_asset(),
            'pegout_data': {
                'value': 5000,
                'asset': explicit_asset(),
                'genesis_hash': GENESIS_HASH,
                'script_pub_key': {'hex': mainchain_spk},
                'extra_data': ['abcd'],
            }}])
        out = decode_transaction(tx.serialize())['outputs'][0]
        self.assertEqual(out['script_pub_key']['type'], 'opreturn')
        pd = out['pegout_data']
        self.assertEqual(pd['value'], 5000)
        self.assertEqual(pd['genesis_hash'], GENESIS_HASH)
        self.assertEqual(pd['script_pub_key']['hex'], mainchain_spk)
        self.assertEqual(pd['script_pub_key']['type'], 'p2wpkh')
        # mainchain address of elements regtest is a bitcoin regtest one
        self.assertTrue(pd['script_pub_key']['address'].startswith('bcrt1'))
        self.assertEqual(pd['extra_data'], ['abcd'])
