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

from bitcointx.core import b2x, x

from elementspset.edit import (
    edit_pset, parse_hd_keypath_triplet, parse_partial_sig_pair
)
from elementspset.errors import (
    AmbiguousEditTarget, DuplicateKey, IndexOutOfRange, InvalidFingerprint,
    MalformedInput
)

from .common import (
    ElementsTestCase, make_key, make_pset, make_utxo, p2wpkh_script
)

KEY1 = make_key(b'edit-1')
KEY2 = make_key(b'edit-2')
PUB1_HEX = b2x(KEY1.pub)
PUB2_HEX = b2x(KEY2.pub)


class Test_EditPSET(ElementsTestCase):

    def test_parse_pairs(self) -> None:
        pub, sig = parse_partial_sig_pair(PUB1_HEX + ':aabb')
        self.assertEqual(pub, KEY1.pub)
        self.assertEqual(sig, x('aabb'))
        with self.assertRaises(MalformedInput):
            parse_partial_sig_pair(PUB1_HEX)
        with self.assertRaises(MalformedInput):
            parse_partial_sig_pair('02' + '00' * 32 + ':aabb')

        pub, dinfo = parse_hd_keypath_triplet(
            PUB1_HEX + ":01020304:m/84'/1'/0'")
        self.assertEqual(pub, KEY1.pub)
        self.assertEqual(dinfo.master_fp, x('01020304'))
        self.assertEqual(str(dinfo.path), "m/84'/1'/0'")

        with self.assertRaises(MalformedInput):
            parse_hd_keypath_triplet(PUB1_HEX)
        with self.assertRaises(MalformedInput):
            parse_hd_keypath_triplet(PUB1_HEX + ':01020304')
        with self.assertRaises(InvalidFingerprint):
            parse_hd_keypath_triplet(PUB1_HEX + ":010203:m/0")
        with self.assertRaises(MalformedInput):
            parse_hd_keypath_triplet(PUB1_HEX + ":01020304:m/x")

    def test_edit_input(self) -> None:
        pset = make_pset()
        utxo = make_utxo(p2wpkh_script(KEY1))
        warnings = edit_pset(
            pset, input_index=0,
            witness_utxo=b2x(utxo.serialize()),
            partial_sigs='{}:aa01,{}:bb01'.format(PUB1_HEX, PUB2_HEX),
            sighash_type='ALL|ANYONECANPAY',
            hd_keypaths="{}:01020304:m/0/1".format(PUB1_HEX),
            redeem_script='0014' + '11' * 20)
        self.assertEqual(warnings, [])

        inp = pset.inputs[0]
        self.assertEqual(inp.witness_utxo.serialize(), utxo.serialize())
        self.assertEqual(dict(inp.partial_sigs),
                         {KEY1.pub: x('aa01'), KEY2.pub: x('bb01')})
        self.assertEqual(inp.sighash_type, 0x81)
        self.assertEqual(list(inp.derivation_map), [KEY1.pub])
        self.assertEqual(bytes(inp.redeem_script), x('0014' + '11' * 20))

        # non-additive edit replaces the map
        edit_pset(pset, input_index=0, partial_sigs=PUB2_HEX + ':cc01')
        self.assertEqual(dict(pset.inputs[0].partial_sigs),
                         {KEY2.pub: x('cc01')})

    def test_additive_edit(self) -> None:
        pset = make_pset()
        edit_pset(pset, input_index=0, partial_sigs_add=PUB1_HEX + ':aa01')
        edit_pset(pset, input_index=0,
                  partial_sigs_add=[PUB2_HEX + ':bb01'],
                  hd_keypaths_add=PUB2_HEX + ':0a0b0c0d:m/1')
        inp = pset.inputs[0]
        self.assertEqual(list(inp.partial_sigs), [KEY1.pub, KEY2.pub])
        self.assertEqual(inp.derivation_map[KEY2.pub].master_fp,
                         x('0a0b0c0d'))

        sigs_before = dict(inp.partial_sigs)
        paths_before = dict(inp.derivation_map)
        with self.assertRaises(DuplicateKey):
            edit_pset(pset, input_index=0,
                      partial_sigs_add=PUB1_HEX + ':dd01')
        with self.assertRaises(DuplicateKey):
            edit_pset(pset, input_index=0,
                      hd_keypaths_add=[PUB1_HEX + ':01020304:m/0',
                                       PUB1_HEX + ':01020304:m/1'])
        inp = pset.inputs[0]
        self.assertEqual(dict(inp.partial_sigs), sigs_before)
        self.assertEqual(dict(inp.derivation_map), paths_before)

    def test_edit_same_value(self) -> None:
        fields = dict(
            partial_sigs='{}:aa01,{}:bb01'.format(PUB1_HEX, PUB2_HEX),
            sighash_type='ALL',
            hd_keypaths="{}:01020304:m/0/1".format(PUB1_HEX),
            witness_script='51',
            final_script_witness='01,,abcd')
        pset = make_pset()
        edit_pset(pset, input_index=0, **fields)
        data = pset.serialize()

        edit_pset(pset, input_index=0, **fields)
        self.assertEqual(pset.serialize(), data)
        for name, value in fields.items():
            edit_pset(pset, input_index=0, **{name: value})
            self.assertEqual(pset.serialize(), data)

    def test_final_fields(self) -> None:
        pset = make_pset()
        edit_pset(pset, input_index=0, final_script_sig='0100',
                  final_script_witness='01,,abcd')
        inp = pset.inputs[0]
        self.assertTrue(inp.is_final())
        self.assertEqual(bytes(inp.final_script_sig), x('0100'))
        self.assertEqual(list(inp.final_script_witness.stack),
                         [x('01'), b'', x('abcd')])

    def test_edit_output(self) -> None:
        pset = make_pset()
        warnings = edit_pset(pset, output_index=1,
                             witness_script='51',
                             sighash_type='ALL',
                             hd_keypaths=PUB1_HEX + ':01020304:m/0')
        self.assertEqual([(w.location, w.field) for w in warnings],
                         [('outputs[1]', 'sighash_type')])
        outp = pset.outputs[1]
        self.assertEqual(bytes(outp.witness_script), x('51'))
        self.assertEqual(list(outp.derivation_map), [KEY1.pub])

    def test_edit_errors(self) -> None:
        pset = make_pset()
        orig = pset.serialize()

        with self.assertRaises(AmbiguousEditTarget):
            edit_pset(pset, redeem_script='51')
        with self.assertRaises(AmbiguousEditTarget):
            edit_pset(pset, input_index=0, output_index=0,
                      redeem_script='51')
        with self.assertRaises(IndexOutOfRange) as cm:
            edit_pset(pset, input_index=1, redeem_script='51')
        self.assertEqual(cm.exception.index, 1)
        with self.assertRaises(IndexOutOfRange):
            edit_pset(pset, output_index=2, redeem_script='51')
        with self.assertRaises(TypeError):
            edit_pset(pset, input_index=0, nonsense='51')
        with self.assertRaises(MalformedInput):
            edit_pset(pset, input_index=0, sighash_type='MOST')
        with self.assertRaises(MalformedInput):
            edit_pset(pset, input_index=0, witness_utxo='00')

        # a failing field leaves the earlier fields unapplied too
        with self.assertRaises(MalformedInput) as cm2:
            edit_pset(pset, input_index=0, redeem_script='51',
                      witness_script='zz')
        self.assertEqual(cm2.exception.field, 'witness_script')

        self.assertEqual(pset.serialize(), orig)
