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

import unittest

from bitcointx.core import b2lx, lx, x
from bitcointx.core.serialize import SerializationError

from elementspset.confidential import (
    ConfidentialAssetInfo, ConfidentialNonceInfo, ConfidentialType,
    ConfidentialValueInfo, LIQUID_BITCOIN_ASSET_ID
)
from elementspset.core import (
    CAsset, CConfidentialAsset, CConfidentialNonce, CConfidentialValue
)
from elementspset.errors import (
    CryptoFailure, InvalidCommitment, InvalidFieldCombination, MalformedInput,
    MissingRequiredField
)

from .common import PUB1

VALUE_COMMITMENT = '08' + PUB1[2:]
ASSET_COMMITMENT = '0a' + PUB1[2:]


class Test_ConfidentialFields(unittest.TestCase):

    def test_value_serialization(self) -> None:
        self.assertEqual(CConfidentialValue(1000).serialize(),
                         x('0100000000000003e8'))
        self.assertEqual(CConfidentialValue().serialize(), b'\x00')
        self.assertEqual(CConfidentialValue(1000).to_amount(), 1000)

        v = CConfidentialValue.deserialize(x(VALUE_COMMITMENT))
        self.assertTrue(v.is_commitment())
        self.assertFalse(v.is_explicit())
        self.assertEqual(v.commitment, x(VALUE_COMMITMENT))
        with self.assertRaises(TypeError):
            v.to_amount()

        self.assertTrue(CConfidentialValue.deserialize(b'\x00').is_null())

    def test_bad_values(self) -> None:
        with self.assertRaises(ValueError):
            CConfidentialValue(b'\x01\x02')
        with self.assertRaises(ValueError):
            CConfidentialValue(-1)
        with self.assertRaises(ValueError):
            CConfidentialValue(2**64)
        # asset prefix in a value field
        with self.assertRaises(SerializationError):
            CConfidentialValue.deserialize(x(ASSET_COMMITMENT))

    def test_asset(self) -> None:
        asset = CAsset(lx(LIQUID_BITCOIN_ASSET_ID))
        self.assertEqual(asset.to_hex(), LIQUID_BITCOIN_ASSET_ID)
        ca = CConfidentialAsset(asset)
        self.assertTrue(ca.is_explicit())
        self.assertEqual(ca.serialize(), b'\x01' + asset.data)
        self.assertEqual(ca.to_asset(), asset)
        self.assertTrue(CConfidentialAsset.deserialize(
            x(ASSET_COMMITMENT)).is_commitment())

    def test_nonce(self) -> None:
        n = CConfidentialNonce.from_explicit(b'\x07' * 32)
        self.assertTrue(n.is_explicit())
        self.assertEqual(n.to_explicit(), b'\x07' * 32)
        self.assertTrue(CConfidentialNonce(x(PUB1)).is_commitment())
        with self.assertRaises(ValueError):
            CConfidentialNonce.from_explicit(b'\x07' * 31)


class Test_ConfidentialInfo(unittest.TestCase):

    def test_value_variants(self) -> None:
        null = ConfidentialValueInfo.null()
        self.assertTrue(null.is_null)
        self.assertEqual(null.to_json(), {'type': 'null'})

        explicit = ConfidentialValueInfo.from_json(
            {'type': 'explicit', 'value': 1000})
        self.assertTrue(explicit.is_explicit)
        self.assertEqual(explicit.value, 1000)
        self.assertEqual(explicit.to_json(),
                         {'type': 'explicit', 'value': 1000})
        self.assertEqual(explicit.to_confidential(), CConfidentialValue(1000))

        conf = ConfidentialValueInfo.from_json(
            {'type': 'confidential', 'commitment': VALUE_COMMITMENT})
        self.assertTrue(conf.is_confidential)
        self.assertIsNone(conf.value)
        self.assertEqual(conf.to_json(), {'type': 'confidential',
                                          'commitment': VALUE_COMMITMENT})
        self.assertEqual(ConfidentialValueInfo.from_confidential(
            conf.to_confidential()), conf)

    def test_value_errors(self) -> None:
        with self.assertRaises(MissingRequiredField):
            ConfidentialValueInfo.from_json({'value': 1})
        with self.assertRaises(MissingRequiredField):
            ConfidentialValueInfo.from_json({'type': 'explicit'})
        with self.assertRaises(MissingRequiredField):
            ConfidentialValueInfo.from_json({'type': 'confidential'})
        with self.assertRaises(InvalidFieldCombination):
            ConfidentialValueInfo.from_json(
                {'type': 'explicit', 'value': 1,
                 'commitment': VALUE_COMMITMENT})
        with self.assertRaises(InvalidFieldCombination):
            ConfidentialValueInfo.from_json({'type': 'null', 'value': 1})
        with self.assertRaises(MalformedInput):
            ConfidentialValueInfo.from_json({'type': 'secret'})
        with self.assertRaises(MalformedInput):
            ConfidentialValueInfo.from_json({'type': 'explicit',
                                             'value': True})
        with self.assertRaises(MalformedInput):
            ConfidentialValueInfo.from_json({'type': 'explicit',
                                             'value': 2**64})
        with self.assertRaises(MalformedInput):
            ConfidentialValueInfo.from_json({'type': 'confidential',
                                             'commitment': 'zz'})

    def test_commitment_checks(self) -> None:
        with self.assertRaises(InvalidCommitment):
            ConfidentialValueInfo.from_json(
                {'type': 'confidential', 'commitment': ASSET_COMMITMENT})
        with self.assertRaises(InvalidCommitment):
            ConfidentialValueInfo.from_json(
                {'type': 'confidential', 'commitment': VALUE_COMMITMENT[:-2]})
        # bad commitments are crypto failures, not malformed input
        with self.assertRaises(CryptoFailure):
            ConfidentialValueInfo.from_json(
                {'type': 'confidential', 'commitment': ASSET_COMMITMENT})
        try:
            ConfidentialAssetInfo.from_json(
                {'type': 'confidential', 'commitment': VALUE_COMMITMENT})
        except InvalidCommitment as e:
            self.assertEqual(e.field, 'asset')
        else:
            self.fail('asset with value commitment prefix was accepted')

    def test_immutable(self) -> None:
        info = ConfidentialValueInfo(ConfidentialType.EXPLICIT, 5)
        with self.assertRaises(AttributeError):
            info.type = ConfidentialType.NULL  # type: ignore
        self.assertEqual(info, ConfidentialValueInfo('explicit', 5))
        self.assertNotEqual(info, ConfidentialValueInfo('explicit', 6))
        self.assertEqual(len({info, ConfidentialValueInfo('explicit', 5)}), 1)

    def test_asset(self) -> None:
        info = ConfidentialAssetInfo.from_json(
            {'type': 'explicit', 'asset': LIQUID_BITCOIN_ASSET_ID})
        self.assertEqual(info.asset, CAsset(lx(LIQUID_BITCOIN_ASSET_ID)))
        self.assertEqual(info.label, 'liquid_bitcoin')
        self.assertEqual(info.to_json(),
                         {'type': 'explicit',
                          'asset': LIQUID_BITCOIN_ASSET_ID,
                          'label': 'liquid_bitcoin'})
        self.assertEqual(info.to_confidential().to_asset().to_hex(),
                         LIQUID_BITCOIN_ASSET_ID)

        other = ConfidentialAssetInfo.from_json(
            {'type': 'explicit', 'asset': '11' * 32})
        self.assertIsNone(other.label)
        self.assertNotIn('label', other.to_json())

        with self.assertRaises(MalformedInput):
            ConfidentialAssetInfo.from_json({'type': 'explicit',
                                             'asset': '11' * 31})

        conf = ConfidentialAssetInfo.from_json(
            {'type': 'confidential', 'commitment': ASSET_COMMITMENT})
        self.assertTrue(conf.to_confidential().is_commitment())
        self.assertIsNone(conf.label)

    def test_nonce(self) -> None:
        nonce_hex = '00' * 31 + 'ff'
        info = ConfidentialNonceInfo.from_json(
            {'type': 'explicit', 'nonce': nonce_hex})
        # shown in reversed byte order
        self.assertEqual(info.nonce, lx(nonce_hex))
        self.assertEqual(info.to_json()['nonce'], nonce_hex)
        self.assertEqual(info.to_confidential().to_explicit(), lx(nonce_hex))

        conf = ConfidentialNonceInfo.from_json(
            {'type': 'confidential', 'commitment': PUB1})
        self.assertEqual(conf.to_confidential().commitment, x(PUB1))
        with self.assertRaises(InvalidCommitment):
            ConfidentialNonceInfo.from_json(
                {'type': 'confidential', 'commitment': VALUE_COMMITMENT})

        null = ConfidentialNonceInfo.from_confidential(CConfidentialNonce())
        self.assertTrue(null.is_null)
        self.assertEqual(b2lx(info.to_confidential().commitment[1:]),
                         nonce_hex)
