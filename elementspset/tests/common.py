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

import logging
import unittest
from typing import Any, Dict, List, Optional

import bitcointx
from bitcointx.core import Hash, Hash160, lx
from bitcointx.core.key import CKey

import elementspset  # noqa: F401  registers the chain params
from elementspset.builder import build_transaction
from elementspset.confidential import LIQUID_BITCOIN_ASSET_ID
from elementspset.core import (
    CAsset, CConfidentialAsset, CConfidentialValue, CElementsScript,
    CElementsTransaction, CElementsTxOut
)
from elementspset.pset import PartiallySignedElementsTransaction

PREV_TXID = 'c6f9c3e3b34e7fc1e8fb8e5d57b57ad9ba4d3cdd0fa2c4e9b1db68f1f3a1e0d2'
OTHER_TXID = '0aa1a5f8a1b6b0d6d3b2e6f8a7d0e9c6b5a4f3e2d1c0b9a8f7e6d5c4b3a29180'

PUB1 = '0378d430274f8c5ec1321338151e9f27f4c676a008bdf8638d07c0b6be9ab35c71'
PUB2 = '02546c76587482cd2468b76768da70c0166ecb2aa2eb1038624f4fedc138b042bc'

LBTC = CAsset(lx(LIQUID_BITCOIN_ASSET_ID))

# confidential p2pkh address of elements regtest and its parts
CONF_ADDR = 'CTEp1wviJ6U7SdAAs5sRJ1NzzRzAbmQGt1veiswjWrkzv98W7UJMQjBccafpS6v9w6evWTqeLsGc7TC1'
UNCONF_ADDR = '2deBRSp69HSsJ5WAegsaksoWj8PfaQ2PqDd'
BLINDING_PUB = '029ffb47606c3d672a3429d91650960c63ff7d8f8ff9e00b4a8e3430c6549b4cc8'
PUBKEY_HASH = '3422fe11c415bb9c8618f9d8498d9ad945056bdb'

LIQUID_BITCOIN_ASSET_ID_JSON = {'type': 'explicit', 'asset': LIQUID_BITCOIN_ASSET_ID,
                                'label': 'liquid_bitcoin'}


def explicit_value(value: int) -> Dict[str, Any]:
    return {'type': 'explicit', 'value': value}


def explicit_asset(asset: str = LIQUID_BITCOIN_ASSET_ID) -> Dict[str, Any]:
    return {'type': 'explicit', 'asset': asset}


GENESIS_HASH = '0f9188f13cb7b2c71f2a335e3a4fc328bf5beb436012afca590b1a11466e2206'

PEGIN_DATA = {
    'outpoint': PREV_TXID + ':1',
    'value': 50000,
    'asset': explicit_asset(),
    'genesis_hash': GENESIS_HASH,
    'claim_script': '0014' + '22' * 20,
    'mainchain_tx_hex': 'deadbeef',
    'merkle_proof': 'abcd',
}

ISSUANCE = {
    'asset_blinding_nonce': '00' * 32,
    'asset_entropy': '33' * 32,
    'amount': explicit_value(1000),
    'inflation_keys': {'type': 'null'},
}


def make_key(seed: bytes) -> CKey:
    return CKey(Hash(seed))


def p2wpkh_script(key: CKey) -> CElementsScript:
    return CElementsScript([0, Hash160(key.pub)])


def make_utxo(script: CElementsScript, value: int = 100000) -> CElementsTxOut:
    return CElementsTxOut(CConfidentialValue(value), script,
                          CConfidentialAsset(LBTC))


def tx_json(inputs: Optional[List[Dict[str, Any]]] = None,
            outputs: Optional[List[Dict[str, Any]]] = None,
            **fields: Any) -> Dict[str, Any]:
    """Transaction spending PREV_TXID:0 into a p2wpkh output and a fee
    output, unless inputs or outputs are given"""
    if inputs is None:
        inputs = [{'prevout': PREV_TXID + ':0'}]
    if outputs is None:
        outputs = [
            {'value': explicit_value(99000), 'asset': explicit_asset(),
             'script_pub_key': {'hex': '0014' + '11' * 20}},
            {'value': explicit_value(1000), 'asset': explicit_asset()},
        ]
    result = {'version': 2, 'locktime': 0,
              'inputs': inputs, 'outputs': outputs}
    result.update(fields)
    return result


def make_tx(**kwargs: Any) -> CElementsTransaction:
    return build_transaction(tx_json(**kwargs)).tx


def make_pset(**kwargs: Any) -> PartiallySignedElementsTransaction:
    return PartiallySignedElementsTransaction.from_tx(make_tx(**kwargs))


class ElementsTestCase(unittest.TestCase):
    """Selects Elements regtest chain params for the tests of the class"""

    @classmethod
    def setUpClass(cls) -> None:
        logging.basicConfig()
        cls._prev_chain_params = bitcointx.get_current_chain_params()  # type: ignore
        bitcointx.select_chain_params('elements')

    @classmethod
    def tearDownClass(cls) -> None:
        bitcointx.select_chain_params(cls._prev_chain_params)  # type: ignore
