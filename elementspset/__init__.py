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

"""PSET (partially signed Elements transactions) and Elements
transactions as JSON.

Importing the package registers the Elements chain params with
python-bitcointx, under the names 'elements' (regtest) and
'elements/liquidv1'."""

from .version import __version__

import elementspset.core
import elementspset.wallet

from bitcointx import ChainParamsBase


class ElementsParams(ChainParamsBase,
                     name=('elements', 'elements/elementsregtest')):
    RPC_PORT = 7041
    WALLET_DISPATCHER = elementspset.wallet.WalletElementsClassDispatcher

    def get_network_id(self) -> str:
        return self.get_datadir_extra_name()

    def get_datadir_extra_name(self) -> str:
        # elementsd keeps regtest data in 'elementsregtest'
        return 'elementsregtest'


class ElementsLiquidV1Params(ElementsParams, name='elements/liquidv1'):
    RPC_PORT = 7042
    WALLET_DISPATCHER = \
        elementspset.wallet.WalletElementsLiquidV1ClassDispatcher

    def get_datadir_extra_name(self) -> str:
        return 'liquidv1'


__all__ = (
    '__version__',
    'ElementsParams',
    'ElementsLiquidV1Params'
)
