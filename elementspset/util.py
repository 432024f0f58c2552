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

import contextlib
from typing import Iterator, List, Optional, Type

from bitcointx import (
    ChainParams, ChainParamsBase, get_current_chain_params,
    get_registered_chain_params
)

DEFAULT_NETWORK = 'elements'

# names accepted in addition to the registered chain params names
NETWORK_ALIASES = {
    'elementsregtest': 'elements/elementsregtest',
    'liquid': 'elements/liquidv1',
    'liquidv1': 'elements/liquidv1',
}


def resolve_network(name: str) -> str:
    """Return the chain params name for the given network name or alias.
    Raises ValueError for unknown names."""
    name = NETWORK_ALIASES.get(name, name)
    if name == 'elements/elementsregtest':
        return DEFAULT_NETWORK
    for params_cls in get_elements_params_list():
        if name == params_cls.NAME:
            return name
    raise ValueError('unknown network: {}'.format(name))


def get_elements_params_list() -> List[Type[ChainParamsBase]]:
    """Registered Elements chain params classes, most specific last"""
    from elementspset import ElementsParams
    return [p for p in get_registered_chain_params()
            if issubclass(p, ElementsParams)]


def network_name(params: Optional[ChainParamsBase] = None) -> str:
    """Name of the Elements network of the given (or current) chain params,
    as shown in decoded records"""
    if params is None:
        params = get_current_chain_params()
    if params.NAME == 'elements':
        return 'elementsregtest'
    return params.NAME.split('/')[-1]


@contextlib.contextmanager
def elements_params(network: Optional[str] = None
                    ) -> Iterator[ChainParamsBase]:
    """Select the chain params for the given Elements network
    for the duration of the context.

    With network=None, the current chain params are kept if they are
    Elements params, and the default (regtest) network is selected
    otherwise."""
    from elementspset import ElementsParams

    if network is None:
        current = get_current_chain_params()
        if isinstance(current, ElementsParams):
            yield current
            return
        network = DEFAULT_NETWORK

    with ChainParams(resolve_network(network)):
        yield get_current_chain_params()


__all__ = (
    'DEFAULT_NETWORK',
    'NETWORK_ALIASES',
    'resolve_network',
    'get_elements_params_list',
    'network_name',
    'elements_params',
)
