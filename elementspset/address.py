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

"""Inspection and creation of Elements addresses"""

from typing import Any, Dict, Optional, Tuple

from bitcointx import ChainParams
from bitcointx.core import b2x
from bitcointx.core.key import CPubKey
from bitcointx.wallet import (
    CCoinAddress, CCoinAddressError, P2PKHCoinAddress, P2SHCoinAddress,
    P2WPKHCoinAddress, P2WSHCoinAddress
)

from .confidential import parse_hex
from .core import CElementsScript
from .errors import MalformedInput
from .tx import _drop_none, script_asm
from .util import elements_params, get_elements_params_list, network_name
from .wallet import CCoinConfidentialAddress


def _parse_address(text: str) -> Tuple[CCoinAddress, str]:
    for params_cls in get_elements_params_list():
        with ChainParams(params_cls):
            try:
                return CCoinAddress(text), network_name()
            except CCoinAddressError:
                continue
    raise MalformedInput('invalid address format', field='address')


def inspect_address(text: str) -> Dict[str, Any]:
    """Network, type and payload of the address"""
    addr, network = _parse_address(text)

    blinding_pubkey = None
    unconfidential = None
    unconf_addr = addr
    if isinstance(addr, CCoinConfidentialAddress):
        blinding_pubkey = b2x(addr.blinding_pubkey)
        unconf_addr = addr.to_unconfidential()
        unconfidential = str(unconf_addr)

    spk = CElementsScript(unconf_addr.to_scriptPubKey())
    raw = bytes(spk)

    info: Dict[str, Any] = {
        'network': network,
        'script_pub_key': {'hex': b2x(spk), 'asm': script_asm(spk)},
    }

    if spk.is_p2pkh():
        info['type'] = 'p2pkh'
        info['pubkey_hash'] = b2x(raw[3:23])
    elif spk.is_p2sh():
        info['type'] = 'p2sh'
        info['script_hash'] = b2x(raw[2:22])
    elif spk.is_witness_scriptpubkey():
        version = spk.witness_version()
        program = raw[2:]
        info['witness_program_version'] = version
        if version == 0 and len(program) == 20:
            info['type'] = 'p2wpkh'
            info['witness_pubkey_hash'] = b2x(program)
        elif version == 0 and len(program) == 32:
            info['type'] = 'p2wsh'
            info['witness_script_hash'] = b2x(program)
        elif version == 0:
            info['type'] = 'invalid-witness-program'
        else:
            info['type'] = 'unknown-witness-program-version'

    info['blinding_pubkey'] = blinding_pubkey
    info['unconfidential'] = unconfidential
    return _drop_none(info)


def _address_str(addr: CCoinAddress, blinder: Optional[CPubKey]) -> str:
    if blinder is not None:
        addr = CCoinConfidentialAddress.from_unconfidential(addr, blinder)
    return str(addr)


def create_addresses(pubkey: Optional[str] = None,
                     script: Optional[str] = None,
                     blinder: Optional[str] = None,
                     network: Optional[str] = None) -> Dict[str, str]:
    """Addresses for the pubkey (p2pkh, p2wpkh, p2shwpkh), or for the
    script (p2sh, p2wsh, p2shwsh). The addresses are confidential
    if blinding pubkey is given"""
    blinding_pubkey = None
    if blinder is not None:
        blinding_pubkey = CPubKey(parse_hex(blinder, 'blinder'))
        if not blinding_pubkey.is_fullyvalid():
            raise MalformedInput('invalid blinder', field='blinder')

    with elements_params(network):
        if pubkey is not None:
            pub = CPubKey(parse_hex(pubkey, 'pubkey'))
            if not pub.is_fullyvalid():
                raise MalformedInput('invalid pubkey', field='pubkey')
            pkh = P2PKHCoinAddress.from_pubkey(pub, accept_uncompressed=True)
            result = {'p2pkh': _address_str(pkh, blinding_pubkey)}
            # segwit outputs require compressed pubkeys
            if pub.is_compressed():
                wpkh = P2WPKHCoinAddress.from_pubkey(pub)
                result['p2wpkh'] = _address_str(wpkh, blinding_pubkey)
                result['p2shwpkh'] = _address_str(
                    P2SHCoinAddress.from_redeemScript(wpkh.to_scriptPubKey()),
                    blinding_pubkey)
            return result

        if script is not None:
            redeem = CElementsScript(parse_hex(script, 'script'))
            wsh = P2WSHCoinAddress.from_redeemScript(redeem)
            return {
                'p2sh': _address_str(P2SHCoinAddress.from_redeemScript(redeem),
                                     blinding_pubkey),
                'p2wsh': _address_str(wsh, blinding_pubkey),
                'p2shwsh': _address_str(
                    P2SHCoinAddress.from_redeemScript(wsh.to_scriptPubKey()),
                    blinding_pubkey),
            }

    raise MalformedInput("can't create addresses without a pubkey or script")


__all__ = (
    'inspect_address',
    'create_addresses',
)
