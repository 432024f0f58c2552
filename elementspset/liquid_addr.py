# Copyright (C) 2019 The python-elementspset developers
# Copyright (c) 2017 Pieter Wuille
#
# This file is part of python-elementspset.
#
# It is subject to the license terms in the LICENSE file found in the top-level
# directory of this distribution.
#
# No part of python-elementspset, including this file, may be copied, modified,
# propagated, or distributed except according to the terms contained in the
# LICENSE file.

"""Reference implementation for Blech32/Blech32m and confidential
segwit addresses.

Blech32 is bech32 with a longer (12 character) checksum, computed over
a 60-bit BCH code, so that it can protect the longer payloads of
confidential addresses (blinding pubkey followed by the witness program).
"""

from enum import Enum
from typing import Iterable, List, Optional, Tuple


class Encoding(Enum):
    BLECH32 = 1
    BLECH32M = 2


CHARSET = "qpzry9x8gf2tvdw0s3jn54khce6mua7l"
BLECH32_CONST = 1
BLECH32M_CONST = 0x455972a3350f7a1

CHECKSUM_LENGTH = 12
MAX_ADDRESS_LENGTH = 1000

_GEN = (0x7d52fba40bd886, 0x5e8dbf1a03950c, 0x1c3a3c74072a18,
        0x385d72fa0e5139, 0x7093e5a608865b)


def blech32_polymod(values: Iterable[int]) -> int:
    """Internal function that computes the Blech32 checksum."""
    chk = 1
    for value in values:
        top = chk >> 55
        chk = (chk & 0x7fffffffffffff) << 5 ^ value
        for i in range(5):
            chk ^= _GEN[i] if ((top >> i) & 1) else 0
    return chk


def blech32_hrp_expand(hrp: str) -> List[int]:
    """Expand the HRP into values for checksum computation."""
    return [ord(x) >> 5 for x in hrp] + [0] + [ord(x) & 31 for x in hrp]


def blech32_verify_checksum(hrp: str, data: List[int]) -> Optional[Encoding]:
    """Verify a checksum given HRP and converted data characters."""
    const = blech32_polymod(blech32_hrp_expand(hrp) + data)
    if const == BLECH32_CONST:
        return Encoding.BLECH32
    if const == BLECH32M_CONST:
        return Encoding.BLECH32M
    return None


def blech32_create_checksum(hrp: str, data: List[int], encoding: Encoding
                            ) -> List[int]:
    """Compute the checksum values given HRP and data."""
    values = blech32_hrp_expand(hrp) + data
    const = BLECH32M_CONST if encoding == Encoding.BLECH32M else BLECH32_CONST
    polymod = blech32_polymod(values + [0] * CHECKSUM_LENGTH) ^ const
    return [(polymod >> 5 * (CHECKSUM_LENGTH - 1 - i)) & 31
            for i in range(CHECKSUM_LENGTH)]


def blech32_encode(hrp: str, data: List[int], encoding: Encoding) -> str:
    """Compute a Blech32 string given HRP and data values."""
    combined = data + blech32_create_checksum(hrp, data, encoding)
    return hrp + '1' + ''.join([CHARSET[d] for d in combined])


def blech32_decode(bech: str
                   ) -> Tuple[Optional[str], Optional[List[int]],
                              Optional[Encoding]]:
    """Validate a Blech32 string, and determine HRP and data."""
    if ((any(ord(x) < 33 or ord(x) > 126 for x in bech)) or
            (bech.lower() != bech and bech.upper() != bech)):
        return (None, None, None)
    bech = bech.lower()
    pos = bech.rfind('1')
    if pos < 1 or pos + CHECKSUM_LENGTH + 1 > len(bech) \
            or len(bech) > MAX_ADDRESS_LENGTH:
        return (None, None, None)
    if not all(x in CHARSET for x in bech[pos+1:]):
        return (None, None, None)
    hrp = bech[:pos]
    data = [CHARSET.find(x) for x in bech[pos+1:]]
    encoding = blech32_verify_checksum(hrp, data)
    if encoding is None:
        return (None, None, None)
    return (hrp, data[:-CHECKSUM_LENGTH], encoding)


def convertbits(data: Iterable[int], frombits: int, tobits: int,
                pad: bool = True) -> Optional[List[int]]:
    """General power-of-2 base conversion."""
    acc = 0
    bits = 0
    ret = []
    maxv = (1 << tobits) - 1
    max_acc = (1 << (frombits + tobits - 1)) - 1
    for value in data:
        if value < 0 or (value >> frombits):
            return None
        acc = ((acc << frombits) | value) & max_acc
        bits += frombits
        while bits >= tobits:
            bits -= tobits
            ret.append((acc >> bits) & maxv)
    if pad:
        if bits:
            ret.append((acc << (tobits - bits)) & maxv)
    elif bits >= frombits or ((acc << (tobits - bits)) & maxv):
        return None
    return ret


def decode(hrp: str, addr: str) -> Tuple[Optional[int], Optional[bytes]]:
    """Decode a confidential segwit address.

    Returns (None, None) if the address is not valid for this hrp."""
    hrpgot, data, encoding = blech32_decode(addr)
    if hrpgot != hrp or data is None or not data:
        return (None, None)
    decoded = convertbits(data[1:], 5, 8, False)
    if decoded is None or len(decoded) < 2 or len(decoded) > 40 + 33:
        return (None, None)
    if data[0] > 16:
        return (None, None)
    if data[0] == 0 and len(decoded) not in (20 + 33, 32 + 33):
        return (None, None)
    if (data[0] == 0 and encoding != Encoding.BLECH32) \
            or (data[0] != 0 and encoding != Encoding.BLECH32M):
        return (None, None)
    return (data[0], bytes(decoded))


def encode(hrp: str, witver: int, witprog: bytes) -> str:
    """Encode a confidential segwit address."""
    encoding = Encoding.BLECH32 if witver == 0 else Encoding.BLECH32M
    converted = convertbits(witprog, 8, 5)
    assert converted is not None
    ret = blech32_encode(hrp, [witver] + converted, encoding)
    if decode(hrp, ret) == (None, None):
        raise ValueError('cannot encode witness program as blech32 address')
    return ret


__all__ = (
    'Encoding',
    'decode',
    'encode',
)
