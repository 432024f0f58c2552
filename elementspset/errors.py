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

"""Exceptions raised by transaction building and PSET operations.

Every exception may carry the name of the offending field and the index
of the input or output it was found in. These are also mentioned in the
message, so that str(exc) is enough to report the problem."""

from typing import Optional


class ElementsPsetError(ValueError):
    """Base class for all errors of this package"""

    field: Optional[str]
    index: Optional[int]

    def __init__(self, msg: str, *, field: Optional[str] = None,
                 index: Optional[int] = None) -> None:
        self.field = field
        self.index = index
        location = []
        if index is not None:
            location.append('index {}'.format(index))
        if field is not None:
            location.append('field {}'.format(field))
        if location:
            msg = '{} ({})'.format(msg, ', '.join(location))
        super().__init__(msg)


class MalformedInput(ElementsPsetError):
    """Bad hex, bad JSON, bad binary encoding or bad parameter format"""


class MissingRequiredField(MalformedInput):
    ...


class InvalidFingerprint(MalformedInput):
    ...


class UnrecognizedPsetSource(MalformedInput):
    """Not hex, not base64, and not a readable file"""


class MissingUtxo(MalformedInput):
    """Neither witness_utxo nor non_witness_utxo is present for an input"""


class InvalidFieldCombination(ElementsPsetError):
    """Each field is well-formed, but together they are inconsistent"""


class ConflictingPrevout(InvalidFieldCombination):
    ...


class MissingPrevout(InvalidFieldCombination):
    ...


class IncompleteIssuance(InvalidFieldCombination):
    ...


class MixedNetworkAddresses(InvalidFieldCombination):
    ...


class PegoutMismatch(InvalidFieldCombination):
    ...


class AmbiguousEditTarget(InvalidFieldCombination):
    ...


class DuplicateKey(ElementsPsetError):
    """Additive edit of a map entry that already exists"""


class IndexOutOfRange(ElementsPsetError):
    ...


class UnsupportedFeature(ElementsPsetError):
    """The input is valid, but the requested conversion is not supported"""


class CryptoFailure(ElementsPsetError):
    ...


class InvalidCommitment(CryptoFailure):
    ...


class InvalidPrivateKey(CryptoFailure):
    ...


class NotMiniscript(CryptoFailure):
    """The spending script is not of a kind the script interpreter knows"""


class FinalizationFailed(CryptoFailure):
    ...


class ExtractionFailed(CryptoFailure):
    ...


class MergeFailed(ElementsPsetError):
    """Merge of the PSET at `index` (1-based position among the PSETs
    merged into the first one) failed. The structural error that caused
    the failure is available as __cause__"""

    def __init__(self, msg: str, *, index: int) -> None:
        super().__init__(msg, index=index)


__all__ = (
    'ElementsPsetError',
    'MalformedInput',
    'MissingRequiredField',
    'InvalidFingerprint',
    'UnrecognizedPsetSource',
    'MissingUtxo',
    'InvalidFieldCombination',
    'ConflictingPrevout',
    'MissingPrevout',
    'IncompleteIssuance',
    'MixedNetworkAddresses',
    'PegoutMismatch',
    'AmbiguousEditTarget',
    'DuplicateKey',
    'IndexOutOfRange',
    'UnsupportedFeature',
    'CryptoFailure',
    'InvalidCommitment',
    'InvalidPrivateKey',
    'NotMiniscript',
    'FinalizationFailed',
    'ExtractionFailed',
    'MergeFailed',
)
