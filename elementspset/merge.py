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

import logging
from typing import Sequence

from .errors import MergeFailed
from .pset import PartiallySignedElementsTransaction

log = logging.getLogger(__name__)


def merge_psets(psets: Sequence[PartiallySignedElementsTransaction]
                ) -> PartiallySignedElementsTransaction:
    """Merge the PSETs into the first one, in order. The given PSETs
    are not modified.

    If a PSET cannot be merged, MergeFailed is raised with its position
    in the list as the index (the first PSET is at index 0, so the index
    of a failed one is at least 1)."""
    if not psets:
        raise ValueError('no PSETs to merge')

    merged = psets[0].clone()
    for idx, part in enumerate(psets[1:], start=1):
        log.debug('merging PSET #%d', idx)
        try:
            merged.merge(part.clone())
        except ValueError as e:
            raise MergeFailed('error merging PSET #{}: {}'.format(idx, e),
                              index=idx) from e

    return merged


__all__ = (
    'merge_psets',
)
