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

"""PSET given as hex, base64 or a file path, and written back
in the same form it was given in."""

import base64
import logging
from enum import Enum
from typing import BinaryIO, Optional, Tuple

from bitcointx.core import b2x, x

from .errors import UnrecognizedPsetSource

log = logging.getLogger(__name__)


class SourceKind(Enum):
    HEX = 'hex'
    BASE64 = 'base64'
    FILE = 'file'


class PsetSource:
    """Where the PSET data came from"""

    kind: SourceKind
    path: Optional[str]

    def __init__(self, kind: SourceKind, path: Optional[str] = None) -> None:
        if (kind == SourceKind.FILE) != (path is not None):
            raise ValueError('path must be given for file source only')
        self.kind = kind
        self.path = path

    def __repr__(self) -> str:
        if self.path is not None:
            return 'PsetSource({}, {!r})'.format(self.kind, self.path)
        return 'PsetSource({})'.format(self.kind)

    def save(self, data: bytes, output: Optional[str] = None,
             raw_stream: Optional[BinaryIO] = None) -> Optional[str]:
        """Write the data to the explicit output path or raw stream,
        if given. Otherwise return hex or base64 text for the sources of
        these kinds, and overwrite the original file for the file source.
        The text is returned only when nothing is written."""
        data = bytes(data)
        if output is not None:
            _write_file(output, data)
            return None
        if raw_stream is not None:
            raw_stream.write(data)
            return None
        if self.kind == SourceKind.HEX:
            return b2x(data)
        if self.kind == SourceKind.BASE64:
            return base64.b64encode(data).decode('ascii')
        assert self.path is not None
        _write_file(self.path, data)
        return None


def _write_file(path: str, data: bytes) -> None:
    log.debug('writing %d bytes to %s', len(data), path)
    with open(path, 'wb') as f:
        f.write(data)


def load(source: str) -> Tuple[bytes, PsetSource]:
    """Get PSET bytes from a string that is hex, base64 or a path
    to a file with raw PSET, tried in this order"""
    if not source:
        raise UnrecognizedPsetSource('PSET source is empty')

    try:
        return x(source), PsetSource(SourceKind.HEX)
    except ValueError:
        pass

    try:
        return (base64.b64decode(source, validate=True),
                PsetSource(SourceKind.BASE64))
    except ValueError:
        pass

    try:
        with open(source, 'rb') as f:
            return f.read(), PsetSource(SourceKind.FILE, source)
    except (OSError, ValueError) as e:
        log.debug('cannot read %s as a file: %s', source, e)

    raise UnrecognizedPsetSource(
        'PSET is not hex, not base64, and not a readable file')


__all__ = (
    'SourceKind',
    'PsetSource',
    'load',
)
