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

import base64
import io
import os
import shutil
import tempfile
import unittest

from bitcointx.core import b2x

from elementspset.errors import UnrecognizedPsetSource
from elementspset.source import PsetSource, SourceKind, load

DATA = b'pset\xff\x01\x02\x03'


class Test_PsetSource(unittest.TestCase):

    def setUp(self) -> None:
        self.tmpdir = tempfile.mkdtemp()
        self.path = os.path.join(self.tmpdir, 'data.pset')
        with open(self.path, 'wb') as f:
            f.write(DATA)

    def tearDown(self) -> None:
        shutil.rmtree(self.tmpdir)

    def test_load(self) -> None:
        data, source = load(b2x(DATA))
        self.assertEqual(data, DATA)
        self.assertIs(source.kind, SourceKind.HEX)

        data, source = load(base64.b64encode(DATA).decode('ascii'))
        self.assertEqual(data, DATA)
        self.assertIs(source.kind, SourceKind.BASE64)

        data, source = load(self.path)
        self.assertEqual(data, DATA)
        self.assertIs(source.kind, SourceKind.FILE)
        self.assertEqual(source.path, self.path)

        with self.assertRaises(UnrecognizedPsetSource):
            load(os.path.join(self.tmpdir, 'missing.pset'))
        with self.assertRaises(UnrecognizedPsetSource):
            load('')

    def test_save(self) -> None:
        new_data = b'pset\xff\x04'
        self.assertEqual(PsetSource(SourceKind.HEX).save(new_data),
                         b2x(new_data))
        self.assertEqual(PsetSource(SourceKind.BASE64).save(new_data),
                         base64.b64encode(new_data).decode('ascii'))

        source = PsetSource(SourceKind.FILE, self.path)
        self.assertIsNone(source.save(new_data))
        with open(self.path, 'rb') as f:
            self.assertEqual(f.read(), new_data)

        output = os.path.join(self.tmpdir, 'out.pset')
        self.assertIsNone(PsetSource(SourceKind.HEX).save(DATA, output=output))
        with open(output, 'rb') as f:
            self.assertEqual(f.read(), DATA)

        stream = io.BytesIO()
        self.assertIsNone(
            PsetSource(SourceKind.BASE64).save(DATA, raw_stream=stream))
        self.assertEqual(stream.getvalue(), DATA)

    def test_bad_source(self) -> None:
        with self.assertRaises(ValueError):
            PsetSource(SourceKind.FILE)
        with self.assertRaises(ValueError):
            PsetSource(SourceKind.HEX, self.path)
