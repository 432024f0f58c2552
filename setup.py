#!/usr/bin/env python

from setuptools import setup, find_packages
import os

here = os.path.abspath(os.path.dirname(__file__))
with open(os.path.join(here, 'README.md')) as f:
    README = f.read()

# the package registers chain params on import, so read the version
# without importing it
version = {}
with open(os.path.join(here, 'elementspset', 'version.py')) as f:
    exec(f.read(), version)

requires = ['python-bitcointx>=1.1.0,<2']

setup(name='python-elementspset',
      version=version['__version__'],
      description='Partially signed Elements transactions (PSET) '
                  'for python-bitcointx',
      long_description=README,
      long_description_content_type='text/markdown',
      classifiers=[
          "Programming Language :: Python :: 3.6",
          "Programming Language :: Python :: 3.7",
          "Programming Language :: Python :: 3.8",
          "Programming Language :: Python :: 3.9",
          "License :: OSI Approved :: GNU Lesser General Public License v3 or later (LGPLv3+)",
      ],
      python_requires='>=3.6',
      keywords='bitcoin,elements,liquid,psbt,pset',
      packages=find_packages(),
      zip_safe=False,
      install_requires=requires,
      test_suite="elementspset.tests"
     )
