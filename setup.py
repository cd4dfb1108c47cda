import os, sys, subprocess, unittest
from setuptools import setup

setup(name='bagittools',
      version='0.1',
      description="bagittools: a Python library for creating, updating, and validating BagIt bags and checking them against BagIt profiles",
      author="Ray Plante",
      author_email="raymond.plante@nist.gov",
      scripts=[ ],
      packages=['bagittools', 'bagittools.access', 'bagittools.validate',
                'bagittools.profile'],
      install_requires=['bagit', 'fs>=2.4', 'setuptools<81'],
      test_suite="tests.suite",
      test_runner="unittest:TextTestRunner"
)
