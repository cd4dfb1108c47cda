# encoding: utf-8
import os, pdb, json
import tempfile, shutil
import unittest as test

import bagittools.validate.bag as bagv
import bagittools.validate.base as val
from bagittools.profile import BagItProfile

from ..access import mkdata

class TestBagValidator(test.TestCase):

    def setUp(self):
        self.tempdir = tempfile.mkdtemp()
        self.bagdir = os.path.join(self.tempdir, "samplebag")
        mkdata.mkbag(self.bagdir, {"trial1.json": '{"a": 1}\n',
                                   "trial2/trial3.json": '{"b": 2}\n'},
                     baginfo=[("Source-Organization", "NIST"),
                              ("BagIt-Profile-Identifier",
                               "http://example.com/profile.json")],
                     tagmanifests=True)
        self.valid8r = None

    def tearDown(self):
        if self.valid8r:
            self.valid8r.bag.close()
        shutil.rmtree(self.tempdir)

    def test_validate(self):
        self.valid8r = bagv.BagValidator(self.bagdir)

        results = self.valid8r.validate(val.ALL)
        self.assertEqual(results.count_failed(), 0)
        self.assertTrue(results.ok())

        self.assertTrue(self.valid8r.is_valid())
        self.valid8r.ensure_valid()

    def test_invalidate(self):
        os.rename(os.path.join(self.bagdir, "data"),
                  os.path.join(self.bagdir, "goob"))
        self.valid8r = bagv.BagValidator(self.bagdir)

        results = self.valid8r.validate()
        self.assertFalse(results.ok())
        self.assertIn("Expected data directory does not exist",
                      [i.message for i in results.errors])

        self.assertFalse(self.valid8r.is_valid())
        with self.assertRaises(val.BagValidationError):
            self.valid8r.ensure_valid()

    def test_profiles(self):
        profile = BagItProfile("http://example.com/profile.json",
                               accept_bagit_version=["1.0"],
                               serialization="forbidden",
                               manifests_required=["md5", "sha256"])
        self.valid8r = bagv.BagValidator(self.bagdir, [profile])
        self.assertIn("http://example.com/profile.json",
                      self.valid8r.bag.profiles)

        results = self.valid8r.validate()
        self.assertFalse(results.ok())
        self.assertEqual(len(results.errors), 1)
        self.assertEqual(results.errors[0].message,
                         "Profile requires payload manifest(s) which are "
                         "missing from the bag (md5)")
        self.assertEqual(results.errors[0].source,
                         "http://example.com/profile.json")

    def test_validate_function(self):
        results = bagv.validate(self.bagdir)
        self.assertTrue(results.ok())

        profile = BagItProfile("http://example.com/profile.json",
                               accept_bagit_version=["0.97"],
                               serialization="forbidden")
        results = bagv.validate(self.bagdir, [profile])
        self.assertFalse(results.ok())
        self.assertEqual(results.errors[0].message,
                         "Profile requires BagIt version of (0.97) but the bag "
                         "has version (1.0)")

if __name__ == '__main__':
    test.main()
