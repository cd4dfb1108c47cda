# encoding: utf-8
import os, pdb, json
import unittest as test

import bagit

import bagittools.validate.base as val
from bagittools.access.exceptions import BagError

class TestValidationIssue(test.TestCase):

    def test_ctor(self):
        issue = val.ValidationIssue("data/a.txt", "File is missing")
        self.assertEqual(issue.file, "data/a.txt")
        self.assertEqual(issue.message, "File is missing")
        self.assertEqual(issue.type, issue.ERROR)
        self.assertIsNone(issue.source)

        issue = val.ValidationIssue("bag-info.txt", "Tag repeats", val.WARN,
                                    "http://example.com/profile")
        self.assertEqual(issue.type, val.WARN)
        self.assertEqual(issue.source, "http://example.com/profile")

        with self.assertRaises(ValueError):
            val.ValidationIssue("bagit.txt", "goob", 5)

    def test_summary(self):
        issue = val.ValidationIssue("data/a.txt", "File is missing")
        self.assertEqual(issue.summary, "ERROR: data/a.txt: File is missing")
        self.assertEqual(str(issue), issue.summary)

        issue = val.ValidationIssue(None, "Bad tag", val.WARN, "prof")
        self.assertEqual(issue.summary, "WARNING: [prof] Bad tag")

    def test_tuple(self):
        issue = val.ValidationIssue("data/a.txt", "File is missing", val.WARN)
        data = issue.to_tuple()
        self.assertEqual(data, (val.WARN, "data/a.txt", "File is missing", None))
        issue = val.ValidationIssue.from_tuple(data)
        self.assertEqual(issue.type, val.WARN)
        self.assertEqual(issue.file, "data/a.txt")

    def test_to_json_obj(self):
        issue = val.ValidationIssue("data/a.txt", "File is missing")
        data = json.loads(json.dumps(issue.to_json_obj()))
        self.assertEqual(data, {"type": "error", "file": "data/a.txt",
                                "message": "File is missing"})

        issue.source = "prof"
        self.assertEqual(issue.to_json_obj()["source"], "prof")

class TestValidationResults(test.TestCase):

    def setUp(self):
        self.res = val.ValidationResults("samplebag")

    def test_ctor(self):
        self.assertEqual(self.res.target, "samplebag")
        self.assertEqual(self.res.want, val.ERROR)
        self.assertEqual(self.res.applied(), [])
        self.assertEqual(self.res.count_failed(), 0)
        self.assertTrue(self.res.ok())

    def test_add(self):
        self.res.add_warning("data/a.txt", "Looks odd")
        self.assertTrue(self.res.ok())
        self.assertEqual(len(self.res.warnings), 1)
        self.assertEqual(len(self.res.errors), 0)

        issue = self.res.add_error("data/b.txt", "Missing", "prof")
        self.assertEqual(issue.source, "prof")
        self.assertFalse(self.res.ok())
        self.assertEqual(self.res.count_failed(), 1)
        self.assertEqual(self.res.count_failed(val.ALL), 2)
        self.assertEqual([i.file for i in self.res.applied()],
                         ["data/b.txt", "data/a.txt"])

        # the properties return copies
        self.res.errors.pop()
        self.assertEqual(len(self.res.errors), 1)

        self.res.clear()
        self.assertEqual(self.res.applied(), [])

    def test_want(self):
        res = val.ValidationResults("samplebag", val.ALL)
        res.add_warning("data/a.txt", "Looks odd")
        self.assertFalse(res.ok())
        self.assertEqual(len(res.failed()), 1)
        self.assertEqual(len(res.failed(val.ERROR)), 0)

    def test_merge(self):
        other = val.ValidationResults("manifest-md5.txt")
        other.add_error("data/a.txt", "Missing")
        other.add_warning("data/b.txt", "Odd")
        self.res.add_error("bagit.txt", "Bad")

        self.res.merge(other)
        self.assertEqual([i.file for i in self.res.errors],
                         ["bagit.txt", "data/a.txt"])
        self.assertEqual(len(self.res.warnings), 1)

        self.res.merge(other, "prof")
        self.assertEqual(self.res.errors[-1].source, "prof")
        self.assertIsNone(other.errors[0].source)

class TestValidator(test.TestCase):

    def test_base(self):
        valid8r = val.Validator("samplebag")
        results = valid8r.validate()
        self.assertTrue(results.ok())
        self.assertTrue(valid8r.is_valid())
        valid8r.ensure_valid()

    def test_failing(self):
        class Failing(val.Validator):
            def validate(self, want=val.ERROR, results=None):
                results = super(Failing, self).validate(want, results)
                results.add_error("bagit.txt", "Required file missing.")
                results.add_error("data", "Expected data directory does not "
                                  "exist")
                return results

        valid8r = Failing("samplebag")
        self.assertFalse(valid8r.is_valid())
        with self.assertRaises(val.BagValidationError) as cm:
            valid8r.ensure_valid()
        ex = cm.exception
        self.assertEqual(len(ex.results.errors), 2)
        self.assertEqual(ex.message, "2 validation errors detected")
        self.assertEqual(len(ex.details), 2)
        self.assertIn("Required file missing.", str(ex))

        # usable wherever bagit's exceptions are expected
        self.assertTrue(isinstance(ex, bagit.BagValidationError))
        self.assertTrue(isinstance(ex, BagError))
        self.assertTrue(isinstance(ex, bagit.BagError))

if __name__ == '__main__':
    test.main()
