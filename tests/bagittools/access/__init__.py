from unittest import TestLoader, TestSuite

def additional_tests():
    from . import (test_paths, test_utils, test_manifest, test_baginfo,
                   test_fetch, test_bag)

    suites = [TestLoader().loadTestsFromModule(m[1])
                     for m in list(locals().items()) if m[0].startswith("test_")]
    return TestSuite(suites)
