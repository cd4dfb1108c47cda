from unittest import TestLoader, TestSuite

def additional_tests():
    from . import test_tags, test_profile

    suites = [TestLoader().loadTestsFromModule(m[1])
                     for m in list(locals().items()) if m[0].startswith("test_")]
    return TestSuite(suites)
