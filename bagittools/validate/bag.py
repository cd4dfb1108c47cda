"""
This module provides a validator for a bag at a given location, applying 
both the BagIt specification's rules and those of any BagIt profiles the 
caller provides.
"""
from .base import Validator, ValidationResults, ERROR
from ..access.bag import open_bag

class BagValidator(Validator):
    """
    A validator that tests whether a given Bag (serialized or otherwise) complies
    with the BagIt specification and a set of BagIt profiles.
    """

    def __init__(self, bagpath, profiles=None):
        """
        initialize the validator for the bag with a given path.  

        :param str bagpath:  the target bag, either as a directory for an 
                             unserialized bag or a file for a serialized one
        :param list profiles:  the BagItProfile instances to check the bag 
                             against
        """
        super(BagValidator, self).__init__(bagpath)
        self.bag = open_bag(bagpath)
        for profile in (profiles or []):
            self.bag.add_profile(profile)

    def validate(self, want=ERROR, results=None):
        if not results:
            results = ValidationResults(str(self.bag), want)
        results.merge(self.bag.validate())
        return results

def validate(bagpath, profiles=None, want=ERROR):
    """
    validate the bag at the given location, returning the issues found

    :param str bagpath:    the bag's directory or serialized file
    :param list profiles:  the BagItProfile instances to check the bag against
    :rtype: ValidationResults
    """
    valid8r = BagValidator(bagpath, profiles)
    try:
        return valid8r.validate(want)
    finally:
        valid8r.bag.close()
