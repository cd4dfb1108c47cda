"""
A subpackage implementing BagIt Profiles (per the BagIt Profile Specification,
v1.4.0):  declarative rule sets that a bag can be checked against.

The :py:mod:`profile` module provides the BagItProfile class; the 
:py:mod:`tags` module provides the ProfileTag record for the profile's 
bag-info tag rules.
"""
from .exceptions import ProfileError, ProfileValidationError
from .tags import ProfileTag
from .profile import (BagItProfile, convert_glob_to_regex,
                      is_covered_by_allowed, paths_not_covered_by_allowed)
