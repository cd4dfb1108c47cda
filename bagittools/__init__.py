"""
a library for creating, updating, and validating bags conforming to the BagIt
packaging format (RFC 8493).

The Bag class wraps a bag directory; it keeps the bag's manifests, bag-info 
metadata, and fetch list consistent as files are added and removed, and it 
reports every problem it finds when the bag is validated.  Bags can also be 
checked against BagIt Profiles via the BagItProfile class.
"""
from .constants import Version
from .access.exceptions import (BagError, BagValidationError, FilesystemError,
                                PathOutOfBoundsError)
from .access.bag import Bag, create_bag, open_bag
from .profile import (BagItProfile, ProfileTag, ProfileError,
                      ProfileValidationError)
from .validate import ValidationIssue, ValidationResults, ERROR, WARN, ALL
from .validate.bag import BagValidator
from .validate.bag import validate as validate_bag
