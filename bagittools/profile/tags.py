"""
This module provides the ProfileTag record, a BagIt profile's rule for a 
single bag-info tag.
"""
from collections import namedtuple

from .exceptions import ProfileError

_ProfileTag = namedtuple("ProfileTag", 
                         "tag required values repeatable description")

class ProfileTag(_ProfileTag):
    """
    the rule a profile places on a bag-info tag:

    :ivar str tag:           the tag name
    :ivar bool required:     whether the tag must appear in the bag
    :ivar list values:       the allowed values; an empty list means any value
                             is allowed
    :ivar bool repeatable:   whether the tag may appear more than once
    :ivar str description:   a prose description of the tag
    """
    OPTIONS = ("required", "values", "repeatable", "description")

    def __new__(cls, tag, required=False, values=None, repeatable=True,
                description=""):
        return super(ProfileTag, cls).__new__(cls, tag, required,
                                              list(values or []), repeatable,
                                              description)

    @classmethod
    def from_json(cls, tag, options):
        """
        create the rule from the tag's entry in the profile's Bag-Info object

        :param str tag:       the tag name
        :param dict options:  the rule's options, as parsed from JSON
        :raises ProfileError: if options contains an unrecognized key or a 
                              value of the wrong type
        """
        if not isinstance(options, dict) or \
           any(k not in cls.OPTIONS for k in options):
            raise ProfileError("Invalid tag options for " + tag)

        required = options.get("required", False)
        repeatable = options.get("repeatable", True)
        values = options.get("values", [])
        description = options.get("description", "")
        if not isinstance(required, bool) or not isinstance(repeatable, bool):
            raise ProfileError("Invalid tag options for " + tag)
        if not isinstance(values, list) or \
           not all(isinstance(v, str) for v in values):
            raise ProfileError("Invalid tag options for " + tag)
        if not isinstance(description, str):
            raise ProfileError("Invalid tag options for " + tag)

        return cls(tag, required, values, repeatable, description)

    def is_required(self):
        return self.required

    def is_repeatable(self):
        return self.repeatable
