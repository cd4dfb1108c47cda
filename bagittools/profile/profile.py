"""
This module provides the BagItProfile class which holds the constraints
defined by a BagIt profile document and checks bags against them.

A profile checks its own consistency when it is constructed (e.g. every
required manifest must also be allowed) and raises a ProfileError listing
every problem found.  validate_bag() likewise collects every violation
before raising a ProfileValidationError.

Lists of allowed files may contain glob patterns:  ``*`` matches one or more
characters other than "/", ``?`` matches a single such character, and
``[...]`` matches a character class (``[!...]`` negates it).
"""
import re, json, logging
from collections import OrderedDict

from ..constants import (BAGIT_FILE, BAGINFO_FILE, FETCH_FILE,
                         MANIFEST_FILE_RE, TAGMANIFEST_FILE_RE)
from .exceptions import ProfileError, ProfileValidationError
from .tags import ProfileTag

log = logging.getLogger(__name__)

SERIALIZATION_VALUES = ["forbidden", "required", "optional"]

# the BagIt-Profile-Info fields that must be present in a profile document
REQUIRED_INFO_FIELDS = ["BagIt-Profile-Identifier", "Source-Organization",
                        "External-Description", "Version"]

_RESERVED_TAG_FILES = [BAGIT_FILE, BAGINFO_FILE, FETCH_FILE]

def convert_glob_to_regex(glob):
    """
    convert a glob pattern to an equivalent regular expression anchored at
    both ends.  Characters outside of the glob syntax are matched literally.

    :rtype: str
    """
    out = []
    in_class = False
    for i, c in enumerate(glob):
        if in_class:
            if c == ']':
                in_class = False
                out.append(c)
            elif c == '!' and glob[i-1] == '[':
                out.append('^')
            elif c == '\\':
                out.append('\\\\')
            else:
                out.append(c)
        elif c == '[' and ']' in glob[i+1:]:
            in_class = True
            out.append(c)
        elif c == '*':
            out.append('[^/]+')
        elif c == '?':
            out.append('[^/]')
        else:
            out.append(re.escape(c))
    return "^" + "".join(out) + "$"

def _compile_globs(patterns):
    out = []
    for p in patterns:
        try:
            out.append(re.compile(convert_glob_to_regex(p)))
        except re.error:
            out.append(re.compile("^" + re.escape(p) + "$"))
    return out

def paths_not_covered_by_allowed(paths, allowed):
    """
    return the paths (in their given order) that neither exactly match nor
    match as a glob pattern any of the allowed entries.  If allowed is
    empty, all paths are considered covered.
    """
    if not allowed:
        return []
    exact = set(allowed)
    remaining = [p for p in paths if p not in exact]
    if not remaining:
        return []

    for regex in _compile_globs(allowed):
        remaining = [p for p in remaining if not regex.match(p)]
        if not remaining:
            break
    return remaining

def is_covered_by_allowed(required, allowed):
    """
    return True if every entry in required is covered by the allowed list,
    either by exact match or by glob pattern.  An empty allowed list covers
    everything.
    """
    if not required or not allowed:
        return True
    return len(paths_not_covered_by_allowed(required, allowed)) == 0

def _str_list(data, key):
    value = data.get(key, [])
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ProfileError("{0} must be a list of strings".format(key))
    return value

def _bool(data, key, default):
    value = data.get(key, default)
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ProfileError("{0} must be true or false".format(key))
    return value

class BagItProfile(object):
    """
    a set of constraints a bag can be validated against.

    Instances are usually created from a profile document via from_json() or
    from_dict().  The profile's identifier is used as its key when it is
    attached to a bag.
    """

    def __init__(self, identifier, source_organization="",
                 external_description="", version="", spec_version=None,
                 contact_name=None, contact_phone=None, contact_email=None,
                 bag_info_tags=None, manifests_required=None,
                 manifests_allowed=None, allow_fetch=True, require_fetch=False,
                 data_empty=False, serialization="optional",
                 accept_serialization=None, accept_bagit_version=None,
                 tag_manifests_required=None, tag_manifests_allowed=None,
                 tag_files_required=None, tag_files_allowed=None,
                 payload_files_required=None, payload_files_allowed=None,
                 warnings=None):
        """
        create the profile and check its consistency.

        :param str identifier:       the URI identifying the profile
        :param list bag_info_tags:   the ProfileTag rules for bag-info tags
        :param list warnings:        problems with the profile document that
                                     did not prevent its use
        :raises ProfileError:  if the profile is inconsistent; the message lists
                               all of the problems found.
        """
        self.identifier = identifier
        self.source_organization = source_organization
        self.external_description = external_description
        self.version = version
        self.spec_version = spec_version
        self.contact_name = contact_name
        self.contact_phone = contact_phone
        self.contact_email = contact_email

        self.bag_info_tags = OrderedDict()
        for rule in (bag_info_tags or []):
            self.bag_info_tags[rule.tag.strip().lower()] = rule

        self.manifests_required = list(manifests_required or [])
        self.manifests_allowed = list(manifests_allowed or [])
        self.allow_fetch = allow_fetch
        self.require_fetch = require_fetch
        self.data_empty = data_empty
        self.serialization = serialization
        self.accept_serialization = list(accept_serialization or [])
        self.accept_bagit_version = list(accept_bagit_version or [])
        self.tag_manifests_required = list(tag_manifests_required or [])
        self.tag_manifests_allowed = list(tag_manifests_allowed or [])
        self.tag_files_required = list(tag_files_required or [])
        self.tag_files_allowed = list(tag_files_allowed or [])
        self.payload_files_required = list(payload_files_required or [])
        self.payload_files_allowed = list(payload_files_allowed or [])
        self.warnings = list(warnings or [])

        self.validate_self()

    def __repr__(self):
        return "BagItProfile({0})".format(self.identifier)

    @property
    def required_bag_info_tags(self):
        """
        the (lower-cased) names of the bag-info tags the profile requires
        """
        return [k for k, r in self.bag_info_tags.items() if r.required]

    @classmethod
    def from_json(cls, text):
        """
        create a profile from its JSON serialization

        :raises ProfileError:  if the document cannot be parsed or is not a
                               valid profile
        """
        try:
            data = json.loads(text)
        except ValueError as ex:
            raise ProfileError("Error parsing profile: " + str(ex))
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data):
        """
        create a profile from a profile document already parsed into a dict

        :raises ProfileError:  if the document is not a valid profile
        """
        if not isinstance(data, dict):
            raise ProfileError("Error parsing profile: not a JSON object")
        info = data.get("BagIt-Profile-Info")
        if not isinstance(info, dict) or \
           any(not isinstance(info.get(f), str) for f in REQUIRED_INFO_FIELDS):
            raise ProfileError("Missing required BagIt-Profile-Info tag")

        warnings = []
        tags = []
        baginfo = data.get("Bag-Info", {})
        if not isinstance(baginfo, dict):
            raise ProfileError("Bag-Info must be a JSON object")
        for tag, options in baginfo.items():
            if tag.strip().lower() == "bagit-profile-identifier":
                warnings.append("The tag BagIt-Profile-Identifier is always "
                                "required, but SHOULD NOT be listed under "
                                "Bag-Info in the Profile.")
                if not isinstance(options, dict) or \
                   any(k not in ProfileTag.OPTIONS for k in options):
                    raise ProfileError("Invalid tag options for " + tag)
                continue
            tags.append(ProfileTag.from_json(tag, options))

        serialization = data.get("Serialization", "optional")
        if not isinstance(serialization, str):
            raise ProfileError("Serialization must be one of forbidden, "
                               "required, optional")

        return cls(info["BagIt-Profile-Identifier"],
                   source_organization=info["Source-Organization"],
                   external_description=info["External-Description"],
                   version=info["Version"],
                   spec_version=info.get("BagIt-Profile-Version"),
                   contact_name=info.get("Contact-Name"),
                   contact_phone=info.get("Contact-Phone"),
                   contact_email=info.get("Contact-Email"),
                   bag_info_tags=tags,
                   manifests_required=_str_list(data, "Manifests-Required"),
                   manifests_allowed=_str_list(data, "Manifests-Allowed"),
                   allow_fetch=_bool(data, "Allow-Fetch.txt", True),
                   require_fetch=_bool(data, "Require-Fetch.txt", False),
                   data_empty=_bool(data, "Data-Empty", False),
                   serialization=serialization,
                   accept_serialization=_str_list(data, "Accept-Serialization"),
                   accept_bagit_version=_str_list(data, "Accept-BagIt-Version"),
                   tag_manifests_required=_str_list(data,
                                                    "Tag-Manifests-Required"),
                   tag_manifests_allowed=_str_list(data, "Tag-Manifests-Allowed"),
                   tag_files_required=_str_list(data, "Tag-Files-Required"),
                   tag_files_allowed=_str_list(data, "Tag-Files-Allowed"),
                   payload_files_required=_str_list(data,
                                                    "Payload-Files-Required"),
                   payload_files_allowed=_str_list(data, "Payload-Files-Allowed"),
                   warnings=warnings)

    def validate_self(self):
        """
        check the internal consistency of this profile.

        :raises ProfileError:  listing every problem found
        """
        errors = []
        if not self.identifier:
            errors.append("BagIt-Profile-Identifier is required")
        if not self.accept_bagit_version:
            errors.append("Accept-BagIt-Version must contain at least one "
                          "version")
        if self.serialization not in SERIALIZATION_VALUES:
            errors.append("Serialization must be one of forbidden, required, "
                          "optional")
        elif self.serialization in ("required", "optional") and \
             not self.accept_serialization:
            errors.append("Accept-Serialization MIME type(s) must be specified "
                          "if Serialization is required or optional")
        if self.require_fetch and not self.allow_fetch:
            errors.append("Allow-Fetch.txt cannot be false if "
                          "Require-Fetch.txt is true")
        if not is_covered_by_allowed(self.manifests_required,
                                     self.manifests_allowed):
            errors.append("Manifests-Allowed must include all entries from "
                          "Manifests-Required")
        if not is_covered_by_allowed(self.tag_manifests_required,
                                     self.tag_manifests_allowed):
            errors.append("Tag-Manifests-Allowed must include all entries "
                          "from Tag-Manifests-Required")
        if not is_covered_by_allowed(self.tag_files_required,
                                     self.tag_files_allowed):
            errors.append("Tag-Files-Allowed must include all entries from "
                          "Tag-Files-Required")
        if not is_covered_by_allowed(self.payload_files_required,
                                     self.payload_files_allowed):
            errors.append("Payload-Files-Allowed must include all entries "
                          "from Payload-Files-Required")

        if errors:
            raise ProfileError("\n".join(errors), errors)

    def is_valid(self):
        """
        return True if this profile is internally consistent
        """
        try:
            self.validate_self()
            return True
        except ProfileError:
            return False

    def validate_bag(self, bag):
        """
        check a bag against this profile.  The bag's in-memory state (its
        algorithms, bag-info tags, fetch list, version, serialization, and
        manifest entries) is compared against each of the profile's
        constraints.

        :param Bag bag:  the bag to check
        :raises ProfileValidationError:  listing every violation found
        """
        errors = []
        self._check_bag_info(bag, errors)
        self._check_fetch(bag, errors)
        self._check_data_empty(bag, errors)
        self._check_serialization(bag, errors)

        if self.accept_bagit_version and \
           str(bag.version) not in self.accept_bagit_version:
            errors.append("Profile requires BagIt version of ({0}) but the bag "
                          "has version ({1})".format(
                              ", ".join(self.accept_bagit_version), bag.version))

        self._check_manifests(list(bag.payload_manifests.keys()),
                              self.manifests_required, self.manifests_allowed,
                              "payload", errors)
        self._check_manifests(list(bag.tag_manifests.keys()),
                              self.tag_manifests_required,
                              self.tag_manifests_allowed, "tag", errors)
        self._check_tag_files(bag, errors)
        self._check_payload_files(bag, errors)

        if errors:
            log.warning("%s does not conform to profile %s (%d problems)",
                        bag, self.identifier, len(errors))
            raise ProfileValidationError(errors, self.identifier)

    def _check_bag_info(self, bag, errors):
        if self.required_bag_info_tags and not bag.extended:
            errors.append("Profile requires Bag-Info tags but the Bag is not "
                          "extended")
        for rule in self.bag_info_tags.values():
            name = rule.tag
            values = bag.info.get_tag(name)
            if rule.required and not values:
                errors.append("Profile requires tag ({0}) which is missing "
                              "from the bag".format(name))
            if not rule.repeatable and len(values) > 1:
                errors.append("Profile does not allow tag ({0}) to repeat, "
                              "there are {1} values in the bag".format(
                                  name, len(values)))
            if rule.values and values:
                bad = [v for v in values if v not in rule.values]
                if bad:
                    errors.append("Profile requires tag ({0}) to have value(s) "
                                  "({1}) but the bag has value(s) ({2})".format(
                                      name, ", ".join(rule.values),
                                      ", ".join(bad)))

    def _check_fetch(self, bag, errors):
        if not self.allow_fetch and bag.has_fetch_file():
            errors.append("Profile does not allow fetch.txt but the bag has "
                          "one")
        if self.require_fetch and not bag.has_fetch_file():
            errors.append("Profile requires fetch.txt but the bag does not "
                          "have one")

    def _check_data_empty(self, bag, errors):
        if not self.data_empty or not bag.payload_manifests:
            return
        hashes = list(bag.payload_manifests.values())[0].hashes
        if len(hashes) > 1:
            errors.append("Profile requires /data directory to be empty or "
                          "contain a single 0 byte file but it contains {0} "
                          "files".format(len(hashes)))
        elif len(hashes) == 1:
            path = list(hashes.keys())[0]
            size = bag.fs.getsize(path) if bag.fs.isfile(path) else 0
            if size > 0:
                errors.append("Profile requires /data directory to be empty or "
                              "contain a single 0 byte file but it contains a "
                              "single file of size {0}".format(size))

    def _check_serialization(self, bag, errors):
        mimetype = bag.serialization
        accepted = ", ".join(self.accept_serialization)
        if self.serialization == "required":
            if mimetype is None:
                errors.append("Profile requires serialization MIME type but "
                              "the bag has none")
            elif mimetype not in self.accept_serialization:
                errors.append("Profile requires serialization MIME type ({0}) "
                              "but the bag has MIME type ({1})".format(
                                  accepted, mimetype))
        elif self.serialization == "forbidden" and mimetype is not None:
            errors.append("Profile forbids serialization MIME type but the bag "
                          "has MIME type ({0})".format(mimetype))
        elif self.serialization == "optional" and mimetype is not None and \
             mimetype not in self.accept_serialization:
            errors.append("Profile allows for serialization MIME type ({0}) "
                          "but the bag has MIME type ({1})".format(accepted,
                                                                   mimetype))

    def _check_manifests(self, present, required, allowed, kind, errors):
        missing = [m for m in required if m not in present]
        if missing:
            errors.append("Profile requires {0} manifest(s) which are missing "
                          "from the bag ({1})".format(kind, ", ".join(missing)))
        if allowed:
            extra = paths_not_covered_by_allowed(present, allowed)
            if extra:
                errors.append("Profile allows {0} manifest(s) ({1}), but the "
                              "bag has manifest(s) ({2}) which are not "
                              "allowed".format(kind, ", ".join(allowed),
                                               ", ".join(extra)))

    def _check_tag_files(self, bag, errors):
        tagfiles = []
        if bag.tag_manifests:
            tagfiles = list(list(bag.tag_manifests.values())[0].hashes.keys())

        missing = [f for f in self.tag_files_required if f not in tagfiles]
        if missing:
            errors.append("Profile requires tag files(s) which are missing from "
                          "the bag ({0})".format(", ".join(missing)))

        if self.tag_files_allowed:
            custom = [f for f in tagfiles if f not in _RESERVED_TAG_FILES and
                      not MANIFEST_FILE_RE.match(f) and
                      not TAGMANIFEST_FILE_RE.match(f)]
            extra = paths_not_covered_by_allowed(custom, self.tag_files_allowed)
            if extra:
                errors.append("Profile allows tag files(s) ({0}), but the bag "
                              "has file(s) ({1}) which are not allowed".format(
                                  ", ".join(self.tag_files_allowed),
                                  ", ".join(extra)))

    def _check_payload_files(self, bag, errors):
        payload = []
        if bag.payload_manifests:
            payload = list(list(bag.payload_manifests.values())[0].hashes.keys())

        missing = []
        for req in self.payload_files_required:
            if req.endswith("/"):
                if not any(p.startswith(req) for p in payload):
                    missing.append(req)
            elif req not in payload:
                missing.append(req)
        if missing:
            errors.append("Profile requires payload file(s) which are missing "
                          "from the bag ({0})".format(", ".join(missing)))

        if self.payload_files_allowed:
            extra = paths_not_covered_by_allowed(payload,
                                                 self.payload_files_allowed)
            if extra:
                errors.append("Profile allows payload files(s) ({0}), but the "
                              "bag has file(s) ({1}) which are not "
                              "allowed".format(", ".join(self.payload_files_allowed),
                                               ", ".join(extra)))
