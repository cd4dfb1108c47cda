"""
This module provides base classes and infrastructure for bag validation:
the issue and result containers used to accumulate errors and warnings, 
and a Validator base class.
"""
import logging
from collections import OrderedDict

from ..access.exceptions import BagValidationError

log = logging.getLogger(__name__)

ERROR = 1
WARN  = 2
ALL   = 3
issuetypes = [ ERROR, WARN ]

type_labels = { ERROR: "error", WARN: "warning" }
ERROR_LAB = type_labels[ERROR]
WARN_LAB  = type_labels[WARN]

class ValidationIssue(object):
    """
    an object capturing an issue detected while loading or validating a bag.
    It contains the path of the file the issue concerns (relative to the bag's
    root), a prose description of the problem, and its type (ERROR or WARN).
    When the issue comes from a BagIt profile, source is set to the profile's
    identifier.
    """
    ERROR = issuetypes[0]
    WARN  = issuetypes[1]
    
    def __init__(self, file, message, issuetype=ERROR, source=None):
        self.file = file
        self.message = message
        self.type = issuetype
        self.source = source

    @property
    def type(self):
        """
        return the issue type, one of ERROR or WARN
        """
        return self._type
    @type.setter
    def type(self, issuetype):
        if issuetype not in issuetypes:
            raise ValueError("ValidationIssue: not a recognized issue type: "+
                             str(issuetype))
        self._type = issuetype

    @property
    def summary(self):
        """
        a one-line description of the issue
        """
        out = type_labels[self._type].upper() + ": "
        if self.source:
            out += "[{0}] ".format(self.source)
        if self.file:
            out += "{0}: ".format(self.file)
        return out + self.message

    def __str__(self):
        return self.summary

    def __repr__(self):
        return "ValidationIssue({0!r}, {1!r}, {2})".format(self.file,
                                                          self.message,
                                                          type_labels[self._type])

    def to_tuple(self):
        """
        return a tuple containing the issue data
        """
        return (self.type, self.file, self.message, self.source)

    def to_json_obj(self):
        """
        return an OrderedDict that can be encoded into a JSON object node
        which contains the data in this ValidationIssue.
        """
        out = OrderedDict([
            ("type", type_labels[self.type]),
            ("file", self.file),
            ("message", self.message)
        ])
        if self.source:
            out["source"] = self.source
        return out

    @classmethod
    def from_tuple(cls, data):
        return ValidationIssue(data[1], data[2], data[0], data[3])

class ValidationResults(object):
    """
    a container for collecting the issues found while loading or validating
    a bag.  Issues are kept in the order they were found.
    """
    ERROR = ERROR
    WARN  = WARN
    ALL   = ALL
    
    def __init__(self, target, want=ERROR):
        """
        initialize an empty set of results for a particular bag

        :param str  target:   a name indicating the bag that is the target of 
                              these results
        :param int    want:   the types of issues--one of ERROR, WARN, or 
                              ALL--that cause ok() to return False.  
        """
        self.target = target
        self.want = want
        self.clear()

    def clear(self):
        """
        forget all issues collected so far
        """
        self.results = {
            ERROR: [],
            WARN:  []
        }

    def applied(self, issuetype=ALL):
        """
        return a list of the issues of the requested types:
        :param int issuetype:  an bit-wise and-ing of the desired issue types
                               (default: ALL)
        """
        out = []
        if ERROR & issuetype:
            out += self.results[ERROR]
        if WARN & issuetype:
            out += self.results[WARN]
        return out

    def failed(self, issuetype=None):
        """
        return the issues of the requested types; by default, the types 
        given by the constructor's want parameter are returned.
        """
        if issuetype is None:
            issuetype = self.want
        return self.applied(issuetype)

    def count_failed(self, issuetype=None):
        """
        return the number of issues of the requested types
        """
        return len(self.failed(issuetype))

    @property
    def errors(self):
        """
        the list of ERROR issues
        """
        return list(self.results[ERROR])

    @property
    def warnings(self):
        """
        the list of WARN issues
        """
        return list(self.results[WARN])

    def ok(self):
        """
        return True if no issues of the types specified by the constructor's
        want parameter were recorded.
        """
        return self.count_failed(self.want) == 0

    def add_issue(self, issue):
        """
        append an issue to these results
        :param ValidationIssue issue:  the issue to add
        """
        log.warning("%s: %s", self.target, issue)
        self.results[issue.type].append(issue)
        return issue

    def add_error(self, file, message, source=None):
        """
        record an error concerning a given file.  

        :param str file:     the path to the file, relative to the bag's root
        :param str message:  a description of the problem
        :param str source:   the identifier of the profile that detected the
                             error, if applicable.
        :return: the new issue
        :rtype: ValidationIssue
        """
        return self.add_issue(ValidationIssue(file, message, ERROR, source))

    def add_warning(self, file, message, source=None):
        """
        record a warning concerning a given file.  
        """
        return self.add_issue(ValidationIssue(file, message, WARN, source))

    def merge(self, other, source=None):
        """
        append all of the issues from another ValidationResults instance to 
        this one, preserving their order within each type.

        :param ValidationResults other:  the results to merge in
        :param str              source:  if provided, the merged issues will 
                                         be marked as coming from this source
        """
        for issue in other.applied(ALL):
            if source:
                issue = ValidationIssue(issue.file, issue.message, issue.type,
                                        source)
            self.results[issue.type].append(issue)
        return self

class Validator(object):
    """
    a base class for a class that will apply validation tests to some 
    targets set at construction.

    This base implementation runs no tests; validate() by default simple returns 
    an empty ValidationResults object.  Subclasses should override validate() to 
    run its tests and enter the results into a returned ValidationResults object.
    """

    def __init__(self, target):
        """
        initialize the validator

        :param str target:  a name indicating the target bag being validated.
        """
        self.target = target

    def validate(self, want=ERROR, results=None):
        """
        run the embeded tests, returning the issues found.  

        :param want    int:  bit-wise and-ed codes indicating which types of 
                             issues cause the results to be not ok.
        :param results ValidationResults: a ValidationResults to add result
                             information to; if provided, this instance will 
                             be the one returned by this method.
        :rtype: ValidationResults:  the results of applying the validation tests
        """
        out = results
        if not out:
            out = ValidationResults(self.target, want)
        return out

    def is_valid(self, want=ERROR):
        """
        run the embedded tests and return True if no issues of the types 
        selected by want were found.  Return False otherwise.
        """
        results = self.validate(want)
        return results.ok()

    def ensure_valid(self, want=ERROR):
        """
        run the embedded tests; if any issues of the types selected by want 
        are found, raise a BagValidationError.

        :raise BagValidationError:  if any of the requested tests fail.
        """
        results = self.validate(want)
        if not results.ok():
            raise BagValidationError(results)
