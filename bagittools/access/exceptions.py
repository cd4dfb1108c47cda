"""
exceptions that can be raised while accessing or updating a bag's contents.

These extend the exceptions defined by the LOC bagit module so that callers 
already prepared to handle that module's errors will catch ours as well.
"""
import bagit

class BagError(bagit.BagError):
    """
    a general exception indicating that a bag was used improperly (e.g. a 
    request to write outside of the bag's payload directory).
    """
    pass

class PathOutOfBoundsError(BagError):
    """
    an exception indicating that a relative path resolves to a location outside
    of the directory it is meant to be contained in.
    """
    def __init__(self, path, message=None):
        """
        initialize the exception with the offending path
        :param str path:     the path that was rejected
        :param str message:  the exceptions message, overriding the default
                             (generated from the path)
        """
        self.path = path
        if not message:
            message = "Path resolves outside of its allowed directory: " + path
        super(PathOutOfBoundsError, self).__init__(message)

class FilesystemError(BagError):
    """
    an exception indicating a failure while reading or writing a file within 
    the bag.
    """
    def __init__(self, message, cause=None):
        self.cause = cause
        super(FilesystemError, self).__init__(message)

class BagValidationError(bagit.BagValidationError, BagError):
    """
    An exception indicating that a bag is not compliant with the BagIt 
    specification (or an attached profile) in one or more ways.  

    This class differs from the bagit.BagValidationError in that it carries 
    along all of the result details as a ValidationResults instance ("results").
    """
    def __init__(self, results):
        self.results = results

        failed = results.failed()
        details = []
        if len(failed) == 0:
            # shouldn't happen
            msg = "Unknown bag validation failure"
        elif len(failed) == 1:
            msg = str(failed[0])
        else:
            msg = "{0} validation errors detected".format(len(failed))
            details = [str(i) for i in failed]

        super(BagValidationError, self).__init__(msg, details)

    def __str__(self):
        if not self.results or len(self.results.failed()) < 2:
            return self.message

        out = self.message
        if len(self.details) > 3:
            out += ", including"
        out += ":"
        for d in self.details[0:3]:
            out += "\n * " + d
        return out
