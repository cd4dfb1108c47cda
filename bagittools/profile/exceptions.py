"""
exceptions that can be raised while reading a BagIt profile or checking a 
bag against one
"""

class ProfileError(Exception):
    """
    an exception indicating that a BagIt profile document is malformed or 
    internally inconsistent.  When several problems were found, the message 
    lists all of them, one per line.
    """
    def __init__(self, message, errors=None):
        """
        :param str message:  the exception's message
        :param list errors:  the individual problems found; if not provided,
                             the list will contain just the message
        """
        if errors is None:
            errors = [message]
        self.errors = list(errors)
        super(ProfileError, self).__init__(message)

class ProfileValidationError(ProfileError):
    """
    an exception indicating that a bag does not conform to a BagIt profile.
    The errors attribute lists every violation found.
    """
    def __init__(self, errors, identifier=None):
        self.identifier = identifier
        super(ProfileValidationError, self).__init__("\n".join(errors), errors)
