"""
This module provides classes and functions for validating bags.
"""
from .base import (ALL, ERROR, WARN, Validator, ValidationIssue,
                   ValidationResults, BagValidationError)
