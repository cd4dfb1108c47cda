"""
A subpackage for accessing and updating a bag's contents.

The :py:mod:`bag` module provides the Bag class, the main interface to a bag.
It relies on the :py:mod:`manifest`, :py:mod:`baginfo`, and :py:mod:`fetch` 
modules to read and write the bag's tag files and on the :py:mod:`paths` 
module for the encoding and normalization of the file paths they contain.
"""
