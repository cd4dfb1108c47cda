"""
This module provides the Fetch class which models a bag's fetch.txt file:  
the list of remote files that must be retrieved into the payload directory 
to complete the bag.  Retrieving the files is not handled here.
"""
import re, logging
from collections import namedtuple
from urllib.parse import urlparse

import fs.errors

from ..constants import FETCH_FILE
from ..validate.base import ValidationResults
from .exceptions import BagError, PathOutOfBoundsError, FilesystemError
from .paths import (base_in_data, encode_filename, decode_filename,
                    has_valid_encoding)
from .utils import read_tag_file, write_tag_file

log = logging.getLogger(__name__)

_FETCH_LINE_RE = re.compile(r'^(\S+)\s+(\d+|-)\s+(.*)$')
_LINE_SPLIT_RE = re.compile(r'\r\n|\r|\n')

FetchEntry = namedtuple("FetchEntry", "url size destination")
FetchEntry.__doc__ = \
"""
a line from fetch.txt:  the URL to retrieve, the expected size in bytes (or 
None if unknown), and the destination path relative to the bag's root.
"""

class Fetch(object):
    """
    the list of files to be fetched into a bag.
    """

    def __init__(self, bag, load=False):
        """
        :param Bag bag:     the bag this fetch list belongs to
        :param bool load:   if True, read the bag's fetch.txt file
        """
        self.bag = bag
        self.files = []
        self.load_issues = ValidationResults(FETCH_FILE)
        if load:
            self.load_file()

    def __len__(self):
        return len(self.files)

    def __iter__(self):
        return iter(self.files)

    def load_file(self):
        """
        read the entries from the bag's fetch.txt file.  Unparseable lines are
        recorded as errors in load_issues.
        """
        self.files = []
        self.load_issues.clear()
        if not self.bag.fs.isfile(FETCH_FILE):
            return

        text = read_tag_file(self.bag.fs, FETCH_FILE, self.bag.encoding,
                             self.load_issues)
        for lineno, line in enumerate(_LINE_SPLIT_RE.split(text), 1):
            line = line.strip()
            if not line:
                continue
            m = _FETCH_LINE_RE.match(line)
            if not m:
                self.load_issues.add_error(FETCH_FILE, "Line {0} : This line is "
                                           "not valid.".format(lineno))
                continue
            url, size, dest = m.groups()
            if not has_valid_encoding(dest):
                self.load_issues.add_error(FETCH_FILE, "Line {0} : Destination "
                          "paths can't have any percent encoded characters "
                          "except CR, LF, & %".format(lineno))
                continue
            try:
                dest = base_in_data(decode_filename(dest))
            except PathOutOfBoundsError as ex:
                self.load_issues.add_error(FETCH_FILE, "Line {0} : {1}".format(
                                           lineno, str(ex)))
                continue
            size = None if size == '-' else int(size)
            self.files.append(FetchEntry(url, size, dest))

    def has_url(self, url):
        """
        return True if the URL (compared without regard to case) is listed
        """
        url = url.lower()
        return any(f.url.lower() == url for f in self.files)

    def has_file(self, destination):
        """
        return True if a listed entry will be fetched to the given destination
        (compared without regard to case).  This is used to reserve payload 
        paths for files to be fetched.
        """
        try:
            destination = base_in_data(destination).lower()
        except PathOutOfBoundsError:
            return False
        return any(f.destination.lower() == destination for f in self.files)

    def add_file(self, url, destination, size=None):
        """
        add an entry to the list.

        :param str url:          the URL to retrieve the file from; it must 
                                 have a scheme and host.
        :param str destination:  the destination path, relative to the data 
                                 directory (or, if starting with "data/", the
                                 bag's root)
        :param int size:         the expected size of the file in bytes, if 
                                 known
        :raises BagError:  if the URL or destination is illegal or already 
                           listed.
        """
        parts = urlparse(url)
        if not parts.scheme or not parts.netloc or re.search(r'\s', url):
            raise BagError("URL {0} does not seem to have a scheme or "
                           "host".format(url))
        dest = base_in_data(destination)
        if self.has_url(url):
            raise BagError("This URL ({0}) is already in fetch.txt".format(url))
        if self.has_file(dest):
            raise BagError("This destination ({0}) is already in the "
                           "fetch.txt".format(dest))
        if size is not None:
            size = int(size)
            if size < 0:
                raise BagError("Fetch file size must not be negative")
        self.files.append(FetchEntry(url, size, dest))

    def remove_file(self, url):
        """
        remove the entry with the given URL, if it is listed
        """
        url = url.lower()
        self.files = [f for f in self.files if f.url.lower() != url]

    def clear(self):
        """
        remove all entries
        """
        self.files = []

    def render(self):
        """
        return the text contents of a fetch.txt file for the current entries
        """
        return "".join(["{0} {1} {2}\n".format(f.url, 
                                               (f.size is None and '-') or f.size,
                                               encode_filename(f.destination))
                        for f in self.files])

    def update(self):
        """
        write fetch.txt if there are any entries; otherwise, remove it.
        """
        if self.files:
            write_tag_file(self.bag.fs, FETCH_FILE, self.render(),
                           self.bag.encoding)
        elif self.bag.fs.isfile(FETCH_FILE):
            try:
                self.bag.fs.remove(FETCH_FILE)
            except fs.errors.FSError as ex:
                raise FilesystemError("Unable to remove {0}: {1}".format(FETCH_FILE,
                                                                         str(ex)), ex)
