"""
This module provides the classes that model a bag's manifest files.  

A Manifest holds the mapping of file paths to digests for a single hash 
algorithm.  A PayloadManifest (``manifest-ALG.txt``) covers the files below 
the bag's data directory; a TagManifest (``tagmanifest-ALG.txt``) covers the 
tag files outside of it.  Problems found while parsing a manifest file are 
recorded in the instance's load_issues rather than raised, so that a bag can 
always be loaded and inspected.
"""
import re, logging
from collections import OrderedDict

import fs.errors

from ..constants import PAYLOAD_DIR, TAGMANIFEST_FILE_RE
from ..validate.base import ValidationResults
from .exceptions import PathOutOfBoundsError, FilesystemError
from .paths import (encode_filename, decode_filename, has_valid_encoding,
                    normalize_path, normalize_unicode, is_in_data)
from .utils import (calculate_hash, digest_length, walk_files, read_tag_file,
                    write_tag_file)

log = logging.getLogger(__name__)

_LINE_BREAK_RE = re.compile(r'(\r\n|\r|\n)')

class Manifest(object):
    """
    the path-to-digest mapping for one algorithm.  This is a base class; 
    use PayloadManifest or TagManifest.
    """
    prefix = None

    def __init__(self, bag, algorithm, load=False):
        """
        create the manifest for a given bag.

        :param Bag bag:        the bag the manifest belongs to
        :param str algorithm:  the normalized name of the hash algorithm 
                               (e.g. "sha256")
        :param bool load:      if True, parse the manifest file from the bag
        """
        self.bag = bag
        self.algorithm = algorithm
        self.filename = "{0}-{1}.txt".format(self.prefix, algorithm)
        self.hashes = OrderedDict()
        self.load_issues = ValidationResults(self.filename)
        if load:
            self.load_file()

    def __repr__(self):
        return "{0}({1})".format(self.__class__.__name__, self.filename)

    def in_scope(self, path):
        """
        return True if the normalized path is one this manifest may list
        """
        raise NotImplementedError()

    def scan(self):
        """
        iterate through the (sorted) paths of the files currently on disk that
        this manifest should list.
        """
        raise NotImplementedError()

    def _scope_error(self, path):
        raise NotImplementedError()

    def calculate_hash(self, path):
        """
        return the digest of the file with the given path relative to the 
        bag's root directory
        """
        return calculate_hash(self.bag.fs, path, self.algorithm)

    def add_file(self, path):
        """
        calculate the digest of the file at the given path and record it,
        replacing any previous entry.  The change is not written to disk until
        update() is called.
        """
        path = normalize_path(path)
        self.hashes[path] = self.calculate_hash(path)
        return self.hashes[path]

    def remove_file(self, path):
        """
        forget the entry for the given path, if it exists
        """
        try:
            path = normalize_path(path)
        except PathOutOfBoundsError:
            return
        self.hashes.pop(path, None)

    def refresh(self):
        """
        recalculate the digests for all of the files currently in this
        manifest's scope, replacing the current entries
        """
        self.hashes = OrderedDict((p, self.calculate_hash(p))
                                  for p in self.scan())

    def update(self):
        """
        refresh the entries and write the manifest file
        """
        self.refresh()
        self.write()

    def render(self):
        """
        return the text contents of the manifest file for the current entries
        """
        return "".join(["{0}  {1}\n".format(h, encode_filename(p))
                        for p, h in self.hashes.items()])

    def write(self):
        """
        write the current entries to the manifest file
        """
        write_tag_file(self.bag.fs, self.filename, self.render(),
                       self.bag.encoding)
        log.debug("Wrote %s with %d entries", self.filename, len(self.hashes))

    def load_file(self):
        """
        parse the manifest file from the bag, replacing the current entries.
        Problems found along the way are recorded in load_issues.
        """
        self.hashes = OrderedDict()
        self.load_issues.clear()
        if not self.bag.fs.isfile(self.filename):
            self.load_issues.add_error(self.filename, "File does not exist.")
            return

        text = read_tag_file(self.bag.fs, self.filename, self.bag.encoding,
                             self.load_issues)
        folded = {}
        for lineno, digest, rawpath in self._parse_lines(text):
            if not has_valid_encoding(rawpath):
                self._load_error(lineno, "Path {0} contains a percent sign that "
                                 "is not part of %25, %0A, or %0D".format(rawpath))
                continue
            path = decode_filename(rawpath)
            try:
                path = normalize_path(path)
            except PathOutOfBoundsError:
                self._load_error(lineno, "{0} resolves to a path outside of "
                                 "the bag.".format(path))
                continue
            if not self.in_scope(path):
                self._load_error(lineno, self._scope_error(path))
                continue

            if path in self.hashes:
                self._load_error(lineno, "Path {0} appears more than once in "
                                 "the manifest.".format(path))
                continue
            key = normalize_unicode(path).lower()
            if key in folded:
                self.load_issues.add_warning(self.filename,
                                   "Line {0}: Path {1} differs only by case or "
                                   "unicode normalization from {2}".format(
                                       lineno, path, folded[key]))
            else:
                folded[key] = path

            self.hashes[path] = digest.lower()

    def _load_error(self, lineno, message):
        self.load_issues.add_error(self.filename,
                                   "Line {0}: {1}".format(lineno, message))

    def _names_file(self, rawpath):
        try:
            path = normalize_path(decode_filename(rawpath))
            return self.in_scope(path) and self.bag.fs.isfile(path)
        except (PathOutOfBoundsError, fs.errors.FSError):
            return False

    def _parse_lines(self, text):
        # returns a list of [lineno, digest, encoded path] entries.  A line
        # that does not start with a digest continues the previous path only
        # if the joined path (a filename with a raw line break) is a file in
        # the bag; otherwise, it is an error.
        #
        # Any run of spaces or tabs is accepted between the digest and the
        # path; two spaces are always written.
        entry_re = re.compile(r'^([0-9a-fA-F]{%d})[ \t]+(.+)$' %
                              digest_length(self.algorithm))
        parts = _LINE_BREAK_RE.split(text)
        entries = []
        sep = ""
        for i in range(0, len(parts), 2):
            lineno = i // 2 + 1
            line = parts[i]
            if line.strip():
                m = entry_re.match(line)
                if m:
                    entries.append([lineno, m.group(1), m.group(2)])
                elif entries and not self._names_file(entries[-1][2]) and \
                     self._names_file(entries[-1][2] + sep + line):
                    entries[-1][2] += sep + line
                    self.load_issues.add_warning(self.filename,
                          "Line {0}: Line does not begin with a {1} digest; "
                          "treating it as a continuation of the previous "
                          "path".format(lineno, self.algorithm))
                else:
                    self._load_error(lineno, "Invalid manifest entry: "+line)
            if i + 1 < len(parts):
                sep = parts[i+1]
        return entries

    def _disk_names(self):
        return dict((normalize_unicode(p), p) for p in self.scan())

    def validate(self):
        """
        compare the recorded digests against the files on disk.  An error is
        recorded for each listed file that is missing or whose digest does not
        match.

        :return: the problems found
        :rtype: ValidationResults
        """
        results = ValidationResults(self.filename)
        ondisk = None
        for path, digest in self.hashes.items():
            filepath = path
            if not self.bag.fs.isfile(path):
                if ondisk is None:
                    ondisk = self._disk_names()
                filepath = ondisk.get(normalize_unicode(path))
            if not filepath:
                msg = "{0} does not exist.".format(path)
                if self.bag.fetch.has_file(path):
                    msg += " It is listed in fetch.txt but has not been fetched."
                results.add_error(self.filename, msg)
                continue

            try:
                calculated = self.calculate_hash(filepath)
            except FilesystemError as ex:
                results.add_error(self.filename, str(ex))
                continue
            if calculated != digest.lower():
                results.add_error(self.filename,
                                  "{0} calculated hash ({1}) does not match "
                                  "manifest ({2})".format(path, calculated, 
                                                          digest.lower()))
        return results

class PayloadManifest(Manifest):
    """
    a manifest of the files below the bag's data directory
    """
    prefix = "manifest"

    def in_scope(self, path):
        return is_in_data(path)

    def _scope_error(self, path):
        return "{0} is not in the data/ directory.".format(path)

    def scan(self):
        return walk_files(self.bag.fs, PAYLOAD_DIR)

class TagManifest(Manifest):
    """
    a manifest of the tag files outside of the bag's data directory.  Tag 
    manifests never list themselves or each other.
    """
    prefix = "tagmanifest"

    def in_scope(self, path):
        return not is_in_data(path) and path != PAYLOAD_DIR

    def _scope_error(self, path):
        return "{0} is a payload file; tag manifests may only list files " \
               "outside of the data/ directory.".format(path)

    def scan(self):
        for name in sorted(self.bag.fs.listdir("/")):
            if name == PAYLOAD_DIR:
                continue
            if self.bag.fs.isdir(name):
                for path in walk_files(self.bag.fs, name):
                    yield path
            elif not TAGMANIFEST_FILE_RE.match(name):
                yield name
