"""
This module provides the Bag class, the central interface for creating,
loading, updating, and validating a bag.

A Bag wraps a directory (accessed via an fs filesystem object) and keeps an
in-memory model of its contents:  its declared version and tag file encoding,
a PayloadManifest (and, for extended bags, a TagManifest) for each of its
hash algorithms, its bag-info metadata, and its fetch list.  Changes made
through the Bag's methods are written to disk by update(); validate()
re-reads the bag from disk and reports all of the problems it finds.
"""
import os, re, codecs, logging
from collections import OrderedDict

import fs.osfs, fs.zipfs, fs.tarfs, fs.errors, fs.path

from ..constants import (BAGIT_FILE, BAGINFO_FILE, FETCH_FILE, PAYLOAD_DIR,
                         DEFAULT_BAGIT_VERSION, DEFAULT_HASH_ALGORITHM,
                         DEFAULT_FILE_ENCODING, SUPPORTED_BAGIT_VERSIONS,
                         DEPRECATED_ALGORITHMS, SERIALIZATION_MIMETYPES,
                         MANIFEST_FILE_RE, TAGMANIFEST_FILE_RE, Version)
from ..validate.base import ValidationResults, ERROR
from ..profile.profile import BagItProfile, ProfileValidationError
from .exceptions import (BagError, BagValidationError, FilesystemError,
                         PathOutOfBoundsError)
from .paths import (base_in_data, normalize_path, normalize_unicode,
                    encode_filename, is_in_data, is_reserved_filename)
from .manifest import PayloadManifest, TagManifest
from .baginfo import BagInfo
from .fetch import Fetch
from .utils import (get_hash_name, walk_files, calc_oxum, write_tag_file,
                    encode_tag_text)

log = logging.getLogger(__name__)

_RESERVED_TAG_FILES = [BAGIT_FILE, BAGINFO_FILE, FETCH_FILE]

def serialization_mimetype(filename):
    """
    return the MIME type for a serialized bag based on its filename
    extension, or None if the extension is not recognized.
    """
    filename = filename.lower()
    for ext, mimetype in SERIALIZATION_MIMETYPES:
        if filename.endswith(ext):
            return mimetype
    return None

class Bag(object):
    """
    A representation of a bag that can be created, loaded, modified, and
    validated.

    Instances should be created via the create() and load() class methods (or
    the create_bag() and open_bag() factory functions).
    """

    def __init__(self, root, new=False, filesys=None, serialization=None,
                 readonly=False):
        """
        open or create the bag with the given root directory.

        :param str root:      the path to the bag's root directory; when
                              filesys is given, this is only used as a label.
        :param bool new:      if True, create a new, empty bag at root, which
                              must not already exist.
        :param filesys:       an fs filesystem object whose root is the bag's
                              root directory.  If not provided, one is opened
                              for root.
        :param str serialization:  the MIME type of the archive the bag was
                              read from, if any.
        :param bool readonly: if True, methods that would change the bag will
                              raise a BagError.
        """
        self.root = root
        self.serialization = serialization
        self._readonly = readonly
        self._archive = None
        self._profiles = OrderedDict()
        self._results = ValidationResults(root)
        self._changed = False

        self.version = Version(DEFAULT_BAGIT_VERSION)
        self.encoding = DEFAULT_FILE_ENCODING
        self.payload_manifests = OrderedDict()
        self.tag_manifests = OrderedDict()
        self.info = BagInfo()
        self.fetch = Fetch(self)
        self._extended = False
        self._load_issues = ValidationResults(root)

        if new:
            if filesys is None and os.path.exists(root):
                raise BagError("New bag directory {0} exists".format(root))
            self._loaded = False
            self.fs = filesys
            if self.fs is None:
                self.fs = fs.osfs.OSFS(root, create=True)
            self._create()
        else:
            if filesys is None:
                if not os.path.isdir(root):
                    raise BagError("Path {0} does not exist, could not load "
                                   "Bag.".format(root))
                filesys = fs.osfs.OSFS(root)
            self.fs = filesys
            self._loaded = True
            self._load()

    @classmethod
    def create(cls, root):
        """
        create a new bag in a directory that does not yet exist.  The new bag
        has an empty payload directory and a bagit.txt file, and it will use
        the default hash algorithm (sha512).
        """
        return cls(os.path.abspath(root), True)

    @classmethod
    def load(cls, root, serialization=None):
        """
        load an existing bag from its root directory.

        :param str root:           the bag's root directory
        :param str serialization:  the MIME type of the archive the bag was
                                   extracted from, if any
        """
        return cls(os.path.abspath(root), serialization=serialization)

    def __str__(self):
        return str(self.root)

    def __repr__(self):
        return "Bag({0})".format(self.root)

    def close(self):
        """
        release the underlying filesystem
        """
        self.fs.close()
        if self._archive:
            self._archive.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    def is_readonly(self):
        """
        return True if this bag cannot be changed
        """
        return self._readonly

    def _check_writable(self):
        if self._readonly:
            raise BagError("Unable to modify {0} as the bag was opened "
                           "read-only".format(self.root))

    @property
    def extended(self):
        """
        True if this bag has (or will have after update()) a bag-info.txt
        file and tag manifests.
        """
        return self._extended

    @extended.setter
    def extended(self, value):
        value = bool(value)
        if value != self._extended:
            self._extended = value
            self._changed = True

    def is_extended(self):
        return self._extended

    @property
    def changed(self):
        """
        True if this bag has in-memory changes not yet written by update()
        """
        return self._changed

    @property
    def algorithms(self):
        """
        the list of (normalized) names of the hash algorithms in use
        """
        return list(self.payload_manifests.keys())

    @property
    def errors(self):
        """
        the errors found by the last call to validate()
        """
        return self._results.errors

    @property
    def warnings(self):
        """
        the warnings found by the last call to validate()
        """
        return self._results.warnings

    @property
    def data_dir(self):
        return self.make_absolute(PAYLOAD_DIR)

    ## creating and loading

    def _create(self):
        try:
            self.fs.makedirs(PAYLOAD_DIR, recreate=True)
        except fs.errors.FSError as ex:
            raise FilesystemError("Unable to create the data directory in "
                                  "{0}: {1}".format(self.root, str(ex)), ex)
        self._write_bagit()
        self.payload_manifests[DEFAULT_HASH_ALGORITHM] = \
            PayloadManifest(self, DEFAULT_HASH_ALGORITHM)
        log.info("Created new bag at %s", self.root)

    def _load(self):
        self._load_issues = ValidationResults(self.root)
        self.version = Version(DEFAULT_BAGIT_VERSION)
        self.encoding = DEFAULT_FILE_ENCODING
        self.payload_manifests = OrderedDict()
        self.tag_manifests = OrderedDict()

        self._load_bagit()
        self._load_manifests()
        has_info = self.fs.isfile(BAGINFO_FILE)
        if has_info:
            self.info = BagInfo.load(self.fs, self.version, self.encoding)
        else:
            self.info = BagInfo()
        self.fetch = Fetch(self, True)
        self._extended = has_info or len(self.tag_manifests) > 0
        self._changed = False
        log.info("Loaded bag from %s", self.root)

    def _load_bagit(self):
        issues = self._load_issues
        if not self.fs.isfile(BAGIT_FILE):
            issues.add_error(BAGIT_FILE, "Required file missing.")
            return

        data = self.fs.readbytes(BAGIT_FILE)
        if data.startswith(codecs.BOM_UTF8):
            issues.add_error(BAGIT_FILE, "bagit.txt must not contain a "
                             "byte-order mark")
            data = data[len(codecs.BOM_UTF8):]
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError:
            issues.add_error(BAGIT_FILE, "File must be encoded in UTF-8")
            text = data.decode("utf-8", errors="replace")

        lines = [l.strip() for l in re.split(r'\r\n|\r|\n', text) if l.strip()]
        if len(lines) != 2:
            issues.add_error(BAGIT_FILE, "File MUST contain exactly 2 lines, "
                             "found {0}".format(len(lines)))
            return

        m = re.match(r'^BagIt-Version: (\d+)\.(\d+)$', lines[0])
        if not m:
            issues.add_error(BAGIT_FILE, "First line should have pattern "
                             "BagIt-Version: M.N")
        else:
            self.version = Version((int(m.group(1)), int(m.group(2))))
            if str(self.version) not in SUPPORTED_BAGIT_VERSIONS:
                issues.add_error(BAGIT_FILE, "Unsupported BagIt version: "
                                 "{0}".format(self.version))

        m = re.match(r'^Tag-File-Character-Encoding: (.+)$', lines[1])
        if not m:
            issues.add_error(BAGIT_FILE, "Second line should have pattern "
                             "Tag-File-Character-Encoding: ENCODING")
        else:
            try:
                codecs.lookup(m.group(1))
                self.encoding = m.group(1)
            except LookupError:
                issues.add_error(BAGIT_FILE, "Unsupported tag file encoding: "
                                 "{0}".format(m.group(1)))

    def _load_manifests(self):
        issues = self._load_issues
        for name in sorted(self.fs.listdir("/")):
            if not self.fs.isfile(name):
                continue
            if name.startswith("tagmanifest-"):
                m = TAGMANIFEST_FILE_RE.match(name)
                if not m:
                    issues.add_error(name, "Tag manifest MUST have a name in "
                                     "the form of tagmanifest-ALG.txt")
                elif not get_hash_name(m.group(1)) == m.group(1):
                    issues.add_error(name, "Algorithm {0} is not "
                                     "supported.".format(m.group(1)))
                else:
                    self.tag_manifests[m.group(1)] = \
                        TagManifest(self, m.group(1), True)
            elif name.startswith("manifest-"):
                m = MANIFEST_FILE_RE.match(name)
                if not m:
                    issues.add_error(name, "Payload manifest MUST have a name "
                                     "in the form of manifest-ALG.txt")
                elif not get_hash_name(m.group(1)) == m.group(1):
                    issues.add_error(name, "Algorithm {0} is not "
                                     "supported.".format(m.group(1)))
                else:
                    self.payload_manifests[m.group(1)] = \
                        PayloadManifest(self, m.group(1), True)

        if not self.payload_manifests:
            issues.add_error("manifest-ALG.txt", "No payload manifest files "
                             "found.")

    ## writing

    def update(self, refresh_bagging_date=False):
        """
        write all in-memory changes to disk:  bagit.txt, the payload
        manifests (recalculated from the current payload files), and the
        fetch list.  For an extended bag, bag-info.txt (with its
        auto-generated tags recomputed) and the tag manifests are written
        as well; otherwise, those files are removed.

        :param bool refresh_bagging_date:  if True, reset the Bagging-Date to
                                           today even if it is already set.
        """
        self._check_writable()
        try:
            self.fs.makedirs(PAYLOAD_DIR, recreate=True)
        except fs.errors.FSError as ex:
            raise FilesystemError("Unable to create the data directory in "
                                  "{0}: {1}".format(self.root, str(ex)), ex)

        if not self.payload_manifests:
            self.payload_manifests[DEFAULT_HASH_ALGORITHM] = \
                PayloadManifest(self, DEFAULT_HASH_ALGORITHM)
        for manifest in self.payload_manifests.values():
            manifest.refresh()

        # nothing on disk is changed until all of the tag files are known to
        # be encodable
        pending = [(m.filename, m.render())
                   for m in self.payload_manifests.values()]
        pending.append((FETCH_FILE, self.fetch.render()))
        if self._extended:
            self.info.update_generated(calc_oxum(self.fs), refresh_bagging_date)
            pending.append((BAGINFO_FILE, self.info.render()))
            tagmanifest = TagManifest(self, self.algorithms[0])
            pending.append((tagmanifest.filename,
                            "\n".join([encode_filename(p)
                                       for p in tagmanifest.scan()])))
        for path, text in pending:
            encode_tag_text(text, self.encoding, path)

        self._write_bagit()
        self._clear_files(MANIFEST_FILE_RE)
        for manifest in self.payload_manifests.values():
            manifest.write()

        self.fetch.update()

        self._clear_files(TAGMANIFEST_FILE_RE)
        if self._extended:
            self.info.write(self.fs, self.encoding)
            self.tag_manifests = OrderedDict((alg, TagManifest(self, alg))
                                             for alg in self.payload_manifests)
            for manifest in self.tag_manifests.values():
                manifest.update()
        else:
            self._remove_if_exists(BAGINFO_FILE)
            self.info = BagInfo()
            self.tag_manifests = OrderedDict()

        self._changed = False
        self._loaded = True
        log.info("Updated bag at %s", self.root)

    def _write_bagit(self):
        # bagit.txt is always UTF-8
        write_tag_file(self.fs, BAGIT_FILE,
                       "BagIt-Version: {0}\nTag-File-Character-Encoding: {1}\n"
                       .format(self.version, self.encoding), "utf-8")

    def _clear_files(self, pattern):
        for name in self.fs.listdir("/"):
            if pattern.match(name):
                self._remove_if_exists(name)

    def _remove_if_exists(self, path):
        try:
            if self.fs.isfile(path):
                self.fs.remove(path)
        except fs.errors.FSError as ex:
            raise FilesystemError("Unable to remove {0}: {1}".format(path, str(ex)),
                                  ex)

    def _prune_empty_dirs(self, path, stop):
        # remove empty parent directories of path up to (but not including) stop
        parent = "/".join(path.split("/")[:-1])
        while parent and parent != stop and self.fs.isdir(parent) and \
              self.fs.isempty(parent):
            self.fs.removedir(parent)
            parent = "/".join(parent.split("/")[:-1])

    ## payload files

    def _check_payload_dest(self, dest):
        dest = base_in_data(dest)
        if is_reserved_filename(dest):
            raise BagError("The filename requested is reserved on Windows OSes.")
        if self.fetch.has_file(dest):
            raise BagError("The path ({0}) is used in the fetch.txt "
                           "file.".format(dest))
        if self.fs.exists(dest) or self.fs.exists(normalize_unicode(dest)):
            raise BagError("File {0} already exists in the bag.".format(dest))
        return dest

    def _write_payload(self, dest, writer):
        try:
            self.fs.makedirs(fs.path.dirname(dest), recreate=True)
            writer(dest)
        except fs.errors.FSError as ex:
            raise FilesystemError("Unable to write {0}: {1}".format(dest, str(ex)),
                                  ex)
        for manifest in self.payload_manifests.values():
            manifest.add_file(dest)
        self._changed = True

    def add_file(self, source, dest):
        """
        copy a file into the bag's payload.

        :param str source:  the path to the file to copy
        :param str dest:    the destination path, relative to the data
                            directory (or, if it starts with "data/", to the
                            bag's root)
        :raises BagError:   if the source does not exist or if the destination
                            is outside of the payload directory, is a reserved
                            name, is listed in fetch.txt, or already exists.
        """
        self._check_writable()
        if not os.path.isfile(source):
            raise BagError("{0} does not exist".format(source))
        dest = self._check_payload_dest(dest)

        def copy(path):
            with open(source, 'rb') as fd:
                self.fs.upload(path, fd)
        self._write_payload(dest, copy)
        log.debug("Added %s to bag as %s", source, dest)

    def create_file(self, content, dest):
        """
        create a payload file with the given contents.

        :param content:   the contents of the file; a str will be encoded
                          as UTF-8
        :type content:    str or bytes
        :param str dest:  the destination path, as for add_file()
        """
        self._check_writable()
        dest = self._check_payload_dest(dest)
        if isinstance(content, str):
            content = content.encode("utf-8")
        self._write_payload(dest, lambda path: self.fs.writebytes(path, content))

    def remove_file(self, dest):
        """
        remove a file from the bag's payload.  Nothing is done if the
        destination is outside of the data directory or does not exist.
        Directories left empty are removed.
        """
        self._check_writable()
        try:
            dest = base_in_data(dest)
        except PathOutOfBoundsError:
            return
        if not self.fs.isfile(dest):
            return
        try:
            self.fs.remove(dest)
            self._prune_empty_dirs(dest, PAYLOAD_DIR)
        except fs.errors.FSError as ex:
            raise FilesystemError("Unable to remove {0}: {1}".format(dest, str(ex)),
                                  ex)
        for manifest in self.payload_manifests.values():
            manifest.remove_file(dest)
        self._changed = True

    def payload_files(self):
        """
        iterate through the paths of the payload files currently on disk
        """
        return walk_files(self.fs, PAYLOAD_DIR)

    ## tag files

    def _check_tag_file_dest(self, dest):
        try:
            path = normalize_path(dest)
        except PathOutOfBoundsError:
            raise BagError("Tag files must be inside the bag root.")
        if not path:
            raise BagError("Tag files must be inside the bag root.")
        if path.lower() == PAYLOAD_DIR or is_in_data(path.lower()):
            raise BagError("Tag files must be in the bag root or a tag file "
                           "directory, use add_file() to add data files.")
        if path.lower() in _RESERVED_TAG_FILES:
            raise BagError("You cannot alter reserved file ({0}) with your "
                           "own tag file.".format(dest))
        if path.lower().startswith("manifest-") or \
           path.lower().startswith("tagmanifest-"):
            raise BagError("You cannot alter a manifest or tag manifest file "
                           "with your own tag file.")
        return path

    def add_tag_file(self, source, dest):
        """
        copy a custom tag file into the bag, outside of the payload directory.
        This makes the bag extended.

        :param str source:  the path to the file to copy
        :param str dest:    the destination path relative to the bag's root
        """
        self._check_writable()
        if not os.path.isfile(source):
            raise BagError("{0} does not exist, is not a file or is not "
                           "readable.".format(source))
        dest = self._check_tag_file_dest(dest)
        if self.fs.exists(dest):
            raise BagError("Tag file ({0}) already exists in the "
                           "bag.".format(dest))
        self.extended = True
        try:
            parent = fs.path.dirname(dest)
            if parent:
                self.fs.makedirs(parent, recreate=True)
            with open(source, 'rb') as fd:
                self.fs.upload(dest, fd)
        except fs.errors.FSError as ex:
            raise FilesystemError("Unable to write {0}: {1}".format(dest, str(ex)),
                                  ex)
        self._changed = True

    def remove_tag_file(self, dest):
        """
        remove a custom tag file from the bag

        :raises BagError:  if the file does not exist or is a reserved file
        """
        self._check_writable()
        dest = self._check_tag_file_dest(dest)
        if not self.fs.isfile(dest):
            raise BagError("Tag file ({0}) does not exist in the "
                           "bag.".format(dest))
        try:
            self.fs.remove(dest)
            self._prune_empty_dirs(dest, "")
        except fs.errors.FSError as ex:
            raise FilesystemError("Unable to remove {0}: {1}".format(dest, str(ex)),
                                  ex)
        self._changed = True

    ## bag-info metadata

    def get_bag_info_data(self):
        """
        return the bag-info tags as a list of (tag, value) pairs
        """
        return self.info.entries

    def has_bag_info_tag(self, tag):
        return self.info.has_tag(tag)

    def get_bag_info_by_tag(self, tag):
        """
        return the list of values for a bag-info tag (empty if not set)
        """
        return self.info.get_tag(tag)

    def add_bag_info_tag(self, tag, value):
        """
        append a value to a bag-info tag.  This makes the bag extended.

        :raises BagError:  if the tag is one of the auto-generated tags
        """
        self._check_writable()
        self.info.add_tag(tag, value)
        self.extended = True
        self._changed = True

    def add_bag_info_tags(self, tags):
        """
        append values to several bag-info tags.  This makes the bag extended.

        :param tags:  a dict or list of (tag, value) pairs
        :raises BagError:  if any of the tags is one of the auto-generated tags
        """
        self._check_writable()
        self.info.add_tags(tags)
        self.extended = True
        self._changed = True

    def remove_bag_info_tag(self, tag):
        self._check_writable()
        self.info.remove_tag(tag)
        self._changed = True

    def remove_bag_info_tag_index(self, tag, index):
        self._check_writable()
        self.info.remove_tag_index(tag, index)
        self._changed = True

    def remove_bag_info_tag_value(self, tag, value, case_sensitive=True):
        self._check_writable()
        self.info.remove_tag_value(tag, value, case_sensitive)
        self._changed = True

    ## algorithms

    @staticmethod
    def get_hash_name(algorithm):
        """
        normalize an algorithm name (e.g. "SHA-256" to "sha256"); an empty
        string is returned if the algorithm is not supported.
        """
        return get_hash_name(algorithm)

    def algorithm_is_supported(self, algorithm):
        """
        return True if the (not necessarily normalized) algorithm name is one
        that can be used with this bag
        """
        return self.hash_is_supported(get_hash_name(algorithm))

    def hash_is_supported(self, name):
        """
        return True if the normalized algorithm name is supported
        """
        return bool(name) and get_hash_name(name) == name

    def has_algorithm(self, algorithm):
        """
        return True if the algorithm is currently in use by this bag
        """
        return get_hash_name(algorithm) in self.payload_manifests

    def _internal_name(self, algorithm):
        name = get_hash_name(algorithm)
        if not name:
            raise BagError("Algorithm {0} is not supported.".format(algorithm))
        return name

    def add_algorithm(self, algorithm):
        """
        start using an additional hash algorithm.  The manifests are written
        on update().

        :raises BagError:  if the algorithm is not supported
        """
        self._check_writable()
        name = self._internal_name(algorithm)
        if name not in self.payload_manifests:
            manifest = PayloadManifest(self, name)
            for path in self.payload_files():
                manifest.add_file(path)
            self.payload_manifests[name] = manifest
        if self._extended and name not in self.tag_manifests:
            self.tag_manifests[name] = TagManifest(self, name)
        self._changed = True
        log.info("%s: added algorithm %s", self.root, name)

    def remove_algorithm(self, algorithm):
        """
        stop using a hash algorithm.

        :raises BagError:  if the algorithm is not supported or is the only
                           one in use
        """
        self._check_writable()
        name = self._internal_name(algorithm)
        if name in self.payload_manifests:
            if len(self.payload_manifests) == 1:
                raise BagError("Cannot remove last payload algorithm, add one "
                               "before removing this one")
            del self.payload_manifests[name]
        self.tag_manifests.pop(name, None)
        self._changed = True
        log.info("%s: removed algorithm %s", self.root, name)

    def set_algorithm(self, algorithm):
        """
        use the given algorithm in place of all others
        """
        self.set_algorithms([algorithm])

    def set_algorithms(self, algorithms):
        """
        use the given algorithms in place of the current ones.

        :raises BagError:  if any of the algorithms is not supported or the
                           list is empty; in this case, no change is made.
        """
        self._check_writable()
        names = [get_hash_name(a) for a in algorithms]
        if not names or not all(names):
            raise BagError("One or more of the algorithms provided are NOT "
                           "supported.")
        for name in list(self.payload_manifests.keys()):
            if name not in names:
                del self.payload_manifests[name]
        for name in list(self.tag_manifests.keys()):
            if name not in names:
                del self.tag_manifests[name]
        for name in names:
            self.add_algorithm(name)

    ## encoding and version

    def set_file_encoding(self, encoding):
        """
        set the character encoding used for tag files

        :raises BagError:  if the encoding is not recognized
        """
        self._check_writable()
        try:
            newcodec = codecs.lookup(encoding.strip())
        except LookupError:
            raise BagError("Character set {0} is not supported.".format(encoding))
        if newcodec.name != codecs.lookup(self.encoding).name:
            self.encoding = encoding.strip()
            self._changed = True

    def get_file_encoding(self):
        return self.encoding

    def get_version_string(self):
        return str(self.version)

    def upgrade(self):
        """
        upgrade a valid, loaded bag to the current BagIt version.  If the bag
        only uses md5, it is switched to the default algorithm.

        :raises BagError:  if the bag is new, is already current, or is invalid
        """
        self._check_writable()
        if not self._loaded:
            raise BagError("You can only upgrade loaded bags.")
        if self.version == DEFAULT_BAGIT_VERSION:
            raise BagError("Bag is already at version {0}".format(self.version))
        if not self.is_valid():
            raise BagError("This bag is not valid, we cannot automatically "
                           "upgrade it.")
        if self.algorithms == ["md5"]:
            self.set_algorithm(DEFAULT_HASH_ALGORITHM)
        self.version = Version(DEFAULT_BAGIT_VERSION)
        self.update()

    ## fetch

    def add_fetch_file(self, url, destination, size=None):
        """
        add a file to be fetched into the bag's payload

        :raises BagError:  if the URL or destination is illegal or already
                           in use
        """
        self._check_writable()
        dest = base_in_data(destination)
        if self.fs.exists(dest):
            raise BagError("File already exists at the destination path "
                           "{0}".format(dest))
        self.fetch.add_file(url, dest, size)
        self._changed = True

    def list_fetch_files(self):
        """
        return the list of FetchEntry tuples for the files to be fetched
        """
        return list(self.fetch.files)

    def remove_fetch_file(self, url):
        self._check_writable()
        self.fetch.remove_file(url)
        self._changed = True

    def clear_fetch(self):
        self._check_writable()
        self.fetch.clear()
        self._changed = True

    def has_fetch_file(self):
        """
        return True if this bag lists files to be fetched
        """
        return len(self.fetch) > 0

    ## paths

    def make_absolute(self, path):
        """
        return the system path for a path relative to the bag's root
        """
        path = normalize_path(path)
        try:
            return self.fs.getsyspath(path)
        except fs.errors.NoSysPath:
            return "/".join([str(self.root).rstrip("/"), path])

    def make_relative(self, path):
        """
        return the path relative to the bag's root for an absolute system
        path, or an empty string if the path is not inside the bag
        """
        root = os.path.abspath(str(self.root))
        path = os.path.abspath(path)
        if path == root or not path.startswith(root + os.sep):
            return ""
        return path[len(root)+1:].replace(os.sep, "/")

    def path_in_bag_data(self, path):
        """
        return True if the path, relative to the bag's root, resolves to a
        location inside the data directory
        """
        try:
            return is_in_data(normalize_path(path))
        except PathOutOfBoundsError:
            return False

    ## profiles

    @property
    def profiles(self):
        """
        the attached BagIt profiles, keyed by their identifiers
        """
        return OrderedDict(self._profiles)

    def add_profile(self, profile):
        """
        attach a BagIt profile that this bag will be validated against.
        Nothing is done if a profile with the same identifier is already
        attached.
        """
        if profile.identifier not in self._profiles:
            self._profiles[profile.identifier] = profile
            log.info("%s: attached profile %s", self.root, profile.identifier)

    def add_profile_by_json(self, text):
        """
        parse a BagIt profile from its JSON serialization and attach it

        :raises ProfileError:  if the profile document is invalid
        """
        profile = BagItProfile.from_json(text)
        self.add_profile(profile)
        return profile

    def remove_profile(self, identifier):
        self._profiles.pop(identifier, None)

    def clear_profiles(self):
        self._profiles = OrderedDict()

    ## validation

    def validate(self):
        """
        check the bag for compliance with the BagIt specification and any
        attached profiles.  If this bag is new or has unsaved changes,
        update() is called first; the bag is then reloaded from disk and
        checked.

        :return:  the problems found; these are also available via the
                  errors and warnings properties.
        :rtype: ValidationResults
        """
        if not self._readonly and (not self._loaded or self._changed):
            self.update()
        self._load()

        results = ValidationResults(self.root, ERROR)
        results.merge(self._load_issues)
        if not self.fs.isdir(PAYLOAD_DIR):
            results.add_error(PAYLOAD_DIR, "Expected data directory does not "
                              "exist")
        manifests = list(self.payload_manifests.values()) + \
                    list(self.tag_manifests.values())
        for manifest in manifests:
            results.merge(manifest.load_issues)
        results.merge(self.info.load_issues)
        results.merge(self.fetch.load_issues)

        for manifest in manifests:
            results.merge(manifest.validate())

        if self.payload_manifests:
            listed = set()
            for manifest in self.payload_manifests.values():
                listed.update([normalize_unicode(p) for p in manifest.hashes])
            for path in self.payload_files():
                if normalize_unicode(path) not in listed:
                    results.add_error(path, "{0} is not listed in any payload "
                                      "manifest.".format(path))

        self._validate_oxum(results)

        if self.version >= "1.0":
            for manifest in manifests:
                if manifest.algorithm in DEPRECATED_ALGORITHMS:
                    results.add_warning(manifest.filename, "This manifest uses "
                                        "the {0} algorithm which SHOULD NOT "
                                        "be used.".format(manifest.algorithm))

        for identifier, profile in self._profiles.items():
            for message in profile.warnings:
                results.add_warning(None, message, identifier)
        if results.ok():
            for identifier, profile in self._profiles.items():
                try:
                    profile.validate_bag(self)
                except ProfileValidationError as ex:
                    for message in ex.errors:
                        results.add_error(None, message, identifier)

        self._results = results
        return results

    def _validate_oxum(self, results):
        oxums = self.info.get_tag("Payload-Oxum")
        if not oxums:
            return
        m = re.match(r'^(\d+)\.(\d+)$', oxums[0].strip())
        if not m:
            results.add_error(BAGINFO_FILE, "Malformed Payload-Oxum value: "
                              "{0}".format(oxums[0]))
            return
        found = calc_oxum(self.fs)
        if (int(m.group(1)), int(m.group(2))) != found:
            results.add_error(BAGINFO_FILE, "Payload-Oxum validation failed. "
                              "Expected {0} files and {1} bytes but found {2} "
                              "files and {3} bytes".format(m.group(2), m.group(1),
                                                           found[1], found[0]))

    def is_valid(self):
        """
        return True if validate() finds no errors
        """
        return self.validate().ok()

    def ensure_valid(self):
        """
        validate the bag, raising an exception if it is not valid

        :raises BagValidationError:  if any errors are found
        """
        results = self.validate()
        if not results.ok():
            raise BagValidationError(results)

def create_bag(path, algorithms=None, version=None, encoding=None):
    """
    create a new bag at the given path, which must not already exist.  The
    new bag's files are written to disk before it is returned.

    :param str path:         the path to the new bag's root directory
    :param list algorithms:  the hash algorithms to use (default: sha512)
    :param str version:      the BagIt version to declare (default: 1.0)
    :param str encoding:     the tag file encoding (default: UTF-8)
    """
    bag = Bag.create(path)
    if version:
        if str(Version(version)) not in SUPPORTED_BAGIT_VERSIONS:
            raise BagError("Unsupported BagIt version: {0}".format(version))
        bag.version = Version(version)
    if encoding:
        bag.set_file_encoding(encoding)
    if algorithms:
        bag.set_algorithms(algorithms)
    bag.update()
    return bag

_ext_fs_lookup = {
    ".zip":      fs.zipfs.ZipFS,
    ".tar":      fs.tarfs.TarFS,
    ".tar.gz":   fs.tarfs.TarFS,
    ".tar.bz2":  fs.tarfs.TarFS,
    ".tgz":      fs.tarfs.TarFS
}

def open_bag(location, serialization=None):
    """
    A factory function for opening a bag; it returns a Bag instance opened
    for a given bag location.  The location is examined to determine the
    form of the bag:  a directory is loaded as a modifiable bag; a zip or
    tar file is opened read-only, without extracting it.

    :param str location:       the path to the bag directory or serialized bag
    :param str serialization:  for a directory, the MIME type of the archive
                               it was extracted from, if any
    """
    if not location:
        raise ValueError("open_bag: empty location string")

    if os.path.isdir(location):
        return Bag.load(location, serialization)

    if not os.path.exists(location):
        raise BagError("Path {0} does not exist, could not load "
                       "Bag.".format(location))

    for ext in sorted(_ext_fs_lookup.keys(), key=len, reverse=True):
        if location.lower().endswith(ext):
            archive = _ext_fs_lookup[ext](location)
            name = None
            if archive.isfile(BAGIT_FILE):
                name = "/"
            else:
                for d in archive.walk.dirs():
                    if archive.isfile("/".join([d, BAGIT_FILE])):
                        name = d
                        break
            if not name:
                archive.close()
                raise BagError("File does not appear to contain a serialized "
                               "Bag: " + location)
            bagfs = archive
            if name != "/":
                bagfs = archive.opendir(name)
            bag = Bag(location, filesys=bagfs, readonly=True,
                      serialization=serialization_mimetype(location))
            bag._archive = archive
            return bag

    raise BagError("Bag serialization not recognized for " + location)
