"""
Common data about the BagIt format as supported by this package.
"""
import re

DEFAULT_BAGIT_VERSION = "1.0"
SUPPORTED_BAGIT_VERSIONS = ["0.97", "1.0"]

DEFAULT_HASH_ALGORITHM = "sha512"
DEFAULT_FILE_ENCODING = "UTF-8"

HASH_BLOCK_SIZE = 512 * 1024

PAYLOAD_DIR = "data"

BAGIT_FILE = "bagit.txt"
BAGINFO_FILE = "bag-info.txt"
FETCH_FILE = "fetch.txt"

# maps the normalized algorithm name to the name hashlib knows it by
HASH_ALGORITHMS = {
    "md5":     "md5",
    "sha1":    "sha1",
    "sha224":  "sha224",
    "sha256":  "sha256",
    "sha384":  "sha384",
    "sha512":  "sha512",
    "sha3224": "sha3_224",
    "sha3256": "sha3_256",
    "sha3384": "sha3_384",
    "sha3512": "sha3_512"
}

# algorithms whose use is discouraged in version 1.0 bags
DEPRECATED_ALGORITHMS = ["md5", "sha1"]

# bag-info tags (lower-cased) with restricted repetition
MUST_NOT_REPEAT = ["payload-oxum"]
SHOULD_NOT_REPEAT = ["bagging-date", "bag-size", "bag-group-identifier",
                     "bag-count"]

# bag-info tags that are computed by update() and cannot be set directly
GENERATED_TAGS = ["Payload-Oxum", "Bag-Size", "Bagging-Date"]

BAGINFO_WRAP_WIDTH = 77
BAGINFO_INDENT = "  "

WINDOWS_RESERVED_NAMES = ["CON", "PRN", "AUX", "NUL"] + \
                         ["COM{0}".format(i) for i in range(1, 10)] + \
                         ["LPT{0}".format(i) for i in range(1, 10)]

SERIALIZATION_MIMETYPES = [
    (".tar.gz", "application/gzip"),
    (".tgz",    "application/gzip"),
    (".gz",     "application/gzip"),
    (".tar",    "application/x-tar"),
    (".zip",    "application/zip"),
    (".bz2",    "application/x-bzip2"),
    (".bz",     "application/x-bzip")
]

MANIFEST_FILE_RE = re.compile(r'^manifest-(\w+)\.txt$')
TAGMANIFEST_FILE_RE = re.compile(r'^tagmanifest-(\w+)\.txt$')

def _2int(sint):
    try:
        return int(sint)
    except ValueError:
        return -1

class Version(object):
    """
    a version class that can facilitate comparisons
    """

    def __init__(self, vers):
        """
        convert a version string to a Version instance
        """
        if isinstance(vers, Version):
            self._vs = str(vers)
            self.fields = list(vers.fields)
        elif isinstance(vers, str):
            self._vs = vers
            self.fields = [_2int(v) for v in self._vs.split('.')]
        elif isinstance(vers, tuple):
            self._vs = ".".join([str(v) for v in vers])
            self.fields = list(vers)
        else:
            raise TypeError("Input version is not str or tuple: " + str(vers))

    @property
    def major(self):
        return self.fields[0]

    @property
    def minor(self):
        return (len(self.fields) > 1 and self.fields[1]) or 0

    def __str__(self):
        return self._vs

    def __repr__(self):
        return "Version('{0}')".format(self._vs)

    def __hash__(self):
        return hash(tuple(self.fields))

    def __eq__(self, other):
        if not isinstance(other, Version):
            other = Version(other)
        return self.fields == other.fields

    def __lt__(self, other):
        if not isinstance(other, Version):
            other = Version(other)
        return self.fields < other.fields

    def __le__(self, other):
        if not isinstance(other, Version):
            other = Version(other)
        return self < other or self == other

    def __ge__(self, other):
        return not (self < other)
    def __gt__(self, other):
        return not self.__le__(other)
    def __ne__(self, other):
        return not (self == other)
