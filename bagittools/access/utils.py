"""
Utility functions shared by the classes that read and write a bag's files:
digest calculation, payload statistics, and tag file decoding.  Each takes 
an fs filesystem object (rooted at the bag's base directory) to operate on.
"""
import codecs, hashlib, logging

import fs.errors

from ..constants import HASH_ALGORITHMS, HASH_BLOCK_SIZE, PAYLOAD_DIR
from .exceptions import FilesystemError, BagError

log = logging.getLogger(__name__)

def get_hash_name(algorithm):
    """
    normalize a user-provided algorithm name to the form used in manifest 
    file names (e.g. "SHA-256" becomes "sha256").  An empty string is returned 
    if the algorithm is not supported.
    """
    name = "".join(c for c in algorithm.lower() if c.isalnum())
    if name in HASH_ALGORITHMS and HASH_ALGORITHMS[name] in hashlib.algorithms_available:
        return name
    return ""

def new_hasher(algorithm):
    """
    return a new hashlib hash object for the given (normalized) algorithm name
    """
    if algorithm not in HASH_ALGORITHMS:
        raise BagError("Algorithm {0} is not supported.".format(algorithm))
    return hashlib.new(HASH_ALGORITHMS[algorithm])

def digest_length(algorithm):
    """
    return the number of hex characters in a digest from the given algorithm
    """
    return new_hasher(algorithm).digest_size * 2

def calculate_hashes(filesys, path, algorithms):
    """
    return a dictionary of (algorithm, hexdigest) values for the file at the 
    given path.  The file is read once, in blocks, regardless of the number 
    of algorithms requested.

    :param filesys:          the fs filesystem containing the file
    :param str path:         the path to the file within filesys
    :param list algorithms:  the normalized names of the algorithms to apply
    :raises FilesystemError: if the file cannot be read
    """
    hashers = dict((alg, new_hasher(alg)) for alg in algorithms)
    log.debug("Calculating %s for file %s", ", ".join(algorithms), path)

    try:
        with filesys.openbin(path) as f:
            while True:
                block = f.read(HASH_BLOCK_SIZE)
                if not block:
                    break
                for h in hashers.values():
                    h.update(block)
    except (fs.errors.FSError, OSError) as ex:
        raise FilesystemError("Could not read {0}: {1}".format(path, str(ex)), ex)

    return dict((alg, h.hexdigest()) for alg, h in hashers.items())

def calculate_hash(filesys, path, algorithm):
    """
    return the hex digest for the file at the given path
    """
    return calculate_hashes(filesys, path, [algorithm])[algorithm]

def walk_files(filesys, start=None):
    """
    iterate through the paths, relative to the root of filesys and without 
    a leading slash, of all the files found below a given directory.  Paths 
    are returned sorted.
    """
    if start:
        if not filesys.isdir(start):
            return
        paths = filesys.opendir(start).walk.files()
        prefix = start.strip("/") + "/"
    else:
        paths = filesys.walk.files()
        prefix = ""
    for p in sorted(paths):
        yield prefix + p.lstrip("/")

def calc_oxum(filesys):
    """
    calculate and return the Bagit-defined Payload-Oxum as a 2-tuple for 
    the bag in its current state
    :return:  a 2-tuple where the first element is the total number of 
              file bytes and the second element is the total number of 
              files.  
    """
    nf = 0
    sz = 0
    for f in walk_files(filesys, PAYLOAD_DIR):
        nf += 1
        sz += filesys.getsize(f)
    return (sz, nf)

def format_bytes(nbytes):
    """
    format a byte count into a human readable string using binary multiples
    and two decimal places (e.g. "1.53 MB").
    """
    if nbytes <= 0:
        return "0 B"
    units = ["B", "KB", "MB", "GB", "TB", "PB", "EB"]
    ordr = 0
    nbytes = float(nbytes)
    while nbytes >= 1024.0 and ordr < len(units) - 1:
        nbytes /= 1024.0
        ordr += 1
    return "%.2f %s" % (nbytes, units[ordr])

def decode_tag_text(data, encoding, filename, issues):
    """
    decode the raw contents of a tag file into text.  A leading UTF-8 
    byte-order mark is skipped with a warning; content that cannot be decoded 
    with the declared encoding is recorded as an error and decoded with 
    replacement characters so that loading can continue.

    :param bytes data:       the file's contents
    :param str encoding:     the bag's declared tag file encoding
    :param str filename:     the name of the file, used in issue reports
    :param ValidationResults issues:  the container to record problems in
    """
    if data.startswith(codecs.BOM_UTF8):
        data = data[len(codecs.BOM_UTF8):]
        if codecs.lookup(encoding).name == 'utf-8':
            issues.add_warning(filename, "File is encoded using UTF-8 but "
                               "contains an unnecessary byte-order mark")
    try:
        return data.decode(encoding)
    except UnicodeDecodeError as ex:
        issues.add_error(filename, "Unable to decode file using the {0} "
                         "encoding: {1}".format(encoding, str(ex)))
        return data.decode(encoding, errors="replace")

def read_tag_file(filesys, path, encoding, issues):
    """
    read and decode a tag file, returning its contents as text.

    :raises FilesystemError:  if the file cannot be read
    """
    try:
        data = filesys.readbytes(path)
    except fs.errors.FSError as ex:
        raise FilesystemError("Could not read {0}: {1}".format(path, str(ex)), ex)
    return decode_tag_text(data, encoding, path, issues)

def encode_tag_text(text, encoding, path):
    """
    encode the text contents of a tag file with the bag's declared encoding

    :raises BagError:  if the text contains characters the encoding cannot
                       represent
    """
    try:
        return text.encode(encoding)
    except UnicodeEncodeError as ex:
        raise BagError("Unable to write {0} using the {1} encoding: "
                       "{2}".format(path, encoding, str(ex)))

def write_tag_file(filesys, path, text, encoding):
    """
    encode and write the given text to a tag file, replacing any previous 
    version of the file.

    :raises BagError:         if the text cannot be encoded
    :raises FilesystemError:  if the file cannot be written
    """
    data = encode_tag_text(text, encoding, path)
    try:
        filesys.writebytes(path, data)
    except fs.errors.FSError as ex:
        raise FilesystemError("Unable to write {0}: {1}".format(path, str(ex)), ex)
