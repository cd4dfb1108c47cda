"""
Functions for encoding, decoding, and normalizing the file paths that appear 
in a bag's manifests.

A manifest lists one file per line, so a filename that contains a line 
break (or the percent character used to escape one) must be written in an 
encoded form:  CR becomes ``%0D``, LF becomes ``%0A``, and ``%`` becomes 
``%25``.  No other percent sequences are legal.
"""
import re, unicodedata

from ..constants import PAYLOAD_DIR, WINDOWS_RESERVED_NAMES
from .exceptions import PathOutOfBoundsError

_ENCODED_RE = re.compile(r'%(25|0[AaDd])')
_ILLEGAL_PCT_RE = re.compile(r'%(?!25|0[AaDd])')
_DECODINGS = { "25": "%", "0a": "\n", "0d": "\r" }

def encode_filename(path):
    """
    return the encoded form of a filename suitable for writing into a 
    manifest or fetch file.
    """
    return path.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")

def decode_filename(path):
    """
    convert an encoded filename from a manifest or fetch file back into its
    literal form.  Only the three legal sequences are converted; this should 
    be called only on paths that pass has_valid_encoding().
    """
    return _ENCODED_RE.sub(lambda m: _DECODINGS[m.group(1).lower()], path)

def has_valid_encoding(path):
    """
    return True if every percent character in the given (encoded) path begins
    one of the legal sequences, %25, %0A, or %0D.
    """
    return not _ILLEGAL_PCT_RE.search(path)

def normalize_path(path):
    """
    resolve the "." and ".." segments of a relative path lexically, returning
    a normalized path using forward slashes.  

    :raises PathOutOfBoundsError:  if the path is absolute or if resolving it 
                  would climb above its starting directory.
    """
    path = path.replace("\\", "/")
    if path.startswith("/") or re.match(r'^[A-Za-z]:/', path):
        raise PathOutOfBoundsError(path, "Absolute paths are not allowed: "+path)

    out = []
    for seg in path.split("/"):
        if seg in ("", "."):
            continue
        if seg == "..":
            if not out:
                raise PathOutOfBoundsError(path)
            out.pop()
        else:
            out.append(seg)
    return "/".join(out)

def is_in_data(path):
    """
    return True if the given normalized path refers to a location below the 
    payload directory.
    """
    return path.startswith(PAYLOAD_DIR+"/")

def base_in_data(path):
    """
    return the normalized, bag-relative form of a payload path, prepending 
    "data/" if the path does not already start with it.

    :raises PathOutOfBoundsError:  if the path resolves outside of data/
    """
    path = path.replace("\\", "/")
    if not path.startswith(PAYLOAD_DIR+"/"):
        path = PAYLOAD_DIR + "/" + path.lstrip("/")
    msg = "{0} resolves to a path outside of the data/ directory.".format(path)
    try:
        norm = normalize_path(path)
    except PathOutOfBoundsError:
        raise PathOutOfBoundsError(path, msg)
    if not is_in_data(norm):
        raise PathOutOfBoundsError(path, msg)
    return norm

def normalize_unicode(path):
    """
    return the NFC-normalized form of the path, used for comparisons that 
    should not depend on how a filesystem composes accented characters
    """
    return unicodedata.normalize("NFC", path)

def is_reserved_filename(path):
    """
    return True if the final component of the path is a name reserved by 
    Windows (e.g. CON, NUL, LPT1), with or without an extension.
    """
    name = path.rstrip("/").split("/")[-1]
    return name.split(".")[0].upper() in WINDOWS_RESERVED_NAMES
