"""
This module will create test bags on disk without the help of the bagittools
classes so that tests can compare the library's results against
independently calculated ones.
"""
import os, hashlib

def fill_bytes(size, seed=0):
    """
    return dummy file contents of the given size
    """
    pattern = bytes(bytearray((seed + i) % 256 for i in range(256)))
    return (pattern * (size // 256 + 1))[:size]

def mkdataset(destdir, files):
    """
    create a collection of files with dummy contents.

    :param str destdir:  the directory to write the files below; it will be
                         created if necessary
    :param dict files:   a map of relative file paths to either the file's
                         contents (as str or bytes) or its size in bytes
    :return: the sorted list of the relative paths created
    """
    for i, (path, content) in enumerate(files.items()):
        if isinstance(content, int):
            content = fill_bytes(content, i)
        elif isinstance(content, str):
            content = content.encode('utf-8')
        fpath = os.path.join(destdir, *path.split('/'))
        if not os.path.isdir(os.path.dirname(fpath)):
            os.makedirs(os.path.dirname(fpath))
        with open(fpath, 'wb') as fd:
            fd.write(content)
    return sorted(files.keys())

def file_digest(path, algorithm):
    """
    return the hex digest of a file's contents
    """
    with open(path, 'rb') as fd:
        return hashlib.new(algorithm, fd.read()).hexdigest()

def write_text(path, text, encoding='utf-8'):
    with open(path, 'wb') as fd:
        fd.write(text.encode(encoding))

def encode(path):
    return path.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")

def write_manifest(bagdir, name, paths, algorithm):
    """
    write a manifest file listing the given paths (relative to the bag's root)
    """
    lines = ["{0}  {1}\n".format(file_digest(os.path.join(bagdir, *p.split('/')),
                                             algorithm), encode(p))
             for p in paths]
    write_text(os.path.join(bagdir, name), "".join(lines))

def mkbag(bagdir, files, algorithms=("sha256",), version="1.0", baginfo=None,
          tagmanifests=False):
    """
    create a complete bag.

    :param str bagdir:       the bag's root directory, which must not exist
    :param dict files:       the payload, as a map of paths (relative to data/)
                             to contents or sizes (see mkdataset())
    :param algorithms:       the algorithms to write manifests for
    :param str version:      the BagIt version to declare
    :param list baginfo:     (tag, value) pairs for bag-info.txt; if not None,
                             a Payload-Oxum tag is appended
    :param bool tagmanifests:  if True, write tag manifests as well
    """
    os.makedirs(os.path.join(bagdir, "data"))
    payload = ["data/" + p for p in mkdataset(os.path.join(bagdir, "data"),
                                              files)]
    write_text(os.path.join(bagdir, "bagit.txt"),
               "BagIt-Version: {0}\nTag-File-Character-Encoding: UTF-8\n"
               .format(version))
    for alg in algorithms:
        write_manifest(bagdir, "manifest-{0}.txt".format(alg), payload, alg)

    if baginfo is not None:
        size = sum(os.path.getsize(os.path.join(bagdir, *p.split('/')))
                   for p in payload)
        lines = ["{0}: {1}\n".format(t, v) for t, v in baginfo]
        lines.append("Payload-Oxum: {0}.{1}\n".format(size, len(payload)))
        write_text(os.path.join(bagdir, "bag-info.txt"), "".join(lines))

    if tagmanifests:
        tagfiles = sorted(f for f in os.listdir(bagdir)
                          if f != "data" and not f.startswith("tagmanifest-"))
        for alg in algorithms:
            write_manifest(bagdir, "tagmanifest-{0}.txt".format(alg), tagfiles,
                           alg)
    return payload
