"""
This module provides the BagInfo class, the in-memory model of a bag's 
bag-info.txt file:  an ordered list of tag-value pairs in which a tag may 
appear more than once and tag names are matched without regard to case.
"""
import re, textwrap, logging, datetime

from ..constants import (BAGINFO_FILE, BAGINFO_WRAP_WIDTH, BAGINFO_INDENT,
                         GENERATED_TAGS, MUST_NOT_REPEAT, SHOULD_NOT_REPEAT,
                         DEFAULT_BAGIT_VERSION, DEFAULT_FILE_ENCODING, Version)
from ..validate.base import ValidationResults
from .exceptions import BagError
from .utils import read_tag_file, write_tag_file, format_bytes

log = logging.getLogger(__name__)

_GENERATED = [t.lower() for t in GENERATED_TAGS]
_LINE_SPLIT_RE = re.compile(r'\r\n|\r|\n')
_TAG_LINE_RE = re.compile(r'^([ \t]*)([^:]*?)([ \t]*):[ \t]*(.*)$')
_WHITESPACE_RE = re.compile(r'\s+')

def is_generated_tag(tag):
    """
    return True if the given tag is one that is computed when a bag is 
    updated (Payload-Oxum, Bag-Size, Bagging-Date).  The match ignores case 
    but not punctuation.
    """
    return tag.strip().lower() in _GENERATED

def clean_value(value):
    """
    return a tag value as it is stored and written:  each run of whitespace
    (including tabs and line breaks) becomes a single space, and leading and
    trailing whitespace is removed.  Values cleaned this way read back
    unchanged after being wrapped.
    """
    return _WHITESPACE_RE.sub(" ", str(value)).strip()

def wrap_tag_line(tag, value):
    """
    format a tag-value pair as one or more lines of bag-info.txt text.  The
    value is first passed through clean_value(); long lines are broken at
    spaces and continued on lines indented by two spaces.

    :return: the lines without line terminators
    :rtype: list of str
    """
    line = "{0}: {1}".format(tag, clean_value(value))
    rows = textwrap.wrap(line, BAGINFO_WRAP_WIDTH, break_long_words=False,
                         break_on_hyphens=False, expand_tabs=False)
    if not rows:
        rows = [line.rstrip()]
    return rows[:1] + [BAGINFO_INDENT + r for r in rows[1:]]

class BagInfo(object):
    """
    an ordered, case-insensitive multimap of bag-info tags.  

    Tags are kept in insertion order, along with the capitalization they were 
    given when added.  Lookups ignore case.  The auto-generated tags 
    (Payload-Oxum, Bag-Size, Bagging-Date) cannot be added directly; they are
    set via update_generated().
    """

    def __init__(self, entries=None):
        """
        create the metadata set

        :param list entries:  an initial list of (tag, value) pairs; these are 
                              accepted as is (including generated tags).
        """
        self._entries = []
        self._index = None
        self.load_issues = ValidationResults(BAGINFO_FILE)
        if entries:
            self._entries = [[t, v] for t, v in entries]

    def _get_index(self):
        if self._index is None:
            idx = {}
            for tag, value in self._entries:
                idx.setdefault(tag.strip().lower(), []).append(value)
            self._index = idx
        return self._index

    def _changed(self):
        self._index = None

    @property
    def entries(self):
        """
        the list of (tag, value) pairs in their order of appearance
        """
        return [(t, v) for t, v in self._entries]

    def tags(self):
        """
        return the distinct tag names in order of first appearance, with the 
        capitalization of their first appearance
        """
        out = []
        seen = set()
        for tag, value in self._entries:
            if tag.lower() not in seen:
                seen.add(tag.lower())
                out.append(tag)
        return out

    def __len__(self):
        return len(self._entries)

    def __iter__(self):
        return iter(self.entries)

    def __contains__(self, tag):
        return self.has_tag(tag)

    def has_tag(self, tag):
        """
        return True if the tag has at least one value
        """
        return tag.strip().lower() in self._get_index()

    def get_tag(self, tag):
        """
        return the list of values for the given tag.  An empty list is 
        returned if the tag is not set.
        """
        return list(self._get_index().get(tag.strip().lower(), []))

    def _check_tag(self, tag):
        if is_generated_tag(tag):
            raise BagError("Field {0} is auto-generated and cannot be manually "
                           "set.".format(tag))
        if not tag.strip() or ':' in tag or re.search(r'[\r\n]', tag):
            raise BagError("Invalid tag name: {0!r}".format(tag))

    def add_tag(self, tag, value):
        """
        append a value for a tag.  

        :raises BagError:  if the tag is an auto-generated one or is not a 
                           legal tag name
        """
        self._check_tag(tag)
        self._entries.append([tag.strip(), clean_value(value)])
        self._changed()

    def add_tags(self, tags):
        """
        append values for several tags.  The tags are all checked before any 
        are added.  

        :param tags:  either a dict or a list of (tag, value) pairs; a value
                      may be a list of values to add in order
        :raises BagError:  if any of the tags is auto-generated or illegal
        """
        if hasattr(tags, 'items'):
            tags = tags.items()
        pairs = []
        for tag, value in tags:
            self._check_tag(tag)
            if isinstance(value, (list, tuple)):
                pairs.extend([(tag.strip(), clean_value(v)) for v in value])
            else:
                pairs.append((tag.strip(), clean_value(value)))
        self._entries.extend([[t, v] for t, v in pairs])
        self._changed()

    def remove_tag(self, tag):
        """
        remove all values of the given tag
        """
        tag = tag.strip().lower()
        self._entries = [e for e in self._entries if e[0].strip().lower() != tag]
        self._changed()

    def remove_tag_index(self, tag, index):
        """
        remove the index-th value (counting from zero) of the given tag.  
        Nothing is removed if the index is out of range.
        """
        tag = tag.strip().lower()
        count = 0
        for i, e in enumerate(self._entries):
            if e[0].strip().lower() == tag:
                if count == index:
                    del self._entries[i]
                    self._changed()
                    return
                count += 1

    def remove_tag_value(self, tag, value, case_sensitive=True):
        """
        remove all values of the given tag that match a given value

        :param bool case_sensitive:  if False, the value comparison will 
                                     ignore case
        """
        tag = tag.strip().lower()
        value = clean_value(value)
        if not case_sensitive:
            value = value.lower()
        def matches(e):
            if e[0].strip().lower() != tag:
                return False
            v = e[1]
            if not case_sensitive:
                v = v.lower()
            return v == value
        self._entries = [e for e in self._entries if not matches(e)]
        self._changed()

    def update_generated(self, oxum, refresh_date=False, today=None):
        """
        replace the auto-generated tags with freshly computed values, which are
        appended after all of the other tags.  The Bagging-Date is set to today
        only if it is not already set or if refresh_date is True.

        :param tuple oxum:         the payload's (total bytes, file count)
        :param bool refresh_date:  if True, always reset the Bagging-Date
        :param str today:          the date to use for the Bagging-Date; if 
                                   None, the current date is used.
        """
        dates = self.get_tag("Bagging-Date")
        if refresh_date or not dates:
            date = today or datetime.date.today().isoformat()
        else:
            date = dates[0]
        self._entries = [e for e in self._entries if not is_generated_tag(e[0])]
        self._entries.append(["Payload-Oxum", "{0}.{1}".format(*oxum)])
        self._entries.append(["Bag-Size", format_bytes(oxum[0])])
        self._entries.append(["Bagging-Date", date])
        self._changed()

    def render(self):
        """
        return the text contents of a bag-info.txt file for these tags
        """
        out = []
        for tag, value in self._entries:
            out.extend(wrap_tag_line(tag, value))
        return "".join([line + "\n" for line in out])

    def write(self, filesys, encoding=DEFAULT_FILE_ENCODING):
        """
        write the bag-info.txt file into the given filesystem
        """
        write_tag_file(filesys, BAGINFO_FILE, self.render(), encoding)

    @classmethod
    def parse(cls, text, version=DEFAULT_BAGIT_VERSION, issues=None):
        """
        parse the text contents of a bag-info.txt file.  Problems are recorded 
        in the returned instance's load_issues.

        :param str text:     the text to parse
        :param version:      the bag's BagIt version, which controls how 
                             stray whitespace is treated.
        :param ValidationResults issues:  a container to record problems in;
                             if not provided, a new one is created.
        """
        out = cls()
        if issues is not None:
            out.load_issues = issues
        out._parse(text, Version(version))
        return out

    @classmethod
    def load(cls, filesys, version=DEFAULT_BAGIT_VERSION,
             encoding=DEFAULT_FILE_ENCODING):
        """
        read and parse bag-info.txt from the given filesystem
        """
        issues = ValidationResults(BAGINFO_FILE)
        text = read_tag_file(filesys, BAGINFO_FILE, encoding, issues)
        return cls.parse(text, version, issues)

    def _parse(self, text, version):
        strict = version >= "1.0"
        issues = self.load_issues
        counts = {}
        for lineno, line in enumerate(_LINE_SPLIT_RE.split(text), 1):
            if not line.strip():
                continue

            if line[0] in " \t":
                if self._entries:
                    last = self._entries[-1]
                    last[1] = clean_value(last[1] + " " + line)
                    continue
                if strict or ':' not in line:
                    issues.add_error(BAGINFO_FILE,
                                     "Line {0}: Appears to be continuation but "
                                     "there is no preceding tag.".format(lineno))
                    continue

            m = _TAG_LINE_RE.match(line)
            if not m or not m.group(2):
                issues.add_error(BAGINFO_FILE,
                                 "Line {0}: Invalid tag.".format(lineno))
                continue

            tag = m.group(2)
            key = tag.lower()
            if key in counts:
                if key in MUST_NOT_REPEAT:
                    issues.add_error(BAGINFO_FILE, "Line {0}: Tag {1} MUST not "
                                     "be repeated.".format(lineno, tag))
                elif key in SHOULD_NOT_REPEAT:
                    issues.add_warning(BAGINFO_FILE, "Line {0}: Tag {1} SHOULD "
                                       "NOT be repeated.".format(lineno, tag))
            counts[key] = counts.get(key, 0) + 1

            if strict and (m.group(1) or m.group(3)):
                issues.add_error(BAGINFO_FILE, "Line {0}: Labels cannot begin "
                                 "or end with a whitespace.".format(lineno))

            self._entries.append([tag, clean_value(m.group(4))])

        self._changed()
