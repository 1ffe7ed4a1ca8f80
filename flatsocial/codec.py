"""Record codec for the flat files.

One logical record is one line. Fields are joined with ``,``; literal commas
inside a field are replaced by the sentinel ``¬`` and line breaks by a single
space, so user content can never break a record boundary.

Decoding splits on commas that are not preceded by the sentinel. The sentinel
is never turned back into a comma: a field that contained a comma comes back
with ``¬`` instead, and a field that already ended in ``¬`` absorbs the
separator after it and merges with the next field. ``merges_with_next``
detects such values before they are written; decoded fields containing
``MERGED`` mark a line that has to be skipped.

Example:
    >>> encode(["1", "alice", "pa,ss"])
    '1,alice,pa¬ss'
    >>> decode("1,alice,pa¬ss\\n")
    ['1', 'alice', 'pa¬ss']
"""

import re
from collections.abc import Sequence

SENTINEL = "¬"
SEPARATOR = ","

_LINE_BREAKS = re.compile(r"\r\n|\r|\n")
_SPLIT = re.compile(rf"(?<!{SENTINEL}){SEPARATOR}")

# Left behind in a decoded field when a trailing sentinel swallowed a separator
MERGED = SENTINEL + SEPARATOR


def escape(value: object | None) -> str:
    """Escape a single field value.

    ``None`` becomes an empty string; other values are converted with ``str``.
    """
    if value is None:
        return ""
    text = _LINE_BREAKS.sub(" ", str(value))
    return text.replace(SEPARATOR, SENTINEL)


def encode(fields: Sequence[object | None]) -> str:
    """Encode fields into one line, without the trailing newline."""
    return SEPARATOR.join(escape(field) for field in fields)


def merges_with_next(value: object | None) -> bool:
    """True if ``value`` would swallow the separator written after it.

    That is the case when its escaped form ends in the sentinel, e.g. a
    value ending in a comma.
    """
    return escape(value).endswith(SENTINEL)


def decode(line: str) -> list[str]:
    """Decode one line into its fields.

    A single trailing ``\\n`` (or ``\\r\\n``) is dropped. Trailing empty fields
    are kept.
    """
    line = line.removesuffix("\n").removesuffix("\r")
    return _SPLIT.split(line)


__all__ = ["SENTINEL", "SEPARATOR", "MERGED", "escape", "encode", "decode", "merges_with_next"]
