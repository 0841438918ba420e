"""
Sanitizer - reduce untrusted text to a bounded, printable string.

Steps, in order:
    1. Every whitespace run becomes one space. Tab, LF and CR count as
       whitespace; the other C0 controls (VT, FF, the \\x1c-\\x1f
       separators) do not, even though str.isspace() says they do
    2. C0 control characters and DEL are removed
    3. Runs left behind by removed characters are collapsed again
    4. Leading/trailing whitespace is trimmed
    5. The result is truncated to max_length, then right-trimmed so the
       output is a fixed point of sanitize()
"""

import re

_WHITESPACE_RUN = re.compile(r"[^\S\x0b\x0c\x1c-\x1f]+")
_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")


def sanitize(raw: str, max_length: int) -> str:
    """Return raw normalized and truncated. Total over any input string."""
    text = _WHITESPACE_RUN.sub(" ", raw)
    text = _CONTROL_CHARS.sub("", text)
    text = _WHITESPACE_RUN.sub(" ", text).strip()
    return text[:max_length].rstrip()
