"""Documentation-tag extraction for operation sources.

An operation declares its contract in the first documentation block of its
source file, normally the module docstring::

    Say hello to someone.

    @op v1:greeting.hello
    @execution sync
    @timeout 3000
    @security greet:read
    @security greet:write

:func:`parse_doc_tags` turns that block into a flat mapping::

    {"op": "v1:greeting.hello", "execution": "sync", "timeout": "3000",
     "security": "greet:read greet:write"}

Repeated tags are joined with a single space so multi-valued tags
(``@security``, ``@flags``) can be split later.  No tag semantics are checked
here.
"""

from __future__ import annotations

import re

# Python docstrings, or a C-style ``/** ... */`` block for sources written for
# other hosts.  Whichever starts first is the leading block.
_BLOCK_RE = re.compile(r'"""(.*?)"""|\'\'\'(.*?)\'\'\'|/\*\*(.*?)\*/', re.DOTALL)

# ``@name value`` on one line, optionally behind a ``*`` gutter; LF or CRLF endings.
_TAG_RE = re.compile(r"^[ \t]*(?:\*[ \t]*)?@(\w+)[ \t]+(\S.*?)[ \t\r]*$", re.MULTILINE)


def first_doc_block(source_text: str) -> str | None:
    """Return the body of the first documentation block, or ``None``."""
    match = _BLOCK_RE.search(source_text)
    if match is None:
        return None
    return next(group for group in match.groups() if group is not None)


def parse_doc_tags(source_text: str) -> dict[str, str]:
    """Extract ``@tag value`` pairs from the first documentation block."""
    block = first_doc_block(source_text)
    if not block:
        return {}

    tags: dict[str, str] = {}
    for name, value in _TAG_RE.findall(block):
        if name in tags:
            tags[name] = f"{tags[name]} {value}"
        else:
            tags[name] = value
    return tags
