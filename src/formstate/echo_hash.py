"""
Hashed-echo guard.

Every editable control renders a hidden sibling ``{clientFieldId}::`` holding
the hash of the value it was rendered from. On postback a submitted value that
differs from the live value, but hashes to the submitted hash, is an echo of
what the server rendered: the user did not touch it, so the live value wins.
This keeps browser re-serialisation (and values changed underneath the form
since it was rendered) from being written back as edits.

The digest is CRC-32, not a cryptographic hash. A collision classifies a real
edit as an echo; that risk is accepted.
"""

import zlib
from typing import Iterable, Optional


def hash_of(value: Optional[str]) -> Optional[str]:
    """Return the echo hash of a string value, or None for None."""
    if value is None:
        return None
    return str(zlib.crc32(value.encode('utf-8')))


def hash_of_values(values: Iterable[str]) -> str:
    """Echo hash of a multi-value field: its values concatenated without separator."""
    return hash_of(''.join(values))


def is_unedited_echo(submitted_value: Optional[str], submitted_hash: Optional[str]) -> bool:
    """Check whether a submitted value is an unedited echo of the rendered value.

    A missing hash is no claim at all, so the value is treated as an edit.
    """
    if submitted_hash is None or submitted_value is None:
        return False
    return hash_of(submitted_value) == submitted_hash
