# SPDX-FileCopyrightText: 2025 - Canonical Ltd
# SPDX-License-Identifier: Apache-2.0
"""Streaming base64 transfer encoding for file bodies."""

import base64
import binascii
from typing import BinaryIO, Iterable, Iterator

# Multiple of 3 so that every encoded chunk but the last is padding free.
CHUNK_READ_SIZE = 3 * 1024 * 1024

_LINE_BREAKS = b"\r\n"


def iter_decoded(stream: BinaryIO, chunk_size: int = CHUNK_READ_SIZE) -> Iterator[bytes]:
    """Decode a base64 encoded stream chunk by chunk.

    Line breaks are ignored anywhere in the input. Any other character
    outside the base64 alphabet, data after padding, or a truncated final
    quantum, raises ``binascii.Error``.
    """
    pending = b""
    padded = False
    for buf in iter(lambda: stream.read(chunk_size), b""):
        pending += buf.translate(None, _LINE_BREAKS)
        if padded and pending:
            raise binascii.Error("excess data after padding")
        usable = len(pending) - len(pending) % 4
        if usable:
            group = pending[:usable]
            yield base64.b64decode(group, validate=True)
            padded = group.endswith(b"=")
            pending = pending[usable:]
    if pending:
        raise binascii.Error("incomplete base64 input")


def iter_encoded(chunks: Iterable[bytes]) -> Iterator[bytes]:
    """Encode a sequence of raw chunks into a single base64 stream."""
    carry = b""
    for chunk in chunks:
        data = carry + chunk
        usable = len(data) - len(data) % 3
        carry = data[usable:]
        if usable:
            yield base64.b64encode(data[:usable])
    if carry:
        yield base64.b64encode(carry)
