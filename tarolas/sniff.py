# SPDX-FileCopyrightText: 2025 - Canonical Ltd
# SPDX-License-Identifier: Apache-2.0
"""Content type detection from the leading bytes of a file.

Detection is delegated to libmagic through ``python-magic``. Text types are
reported with a UTF-8 charset and an empty file is reported as plain text.
"""

import magic

SNIFF_LENGTH = 512

TEXT_PLAIN = "text/plain; charset=utf-8"
OCTET_STREAM = "application/octet-stream"


def detect_content_type(data: bytes) -> str:
    """Return the content type of data, looking at most at SNIFF_LENGTH bytes."""
    data = data[:SNIFF_LENGTH]
    if not data:
        return TEXT_PLAIN
    mime_type = magic.from_buffer(data, mime=True) or OCTET_STREAM
    if mime_type.startswith("text/"):
        return f"{mime_type}; charset=utf-8"
    return mime_type
