# SPDX-FileCopyrightText: 2025 - Canonical Ltd
# SPDX-License-Identifier: Apache-2.0
"""Mapping of client supplied names onto paths below the root directory."""

import os
import posixpath

from .models import ROOT_SYMBOL


def resolve(root: str, name: str) -> str:
    """Resolve a client supplied name to an absolute path within root.

    The name is cleaned lexically as if it were an absolute path, so ``..``
    segments stop at the virtual ``/`` and can never climb above root. The
    filesystem is not touched; a malformed name simply resolves to a
    contained path that may not exist.
    """
    root = os.path.abspath(root)
    cleaned = posixpath.normpath(ROOT_SYMBOL + name).lstrip(ROOT_SYMBOL)
    if not cleaned:
        return root
    return os.path.join(root, cleaned)


def base_name(name: str) -> str:
    """Return the last element of a slash separated name.

    Trailing slashes are ignored; a name made of slashes only yields the
    root symbol and an empty name yields ``.``.
    """
    if not name:
        return "."
    stripped = name.rstrip(ROOT_SYMBOL)
    if not stripped:
        return ROOT_SYMBOL
    return stripped.rsplit(ROOT_SYMBOL, 1)[-1]


def relative_name(parent: str, child: str) -> str:
    """Join a child entry name onto a client supplied directory name."""
    return parent.rstrip(ROOT_SYMBOL) + ROOT_SYMBOL + child
