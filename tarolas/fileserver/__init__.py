# SPDX-FileCopyrightText: 2025 - Canonical Ltd
# SPDX-License-Identifier: Apache-2.0
"""Fileserver package exposing the storage engines over HTTP.

Provides the WSGI application, the threaded WSGI service hosting it and the
``tarolas-server`` entry point.
"""

from .server import application, main

__all__ = [
    "application",
    "main",
]
