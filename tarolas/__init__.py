# SPDX-FileCopyrightText: 2025 - Canonical Ltd
# SPDX-License-Identifier: Apache-2.0
"""Tarolas, a lightweight file server scoped to a single root directory."""

__version__ = "0.1.0"
