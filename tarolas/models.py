# SPDX-FileCopyrightText: 2025 - Canonical Ltd
# SPDX-License-Identifier: Apache-2.0
"""Pydantic models for the values returned by the storage engines."""
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

ROOT_SYMBOL = "/"


class File(BaseModel):
    """Attributes of a single file, re-read from the filesystem per request."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="File name, basename only in directory listings")
    size: Optional[int] = Field(default=None, ge=0, description="File size in bytes")
    checksum: Optional[str] = Field(default=None, description="Lowercase hex SHA-256 digest")
    exists: Optional[bool] = Field(default=None, description="Whether the file exists")

    def to_payload(self) -> Dict[str, Any]:
        """Return the JSON payload, omitting unset attributes."""
        return self.model_dump(mode="json", exclude_defaults=True)


class Directory(BaseModel):
    """A directory snapshot with its child directories and files."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Directory basename, or the root symbol")
    directories: Tuple["Directory", ...] = Field(default=(), description="Child directories")
    files: Tuple[File, ...] = Field(default=(), description="Files in this directory")

    def to_payload(self) -> Dict[str, Any]:
        """Return the JSON payload, omitting empty child sequences."""
        return self.model_dump(mode="json", exclude_defaults=True)


Directory.model_rebuild()
