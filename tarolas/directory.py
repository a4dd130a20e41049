# SPDX-FileCopyrightText: 2025 - Canonical Ltd
# SPDX-License-Identifier: Apache-2.0
"""Directory operations scoped below the root directory.

Listing, tree walks, creation and deletion of directories. Every function
takes the root directory and a client supplied name, resolves the name with
:func:`tarolas.paths.resolve` and raises :class:`StorageError` on failure.
"""

import logging
import os
import shutil
import stat
from typing import Dict, List

from .errors import CHECK_SERVER_LOG, ErrorKind, StorageError
from .models import ROOT_SYMBOL, Directory, File
from .paths import base_name, relative_name, resolve

LOG = logging.getLogger(__name__)

DIR_MODE = 0o755


class _Node:
    """Mutable directory node used while a walk is in progress."""

    __slots__ = ("name", "directories", "files")

    def __init__(self, name: str):
        self.name = name
        self.directories: List["_Node"] = []
        self.files: List[File] = []

    def freeze(self) -> Directory:
        return Directory(
            name=self.name,
            directories=[child.freeze() for child in self.directories],
            files=self.files,
        )


def _raise_walk_error(exc: OSError) -> None:
    raise exc


def _walk(top: str):
    """Walk top-down with siblings in name order, raising on any error.

    Symbolic links to directories are reported as files and not followed.
    """
    for dirpath, dirnames, filenames in os.walk(top, onerror=_raise_walk_error):
        links = [d for d in dirnames if os.path.islink(os.path.join(dirpath, d))]
        for link in links:
            dirnames.remove(link)
            filenames.append(link)
        dirnames.sort()
        filenames.sort()
        yield dirpath, dirnames, filenames


def content(root: str, name: str) -> Directory:
    """List the immediate children of a directory.

    When name resolves to the root directory itself the result is named
    with the root symbol instead of the root's basename.
    """
    full_name = resolve(root, name)
    dir_name = ROOT_SYMBOL if full_name == resolve(root, ROOT_SYMBOL) else base_name(full_name)
    directories = []
    files = []
    try:
        with os.scandir(full_name) as entries:
            for entry in sorted(entries, key=lambda e: e.name):
                info = entry.stat(follow_symlinks=False)
                if entry.is_dir(follow_symlinks=False):
                    directories.append(Directory(name=entry.name))
                else:
                    files.append(File(name=entry.name, size=info.st_size))
    except (OSError, ValueError) as exc:
        LOG.error("Reading directory %s failed: %s", name, exc)
        raise StorageError(ErrorKind.READ_DIRECTORY_FAILED, name)
    return Directory(name=dir_name, directories=directories, files=files)


def tree(root: str) -> Directory:
    """Return the whole directory tree below root, files included.

    Nodes are kept in an arena keyed by absolute path; the top-down walk
    guarantees a parent node exists before its children are visited.
    Entries whose parent is unknown are skipped.
    """
    top = resolve(root, ROOT_SYMBOL)
    arena: Dict[str, _Node] = {top: _Node(os.path.basename(top))}
    try:
        for dirpath, dirnames, filenames in _walk(top):
            parent = arena.get(dirpath)
            if parent is None:
                continue
            for dirname in dirnames:
                child = _Node(dirname)
                parent.directories.append(child)
                arena[os.path.join(dirpath, dirname)] = child
            for filename in filenames:
                info = os.lstat(os.path.join(dirpath, filename))
                parent.files.append(File(name=filename, size=info.st_size))
    except OSError as exc:
        LOG.error("Walking directory tree %s failed: %s", top, exc)
        raise StorageError(ErrorKind.WALK_FAILED, CHECK_SERVER_LOG)
    return arena[top].freeze()


def list_directories(root: str, name: str) -> List[str]:
    """List all directories below name, relative to name.

    The first element is always ``/`` for the start directory. The rest
    follow the walk order: depth first, parents before children, siblings
    sorted by name.
    """
    full_name = resolve(root, name)
    dir_list = [ROOT_SYMBOL]
    try:
        if not stat.S_ISDIR(os.lstat(full_name).st_mode):
            return dir_list
        for dirpath, _dirnames, _filenames in _walk(full_name):
            if dirpath != full_name:
                dir_list.append(ROOT_SYMBOL + os.path.relpath(dirpath, full_name))
    except (OSError, ValueError) as exc:
        LOG.error("Walking directory tree %s failed: %s", name, exc)
        raise StorageError(ErrorKind.WALK_FAILED, CHECK_SERVER_LOG)
    return dir_list


def create(root: str, name: str, recursive: bool = False) -> Directory:
    """Create a directory.

    Without ``recursive`` exactly one level is created, the parent must
    exist and the result carries the client name unchanged. With
    ``recursive`` all missing ancestors are created, an existing directory
    is not an error and the result carries the basename of the name.
    """
    full_name = resolve(root, name)
    if recursive:
        try:
            os.makedirs(full_name, mode=DIR_MODE, exist_ok=True)
        except (OSError, ValueError) as exc:
            LOG.error("Creating directories %s failed: %s", name, exc)
            raise StorageError(ErrorKind.CREATE_DIRECTORIES_FAILED, name)
        return Directory(name=base_name(name))

    try:
        os.mkdir(full_name, mode=DIR_MODE)
    except FileExistsError:
        raise StorageError(ErrorKind.DIRECTORY_EXISTS, name)
    except (OSError, ValueError) as exc:
        LOG.error("Creating directory %s failed: %s", name, exc)
        raise StorageError(ErrorKind.CREATE_DIRECTORY_FAILED, name)
    return Directory(name=name)


def _purge(full_name: str, name: str) -> None:
    """Remove every child of a directory, leaving the directory itself."""
    try:
        with os.scandir(full_name) as it:
            entries = sorted(it, key=lambda e: e.name)
    except (OSError, ValueError) as exc:
        LOG.error("Reading directory %s failed: %s", name, exc)
        raise StorageError(ErrorKind.READ_DIRECTORY_FAILED, name)
    for entry in entries:
        child_name = relative_name(name, entry.name)
        if entry.is_dir(follow_symlinks=False):
            try:
                shutil.rmtree(entry.path)
            except OSError as exc:
                LOG.error("Deleting directory %s failed: %s", child_name, exc)
                raise StorageError(ErrorKind.DELETE_DIRECTORY_FAILED, child_name)
        else:
            try:
                os.remove(entry.path)
            except OSError as exc:
                LOG.error("Deleting file %s failed: %s", child_name, exc)
                raise StorageError(ErrorKind.DELETE_FILE_FAILED, child_name)


def delete(root: str, name: str, recursive: bool = False) -> Directory:
    """Delete a directory.

    Without ``recursive`` the directory must be empty. With ``recursive``
    its children are removed one by one first and the first failing child
    aborts the operation. The root directory itself is never removed:
    deleting it only purges its content (when recursive) and returns a
    directory named with the root symbol.
    """
    full_name = resolve(root, name)
    if recursive:
        _purge(full_name, name)
    if full_name == resolve(root, ROOT_SYMBOL):
        return Directory(name=ROOT_SYMBOL)
    try:
        os.rmdir(full_name)
    except (OSError, ValueError) as exc:
        LOG.error("Deleting directory %s failed: %s", name, exc)
        raise StorageError(ErrorKind.DELETE_DIRECTORY_FAILED, name)
    return Directory(name=base_name(full_name))
