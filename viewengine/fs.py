"""Filesystem backends for template discovery.

The engine only talks to the ``FileSystem`` interface:

    read(path)  -> bytes
    walk(root)  -> iterator of WalkEntry (path, is_dir, error)

Backends:
    OSFileSystem       - a real directory tree
    MemoryFileSystem   - an in-memory manifest of path -> bytes
    PackageFileSystem  - templates shipped inside a Python package
"""

from __future__ import annotations

import errno
import os
import posixpath
import stat
from abc import ABC, abstractmethod
from dataclasses import dataclass
from importlib import resources
from typing import Iterator, Mapping


@dataclass(frozen=True)
class WalkEntry:
    """One entry produced by a traversal.

    ``error`` is set when the entry could not be inspected; the consumer
    decides whether that aborts the walk.
    """

    path: str
    is_dir: bool
    error: OSError | None = None


def _not_found(path: str) -> FileNotFoundError:
    return FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), path)


def _not_a_directory(path: str) -> NotADirectoryError:
    return NotADirectoryError(errno.ENOTDIR, os.strerror(errno.ENOTDIR), path)


class FileSystem(ABC):
    """Base class for template filesystems"""

    sep: str = "/"

    @abstractmethod
    def read(self, path: str) -> bytes:
        pass

    @abstractmethod
    def walk(self, root: str) -> Iterator[WalkEntry]:
        """Depth-first traversal of ``root``, the root itself included.

        Siblings are visited in lexical order. A root that is not a directory
        is reported as a single error entry.
        """
        pass

    @abstractmethod
    def join(self, *parts: str) -> str:
        pass

    @abstractmethod
    def relpath(self, path: str, root: str) -> str:
        pass


class OSFileSystem(FileSystem):
    """Real on-disk templates.

    Without ``base`` paths are used as given (relative to the process cwd).
    With ``base`` every path is resolved under that directory, so the tree
    behaves like a mounted virtual tree rooted at ``"."``.
    """

    sep = os.sep

    def __init__(self, base: str | os.PathLike[str] | None = None):
        self.base = os.fspath(base) if base is not None else None

    def _full(self, path: str) -> str:
        if self.base is None:
            return path
        return os.path.join(self.base, path)

    def read(self, path: str) -> bytes:
        with open(self._full(path), "rb") as f:
            return f.read()

    def walk(self, root: str) -> Iterator[WalkEntry]:
        try:
            # the root itself may be a symlink to the views directory
            st = os.stat(self._full(root))
        except OSError as exc:
            yield WalkEntry(root, False, exc)
            return

        if not stat.S_ISDIR(st.st_mode):
            yield WalkEntry(root, False, _not_a_directory(root))
            return

        yield from self._walk_dir(root)

    def _walk_dir(self, path: str) -> Iterator[WalkEntry]:
        yield WalkEntry(path, True)

        try:
            with os.scandir(self._full(path)) as it:
                children = sorted(it, key=lambda e: e.name)
        except OSError as exc:
            yield WalkEntry(path, True, exc)
            return

        for child in children:
            child_path = os.path.join(path, child.name)
            try:
                # symlinked directories are reported as files, never followed
                is_dir = child.is_dir(follow_symlinks=False)
            except OSError as exc:
                yield WalkEntry(child_path, False, exc)
                continue

            if is_dir:
                yield from self._walk_dir(child_path)
            else:
                yield WalkEntry(child_path, False)

    def join(self, *parts: str) -> str:
        return os.path.join(*parts)

    def relpath(self, path: str, root: str) -> str:
        return os.path.relpath(path, root)


def clean_path(path: str) -> str:
    """Normalize a virtual path: forward slashes, no leading slash, root is "."."""
    cleaned = posixpath.normpath(path.replace("\\", "/")).lstrip("/")
    return cleaned or "."


def _child_path(parent: str, name: str) -> str:
    return name if parent == "." else f"{parent}/{name}"


class VirtualFileSystem(FileSystem):
    """Shared path handling for trees that are not addressed by OS paths.

    Paths are slash-separated and relative to the tree root ``"."``.
    """

    sep = "/"

    def join(self, *parts: str) -> str:
        return clean_path(posixpath.join(*parts))

    def relpath(self, path: str, root: str) -> str:
        path, root = clean_path(path), clean_path(root)
        if root == ".":
            return path
        return posixpath.relpath(path, root)


class MemoryFileSystem(VirtualFileSystem):
    """A virtual tree backed by a ``path -> content`` mapping.

    Directories are implied by the file paths. The tree can be modified at
    runtime with ``write`` and ``remove``.

    Example:
        fs = MemoryFileSystem({
            "index.html": "<h1>{{ Title }}</h1>",
            "layouts/main.html": "<body>{% block content %}{% endblock %}</body>",
        })
    """

    def __init__(self, files: Mapping[str, bytes | str] | None = None):
        self._files: dict[str, bytes] = {}
        for path, content in (files or {}).items():
            self._files[self._file_key(path)] = self._encode(content)
        self._reindex()

    @staticmethod
    def _file_key(path: str) -> str:
        key = clean_path(path)
        if key == ".":
            raise ValueError(f"Invalid file path: {path!r}")
        return key

    @staticmethod
    def _encode(content: bytes | str) -> bytes:
        if isinstance(content, str):
            return content.encode("utf-8")
        return bytes(content)

    def _reindex(self) -> None:
        """Rebuild the directory index from the file keys."""
        children: dict[str, set[str]] = {".": set()}
        for key in self._files:
            parent = "."
            for part in key.split("/"):
                children.setdefault(parent, set()).add(part)
                parent = _child_path(parent, part)
        # Every key with children is a directory; files have none
        self._children = children

    def write(self, path: str, content: bytes | str) -> None:
        """Add or replace a file."""
        key = self._file_key(path)
        if key in self._children:
            raise IsADirectoryError(errno.EISDIR, os.strerror(errno.EISDIR), path)
        self._files[key] = self._encode(content)
        self._reindex()

    def remove(self, path: str) -> None:
        """Delete a file."""
        key = self._file_key(path)
        if key not in self._files:
            raise _not_found(path)
        del self._files[key]
        self._reindex()

    def read(self, path: str) -> bytes:
        key = clean_path(path)
        if key in self._children:
            raise IsADirectoryError(errno.EISDIR, os.strerror(errno.EISDIR), path)
        try:
            return self._files[key]
        except KeyError:
            raise _not_found(path) from None

    def walk(self, root: str = ".") -> Iterator[WalkEntry]:
        root = clean_path(root)
        if root in self._files:
            yield WalkEntry(root, False, _not_a_directory(root))
        elif root in self._children:
            yield from self._walk_dir(root)
        else:
            yield WalkEntry(root, False, _not_found(root))

    def _walk_dir(self, path: str) -> Iterator[WalkEntry]:
        yield WalkEntry(path, True)
        for name in sorted(self._children[path]):
            child = _child_path(path, name)
            if child in self._children:
                yield from self._walk_dir(child)
            else:
                yield WalkEntry(child, False)


class PackageFileSystem(VirtualFileSystem):
    """Templates bundled as package data, read through ``importlib.resources``.

    Works for source checkouts and installed wheels alike.

    Args:
        package: Importable package name, e.g. ``"myapp"``.
        subdir: Directory inside the package holding the templates.
    """

    def __init__(self, package: str, subdir: str = ""):
        self.package = package
        self.subdir = subdir
        self._base = resources.files(package)
        for part in clean_path(subdir).split("/"):
            if part != ".":
                self._base = self._base.joinpath(part)

    def _node(self, path: str):
        node = self._base
        for part in clean_path(path).split("/"):
            if part != ".":
                node = node.joinpath(part)
        return node

    def read(self, path: str) -> bytes:
        node = self._node(path)
        if not node.is_file():
            raise _not_found(path)
        return node.read_bytes()

    def walk(self, root: str = ".") -> Iterator[WalkEntry]:
        root = clean_path(root)
        node = self._node(root)
        if node.is_file():
            yield WalkEntry(root, False, _not_a_directory(root))
        elif node.is_dir():
            yield from self._walk_dir(root, node)
        else:
            yield WalkEntry(root, False, _not_found(root))

    def _walk_dir(self, path: str, node) -> Iterator[WalkEntry]:
        yield WalkEntry(path, True)

        try:
            children = sorted(node.iterdir(), key=lambda c: c.name)
        except OSError as exc:
            yield WalkEntry(path, True, exc)
            return

        for child in children:
            child_path = _child_path(path, child.name)
            if child.is_dir():
                yield from self._walk_dir(child_path, child)
            else:
                yield WalkEntry(child_path, False)
