"""Template name resolution.

A template's name is its path relative to the views root, with forward
slashes and without the extension:

    ./views/partials/footer.html -> partials/footer
"""

from __future__ import annotations

import os

from viewengine.fs import FileSystem, WalkEntry


def to_slash(path: str, sep: str = os.sep) -> str:
    """Replace ``sep`` with forward slashes."""
    if sep == "/":
        return path
    return path.replace(sep, "/")


def is_template(path: str, extension: str) -> bool:
    """Check whether ``path`` carries the template extension (case-sensitive)."""
    return path.endswith(extension)


def is_layout(name: str, extension: str, layout: str) -> bool:
    """Check whether a slash-separated relative path is the layout file."""
    return bool(layout) and (name + extension).endswith(layout + extension)


def template_name(fs: FileSystem, root: str, path: str, extension: str) -> str:
    """Derive the lookup key for ``path`` discovered under ``root``."""
    rel = to_slash(fs.relpath(path, root), fs.sep)
    return rel.removesuffix(extension)


def resolve(
    fs: FileSystem, root: str, entry: WalkEntry, extension: str, layout: str = ""
) -> str | None:
    """Resolve a walk entry to a template name.

    Returns None for entries that are not templates: directories, files with
    another extension, and the layout file when a layout is configured.
    """
    if entry.is_dir or not is_template(entry.path, extension):
        return None

    name = template_name(fs, root, entry.path, extension)
    if is_layout(name, extension, layout):
        return None
    return name
