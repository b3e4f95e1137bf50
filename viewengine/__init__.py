"""viewengine - HTML template engine for directories of Jinja2 templates.

Discovers templates under a root, compiles them once (or on every render in
reload mode), optionally wraps each page in a shared layout, and renders
them by name.
"""

from viewengine._version import __version__
from viewengine.compiler import CompiledTemplate
from viewengine.config import EngineConfig
from viewengine.engine import Engine, TemplateStore
from viewengine.exceptions import (
    CompileError,
    DiscoveryError,
    LayoutOverrideError,
    TemplateNotFoundError,
    ViewError,
)
from viewengine.fs import (
    FileSystem,
    MemoryFileSystem,
    OSFileSystem,
    PackageFileSystem,
    WalkEntry,
)

__all__ = [
    "__version__",
    # Engine
    "Engine",
    "EngineConfig",
    "TemplateStore",
    "CompiledTemplate",
    # Filesystems
    "FileSystem",
    "OSFileSystem",
    "MemoryFileSystem",
    "PackageFileSystem",
    "WalkEntry",
    # Errors
    "ViewError",
    "DiscoveryError",
    "CompileError",
    "TemplateNotFoundError",
    "LayoutOverrideError",
]
