"""Engine - loads, caches and renders a directory of templates.

Usage:
    engine = Engine("./views", ".html").layout("layouts/main").reload(True)
    engine.add_func("isAdmin", lambda user: user == "admin")
    engine.load()
    engine.render(sys.stdout, "index", {"Title": "Hello, World!"})

Configuration setters return the engine for chaining. They are meant to be
called during setup, before the engine is shared between threads. Setters
that affect compilation mark the engine stale: the current templates stay
in place until the next load replaces them.
"""

from __future__ import annotations

import io
import logging
import os
import warnings
from types import MappingProxyType
from typing import IO, Any, Callable, Iterator, Mapping

from viewengine import names
from viewengine.compiler import CompiledTemplate, Compiler
from viewengine.config import EngineConfig
from viewengine.exceptions import (
    DiscoveryError,
    LayoutOverrideError,
    TemplateNotFoundError,
)
from viewengine.fs import FileSystem, OSFileSystem
from viewengine.lock import RWLock

log = logging.getLogger(__name__)


class TemplateStore(Mapping[str, CompiledTemplate]):
    """Read-only mapping of template name -> compiled template.

    Built once per load and replaced wholesale by the next one.
    """

    def __init__(self, templates: Mapping[str, CompiledTemplate] | None = None):
        self._templates = dict(templates or {})

    def __getitem__(self, name: str) -> CompiledTemplate:
        return self._templates[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._templates)

    def __len__(self) -> int:
        return len(self._templates)

    def lookup(self, name: str) -> CompiledTemplate:
        """Get a template or raise TemplateNotFoundError."""
        try:
            return self._templates[name]
        except KeyError:
            raise TemplateNotFoundError(name) from None


class Engine:
    """HTML template engine backed by Jinja2.

    Args:
        directory: Root of the template tree.
        extension: Template file suffix, including the leading dot.
        filesystem: Backend to read from. Defaults to the real filesystem.
    """

    def __init__(
        self,
        directory: str | os.PathLike[str],
        extension: str,
        filesystem: FileSystem | None = None,
    ):
        self._config = EngineConfig(directory=os.fspath(directory), extension=extension)
        self._fs = filesystem if filesystem is not None else OSFileSystem()
        self._funcs: dict[str, Callable[..., Any]] = {}
        self._store = TemplateStore()
        self._loaded = False
        self._lock = RWLock()

    @classmethod
    def from_filesystem(cls, filesystem: FileSystem, extension: str) -> "Engine":
        """Create an engine over a virtual tree, rooted at ``"."``."""
        return cls(".", extension, filesystem=filesystem)

    @classmethod
    def from_config(
        cls, config: EngineConfig, filesystem: FileSystem | None = None
    ) -> "Engine":
        """Create an engine from an EngineConfig."""
        engine = cls(config.directory, config.extension, filesystem=filesystem)
        engine._config = config.model_copy()
        return engine

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    @property
    def config(self) -> EngineConfig:
        """A copy of the current configuration."""
        return self._config.model_copy()

    @property
    def filesystem(self) -> FileSystem:
        return self._fs

    def delims(self, left: str, right: str) -> "Engine":
        """Set the expression delimiters. An empty string keeps the default."""
        with self._lock.write():
            self._config.left_delim = left
            self._config.right_delim = right
            self._loaded = False
        return self

    def layout(self, key: str) -> "Engine":
        """Wrap every template in the layout ``key``. Empty disables layouts."""
        with self._lock.write():
            self._config.layout = key
            self._loaded = False
        return self

    def add_func(self, name: str, fn: Callable[..., Any]) -> "Engine":
        """Add a function to the template function map.

        Overwriting an existing entry, including a Jinja2 built-in, is legal.
        Templates compiled before the call keep the map they were built with.
        """
        with self._lock.write():
            self._funcs[name] = fn
            self._loaded = False
        return self

    def reload(self, enabled: bool = True) -> "Engine":
        """Recompile all templates before every render.

        Use it in development so template edits show up without a restart.
        Renders are serialized while reload is on.
        """
        self._config.reload = enabled
        return self

    def debug(self, enabled: bool = True) -> "Engine":
        """Log every template parsed by a load."""
        self._config.debug = enabled
        return self

    def autoescape(self, enabled: bool = True) -> "Engine":
        """Toggle HTML escaping of rendered values."""
        with self._lock.write():
            self._config.autoescape = enabled
            self._loaded = False
        return self

    def strict(self, enabled: bool = True) -> "Engine":
        """Make undefined variables an error instead of an empty string."""
        with self._lock.write():
            self._config.strict = enabled
            self._loaded = False
        return self

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def loaded(self) -> bool:
        return self._loaded

    @property
    def templates(self) -> Mapping[str, CompiledTemplate]:
        """The current template store (the last successful load)."""
        with self._lock.read():
            return MappingProxyType(dict(self._store))

    def names(self) -> list[str]:
        """Sorted names of the loaded templates."""
        with self._lock.read():
            return sorted(self._store)

    # ------------------------------------------------------------------
    # Load / Render
    # ------------------------------------------------------------------

    def parse(self) -> None:
        """Deprecated alias of load()."""
        warnings.warn(
            "parse() is deprecated, please use load() instead",
            DeprecationWarning,
            stacklevel=2,
        )
        self.load()

    def load(self, force: bool = False) -> None:
        """Discover and compile every template.

        A no-op once loaded, unless ``force`` is set. The new store is only
        published when every file was read and compiled; on failure the
        previous store stays in place and the engine remains unloaded.

        Raises:
            DiscoveryError: The tree could not be walked or a file read.
            CompileError: A template or the layout failed to parse.
        """
        if self._loaded and not force:
            return

        with self._lock.write():
            # Another thread may have loaded while we waited
            if self._loaded and not force:
                return
            self._load_locked()

    def render(
        self,
        out: IO[Any],
        name: str,
        binding: Any = None,
        layout: str | None = None,
    ) -> None:
        """Execute template ``name`` with ``binding`` and write it to ``out``.

        Loads first when the engine is not loaded yet or reload is enabled.

        Args:
            out: Text writer, or a binary stream (receives UTF-8).
            name: Template name, e.g. ``"partials/footer"``.
            binding: Mapping, pydantic model or object with the template data.
            layout: Unsupported; the layout is set per engine with layout().

        Raises:
            LayoutOverrideError: ``layout`` was given.
            TemplateNotFoundError: No template with that name.
        """
        if layout:
            raise LayoutOverrideError(layout)

        if self._config.reload:
            with self._lock.write():
                self._load_locked()
                tmpl = self._store.lookup(name)
        else:
            if not self._loaded:
                self.load()
            with self._lock.read():
                tmpl = self._store.lookup(name)

        tmpl.execute(out, binding)

    def render_string(self, name: str, binding: Any = None) -> str:
        """Render template ``name`` and return the output."""
        buf = io.StringIO()
        self.render(buf, name, binding)
        return buf.getvalue()

    def _load_locked(self) -> None:
        """Build a new store aside and publish it. Caller holds the write lock."""
        self._loaded = False
        config = self._config.model_copy()
        funcs = dict(self._funcs)

        sources, pages = self._discover(config)
        compiler = Compiler(config, funcs, sources)

        if config.layout:
            layout_path = self._fs.join(
                config.directory, config.layout + config.extension
            )
            compiler.compile_layout(layout_path)

        templates: dict[str, CompiledTemplate] = {}
        for name, path in pages.items():
            templates[name] = compiler.compile(name, path)
            if config.debug:
                log.info("views: parsed template: %s", name)

        self._store = TemplateStore(templates)
        self._loaded = True
        log.debug("Loaded %d templates from %s", len(templates), config.directory)

    def _discover(
        self, config: EngineConfig
    ) -> tuple[dict[str, str], dict[str, str]]:
        """Walk the tree and read every template.

        Returns:
            (sources, pages): template name -> source text, for every
            template plus the layout under its key; and page name -> path,
            for the templates that go into the store.
        """
        sources: dict[str, str] = {}
        pages: dict[str, str] = {}

        if config.layout:
            layout_path = self._fs.join(
                config.directory, config.layout + config.extension
            )
            sources[config.layout] = self._read(layout_path)

        for entry in self._fs.walk(config.directory):
            if entry.error is not None:
                raise DiscoveryError(entry.path, entry.error) from entry.error

            name = names.resolve(
                self._fs, config.directory, entry, config.extension, config.layout
            )
            if name is None:
                continue

            sources[name] = self._read(entry.path)
            pages[name] = entry.path

        return sources, pages

    def _read(self, path: str) -> str:
        try:
            return self._fs.read(path).decode("utf-8-sig")
        except (OSError, UnicodeDecodeError) as exc:
            raise DiscoveryError(path, exc) from exc
