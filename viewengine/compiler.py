"""Compiler - turns template sources into executable Jinja2 templates.

One Compiler is created per load. It owns a Jinja2 environment configured
with the engine's delimiters, escaping and function map, and a loader over
the sources read during that load, so ``{% include "partials/header" %}``
resolves by template name against the same snapshot.

Layout mode: the layout is compiled first, then every page is compiled as
a child of it. Page blocks fill the layout's blocks; a block the page does
not define renders the layout's fallback content.
"""

from __future__ import annotations

import io
import numbers
from dataclasses import dataclass
from typing import IO, Any, Callable, Mapping

from jinja2 import (
    DictLoader,
    Environment,
    StrictUndefined,
    Template,
    TemplateSyntaxError,
    Undefined,
)
from pydantic import BaseModel

from viewengine.config import EngineConfig
from viewengine.exceptions import CompileError

_NOT_BINDINGS = (str, bytes, bytearray, numbers.Number, list, tuple, set, frozenset)


def binding_vars(binding: Any) -> dict[str, Any]:
    """Turn a render binding into template variables.

    Accepts None, a mapping, a pydantic model, a named tuple, or any other
    object (dataclasses included), whose public attributes become the
    variables: fields, properties, slots, class attributes and methods.
    Conversion is shallow: nested values stay objects.

    Raises:
        TypeError: The binding is a scalar or a plain sequence.
    """
    if binding is None:
        return {}
    if isinstance(binding, Mapping):
        return dict(binding)
    if isinstance(binding, BaseModel):
        return dict(binding)
    if isinstance(binding, tuple) and hasattr(binding, "_asdict"):
        return dict(binding._asdict())
    if isinstance(binding, _NOT_BINDINGS):
        raise TypeError(
            f"binding must be a mapping or an object with attributes, "
            f"got {type(binding).__name__}"
        )
    return _public_attrs(binding)


def _public_attrs(obj: Any) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for name in dir(obj):
        if name.startswith("_"):
            continue
        try:
            result[name] = getattr(obj, name)
        except AttributeError:
            # unset slot or a property that declines
            continue
    return result


def _writer(out: IO[Any]) -> Callable[[str], Any]:
    if isinstance(out, (io.RawIOBase, io.BufferedIOBase)):
        return lambda chunk: out.write(chunk.encode("utf-8"))
    return out.write


@dataclass(frozen=True)
class CompiledTemplate:
    """A template ready to execute.

    ``root`` is the name of the outermost template: the layout key in
    layout mode, otherwise the template's own name.
    """

    name: str
    path: str
    template: Template
    layout: str = ""

    @property
    def root(self) -> str:
        return self.layout or self.name

    def execute(self, out: IO[Any], binding: Any = None) -> None:
        """Stream the rendered output into ``out``.

        Output is written chunk by chunk; on an execution error whatever was
        produced before the failure has already been written.
        """
        write = _writer(out)
        for chunk in self.template.generate(binding_vars(binding)):
            write(chunk)

    def render(self, binding: Any = None) -> str:
        """Render to a string."""
        return self.template.render(binding_vars(binding))


class Compiler:
    """Compiles the sources of one load.

    Args:
        config: Engine settings, frozen for the duration of the load.
        funcs: Function map exposed to templates as globals and filters.
        sources: Every template source of the load, keyed by template name,
            including the layout under its key when layout mode is on.
    """

    def __init__(
        self,
        config: EngineConfig,
        funcs: Mapping[str, Callable[..., Any]],
        sources: Mapping[str, str],
    ):
        self.config = config
        self.sources = dict(sources)
        self.env = self._make_env(funcs)
        self._layout: Template | None = None

    def _make_env(self, funcs: Mapping[str, Callable[..., Any]]) -> Environment:
        left, right = self.config.delims
        env = Environment(
            loader=DictLoader(self.sources),
            variable_start_string=left,
            variable_end_string=right,
            autoescape=self.config.autoescape,
            undefined=StrictUndefined if self.config.strict else Undefined,
            auto_reload=False,
        )
        # Overriding built-in filters/globals is allowed
        env.globals.update(funcs)
        env.filters.update(funcs)
        return env

    def compile_layout(self, path: str) -> Template:
        """Compile the layout once; pages compiled afterwards extend it."""
        key = self.config.layout
        try:
            self._layout = self.env.get_template(key)
        except TemplateSyntaxError as exc:
            raise CompileError(key, path, exc) from exc
        return self._layout

    def compile(self, name: str, path: str) -> CompiledTemplate:
        """Compile the page ``name`` (wrapped in the layout, if one is set)."""
        source = self.sources[name]
        layout = self.config.layout
        if layout:
            if self._layout is None:
                raise RuntimeError("compile_layout() must run before pages in layout mode")
            # Same line as the body so error line numbers stay accurate
            source = self._extends_tag(layout) + source

        try:
            code = self.env.compile(source, name, path)
        except TemplateSyntaxError as exc:
            raise CompileError(name, path, exc) from exc

        template = self.env.template_class.from_code(
            self.env, code, self.env.make_globals(None)
        )
        return CompiledTemplate(name=name, path=path, template=template, layout=layout)

    def _extends_tag(self, layout: str) -> str:
        return (
            f"{self.env.block_start_string} extends {layout!r} "
            f"{self.env.block_end_string}"
        )
