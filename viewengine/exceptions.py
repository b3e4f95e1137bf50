"""viewengine Exceptions

Errors raised by the engine. Execution errors coming from Jinja2 itself
(e.g. ``jinja2.UndefinedError``) are not wrapped and reach the caller as-is.
"""

from __future__ import annotations


class ViewError(Exception):
    """Base exception for all viewengine errors."""

    pass


class DiscoveryError(ViewError):
    """Raised when the template tree cannot be walked or a file cannot be read."""

    def __init__(self, path: str, cause: BaseException):
        self.path = path
        self.cause = cause
        super().__init__(f"views: cannot read {path}: {cause}")


class CompileError(ViewError):
    """Raised when a template or layout body fails to parse."""

    def __init__(self, name: str, path: str, cause: BaseException):
        self.name = name
        self.path = path
        self.cause = cause
        super().__init__(f"views: cannot compile template {name} ({path}): {cause}")


class TemplateNotFoundError(ViewError, LookupError):
    """Raised when rendering a name that is not in the template store."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"render: template {name} does not exist")


class LayoutOverrideError(ViewError, ValueError):
    """Raised when a per-render layout is passed; layouts are fixed per engine."""

    def __init__(self, layout: str):
        self.layout = layout
        super().__init__(
            f"render: layout argument is not supported (got {layout!r}), "
            "configure it with Engine.layout() instead"
        )
