"""Jinja2 rendering for project scaffolding.

Provides :class:`RenderContext`, which validates the project name and derives
the variables every template may reference, and :class:`TemplateRenderer`,
which turns a :class:`~scarff.models.Template` into an in-memory
:class:`~scarff.models.RenderedProject`.  Rendering is all-or-nothing: the
first failing file aborts the whole call.

Quick usage::

    context = RenderContext.build("my-app", resolution.target, builtin_matrix())
    project = TemplateRenderer().render(resolution.template, context)
"""

from __future__ import annotations

import logging
import re
from typing import Any, Iterable

from jinja2 import Environment, StrictUndefined, TemplateSyntaxError, UndefinedError, meta
from pydantic import BaseModel, ConfigDict, Field

from scarff.errors import (
    InvalidProjectName,
    InvalidRenderedPath,
    TemplateSyntaxFailure,
    UnresolvedPlaceholder,
)
from scarff.matrix import CompatibilityMatrix
from scarff.models import (
    RenderedFile,
    RenderedProject,
    ResolvedTarget,
    Template,
    normalize_relative_path,
)
from scarff.utils import (
    camel_case,
    kebab_case,
    package_identifier,
    pascal_case,
    slugify,
    snake_case,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Project name validation
# ---------------------------------------------------------------------------

_WINDOWS_RESERVED = frozenset(
    ["con", "prn", "aux", "nul"]
    + [f"com{i}" for i in range(1, 10)]
    + [f"lpt{i}" for i in range(1, 10)]
)

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")


def validate_project_name(name: str) -> str:
    """Return *name* unchanged if it is a legal directory-entry name.

    Raises:
        InvalidProjectName: with the first rule the name breaks.
    """
    if not name:
        raise InvalidProjectName(name, "name is empty")
    if name != name.strip():
        raise InvalidProjectName(name, "name has leading or trailing whitespace")
    if "/" in name or "\\" in name:
        raise InvalidProjectName(name, "name contains a path separator")
    if name in (".", ".."):
        raise InvalidProjectName(name, "name is a relative directory reference")
    if name.startswith("."):
        raise InvalidProjectName(name, "name starts with '.'")
    if _CONTROL_CHARS.search(name):
        raise InvalidProjectName(name, "name contains control characters")
    if name.split(".")[0].lower() in _WINDOWS_RESERVED:
        raise InvalidProjectName(name, "name is a reserved device name")
    if not snake_case(name):
        raise InvalidProjectName(name, "name has no letters or digits")
    return name


# ---------------------------------------------------------------------------
# Render context
# ---------------------------------------------------------------------------


class RenderContext(BaseModel):
    """Everything a template may reference, derived deterministically."""

    model_config = ConfigDict(frozen=True)

    project_name: str
    target: ResolvedTarget
    package_name: str
    derived: dict[str, Any] = Field(default_factory=dict)
    dependencies: tuple[str, ...] = ()

    @classmethod
    def build(
        cls,
        project_name: str,
        target: ResolvedTarget,
        matrix: CompatibilityMatrix,
        dependencies: Iterable[str] = (),
    ) -> "RenderContext":
        """Validate *project_name* and derive the package name and matrix values."""
        validate_project_name(project_name)
        style = matrix.profile(target.language).package_style
        return cls(
            project_name=project_name,
            target=target,
            package_name=package_identifier(project_name, style),
            derived=matrix.derived_values(target),
            dependencies=tuple(dependencies),
        )

    def as_dict(self) -> dict[str, Any]:
        values: dict[str, Any] = dict(self.derived)
        values.update(
            {
                "project_name": self.project_name,
                "project_name_snake": snake_case(self.project_name),
                "project_name_kebab": kebab_case(self.project_name),
                "project_name_pascal": pascal_case(self.project_name),
                "package_name": self.package_name,
                "language": self.target.language.value,
                "project_type": self.target.project_type.value,
                "architecture": self.target.architecture.value,
                "framework": self.target.framework.value,
                "dependencies": list(self.dependencies),
            }
        )
        return values


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """Renders embedded templates with strict placeholder checking.

    Every name a template references must be present in the context; this is
    checked against the parsed template before rendering, and again at render
    time through :class:`jinja2.StrictUndefined` for attribute lookups.
    """

    def __init__(self) -> None:
        self.env = Environment(
            autoescape=False,
            undefined=StrictUndefined,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters["slugify"] = slugify
        self.env.filters["pascal_case"] = pascal_case
        self.env.filters["snake_case"] = snake_case
        self.env.filters["kebab_case"] = kebab_case
        self.env.filters["camel_case"] = camel_case

    # -- Whole-template rendering ------------------------------------------

    def render(self, template: Template, context: RenderContext) -> RenderedProject:
        """Render every file of *template*, paths first, then contents.

        Raises:
            UnresolvedPlaceholder: a marker names a key missing from context.
            TemplateSyntaxFailure: a path or body does not parse.
            InvalidRenderedPath: a rendered path is empty, absolute, escapes
                the destination, collides with another file, or sits
                below another file.
        """
        values = context.as_dict()
        seen: set[str] = set()
        rendered: list[RenderedFile] = []

        for entry in template.files:
            label = f"{template.id}:{entry.path}"
            raw_path = self.render_string(entry.path, values, label=f"{label} (path)")
            try:
                path = normalize_relative_path(raw_path)
            except ValueError as exc:
                raise InvalidRenderedPath(raw_path, str(exc)) from exc
            if path in seen:
                raise InvalidRenderedPath(path, "another file renders to the same path")
            seen.add(path)

            body = self.render_string(entry.content, values, label=label)
            rendered.append(
                RenderedFile(path=path, content=body.encode("utf-8"), executable=entry.executable)
            )

        # a file path cannot also be a directory of another file
        for item in rendered:
            parts = item.path.split("/")
            for depth in range(1, len(parts)):
                parent = "/".join(parts[:depth])
                if parent in seen:
                    raise InvalidRenderedPath(item.path, f"{parent!r} is rendered as a file")

        logger.debug("Rendered %d files from %s", len(rendered), template.id)
        return RenderedProject(template_id=template.id, files=tuple(rendered))

    def render_lines(self, lines: Iterable[str], context: RenderContext, label: str) -> list[str]:
        """Render short one-line fragments such as next-step hints."""
        values = context.as_dict()
        return [self.render_string(line, values, label=label) for line in lines]

    # -- Single string rendering -------------------------------------------

    def render_string(self, source: str, values: dict[str, Any], *, label: str = "<string>") -> str:
        """Render one template string, mapping Jinja2 failures to render errors."""
        try:
            ast = self.env.parse(source)
            # unknown filters and tests only surface once the AST is compiled
            referenced = meta.find_undeclared_variables(ast)
            compiled = self.env.from_string(source)
        except TemplateSyntaxError as exc:
            raise TemplateSyntaxFailure(label, f"line {exc.lineno}: {exc.message}") from exc

        missing = sorted(
            name for name in referenced if name not in values and name not in self.env.globals
        )
        if missing:
            raise UnresolvedPlaceholder(missing[0], label)

        try:
            return compiled.render(**values)
        except UndefinedError as exc:
            raise UnresolvedPlaceholder(_undefined_marker(exc), label) from exc


def _undefined_marker(exc: UndefinedError) -> str:
    """Pull the offending name out of a Jinja2 undefined-error message."""
    match = re.search(r"'([^']+)' is undefined|has no attribute '([^']+)'", str(exc))
    if match:
        return match.group(1) or match.group(2)
    return str(exc)
