"""Pydantic v2 models for the scaffolding core.

Defines the closed enumerations for every target axis, the partial and
resolved target models, template descriptors, the in-memory rendered project,
and the request/report models exchanged with the CLI layer.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path, PureWindowsPath
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
    model_validator,
)

AXES: tuple[str, ...] = ("language", "project_type", "architecture", "framework")


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

_LANGUAGE_ALIASES = {"rs": "rust", "py": "python", "ts": "typescript", "golang": "go"}

_PROJECT_TYPE_ALIASES = {
    "backend": "web-backend",
    "api": "web-backend",
    "webbackend": "web-backend",
    "web_backend": "web-backend",
    "frontend": "web-frontend",
    "spa": "web-frontend",
    "webfrontend": "web-frontend",
    "web_frontend": "web-frontend",
    "lib": "library",
}

_ARCHITECTURE_ALIASES = {
    "clean": "hexagonal",
    "onion": "hexagonal",
    "modular": "feature-modular",
    "featuremodular": "feature-modular",
    "feature_modular": "feature-modular",
}


def _lookup(cls: type[Enum], value: Any, aliases: dict[str, str]) -> Optional[Enum]:
    """Case-insensitive member lookup with alias support (used by ``_missing_``)."""
    if not isinstance(value, str):
        return None
    key = value.strip().lower()
    key = aliases.get(key, key)
    for member in cls:
        if member.value == key:
            return member
    return None


class Language(str, Enum):
    """Target programming language."""
    RUST = "rust"
    PYTHON = "python"
    TYPESCRIPT = "typescript"
    GO = "go"

    @classmethod
    def _missing_(cls, value: object) -> Optional["Language"]:
        return _lookup(cls, value, _LANGUAGE_ALIASES)  # type: ignore[return-value]


class ProjectType(str, Enum):
    """What kind of project is being scaffolded."""
    CLI = "cli"
    WEB_BACKEND = "web-backend"
    WEB_FRONTEND = "web-frontend"
    FULLSTACK = "fullstack"
    WORKER = "worker"
    LIBRARY = "library"

    @classmethod
    def _missing_(cls, value: object) -> Optional["ProjectType"]:
        return _lookup(cls, value, _PROJECT_TYPE_ALIASES)  # type: ignore[return-value]


class Architecture(str, Enum):
    """Source-tree organisation style."""
    LAYERED = "layered"
    HEXAGONAL = "hexagonal"
    MVC = "mvc"
    FEATURE_MODULAR = "feature-modular"
    FLAT = "flat"

    @classmethod
    def _missing_(cls, value: object) -> Optional["Architecture"]:
        return _lookup(cls, value, _ARCHITECTURE_ALIASES)  # type: ignore[return-value]


class Framework(str, Enum):
    """Application framework. ``NONE`` is an explicit "no framework" choice."""
    NONE = "none"
    AXUM = "axum"
    ACTIX = "actix"
    ROCKET = "rocket"
    FASTAPI = "fastapi"
    DJANGO = "django"
    FLASK = "flask"
    EXPRESS = "express"
    NESTJS = "nestjs"
    REACT = "react"
    VUE = "vue"
    NEXTJS = "nextjs"
    SVELTE = "svelte"
    GIN = "gin"
    ECHO = "echo"
    STDLIB = "stdlib"

    @classmethod
    def _missing_(cls, value: object) -> Optional["Framework"]:
        return _lookup(cls, value, {"next": "nextjs", "nest": "nestjs"})  # type: ignore[return-value]


class InferenceSource(str, Enum):
    """Where an inferred axis value came from."""
    POLICY = "policy"
    FRAMEWORK = "framework"
    LANGUAGE_DEFAULT = "language-default"
    MATRIX_DEFAULT = "matrix-default"


class ScaffoldMode(str, Enum):
    """How the scaffold transaction treats the destination."""
    NORMAL = "normal"
    FORCE = "force"
    DRY_RUN = "dry-run"
    FORCE_DRY_RUN = "force-dry-run"

    @classmethod
    def from_flags(cls, *, force: bool = False, dry_run: bool = False) -> "ScaffoldMode":
        """A dry run never writes; with *force* it previews a replacement."""
        if dry_run:
            return cls.FORCE_DRY_RUN if force else cls.DRY_RUN
        if force:
            return cls.FORCE
        return cls.NORMAL

    @property
    def simulated(self) -> bool:
        return self in (ScaffoldMode.DRY_RUN, ScaffoldMode.FORCE_DRY_RUN)

    @property
    def allows_replace(self) -> bool:
        return self in (ScaffoldMode.FORCE, ScaffoldMode.FORCE_DRY_RUN)


# ---------------------------------------------------------------------------
# Targets
# ---------------------------------------------------------------------------

_AXIS_TYPES: dict[str, type[Enum]] = {
    "language": Language,
    "project_type": ProjectType,
    "architecture": Architecture,
    "framework": Framework,
}


def _coerce_axis(value: Any, axis: str | None) -> Any:
    """Map alias spellings (``rs``, ``spa``, ``clean`` ...) onto enum members."""
    if isinstance(value, str) and axis in _AXIS_TYPES:
        try:
            return _AXIS_TYPES[axis](value)
        except ValueError:
            return value
    return value


class Target(BaseModel):
    """A user's request. Any axis may be unset (``None``) before resolution."""

    model_config = ConfigDict(frozen=True)

    language: Optional[Language] = Field(default=None, description="Programming language")
    project_type: Optional[ProjectType] = Field(default=None, description="Kind of project")
    architecture: Optional[Architecture] = Field(default=None, description="Architecture style")
    framework: Optional[Framework] = Field(
        default=None, description="Framework; unset means unspecified, 'none' means no framework"
    )

    @field_validator(*AXES, mode="before")
    @classmethod
    def _coerce_aliases(cls, value: Any, info: ValidationInfo) -> Any:
        return _coerce_axis(value, info.field_name)

    def explicit_fields(self) -> tuple[str, ...]:
        """Axes the caller set, in resolution order."""
        return tuple(axis for axis in AXES if getattr(self, axis) is not None)


class ResolvedTarget(BaseModel):
    """A total target. Only the resolver produces these for user requests."""

    model_config = ConfigDict(frozen=True)

    language: Language
    project_type: ProjectType
    architecture: Architecture
    framework: Framework = Framework.NONE

    @field_validator(*AXES, mode="before")
    @classmethod
    def _coerce_aliases(cls, value: Any, info: ValidationInfo) -> Any:
        return _coerce_axis(value, info.field_name)

    def as_tuple(self) -> tuple[str, str, str, str]:
        return (
            self.language.value,
            self.project_type.value,
            self.architecture.value,
            self.framework.value,
        )

    def __str__(self) -> str:
        text = f"{self.language.value} {self.project_type.value} ({self.architecture.value})"
        if self.framework is not Framework.NONE:
            text += f" + {self.framework.value}"
        return text


class InferredField(BaseModel):
    """One axis filled by inference rather than by the caller."""

    model_config = ConfigDict(frozen=True)

    field: str
    value: str
    source: InferenceSource


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------

class TemplateFile(BaseModel):
    """One file a template declares. Both path and content may hold placeholders."""

    model_config = ConfigDict(frozen=True)

    path: str = Field(..., min_length=1, description="Relative output path (placeholders allowed)")
    content: str = Field(default="", description="Template source for the file body")
    executable: bool = Field(default=False, description="Set the executable bits on commit")


class Template(BaseModel):
    """An immutable, embedded template keyed by its resolved target."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    description: str = Field(default="")
    target: ResolvedTarget
    files: tuple[TemplateFile, ...] = Field(..., min_length=1)
    dependencies: tuple[str, ...] = Field(default=())
    next_steps: tuple[str, ...] = Field(default=())


class Resolution(BaseModel):
    """Resolver output: the total target plus a record of what was inferred."""

    model_config = ConfigDict(frozen=True)

    target: ResolvedTarget
    explicit: tuple[str, ...] = Field(default=())
    inferred: tuple[InferredField, ...] = Field(default=())
    template: Optional[Template] = None

    def is_inferred(self, field: str) -> bool:
        return any(item.field == field for item in self.inferred)


# ---------------------------------------------------------------------------
# Rendered output
# ---------------------------------------------------------------------------

def normalize_relative_path(raw: str) -> str:
    """Return *raw* as a normalised POSIX relative path.

    Raises:
        ValueError: if the path is empty, absolute, or climbs out of the root.
    """
    if not raw or not raw.strip():
        raise ValueError("path is empty")
    if "\x00" in raw:
        raise ValueError("path contains a NUL byte")
    candidate = raw.replace("\\", "/")
    if candidate.startswith("/") or PureWindowsPath(raw).drive:
        raise ValueError("path is absolute")
    parts = [part for part in candidate.split("/") if part not in ("", ".")]
    if ".." in parts:
        raise ValueError("path escapes the destination root")
    if not parts:
        raise ValueError("path is empty")
    return "/".join(parts)


class RenderedFile(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: str
    content: bytes
    executable: bool = False


class RenderedProject(BaseModel):
    """In-memory render result, owned by a single scaffold invocation.

    The path set is unique and every path stays inside the destination root.
    """

    model_config = ConfigDict(frozen=True)

    template_id: str = Field(default="")
    files: tuple[RenderedFile, ...] = Field(default=())

    @model_validator(mode="after")
    def _check_paths(self) -> "RenderedProject":
        seen: set[str] = set()
        for rendered in self.files:
            normalized = normalize_relative_path(rendered.path)
            if normalized != rendered.path:
                raise ValueError(f"path {rendered.path!r} is not normalised")
            if normalized in seen:
                raise ValueError(f"duplicate path {normalized!r}")
            seen.add(normalized)
        return self

    @property
    def paths(self) -> tuple[str, ...]:
        return tuple(rendered.path for rendered in self.files)


# ---------------------------------------------------------------------------
# Transaction and pipeline I/O
# ---------------------------------------------------------------------------

class ScaffoldOutcome(BaseModel):
    """What the transaction did (or, when ``simulated``, would have done)."""

    model_config = ConfigDict(frozen=True)

    destination: Path
    files: tuple[str, ...]
    simulated: bool
    replaced_existing: bool = False


class ScaffoldRequest(BaseModel):
    """Everything the CLI layer hands to the core for one run."""

    target: Target = Field(default_factory=Target)
    project_name: str
    destination: Path
    mode: ScaffoldMode = ScaffoldMode.NORMAL
    default_language: Optional[Language] = Field(
        default=None, description="Default policy for an omitted language"
    )
    default_project_type: Optional[ProjectType] = Field(
        default=None, description="Default policy for an omitted project type"
    )
    default_architecture: Optional[Architecture] = Field(
        default=None, description="Default policy for an omitted architecture"
    )

    @field_validator("default_language", "default_project_type", "default_architecture", mode="before")
    @classmethod
    def _coerce_policy(cls, value: Any, info: ValidationInfo) -> Any:
        return _coerce_axis(value, info.field_name.removeprefix("default_"))

    @field_validator("destination", mode="before")
    @classmethod
    def _expand_destination(cls, value: Any) -> Any:
        if isinstance(value, (str, Path)):
            return Path(value).expanduser()
        return value


class ScaffoldReport(BaseModel):
    """Caller-facing result, built once after the transaction outcome is known."""

    model_config = ConfigDict(frozen=True)

    project_name: str
    template_id: str
    target: ResolvedTarget
    explicit: tuple[str, ...]
    inferred: tuple[InferredField, ...]
    destination: Path
    files: tuple[str, ...]
    dependencies: tuple[str, ...] = ()
    simulated: bool
    replaced_existing: bool = False
    next_steps: tuple[str, ...] = ()

    def is_inferred(self, field: str) -> bool:
        return any(item.field == field for item in self.inferred)
