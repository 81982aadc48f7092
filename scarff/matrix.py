"""Compatibility matrix.

Declarative table of legal ``(language, project_type)`` pairs.  Each entry
lists the allowed architectures and frameworks, the defaults used when an axis
is omitted, and derived values (such as a default port) that templates may
reference.  Adding a language or framework is a data change to the tables at
the bottom of this module; the resolver never branches on specific values.

The matrix is constructed once per process by :func:`builtin_matrix` and is
never mutated afterwards.
"""

from __future__ import annotations

from functools import lru_cache
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from scarff.models import Architecture, Framework, Language, ProjectType, ResolvedTarget

# ---------------------------------------------------------------------------
# Table models
# ---------------------------------------------------------------------------


class MatrixEntry(BaseModel):
    """Rules for one ``(language, project_type)`` pair."""

    model_config = ConfigDict(frozen=True)

    language: Language
    project_type: ProjectType
    architectures: tuple[Architecture, ...] = Field(..., min_length=1)
    frameworks: tuple[Framework, ...] = Field(..., min_length=1)
    default_architecture: Architecture
    default_framework: Framework
    derived: Mapping[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _defaults_are_allowed(self) -> "MatrixEntry":
        if self.default_architecture not in self.architectures:
            raise ValueError(
                f"{self.language.value}/{self.project_type.value}: default architecture "
                f"{self.default_architecture.value!r} is not in the allowed set"
            )
        if self.default_framework not in self.frameworks:
            raise ValueError(
                f"{self.language.value}/{self.project_type.value}: default framework "
                f"{self.default_framework.value!r} is not in the allowed set"
            )
        return self

    @property
    def label(self) -> str:
        return f"{self.language.value} {self.project_type.value}"


class LanguageProfile(BaseModel):
    """Language-wide defaults and naming rules."""

    model_config = ConfigDict(frozen=True)

    language: Language
    default_project_type: ProjectType
    package_style: str = Field(default="snake", pattern=r"^(snake|kebab)$")
    derived: Mapping[str, Any] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Matrix
# ---------------------------------------------------------------------------


class CompatibilityMatrix:
    """Read-only lookup structure over :class:`MatrixEntry` rows."""

    def __init__(
        self,
        entries: Iterable[MatrixEntry],
        profiles: Iterable[LanguageProfile],
    ) -> None:
        table: dict[tuple[Language, ProjectType], MatrixEntry] = {}
        for entry in entries:
            key = (entry.language, entry.project_type)
            if key in table:
                raise ValueError(f"duplicate matrix entry for {entry.label}")
            table[key] = entry

        by_language: dict[Language, LanguageProfile] = {}
        for profile in profiles:
            if profile.language in by_language:
                raise ValueError(f"duplicate language profile for {profile.language.value}")
            by_language[profile.language] = profile

        for language, profile in by_language.items():
            if (language, profile.default_project_type) not in table:
                raise ValueError(
                    f"{language.value}: default project type "
                    f"{profile.default_project_type.value!r} has no matrix entry"
                )
        for language, _ in table:
            if language not in by_language:
                raise ValueError(f"matrix entries reference unprofiled language {language.value}")

        self._entries = MappingProxyType(table)
        self._profiles = MappingProxyType(by_language)

    # -- Lookups -----------------------------------------------------------

    def entry(self, language: Language, project_type: ProjectType) -> Optional[MatrixEntry]:
        return self._entries.get((language, project_type))

    def profile(self, language: Language) -> LanguageProfile:
        return self._profiles[language]

    def languages(self) -> tuple[Language, ...]:
        return tuple(self._profiles)

    def entries(self) -> tuple[MatrixEntry, ...]:
        return tuple(self._entries.values())

    def project_types_for(self, language: Language) -> tuple[ProjectType, ...]:
        """Project types the language supports, in table order."""
        return tuple(pt for (lang, pt) in self._entries if lang == language)

    def is_legal(self, target: ResolvedTarget) -> bool:
        entry = self.entry(target.language, target.project_type)
        return (
            entry is not None
            and target.architecture in entry.architectures
            and target.framework in entry.frameworks
        )

    # -- Inference helpers -------------------------------------------------

    def framework_project_type(
        self, language: Language, framework: Framework
    ) -> Optional[ProjectType]:
        """The project type an explicit framework implies for *language*.

        Preference order: the first entry where the framework is the default,
        then the language's default project type if it allows the framework,
        then the first entry that allows it.  ``None`` when the framework is
        foreign to the language (or is ``Framework.NONE``).
        """
        if framework is Framework.NONE:
            return None
        rows = [e for e in self._entries.values() if e.language == language]
        for entry in rows:
            if entry.default_framework == framework:
                return entry.project_type
        default_type = self._profiles[language].default_project_type
        default_entry = self._entries[(language, default_type)]
        if framework in default_entry.frameworks:
            return default_type
        for entry in rows:
            if framework in entry.frameworks:
                return entry.project_type
        return None

    def derived_values(self, target: ResolvedTarget) -> dict[str, Any]:
        """Language-profile values overlaid with the pair's derived values."""
        values: dict[str, Any] = dict(self._profiles[target.language].derived)
        entry = self.entry(target.language, target.project_type)
        if entry is not None:
            values.update(entry.derived)
        return values


# ---------------------------------------------------------------------------
# Built-in definitions
# ---------------------------------------------------------------------------

L, PT, A, F = Language, ProjectType, Architecture, Framework

_PROFILES: tuple[LanguageProfile, ...] = (
    LanguageProfile(
        language=L.RUST,
        default_project_type=PT.CLI,
        package_style="snake",
        derived={"rust_edition": "2021"},
    ),
    LanguageProfile(
        language=L.PYTHON,
        default_project_type=PT.WEB_BACKEND,
        package_style="snake",
        derived={"python_version": "3.11"},
    ),
    LanguageProfile(
        language=L.TYPESCRIPT,
        default_project_type=PT.WEB_FRONTEND,
        package_style="kebab",
        derived={"node_version": "20", "typescript_version": "5.4"},
    ),
    LanguageProfile(
        language=L.GO,
        default_project_type=PT.CLI,
        package_style="kebab",
        derived={"go_version": "1.22"},
    ),
)

# (language, project_type, architectures, frameworks, default arch, default framework, derived)
_ROWS: tuple[tuple[Any, ...], ...] = (
    # Rust
    (L.RUST, PT.CLI, (A.LAYERED, A.HEXAGONAL, A.FLAT), (F.NONE,), A.LAYERED, F.NONE, {}),
    (L.RUST, PT.WEB_BACKEND, (A.LAYERED, A.HEXAGONAL, A.FEATURE_MODULAR),
     (F.AXUM, F.ACTIX, F.ROCKET), A.LAYERED, F.AXUM, {"default_port": 3000}),
    (L.RUST, PT.LIBRARY, (A.LAYERED, A.HEXAGONAL, A.FLAT), (F.NONE,), A.LAYERED, F.NONE, {}),
    (L.RUST, PT.WORKER, (A.LAYERED, A.HEXAGONAL), (F.NONE,), A.LAYERED, F.NONE, {}),
    # Python
    (L.PYTHON, PT.CLI, (A.LAYERED, A.HEXAGONAL, A.FLAT), (F.NONE,), A.LAYERED, F.NONE, {}),
    (L.PYTHON, PT.WEB_BACKEND, (A.LAYERED, A.HEXAGONAL, A.FEATURE_MODULAR, A.MVC),
     (F.FASTAPI, F.FLASK, F.DJANGO), A.LAYERED, F.FASTAPI, {"default_port": 8000}),
    (L.PYTHON, PT.FULLSTACK, (A.MVC, A.LAYERED, A.HEXAGONAL),
     (F.DJANGO,), A.MVC, F.DJANGO, {"default_port": 8000}),
    (L.PYTHON, PT.WORKER, (A.LAYERED, A.HEXAGONAL),
     (F.NONE, F.FASTAPI, F.FLASK), A.LAYERED, F.NONE, {}),
    (L.PYTHON, PT.LIBRARY, (A.FLAT, A.LAYERED), (F.NONE,), A.FLAT, F.NONE, {}),
    # TypeScript
    (L.TYPESCRIPT, PT.WEB_FRONTEND, (A.FEATURE_MODULAR, A.LAYERED, A.FLAT),
     (F.REACT, F.VUE, F.SVELTE, F.NEXTJS), A.FEATURE_MODULAR, F.REACT, {"default_port": 5173}),
    (L.TYPESCRIPT, PT.WEB_BACKEND, (A.FEATURE_MODULAR, A.LAYERED, A.HEXAGONAL),
     (F.EXPRESS, F.NESTJS), A.FEATURE_MODULAR, F.EXPRESS, {"default_port": 3000}),
    (L.TYPESCRIPT, PT.FULLSTACK, (A.FEATURE_MODULAR, A.LAYERED),
     (F.NEXTJS, F.SVELTE), A.FEATURE_MODULAR, F.NEXTJS, {"default_port": 3000}),
    (L.TYPESCRIPT, PT.WORKER, (A.LAYERED, A.FEATURE_MODULAR),
     (F.NONE, F.EXPRESS, F.NESTJS), A.LAYERED, F.NONE, {}),
    # Go
    (L.GO, PT.CLI, (A.LAYERED, A.HEXAGONAL, A.FLAT), (F.NONE, F.STDLIB), A.LAYERED, F.NONE, {}),
    (L.GO, PT.WEB_BACKEND, (A.LAYERED, A.HEXAGONAL),
     (F.GIN, F.ECHO, F.STDLIB), A.LAYERED, F.GIN, {"default_port": 8080}),
    (L.GO, PT.WORKER, (A.LAYERED, A.HEXAGONAL),
     (F.NONE, F.GIN, F.ECHO, F.STDLIB), A.LAYERED, F.NONE, {}),
)


def _build_entries(rows: Iterable[tuple[Any, ...]]) -> list[MatrixEntry]:
    entries = []
    for language, project_type, archs, frameworks, default_arch, default_fw, derived in rows:
        entries.append(
            MatrixEntry(
                language=language,
                project_type=project_type,
                architectures=archs,
                frameworks=frameworks,
                default_architecture=default_arch,
                default_framework=default_fw,
                derived=derived,
            )
        )
    return entries


@lru_cache(maxsize=1)
def builtin_matrix() -> CompatibilityMatrix:
    """The process-wide matrix, built from the tables above on first use."""
    return CompatibilityMatrix(_build_entries(_ROWS), _PROFILES)
