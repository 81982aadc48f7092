"""Error taxonomy for the scaffolding core.

Every failure the core can produce is a subclass of :class:`ScarffError`.
Errors are raised, never returned or downgraded to defaults; the CLI layer is
the only place that turns them into console text and a process exit code.

Families:
- input errors (caller-correctable, raised before any filesystem access)
- compatibility errors (carry the rejected axis and the legal alternatives)
- rendering errors (template/context mismatch)
- filesystem errors (staged artifacts are rolled back before raising)
- integrity errors (a corrupted template catalog; fatal at startup)
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Sequence


class ScarffError(Exception):
    """Base class for all scaffolding errors.

    Carries a stable machine-readable ``code`` plus arbitrary keyword
    context, mirrored into the message so logs stay greppable.

    Usage:
        raise ScarffError("SOMETHING_FAILED", field="language")
    """

    exit_code: int = 1

    def __init__(self, code: str, message: str | None = None, **context: Any) -> None:
        self.code = code
        self.context = context
        self.detail = message
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if self.detail:
            return f"[{self.code}] {self.detail}"
        ctx_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
        return f"[{self.code}] {ctx_str}" if ctx_str else f"[{self.code}]"

    @property
    def hint(self) -> str | None:
        """Actionable suggestion for the user, if one applies."""
        return None

    def to_dict(self) -> dict[str, Any]:
        """For logs and JSON output."""
        data: dict[str, Any] = {"code": self.code, "message": str(self)}
        for key, value in self.context.items():
            data[key] = str(value) if isinstance(value, Path) else value
        if self.hint:
            data["hint"] = self.hint
        return data


def _join(values: Sequence[Any]) -> str:
    return ", ".join(str(getattr(v, "value", v)) for v in values)


# =============================================================================
# Input errors
# =============================================================================


class InputError(ScarffError):
    """The caller supplied something unusable."""

    exit_code = 2


class MissingRequiredField(InputError):
    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(
            "MISSING_REQUIRED_FIELD",
            f"'{field}' is required and no default applies",
            field=field,
        )

    @property
    def hint(self) -> str | None:
        if self.field == "language":
            return "Pass a language (e.g. --lang rust) or set SCARFF_DEFAULT_LANGUAGE."
        return f"Specify '{self.field}' explicitly."


class InvalidProjectName(InputError):
    def __init__(self, name: str, reason: str) -> None:
        self.name = name
        self.reason = reason
        super().__init__(
            "INVALID_PROJECT_NAME",
            f"invalid project name {name!r}: {reason}",
            name=name,
            reason=reason,
        )

    @property
    def hint(self) -> str | None:
        return "Use letters, digits, '-' or '_' (for example: my-project)."


# =============================================================================
# Compatibility errors
# =============================================================================


class CompatibilityError(ScarffError):
    """The requested combination is not legal or not shipped."""

    exit_code = 2


class UnsupportedCombination(CompatibilityError):
    def __init__(self, language: Any, project_type: Any, alternatives: Sequence[Any]) -> None:
        self.language = language
        self.project_type = project_type
        self.alternatives = tuple(alternatives)
        super().__init__(
            "UNSUPPORTED_COMBINATION",
            f"{_join([language])} does not support project type "
            f"'{_join([project_type])}' (supported: {_join(self.alternatives)})",
            language=str(getattr(language, "value", language)),
            project_type=str(getattr(project_type, "value", project_type)),
            alternatives=[str(getattr(a, "value", a)) for a in self.alternatives],
        )

    @property
    def hint(self) -> str | None:
        if not self.alternatives:
            return None
        return f"Try --type {_join(self.alternatives[:1])}, or one of: {_join(self.alternatives)}."


class IncompatibleArchitecture(CompatibilityError):
    def __init__(self, architecture: Any, allowed: Sequence[Any], context: str) -> None:
        self.architecture = architecture
        self.allowed = tuple(allowed)
        super().__init__(
            "INCOMPATIBLE_ARCHITECTURE",
            f"architecture '{_join([architecture])}' is not available for {context} "
            f"(allowed: {_join(self.allowed)})",
            architecture=str(getattr(architecture, "value", architecture)),
            allowed=[str(getattr(a, "value", a)) for a in self.allowed],
        )

    @property
    def hint(self) -> str | None:
        return f"Choose one of: {_join(self.allowed)}, or omit --arch to use the default."


class IncompatibleFramework(CompatibilityError):
    """*suggested_type* is a project type of the same language that does
    support the framework, when there is one."""

    def __init__(
        self,
        framework: Any,
        allowed: Sequence[Any],
        context: str,
        suggested_type: Any = None,
    ) -> None:
        self.framework = framework
        self.allowed = tuple(allowed)
        self.suggested_type = suggested_type
        extra: dict[str, Any] = {}
        if suggested_type is not None:
            extra["suggested_type"] = str(getattr(suggested_type, "value", suggested_type))
        super().__init__(
            "INCOMPATIBLE_FRAMEWORK",
            f"framework '{_join([framework])}' is not available for {context} "
            f"(allowed: {_join(self.allowed)})",
            framework=str(getattr(framework, "value", framework)),
            allowed=[str(getattr(a, "value", a)) for a in self.allowed],
            **extra,
        )

    @property
    def hint(self) -> str | None:
        if self.suggested_type is not None:
            return (
                f"Try --type {_join([self.suggested_type])} to use {_join([self.framework])}, "
                f"or choose one of: {_join(self.allowed)}."
            )
        return f"Choose one of: {_join(self.allowed)}, or omit --framework to use the default."


class TemplateNotFound(CompatibilityError):
    """The matrix allows the target but no template ships for it."""

    exit_code = 3

    def __init__(self, target: Any, available: Sequence[Any] = ()) -> None:
        self.target = target
        self.available = tuple(available)
        super().__init__(
            "TEMPLATE_NOT_FOUND",
            f"no template ships for {target}",
            target=str(target),
        )

    @property
    def hint(self) -> str | None:
        if not self.available:
            return "Run 'scarff list' to see the shipped templates."
        return "Templates for this language: " + "; ".join(str(t) for t in self.available)


# =============================================================================
# Rendering errors
# =============================================================================


class RenderError(ScarffError):
    """A template could not be rendered with the given context."""

    exit_code = 1


class UnresolvedPlaceholder(RenderError):
    def __init__(self, marker: str, file: str) -> None:
        self.marker = marker
        self.file = file
        super().__init__(
            "UNRESOLVED_PLACEHOLDER",
            f"placeholder '{marker}' in {file} has no value in the render context",
            marker=marker,
            file=file,
        )


class TemplateSyntaxFailure(RenderError):
    def __init__(self, file: str, reason: str) -> None:
        self.file = file
        super().__init__(
            "TEMPLATE_SYNTAX",
            f"cannot parse template {file}: {reason}",
            file=file,
            reason=reason,
        )


class InvalidRenderedPath(RenderError):
    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        super().__init__(
            "INVALID_RENDERED_PATH",
            f"rendered path {path!r} is not allowed: {reason}",
            path=path,
            reason=reason,
        )


# =============================================================================
# Filesystem errors
# =============================================================================


class ScaffoldFilesystemError(ScarffError):
    exit_code = 1


class DestinationExists(ScaffoldFilesystemError):
    exit_code = 2

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        super().__init__(
            "DESTINATION_EXISTS",
            f"destination {self.path} already exists and is not empty",
            path=self.path,
        )

    @property
    def hint(self) -> str | None:
        return "Choose another location, or pass --force to replace it."


class StagingFailed(ScaffoldFilesystemError):
    def __init__(self, path: str, cause: BaseException) -> None:
        self.path = path
        self.cause = cause
        super().__init__(
            "STAGING_FAILED",
            f"could not stage {path}: {cause}",
            path=path,
            cause=repr(cause),
        )


class CommitFailed(ScaffoldFilesystemError):
    def __init__(self, path: Path, cause: BaseException) -> None:
        self.path = Path(path)
        self.cause = cause
        super().__init__(
            "COMMIT_FAILED",
            f"could not move the staged project into {self.path}: {cause}",
            path=self.path,
            cause=repr(cause),
        )


# =============================================================================
# Integrity / configuration errors
# =============================================================================


class StoreIntegrityError(ScarffError):
    """The template catalog is corrupted. Never caused by user input."""

    exit_code = 1

    def __init__(self, reason: str, **context: Any) -> None:
        self.reason = reason
        super().__init__("STORE_INTEGRITY", reason, **context)


class ConfigError(ScarffError):
    """Configuration could not be read or failed validation."""

    exit_code = 4

    def __init__(self, source: str | Path, reason: str) -> None:
        self.source = str(source)
        self.reason = reason
        super().__init__(
            "CONFIG_ERROR",
            f"invalid configuration in {self.source}: {reason}",
            source=self.source,
        )
