"""Scarff configuration.

Typed settings for the CLI layer.  Uses a Pydantic v2 model so values are
validated at construction time and serialised to/from JSON or environment
variables without boiler-plate.

Precedence, highest first: command-line flags (applied by ``scarff.cli``),
environment variables, a JSON config file, built-in defaults.  The file is
the one named by ``--config``, else ``$SCARFF_CONFIG``, else
``$XDG_CONFIG_HOME/scarff/config.json`` (``~/.config`` when unset) if it
exists.
"""

from __future__ import annotations

import logging
import os
from enum import Enum
from pathlib import Path
from typing import Any, Mapping, Optional

from pydantic import BaseModel, Field, ValidationError, ValidationInfo, field_validator

from scarff.errors import ConfigError
from scarff.models import Architecture, Language, ProjectType

ENV_PREFIX = "SCARFF_"
CONFIG_ENV = f"{ENV_PREFIX}CONFIG"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

_POLICY_AXES: dict[str, type[Enum]] = {
    "default_language": Language,
    "default_project_type": ProjectType,
    "default_architecture": Architecture,
}

# fields read from SCARFF_<FIELD NAME>
_ENV_FIELDS = (
    "default_language",
    "default_project_type",
    "default_architecture",
    "templates_dir",
    "log_level",
)


class Config(BaseModel):
    """Global Scarff configuration."""

    default_language: Optional[Language] = Field(
        default=None, description="Language used when a request omits one"
    )
    default_project_type: Optional[ProjectType] = Field(
        default=None, description="Project type used when neither flag nor framework picks one"
    )
    default_architecture: Optional[Architecture] = Field(
        default=None, description="Architecture used when the matrix allows it and none is given"
    )
    templates_dir: Optional[Path] = Field(
        default=None, description="Alternative template catalog replacing the built-in one"
    )
    log_level: str = Field(default="WARNING", description="Level for the scarff loggers")
    no_color: bool = Field(default=False, description="Disable colored console output")

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalise_level(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip().upper()
            if value not in _LOG_LEVELS:
                raise ValueError(f"log level must be one of {', '.join(_LOG_LEVELS)}")
        return value

    @field_validator(*_POLICY_AXES, mode="before")
    @classmethod
    def _coerce_axis(cls, value: Any, info: ValidationInfo) -> Any:
        if isinstance(value, str):
            try:
                return _POLICY_AXES[info.field_name](value)
            except ValueError:
                return value
        return value

    @field_validator("templates_dir", mode="before")
    @classmethod
    def _expand_dir(cls, value: Any) -> Any:
        if isinstance(value, str) and value:
            return Path(value).expanduser()
        return value

    # ------------------------------------------------------------------
    # Single keys (``scarff config get|set``)
    # ------------------------------------------------------------------

    @classmethod
    def keys(cls) -> tuple[str, ...]:
        return tuple(cls.model_fields)

    @classmethod
    def _check_key(cls, key: str) -> None:
        if key not in cls.model_fields:
            raise ConfigError(key, f"unknown key (choose from {', '.join(cls.keys())})")

    def get_value(self, key: str) -> Any:
        """JSON-friendly value of *key*; ``None`` when unset."""
        self._check_key(key)
        return self.model_dump(mode="json")[key]

    def with_value(self, key: str, value: str) -> "Config":
        """A copy with *key* parsed from *value*; an empty string unsets it.

        Raises:
            ConfigError: unknown key or a value that fails validation.
        """
        self._check_key(key)
        data = self.model_dump()
        if value == "":
            data[key] = type(self).model_fields[key].get_default()
        else:
            data[key] = value
        try:
            return type(self).model_validate(data)
        except ValidationError as exc:
            raise ConfigError(key, _first_error(exc)) from exc

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path) -> Path:
        """Persist the configuration to a JSON file and return its path."""
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.model_dump_json(indent=2, exclude_none=True), encoding="utf-8")
        return target

    @classmethod
    def load(cls, path: Path) -> "Config":
        """Load a previously-saved configuration from JSON.

        Raises:
            ConfigError: the file is unreadable or fails validation.
        """
        try:
            raw = Path(path).read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigError(path, exc.strerror or str(exc)) from exc
        try:
            return cls.model_validate_json(raw)
        except ValidationError as exc:
            raise ConfigError(path, _first_error(exc)) from exc

    @staticmethod
    def default_path(environ: Optional[Mapping[str, str]] = None) -> Path:
        """Where the config file lives when ``--config`` is not given."""
        env = os.environ if environ is None else environ
        if env.get(CONFIG_ENV):
            return Path(env[CONFIG_ENV]).expanduser()
        base = env.get("XDG_CONFIG_HOME") or "~/.config"
        return Path(base).expanduser() / "scarff" / "config.json"

    @classmethod
    def from_env(
        cls,
        base: Optional["Config"] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "Config":
        """Overlay environment variables on *base* (or on the defaults).

        Recognised variables (all optional):
            SCARFF_DEFAULT_LANGUAGE, SCARFF_DEFAULT_PROJECT_TYPE,
            SCARFF_DEFAULT_ARCHITECTURE, SCARFF_TEMPLATES_DIR,
            SCARFF_LOG_LEVEL, NO_COLOR (any non-empty value).
        """
        env = os.environ if environ is None else environ
        overrides: dict[str, Any] = {}
        for field in _ENV_FIELDS:
            name = f"{ENV_PREFIX}{field.upper()}"
            if env.get(name):
                overrides[field] = env[name]
        if env.get("NO_COLOR"):
            overrides["no_color"] = True

        data = base.model_dump() if base is not None else {}
        data.update(overrides)
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise ConfigError("environment", _first_error(exc)) from exc

    @classmethod
    def resolve(
        cls,
        config_file: Optional[Path] = None,
        *,
        missing_ok: bool = False,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "Config":
        """Defaults, then the config file, then the environment.

        An explicit *config_file* must exist unless *missing_ok*; the default
        location is read only when present.
        """
        if config_file is None:
            path = cls.default_path(environ)
            required = False
        else:
            path = Path(config_file)
            required = not missing_ok
        base = cls.load(path) if required or path.is_file() else None
        config = cls.from_env(base, environ)
        logging.getLogger(__name__).debug(
            "Configuration (%s): %s",
            path if base is not None else "no file",
            config.model_dump(mode="json"),
        )
        return config


def _first_error(exc: ValidationError) -> str:
    error = exc.errors()[0]
    location = ".".join(str(part) for part in error.get("loc", ())) or "value"
    return f"{location}: {error.get('msg', 'invalid value')}"
