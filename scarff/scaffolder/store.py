"""Template store.

Read-only catalog of templates keyed by their resolved target tuple.  The
catalog is loaded once, at construction, from template directories that each
hold a ``template.yaml`` manifest and the ``*.j2`` sources it references.
After construction nothing touches the filesystem: :meth:`TemplateStore.lookup`
is a dictionary read.

Any defect in the catalog (bad YAML, schema violations, missing sources,
duplicate ids or targets, targets the matrix forbids) is a
:class:`~scarff.errors.StoreIntegrityError`.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Iterable, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, model_validator

from scarff.errors import StoreIntegrityError
from scarff.matrix import CompatibilityMatrix, builtin_matrix
from scarff.models import ResolvedTarget, Template, TemplateFile

logger = logging.getLogger(__name__)

MANIFEST_NAME = "template.yaml"

_BUILTIN_DIR = Path(__file__).parent / "templates"


# ---------------------------------------------------------------------------
# Manifest schema
# ---------------------------------------------------------------------------


class FileEntry(BaseModel):
    """One ``files:`` item of a manifest."""

    path: str = Field(..., min_length=1)
    source: Optional[str] = Field(default=None, description="Source file, relative to the manifest")
    content: Optional[str] = Field(default=None, description="Inline template source")
    executable: bool = False

    @model_validator(mode="after")
    def _one_source(self) -> "FileEntry":
        if (self.source is None) == (self.content is None):
            raise ValueError(f"file {self.path!r} needs exactly one of 'source' or 'content'")
        return self


class TemplateManifest(BaseModel):
    """Schema of ``template.yaml``."""

    id: str = Field(..., min_length=1)
    description: str = ""
    target: ResolvedTarget
    dependencies: list[str] = Field(default_factory=list)
    files: list[FileEntry] = Field(..., min_length=1)
    next_steps: list[str] = Field(default_factory=list)


def load_template(directory: Path) -> Template:
    """Load and validate the template rooted at *directory*."""
    manifest_path = directory / MANIFEST_NAME
    try:
        raw = yaml.safe_load(manifest_path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as exc:
        raise StoreIntegrityError(f"cannot read {manifest_path}: {exc}", template=directory.name) from exc
    except yaml.YAMLError as exc:
        raise StoreIntegrityError(f"malformed YAML in {manifest_path}: {exc}", template=directory.name) from exc

    if not isinstance(raw, dict):
        raise StoreIntegrityError(f"{manifest_path} must hold a mapping", template=directory.name)

    try:
        manifest = TemplateManifest.model_validate(raw)
    except ValidationError as exc:
        raise StoreIntegrityError(
            f"invalid manifest {manifest_path}: {exc.error_count()} error(s)\n{exc}",
            template=directory.name,
        ) from exc

    root = directory.resolve()
    files: list[TemplateFile] = []
    for entry in manifest.files:
        if entry.content is not None:
            content = entry.content
        else:
            source = (directory / entry.source).resolve()
            if not source.is_relative_to(root):
                raise StoreIntegrityError(
                    f"source {entry.source!r} escapes the template directory",
                    template=manifest.id,
                )
            try:
                content = source.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                raise StoreIntegrityError(
                    f"cannot read source {entry.source!r}: {exc}",
                    template=manifest.id,
                ) from exc
        files.append(TemplateFile(path=entry.path, content=content, executable=entry.executable))

    return Template(
        id=manifest.id,
        description=manifest.description,
        target=manifest.target,
        files=tuple(files),
        dependencies=tuple(manifest.dependencies),
        next_steps=tuple(manifest.next_steps),
    )


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class TemplateStore:
    """Immutable catalog with at most one template per resolved tuple."""

    def __init__(self, templates: Iterable[Template]) -> None:
        by_id: dict[str, Template] = {}
        by_target: dict[tuple[str, str, str, str], Template] = {}
        for template in templates:
            if template.id in by_id:
                raise StoreIntegrityError(f"duplicate template id {template.id!r}", template=template.id)
            key = template.target.as_tuple()
            if key in by_target:
                raise StoreIntegrityError(
                    f"templates {by_target[key].id!r} and {template.id!r} "
                    f"both declare target {template.target}",
                    template=template.id,
                )
            by_id[template.id] = template
            by_target[key] = template
        self._by_id = by_id
        self._by_target = by_target

    # -- Construction ------------------------------------------------------

    @classmethod
    def from_directory(
        cls,
        root: str | Path,
        matrix: Optional[CompatibilityMatrix] = None,
    ) -> "TemplateStore":
        """Load every ``<root>/<name>/template.yaml`` in name order."""
        root = Path(root)
        if not root.is_dir():
            raise StoreIntegrityError(f"template directory {root} does not exist", path=str(root))

        templates = [
            load_template(child)
            for child in sorted(root.iterdir())
            if child.is_dir() and (child / MANIFEST_NAME).is_file()
        ]
        store = cls(templates)
        if matrix is not None:
            store.validate_against(matrix)
        logger.debug("Loaded %d templates from %s", len(templates), root)
        return store

    @classmethod
    def builtin(cls) -> "TemplateStore":
        """The embedded catalog, validated against the built-in matrix."""
        return _builtin_store()

    def validate_against(self, matrix: CompatibilityMatrix) -> None:
        """Reject templates whose target the matrix does not allow."""
        for template in self._by_id.values():
            if not matrix.is_legal(template.target):
                raise StoreIntegrityError(
                    f"template {template.id!r} declares {template.target}, "
                    "which the compatibility matrix does not allow",
                    template=template.id,
                )

    # -- Queries -----------------------------------------------------------

    def lookup(self, target: ResolvedTarget) -> Optional[Template]:
        return self._by_target.get(target.as_tuple())

    def get(self, template_id: str) -> Optional[Template]:
        return self._by_id.get(template_id)

    def all_targets(self) -> frozenset[ResolvedTarget]:
        return frozenset(t.target for t in self._by_id.values())

    def templates(self) -> tuple[Template, ...]:
        """All templates, ordered by id."""
        return tuple(self._by_id[key] for key in sorted(self._by_id))

    def __len__(self) -> int:
        return len(self._by_id)


@lru_cache(maxsize=1)
def _builtin_store() -> TemplateStore:
    return TemplateStore.from_directory(_BUILTIN_DIR, builtin_matrix())
