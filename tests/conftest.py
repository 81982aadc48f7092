"""Shared pytest fixtures for the Scarff test suite.

Provides reusable fixtures for:
- The built-in compatibility matrix and template store
- Resolver, renderer and generator instances wired to them
- Small hand-built templates and on-disk template catalogs
- Directory snapshots for "nothing changed" assertions
"""

from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Any, Callable

import pytest
import yaml

from scarff.matrix import CompatibilityMatrix, builtin_matrix
from scarff.models import ResolvedTarget, Template, TemplateFile
from scarff.resolver import Resolver
from scarff.scaffolder.generator import ProjectGenerator
from scarff.scaffolder.store import TemplateStore
from scarff.scaffolder.templates import RenderContext, TemplateRenderer


# ---------------------------------------------------------------------------
# Core objects
# ---------------------------------------------------------------------------


@pytest.fixture
def matrix() -> CompatibilityMatrix:
    return builtin_matrix()


@pytest.fixture
def store() -> TemplateStore:
    return TemplateStore.builtin()


@pytest.fixture
def resolver(matrix: CompatibilityMatrix, store: TemplateStore) -> Resolver:
    return Resolver(matrix, store)


@pytest.fixture
def renderer() -> TemplateRenderer:
    return TemplateRenderer()


@pytest.fixture
def generator(matrix: CompatibilityMatrix, store: TemplateStore) -> ProjectGenerator:
    return ProjectGenerator(matrix, store)


@pytest.fixture
def rust_cli_target() -> ResolvedTarget:
    return ResolvedTarget(
        language="rust", project_type="cli", architecture="layered", framework="none"
    )


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------


@pytest.fixture
def make_template(rust_cli_target: ResolvedTarget) -> Callable[..., Template]:
    """Factory for small in-memory templates.

    ``files`` is a list of ``(path, content)`` or ``(path, content, executable)``
    tuples.
    """

    def _make(
        files: list[tuple[Any, ...]],
        *,
        template_id: str = "test-template",
        target: ResolvedTarget | None = None,
        next_steps: tuple[str, ...] = (),
    ) -> Template:
        return Template(
            id=template_id,
            description="test template",
            target=target or rust_cli_target,
            files=tuple(
                TemplateFile(path=item[0], content=item[1], executable=bool(item[2:] and item[2]))
                for item in files
            ),
            next_steps=next_steps,
        )

    return _make


@pytest.fixture
def make_context(matrix: CompatibilityMatrix, rust_cli_target: ResolvedTarget) -> Callable[..., RenderContext]:
    def _make(name: str = "my-tool", target: ResolvedTarget | None = None) -> RenderContext:
        return RenderContext.build(name, target or rust_cli_target, matrix)

    return _make


@pytest.fixture
def write_template_dir(tmp_path: Path) -> Callable[..., Path]:
    """Write ``<catalog>/<name>/template.yaml`` (plus sources) and return the catalog root."""
    catalog = tmp_path / "catalog"
    catalog.mkdir(exist_ok=True)

    def _write(name: str, manifest: dict[str, Any] | str, sources: dict[str, str] | None = None) -> Path:
        directory = catalog / name
        directory.mkdir(parents=True, exist_ok=True)
        if isinstance(manifest, str):
            text = textwrap.dedent(manifest)
        else:
            text = yaml.safe_dump(manifest, sort_keys=False)
        (directory / "template.yaml").write_text(text, encoding="utf-8")
        for rel, content in (sources or {}).items():
            path = directory / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        return catalog

    return _write


def _minimal_manifest(template_id: str = "rust-cli-custom", **overrides: Any) -> dict[str, Any]:
    manifest: dict[str, Any] = {
        "id": template_id,
        "description": "custom",
        "target": {
            "language": "rust",
            "project_type": "cli",
            "architecture": "layered",
            "framework": "none",
        },
        "files": [{"path": "README.md", "content": "# {{ project_name }}\n"}],
    }
    manifest.update(overrides)
    return manifest


# ---------------------------------------------------------------------------
# Filesystem snapshots
# ---------------------------------------------------------------------------


def _snapshot(root: Path) -> dict[str, bytes] | None:
    """Map every file under *root* to its bytes; ``None`` when *root* is absent."""
    if not root.exists():
        return None
    return {
        str(path.relative_to(root)): path.read_bytes()
        for path in sorted(root.rglob("*"))
        if path.is_file()
    }


def _leftovers(parent: Path) -> list[str]:
    """Staging or backup siblings left behind in *parent*."""
    if not parent.exists():
        return []
    return sorted(p.name for p in parent.iterdir() if ".scarff-" in p.name)


@pytest.fixture
def minimal_manifest() -> Callable[..., dict[str, Any]]:
    return _minimal_manifest


@pytest.fixture
def snapshot() -> Callable[[Path], dict[str, bytes] | None]:
    return _snapshot


@pytest.fixture
def leftovers() -> Callable[[Path], list[str]]:
    return _leftovers
