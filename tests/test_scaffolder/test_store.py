"""Tests for the template store and manifest loader (scarff.scaffolder.store).

Covers:
- The built-in catalog loads, is unique and is legal in the matrix
- lookup / get / all_targets / templates
- Every StoreIntegrityError path of the loader and the store
"""

from __future__ import annotations

import pytest

from scarff.errors import StoreIntegrityError
from scarff.models import ResolvedTarget, Template, TemplateFile
from scarff.scaffolder.store import TemplateStore, load_template

pytestmark = pytest.mark.unit


BUILTIN_IDS = {
    "rust-cli-layered",
    "rust-web-backend-axum",
    "rust-library-layered",
    "python-cli-layered",
    "python-web-backend-fastapi",
    "python-fullstack-django",
    "typescript-web-frontend-react",
    "typescript-web-backend-express",
    "go-cli-layered",
    "go-web-backend-gin",
}


# ---------------------------------------------------------------------------
# Built-in catalog
# ---------------------------------------------------------------------------


class TestBuiltinStore:
    def test_ids(self, store):
        assert {t.id for t in store.templates()} == BUILTIN_IDS
        assert len(store) == len(BUILTIN_IDS)

    def test_templates_sorted_by_id(self, store):
        ids = [t.id for t in store.templates()]
        assert ids == sorted(ids)

    def test_targets_unique(self, store):
        assert len(store.all_targets()) == len(store)

    def test_all_targets_legal(self, store, matrix):
        assert all(matrix.is_legal(target) for target in store.all_targets())

    def test_lookup(self, store, rust_cli_target):
        template = store.lookup(rust_cli_target)
        assert template is not None
        assert template.id == "rust-cli-layered"
        assert template.files[0].path == "Cargo.toml"

    def test_lookup_miss(self, store):
        target = ResolvedTarget(language="python", project_type="library", architecture="flat")
        assert store.lookup(target) is None

    def test_get(self, store):
        assert store.get("go-web-backend-gin").target.framework.value == "gin"
        assert store.get("nope") is None

    def test_sources_loaded_into_memory(self, store):
        template = store.get("rust-cli-layered")
        cargo = template.files[0]
        assert "{{ project_name_kebab }}" in cargo.content

    def test_executable_flag_loaded(self, store):
        django = store.get("python-fullstack-django")
        manage = next(f for f in django.files if f.path == "manage.py")
        assert manage.executable

    def test_builtin_is_cached(self):
        assert TemplateStore.builtin() is TemplateStore.builtin()


# ---------------------------------------------------------------------------
# In-memory construction
# ---------------------------------------------------------------------------


def _template(template_id: str, target: ResolvedTarget) -> Template:
    return Template(id=template_id, target=target, files=(TemplateFile(path="a", content=""),))


class TestStoreConstruction:
    def test_duplicate_ids(self, rust_cli_target):
        other = ResolvedTarget(language="rust", project_type="cli", architecture="flat")
        with pytest.raises(StoreIntegrityError, match="duplicate template id"):
            TemplateStore([_template("x", rust_cli_target), _template("x", other)])

    def test_duplicate_targets(self, rust_cli_target):
        with pytest.raises(StoreIntegrityError, match="both declare"):
            TemplateStore([_template("a", rust_cli_target), _template("b", rust_cli_target)])

    def test_validate_against_matrix(self, matrix):
        illegal = ResolvedTarget(
            language="rust", project_type="cli", architecture="layered", framework="react"
        )
        store = TemplateStore([_template("bad", illegal)])
        with pytest.raises(StoreIntegrityError, match="does not allow"):
            store.validate_against(matrix)

    def test_integrity_error_is_fatal_class(self):
        assert StoreIntegrityError("x").exit_code == 1


# ---------------------------------------------------------------------------
# Directory loading
# ---------------------------------------------------------------------------


class TestFromDirectory:
    def test_inline_and_source_files(self, write_template_dir, minimal_manifest):
        manifest = minimal_manifest(
            files=[
                {"path": "README.md", "content": "# {{ project_name }}\n"},
                {"path": "src/main.rs", "source": "main.rs.j2", "executable": True},
            ],
            next_steps=["cargo run"],
        )
        catalog = write_template_dir("custom", manifest, {"main.rs.j2": "fn main() {}\n"})

        store = TemplateStore.from_directory(catalog)
        template = store.get("rust-cli-custom")

        assert [f.path for f in template.files] == ["README.md", "src/main.rs"]
        assert template.files[1].content == "fn main() {}\n"
        assert template.files[1].executable
        assert template.next_steps == ("cargo run",)

    def test_directories_without_manifest_ignored(self, write_template_dir, minimal_manifest, tmp_path):
        catalog = write_template_dir("custom", minimal_manifest())
        (catalog / "notes").mkdir()
        assert len(TemplateStore.from_directory(catalog)) == 1

    def test_missing_root(self, tmp_path):
        with pytest.raises(StoreIntegrityError, match="does not exist"):
            TemplateStore.from_directory(tmp_path / "missing")

    def test_matrix_validation_on_load(self, write_template_dir, minimal_manifest, matrix):
        manifest = minimal_manifest(
            target={
                "language": "go",
                "project_type": "library",
                "architecture": "flat",
                "framework": "none",
            }
        )
        catalog = write_template_dir("bad", manifest)
        with pytest.raises(StoreIntegrityError, match="does not allow"):
            TemplateStore.from_directory(catalog, matrix)

    def test_duplicate_targets_across_directories(self, write_template_dir, minimal_manifest):
        write_template_dir("one", minimal_manifest("one"))
        catalog = write_template_dir("two", minimal_manifest("two"))
        with pytest.raises(StoreIntegrityError, match="both declare"):
            TemplateStore.from_directory(catalog)


class TestLoadTemplateErrors:
    def test_malformed_yaml(self, write_template_dir):
        catalog = write_template_dir("broken", "id: [unclosed\n")
        with pytest.raises(StoreIntegrityError, match="malformed YAML"):
            load_template(catalog / "broken")

    def test_not_a_mapping(self, write_template_dir):
        catalog = write_template_dir("list", "- a\n- b\n")
        with pytest.raises(StoreIntegrityError, match="mapping"):
            load_template(catalog / "list")

    def test_schema_violation(self, write_template_dir, minimal_manifest):
        manifest = minimal_manifest()
        del manifest["target"]
        catalog = write_template_dir("nosch", manifest)
        with pytest.raises(StoreIntegrityError, match="invalid manifest"):
            load_template(catalog / "nosch")

    def test_unknown_axis_value(self, write_template_dir, minimal_manifest):
        manifest = minimal_manifest()
        manifest["target"]["language"] = "cobol"
        catalog = write_template_dir("cobol", manifest)
        with pytest.raises(StoreIntegrityError):
            load_template(catalog / "cobol")

    def test_empty_file_list(self, write_template_dir, minimal_manifest):
        catalog = write_template_dir("empty", minimal_manifest(files=[]))
        with pytest.raises(StoreIntegrityError):
            load_template(catalog / "empty")

    def test_file_needs_exactly_one_source(self, write_template_dir, minimal_manifest):
        manifest = minimal_manifest(files=[{"path": "a", "content": "x", "source": "a.j2"}])
        catalog = write_template_dir("both", manifest, {"a.j2": "x"})
        with pytest.raises(StoreIntegrityError):
            load_template(catalog / "both")

    def test_missing_source(self, write_template_dir, minimal_manifest):
        manifest = minimal_manifest(files=[{"path": "a", "source": "missing.j2"}])
        catalog = write_template_dir("missing", manifest)
        with pytest.raises(StoreIntegrityError, match="cannot read source"):
            load_template(catalog / "missing")

    def test_escaping_source(self, write_template_dir, minimal_manifest):
        manifest = minimal_manifest(files=[{"path": "a", "source": "../other/secret.j2"}])
        write_template_dir("other", minimal_manifest("other"), {"secret.j2": "x"})
        catalog = write_template_dir("escape", manifest)
        with pytest.raises(StoreIntegrityError, match="escapes"):
            load_template(catalog / "escape")
