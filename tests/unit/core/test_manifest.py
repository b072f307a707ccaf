"""
Unit tests for manifest parsing and the manifest providers.
"""

import json
from pathlib import Path

import pytest

from depdrift.core.exceptions import DepdriftError, MalformedManifestError, ManifestIOError
from depdrift.core.manifest import (
    FileManifestProvider,
    Manifest,
    ManifestProvider,
    MergePolicy,
    is_workspace_range,
    load_manifest,
)


class TestManifestParse:
    """Test parsing raw package.json text."""

    def test_basic_fields(self):
        raw = json.dumps({
            "name": "web",
            "version": "2.1.0",
            "dependencies": {"lodash": "^4.0.0", "react": "18.2.0"},
        })
        manifest = Manifest.parse(raw)

        assert manifest.name == "web"
        assert manifest.version == "2.1.0"
        assert manifest.dependencies == {"lodash": "^4.0.0", "react": "18.2.0"}
        assert manifest.workspaces == ()
        assert not manifest.is_workspace_root

    def test_dependency_count_matches_unique_keys(self):
        deps = {f"pkg-{i}": f"^{i}.0.0" for i in range(25)}
        manifest = Manifest.parse(json.dumps({"name": "many", "dependencies": deps}))

        assert len(manifest.dependencies) == 25

    def test_duplicate_keys_last_declaration_wins(self):
        raw = '{"name": "dup", "dependencies": {"lodash": "^3.0.0", "chalk": "^5.0.0", "lodash": "^4.0.0"}}'
        manifest = Manifest.parse(raw)

        assert manifest.dependencies == {"lodash": "^4.0.0", "chalk": "^5.0.0"}

    def test_declaration_order_is_preserved(self):
        raw = '{"name": "ordered", "dependencies": {"zeta": "1", "alpha": "1", "mid": "1"}}'
        manifest = Manifest.parse(raw)

        assert [name for name, _, _ in manifest.iter_dependencies()] == ["zeta", "alpha", "mid"]

    def test_version_defaults_when_absent(self):
        manifest = Manifest.parse('{"name": "noversion"}')
        assert manifest.version == "0.0.0"

    def test_unknown_fields_are_ignored(self):
        raw = json.dumps({"name": "x", "scripts": {"build": "tsc"}, "engines": {"node": ">=18"}})
        manifest = Manifest.parse(raw)

        assert manifest.name == "x"
        assert not manifest.has_dependencies()

    def test_private_flag(self):
        assert Manifest.parse('{"name": "x", "private": true}').private is True
        assert Manifest.parse('{"name": "x"}').private is False


class TestDependencySections:
    """Test merging names declared in several sections."""

    RAW = json.dumps({
        "name": "app",
        "dependencies": {"typescript": "^4.0.0", "lodash": "^4.0.0"},
        "devDependencies": {"typescript": "^5.0.0", "jest": "^29.0.0"},
    })

    def test_last_wins_by_default(self):
        manifest = Manifest.parse(self.RAW)

        assert manifest.dependencies["typescript"] == "^5.0.0"
        assert manifest.dependency_sections["typescript"] == "devDependencies"
        assert manifest.dependency_sections["lodash"] == "dependencies"
        assert len(manifest.dependencies) == 3

    def test_first_wins(self):
        manifest = Manifest.parse(self.RAW, policy=MergePolicy.FIRST_WINS)

        assert manifest.dependencies["typescript"] == "^4.0.0"
        assert manifest.dependency_sections["typescript"] == "dependencies"

    def test_only_requested_sections_are_read(self):
        manifest = Manifest.parse(self.RAW, sections=("dependencies",))

        assert manifest.dependencies == {"typescript": "^4.0.0", "lodash": "^4.0.0"}
        assert "jest" not in manifest.dependencies

    def test_iter_dependencies_reports_section(self):
        manifest = Manifest.parse(self.RAW)
        sections = {name: section for name, _, section in manifest.iter_dependencies()}

        assert sections["jest"] == "devDependencies"


class TestWorkspacesField:
    """Test normalization of the workspaces field."""

    def test_array_form(self):
        manifest = Manifest.parse('{"name": "root", "workspaces": ["packages/*", "apps/web"]}')

        assert manifest.workspaces == ("packages/*", "apps/web")
        assert manifest.is_workspace_root

    def test_object_form(self):
        manifest = Manifest.parse('{"name": "root", "workspaces": {"packages": ["libs/*"], "nohoist": ["**/x"]}}')
        assert manifest.workspaces == ("libs/*",)

    def test_root_itself_is_dropped(self):
        manifest = Manifest.parse('{"name": "root", "workspaces": [".", "./tools/"]}')
        assert manifest.workspaces == ("tools",)

    def test_non_array_rejected(self):
        with pytest.raises(MalformedManifestError, match="workspaces"):
            Manifest.parse('{"name": "root", "workspaces": "packages/*"}')


class TestMalformedManifests:
    """Test every way parsing can fail."""

    @pytest.mark.parametrize(
        "raw, reason",
        [
            ("{not json", "invalid JSON"),
            ("[1, 2]", "not an object"),
            ('{"version": "1.0.0"}', "name"),
            ('{"name": ""}', "name"),
            ('{"name": 42}', "name"),
            ('{"name": "x", "version": 1}', "version"),
            ('{"name": "x", "dependencies": ["lodash"]}', "dependencies"),
            ('{"name": "x", "dependencies": {"lodash": 4}}', "lodash"),
        ],
    )
    def test_rejected(self, raw, reason):
        with pytest.raises(MalformedManifestError, match=reason):
            Manifest.parse(raw)

    def test_error_carries_source(self):
        with pytest.raises(MalformedManifestError) as exc_info:
            Manifest.parse("{}", source="pkgs/a/package.json")

        assert exc_info.value.source == "pkgs/a/package.json"
        assert "pkgs/a/package.json" in str(exc_info.value)
        assert exc_info.value.exit_code == 2

    def test_errors_share_base_class(self):
        assert issubclass(MalformedManifestError, DepdriftError)
        assert issubclass(ManifestIOError, DepdriftError)


class TestProviders:
    """Test reading manifests through providers."""

    def test_load_manifest_from_disk(self, tmp_path, make_package):
        make_package(tmp_path, "disk", "3.0.0", dependencies={"a": "1"})

        manifest = load_manifest(tmp_path)

        assert manifest.name == "disk"
        assert manifest.dependencies == {"a": "1"}

    def test_missing_file_raises_io_error(self, tmp_path):
        with pytest.raises(ManifestIOError, match="file not found") as exc_info:
            load_manifest(tmp_path)

        assert exc_info.value.path == tmp_path / "package.json"

    def test_undecodable_file_raises_io_error(self, tmp_path):
        (tmp_path / "package.json").write_bytes(b"\xff\xfe\x00garbage")

        with pytest.raises(ManifestIOError):
            FileManifestProvider().read(tmp_path / "package.json")

    def test_in_memory_provider(self):
        class DictProvider(ManifestProvider):
            def __init__(self, files):
                self.files = files

            def read(self, path):
                try:
                    return self.files[path]
                except KeyError:
                    raise ManifestIOError(path, "file not found")

            def exists(self, path):
                return path in self.files

        provider = DictProvider({Path("/virtual/package.json"): '{"name": "virtual"}'})

        assert load_manifest(Path("/virtual"), provider).name == "virtual"
        with pytest.raises(ManifestIOError):
            load_manifest(Path("/elsewhere"), provider)


def test_is_workspace_range():
    assert is_workspace_range("workspace:*")
    assert is_workspace_range("workspace:^1.0.0")
    assert not is_workspace_range("^1.0.0")
