"""
Unit tests for the 'tree' command.
"""

import json

from depdrift.cli.main import main
from depdrift.core.demo import DemoManager


class TestTreeCommand:
    """Tests for tree output in text and JSON mode."""

    def test_hoisted_version(self, runner, lodash_workspace):
        result = runner.invoke(main, ["--project-root", str(lodash_workspace), "tree", "a"])

        assert result.exit_code == 0
        assert "lodash@^4.0.0 → 4.17.21" in result.output

    def test_shadowed_version(self, runner, lodash_workspace):
        result = runner.invoke(main, ["--project-root", str(lodash_workspace), "tree", "b"])

        assert result.exit_code == 0
        assert "3.10.1" in result.output
        assert "4.17.21" not in result.output

    def test_all_packages_marks_workspace_root(self, runner, lodash_workspace):
        result = runner.invoke(main, ["--project-root", str(lodash_workspace), "tree"])

        assert result.exit_code == 0
        assert "[WORKSPACE ROOT]" in result.output
        assert "monorepo" in result.output

    def test_unknown_package_still_succeeds(self, runner, lodash_workspace):
        result = runner.invoke(main, ["--project-root", str(lodash_workspace), "tree", "ghost"])

        assert result.exit_code == 0
        assert "[MISSING]" in result.output
        assert "1 missing dependency" in result.output

    def test_cycle_marker(self, runner, cyclic_workspace):
        result = runner.invoke(main, ["--project-root", str(cyclic_workspace), "tree", "A"])

        assert result.exit_code == 0
        assert "[CYCLE]" in result.output

    def test_group_depth_option(self, runner, cyclic_workspace):
        result = runner.invoke(main, ["--project-root", str(cyclic_workspace), "--depth", "1", "tree", "app"])

        assert result.exit_code == 0
        assert "A@^1.0.0" in result.output
        assert "B@" not in result.output

    def test_command_depth_overrides_group(self, runner, cyclic_workspace):
        result = runner.invoke(
            main, ["--project-root", str(cyclic_workspace), "--depth", "0", "tree", "app", "-d", "2"]
        )

        assert result.exit_code == 0
        assert "B@^1.0.0" in result.output

    def test_uses_cwd_when_no_root_given(self, runner, lodash_workspace, monkeypatch):
        monkeypatch.chdir(lodash_workspace / "packages/b")

        result = runner.invoke(main, ["tree", "b"])

        assert result.exit_code == 0
        assert "3.10.1" in result.output

    def test_json_output(self, runner, lodash_workspace):
        result = runner.invoke(main, ["--project-root", str(lodash_workspace), "tree", "a", "b", "--json"])

        assert result.exit_code == 0
        payload = json.loads(result.output)
        assert payload["meta"]["command"] == "tree"
        assert payload["meta"]["status"] == "success"
        assert payload["error"] is None
        a, b = payload["data"]["trees"]
        assert a["children"][0]["resolved_version"] == "4.17.21"
        assert b["children"][0]["resolved_version"] == "3.10.1"

    def test_missing_root_manifest_exits_2(self, runner, tmp_path):
        result = runner.invoke(main, ["--project-root", str(tmp_path), "tree"])

        assert result.exit_code == 2
        assert "Cannot read" in result.output

    def test_malformed_root_manifest_json_error(self, runner, tmp_path):
        (tmp_path / "package.json").write_text("{nope")

        result = runner.invoke(main, ["--project-root", str(tmp_path), "tree", "--json"])

        assert result.exit_code == 2
        payload = json.loads(result.output)
        assert payload["meta"]["status"] == "error"
        assert payload["error"]["code"] == "MalformedManifestError"
        assert payload["error"]["exit_code"] == 2

    def test_invalid_config_exits_2(self, runner, lodash_workspace):
        (lodash_workspace / "depdrift.toml").write_text('[tool.depdrift]\nmerge_policy = "coin-flip"\n')

        result = runner.invoke(main, ["--project-root", str(lodash_workspace), "tree"])

        assert result.exit_code == 2
        assert "merge_policy" in result.output

    def test_dedupe_flag(self, runner, tmp_path, make_package):
        make_package(tmp_path, "app", dependencies={"left": "1", "right": "1"})
        make_package(tmp_path / "node_modules/left", "left", "1.0.0", dependencies={"shared": "1"})
        make_package(tmp_path / "node_modules/right", "right", "1.0.0", dependencies={"shared": "1"})
        make_package(tmp_path / "node_modules/shared", "shared", "1.0.0", dependencies={"leaf": "1"})

        result = runner.invoke(main, ["--project-root", str(tmp_path), "tree", "app", "--dedupe"])

        assert result.exit_code == 0
        assert "[DEDUPED]" in result.output

    def test_unsatisfied_range_is_flagged(self, runner, tmp_path):
        demo_dir = DemoManager(tmp_path).provision()

        result = runner.invoke(main, ["--project-root", str(demo_dir), "tree", "legacy"])

        assert result.exit_code == 0
        assert "lodash@^3.10.2 → 3.10.1 [UNSATISFIED]" in result.output
        assert "1 dependency outside the declared range" in result.output
