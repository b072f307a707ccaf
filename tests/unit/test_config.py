"""
Unit tests for depdrift.toml configuration.
"""

import pytest

from depdrift.config import CONFIG_FILENAME, DepdriftConfig


class TestDepdriftConfig:
    def test_defaults_without_file(self, tmp_path):
        config = DepdriftConfig.load(tmp_path)

        assert config.sections == ["dependencies", "devDependencies"]
        assert config.merge_policy == "last-wins"
        assert config.scan_workers == 1
        assert config.dedupe is False
        assert config.max_depth is None

    def test_load_tool_section(self, tmp_path):
        (tmp_path / CONFIG_FILENAME).write_text(
            "[tool.depdrift]\n"
            'sections = ["dependencies", "optionalDependencies"]\n'
            'merge_policy = "first-wins"\n'
            "scan_workers = 4\n"
            "dedupe = true\n"
            "max_depth = 3\n"
        )

        config = DepdriftConfig.load(tmp_path)

        assert config.sections == ["dependencies", "optionalDependencies"]
        assert config.merge_policy == "first-wins"
        assert config.scan_workers == 4
        assert config.dedupe is True
        assert config.max_depth == 3

    def test_file_without_tool_section_uses_defaults(self, tmp_path):
        (tmp_path / CONFIG_FILENAME).write_text("[other]\nkey = 1\n")
        assert DepdriftConfig.load(tmp_path) == DepdriftConfig()

    def test_round_trip_through_toml(self, tmp_path):
        original = DepdriftConfig(merge_policy="first-wins", scan_workers=2, max_depth=4)
        (tmp_path / CONFIG_FILENAME).write_text(original.to_toml_string())

        assert DepdriftConfig.load(tmp_path) == original

    def test_unparseable_file(self, tmp_path):
        (tmp_path / CONFIG_FILENAME).write_text("[tool.depdrift\n")

        with pytest.raises(ValueError, match="Failed to parse"):
            DepdriftConfig.load(tmp_path)

    @pytest.mark.parametrize(
        "body, message",
        [
            ('sections = ["bundledDependencies"]', "Unknown dependency sections"),
            ("sections = 1", "sections must be a list"),
            ('merge_policy = "random"', "Invalid merge_policy"),
            ("scan_workers = 0", "scan_workers"),
            ("max_depth = -2", "max_depth"),
        ],
    )
    def test_invalid_values(self, tmp_path, body, message):
        (tmp_path / CONFIG_FILENAME).write_text(f"[tool.depdrift]\n{body}\n")

        with pytest.raises(ValueError, match=message):
            DepdriftConfig.load(tmp_path)
