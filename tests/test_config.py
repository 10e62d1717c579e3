"""Tests for config loading, validation, and env var overrides."""

from pathlib import Path

import pytest

from diffreview.config.loader import ConfigError, load_config
from diffreview.git.diff_parser import DEFAULT_EXTENSIONS


class TestConfigLoading:
    def test_default_config(self, tmp_path: Path):
        cfg = load_config(tmp_path)
        assert cfg.parser.extensions == list(DEFAULT_EXTENSIONS)
        assert cfg.stages.enable == []
        assert cfg.stages.directory == ".diffreview-stages"
        assert cfg.output.formats == ["markdown", "json"]
        assert cfg.output.directory == "reports"

    def test_custom_toml(self, tmp_path: Path):
        (tmp_path / ".diffreview.toml").write_text(
            'version = "1.0"\n'
            '[parser]\n'
            'extensions = [".go"]\n'
            '[stages]\n'
            'enable = ["security", "code-review"]\n'
            '[output]\n'
            'formats = ["sarif"]\n'
            'directory = "out"\n'
        )
        cfg = load_config(tmp_path)
        assert cfg.parser.extensions == [".go"]
        assert cfg.stages.enable == ["security", "code-review"]
        assert cfg.output.formats == ["sarif"]
        assert cfg.output.directory == "out"

    def test_unknown_keys_ignored(self, tmp_path: Path):
        (tmp_path / ".diffreview.toml").write_text('[output]\ncolour = "blue"\n')
        cfg = load_config(tmp_path)
        assert cfg.output.formats == ["markdown", "json"]

    def test_config_override_path(self, tmp_path: Path):
        custom = tmp_path / "custom.toml"
        custom.write_text('[output]\ndirectory = "elsewhere"\n')
        cfg = load_config(tmp_path, config_override=str(custom))
        assert cfg.output.directory == "elsewhere"

    def test_missing_override_raises(self, tmp_path: Path):
        with pytest.raises(ConfigError):
            load_config(tmp_path, config_override="/nonexistent/config.toml")

    def test_invalid_toml_raises(self, tmp_path: Path):
        (tmp_path / ".diffreview.toml").write_text("this is not valid [toml")
        with pytest.raises(ConfigError):
            load_config(tmp_path)

    def test_section_must_be_table(self, tmp_path: Path):
        (tmp_path / ".diffreview.toml").write_text('output = "json"\n')
        with pytest.raises(ConfigError):
            load_config(tmp_path)

    def test_unknown_format_raises(self, tmp_path: Path):
        (tmp_path / ".diffreview.toml").write_text('[output]\nformats = ["pdf"]\n')
        with pytest.raises(ConfigError):
            load_config(tmp_path)


class TestEnvVarOverrides:
    def test_formats_override(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("DIFFREVIEW_OUTPUT_FORMATS", "json, sarif")
        cfg = load_config(tmp_path)
        assert cfg.output.formats == ["json", "sarif"]

    def test_invalid_formats_ignored(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("DIFFREVIEW_OUTPUT_FORMATS", "pdf,docx")
        cfg = load_config(tmp_path)
        assert cfg.output.formats == ["markdown", "json"]

    def test_output_dir_override(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("DIFFREVIEW_OUTPUT_DIR", "ci-reports")
        cfg = load_config(tmp_path)
        assert cfg.output.directory == "ci-reports"

    def test_disable_stages_override(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("DIFFREVIEW_DISABLE_STAGES", "performance,security")
        cfg = load_config(tmp_path)
        assert cfg.stages.disable == ["performance", "security"]

    def test_extensions_override(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("DIFFREVIEW_EXTENSIONS", "py,.rs")
        cfg = load_config(tmp_path)
        assert cfg.parser.extensions == [".py", ".rs"]
