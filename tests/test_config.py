"""Tests for the config module."""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from ripgrep_sync.config import (
    DEFAULT_FEATURES,
    DEFAULT_TOOLCHAIN_MARKER,
    DEFAULT_VERBOSITY,
    ConfigDict,
    SyncConfig,
    ToolchainFailurePolicy,
    load_config_file,
    load_env_config,
    merge_configs,
)

if TYPE_CHECKING:
    from _pytest.monkeypatch import MonkeyPatch


class TestSyncConfig:
    """Tests for SyncConfig dataclass."""

    def test_from_dict_defaults(self) -> None:
        """Test creating SyncConfig from empty dict."""
        config = SyncConfig.from_dict({})
        assert config.source_dir == Path("~/git/ripgrep").expanduser()
        assert config.upstream is None
        assert config.binary == "target/release/rg"
        assert config.features == DEFAULT_FEATURES
        assert config.strip is True
        assert config.remote_update is True
        assert config.toolchain_update_cmd == ["rustup", "update"]
        assert config.toolchain_marker == DEFAULT_TOOLCHAIN_MARKER
        assert config.toolchain_failure == ToolchainFailurePolicy.WARN
        assert config.verbosity == 2
        assert config.force is False
        assert config.dry_run is False

    def test_from_dict_full_config(self, tmp_path: Path) -> None:
        """Test creating SyncConfig with all options."""
        data: ConfigDict = {
            "source_dir": str(tmp_path),
            "upstream": "upstream/main",
            "binary": "target/release/rg-custom",
            "features": ["pcre2", "simd-accel"],
            "rustflags": "-C opt-level=3",
            "strip": False,
            "remote_update": False,
            "toolchain_update_cmd": ["rustup", "update", "stable"],
            "toolchain_marker": "installed",
            "toolchain_failure": "abort",
            "verbosity": 5,
            "force": True,
            "dry_run": True,
        }
        config = SyncConfig.from_dict(data)
        assert config.source_dir == tmp_path
        assert config.upstream == "upstream/main"
        assert config.features == ["pcre2", "simd-accel"]
        assert config.rustflags == "-C opt-level=3"
        assert config.strip is False
        assert config.remote_update is False
        assert config.toolchain_update_cmd == ["rustup", "update", "stable"]
        assert config.toolchain_marker == "installed"
        assert config.toolchain_failure == ToolchainFailurePolicy.ABORT
        assert config.verbosity == 5
        assert config.force is True
        assert config.dry_run is True

    def test_invalid_policy_defaults_to_warn(self) -> None:
        """Test that unknown toolchain_failure values fall back to WARN."""
        config = SyncConfig.from_dict({"toolchain_failure": "explode"})
        assert config.toolchain_failure == ToolchainFailurePolicy.WARN

    @pytest.mark.parametrize(("value", "expected"), [(0, 0), (9, 9), ("3", 3), (" 4 ", 4)])
    def test_verbosity_accepted(self, value: object, expected: int) -> None:
        """Test verbosity as a digit or a single-digit string."""
        config = SyncConfig.from_dict({"verbosity": value})  # type: ignore[typeddict-item]
        assert config.verbosity == expected

    @pytest.mark.parametrize("value", [15, -1, "12", "loud", True, None])
    def test_invalid_verbosity_defaults(self, value: object, capsys) -> None:
        """Test out-of-range or non-digit verbosity falls back to the default with a warning."""
        config = SyncConfig.from_dict({"verbosity": value})  # type: ignore[typeddict-item]
        assert config.verbosity == DEFAULT_VERBOSITY
        assert "Invalid verbosity" in capsys.readouterr().out

    @pytest.mark.parametrize("key", ["strip", "remote_update", "force", "dry_run"])
    def test_boolean_strings(self, key: str) -> None:
        """Test "true" and "false" strings are read as booleans."""
        assert getattr(SyncConfig.from_dict({key: "false"}), key) is False  # type: ignore[misc]
        assert getattr(SyncConfig.from_dict({key: "True"}), key) is True  # type: ignore[misc]

    def test_invalid_boolean_defaults(self, capsys) -> None:
        """Test unrecognized boolean values fall back to each key's default."""
        data = {"strip": "no", "remote_update": 0, "force": "yes", "dry_run": []}
        config = SyncConfig.from_dict(data)  # type: ignore[arg-type]
        assert config.strip is True
        assert config.remote_update is True
        assert config.force is False
        assert config.dry_run is False
        assert "Invalid value 'no' for strip" in capsys.readouterr().out

    def test_string_values_are_split(self) -> None:
        """Test features and update command given as strings."""
        data = {"features": "pcre2, simd-accel", "toolchain_update_cmd": "rustup update stable"}
        config = SyncConfig.from_dict(data)  # type: ignore[arg-type]
        assert config.features == ["pcre2", "simd-accel"]
        assert config.toolchain_update_cmd == ["rustup", "update", "stable"]

    def test_empty_upstream_means_auto(self) -> None:
        """Test that an empty upstream string is treated as unset."""
        config = SyncConfig.from_dict({"upstream": ""})
        assert config.upstream is None

    def test_target_path(self, tmp_path: Path) -> None:
        """Test the target executable path is inside the source dir."""
        config = SyncConfig.from_dict({"source_dir": str(tmp_path)})
        assert config.target == tmp_path / "target" / "release" / "rg"


class TestLoadConfigFile:
    """Tests for load_config_file function."""

    def test_load_yaml_config(self, tmp_path: Path) -> None:
        """Test loading a YAML config from the working directory."""
        (tmp_path / ".ripgrep-syncrc.yaml").write_text(
            "source_dir: /src/rg\nfeatures:\n  - pcre2\nstrip: false\n"
        )
        config = load_config_file()
        assert config["source_dir"] == "/src/rg"
        assert config["features"] == ["pcre2"]
        assert config["strip"] is False

    def test_load_json_config(self, tmp_path: Path) -> None:
        """Test loading a JSON config file."""
        (tmp_path / ".ripgrep-syncrc.json").write_text(json.dumps({"upstream": "origin/main"}))
        config = load_config_file()
        assert config == {"upstream": "origin/main"}

    def test_explicit_path(self, tmp_path: Path) -> None:
        """Test loading an explicitly named config file."""
        path = tmp_path / "custom.yml"
        path.write_text("verbosity: 4\n")
        assert load_config_file(path) == {"verbosity": 4}

    def test_explicit_missing_path_raises(self, tmp_path: Path) -> None:
        """Test that a missing explicit config file is an error."""
        with pytest.raises(FileNotFoundError):
            load_config_file(tmp_path / "missing.yaml")

    def test_no_config_returns_empty(self) -> None:
        """Test that no config files yields an empty dict."""
        assert load_config_file() == {}

    def test_invalid_yaml_is_skipped(self, tmp_path: Path) -> None:
        """Test that an unparsable file is skipped."""
        (tmp_path / ".ripgrep-syncrc.yaml").write_text("features: [unclosed\n")
        assert load_config_file() == {}

    def test_invalid_file_falls_through_to_next(self, tmp_path: Path) -> None:
        """Test that a broken file does not hide a later valid one."""
        (tmp_path / ".ripgrep-syncrc.yaml").write_text("features: [unclosed\n")
        (tmp_path / ".ripgrep-syncrc.json").write_text(json.dumps({"strip": False}))
        assert load_config_file() == {"strip": False}

    def test_non_mapping_is_skipped(self, tmp_path: Path) -> None:
        """Test that a YAML list is not accepted as configuration."""
        (tmp_path / ".ripgrep-syncrc.yaml").write_text("- a\n- b\n")
        assert load_config_file() == {}

    def test_user_config(self, tmp_path: Path, monkeypatch: MonkeyPatch) -> None:
        """Test falling back to the per-user config file."""
        user_config = tmp_path / "user" / "config.yaml"
        user_config.parent.mkdir()
        user_config.write_text("upstream: mine/main\n")
        monkeypatch.setattr("ripgrep_sync.config.USER_CONFIG_FILE", user_config)
        assert load_config_file() == {"upstream": "mine/main"}


class TestLoadEnvConfig:
    """Tests for load_env_config function."""

    def test_empty_environment(self) -> None:
        """Test that no variables yields an empty dict."""
        assert load_env_config() == {}

    def test_source_and_upstream(self, monkeypatch: MonkeyPatch) -> None:
        """Test RIPGREP_SYNC_DIR and RIPGREP_SYNC_UPSTREAM."""
        monkeypatch.setenv("RIPGREP_SYNC_DIR", "/opt/rg")
        monkeypatch.setenv("RIPGREP_SYNC_UPSTREAM", "upstream/master")
        config = load_env_config()
        assert config["source_dir"] == "/opt/rg"
        assert config["upstream"] == "upstream/master"

    def test_features(self, monkeypatch: MonkeyPatch) -> None:
        """Test RIPGREP_SYNC_FEATURES is split on commas."""
        monkeypatch.setenv("RIPGREP_SYNC_FEATURES", "pcre2,,simd-accel ")
        assert load_env_config()["features"] == ["pcre2", "simd-accel"]

    def test_strip_false(self, monkeypatch: MonkeyPatch) -> None:
        """Test RIPGREP_SYNC_STRIP=false."""
        monkeypatch.setenv("RIPGREP_SYNC_STRIP", "false")
        assert load_env_config()["strip"] is False

    def test_strip_invalid_ignored(self, monkeypatch: MonkeyPatch) -> None:
        """Test that other RIPGREP_SYNC_STRIP values are ignored."""
        monkeypatch.setenv("RIPGREP_SYNC_STRIP", "maybe")
        assert "strip" not in load_env_config()

    def test_dry_run(self, monkeypatch: MonkeyPatch) -> None:
        """Test RIPGREP_SYNC_DRY_RUN=true."""
        monkeypatch.setenv("RIPGREP_SYNC_DRY_RUN", "TRUE")
        assert load_env_config()["dry_run"] is True


class TestMergeConfigs:
    """Tests for merge_configs function."""

    def test_simple_merge(self) -> None:
        """Test merging disjoint configs."""
        merged = merge_configs({"strip": False}, {"upstream": "origin/master"})
        assert merged == {"strip": False, "upstream": "origin/master"}

    def test_override(self) -> None:
        """Test that later configs override earlier ones."""
        merged = merge_configs({"features": ["a"]}, {"features": ["b"]}, {})
        assert merged["features"] == ["b"]
