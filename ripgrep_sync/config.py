"""Configuration loading for ripgrep-sync.

Settings are merged in order: built-in defaults, configuration file,
environment variables, command-line flags.

Configuration file (.ripgrep-syncrc.yaml):

    source_dir: ~/git/ripgrep
    upstream: origin/master
    binary: target/release/rg
    features: [pcre2]
    rustflags: -C target-cpu=native
    strip: true
    remote_update: true
    toolchain_update_cmd: [rustup, update]
    toolchain_marker: "updated - "
    toolchain_failure: warn
    verbosity: 2

Environment Variables:
    RIPGREP_SYNC_DIR        Source directory
    RIPGREP_SYNC_UPSTREAM   Upstream specifier (remote/branch)
    RIPGREP_SYNC_FEATURES   Comma-separated cargo features
    RIPGREP_SYNC_STRIP      Set to 'false' to keep debug symbols
    RIPGREP_SYNC_DRY_RUN    Set to 'true' for dry run
"""

from __future__ import annotations

import json
import os
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TypedDict, cast

import yaml

from ripgrep_sync.console import DEFAULT_VERBOSITY, logger

# Default configuration file names, searched in the working directory
CONFIG_FILE_NAMES = [".ripgrep-syncrc.yaml", ".ripgrep-syncrc.yml", ".ripgrep-syncrc.json"]

# Per-user configuration file
USER_CONFIG_FILE = Path("~/.config/ripgrep-sync/config.yaml")

DEFAULT_SOURCE_DIR = "~/git/ripgrep"
DEFAULT_BINARY = "target/release/rg"
DEFAULT_FEATURES = ["pcre2"]
DEFAULT_RUSTFLAGS = "-C target-cpu=native"
DEFAULT_TOOLCHAIN_UPDATE_CMD = ["rustup", "update"]

# rustup prints "<toolchain> updated - rustc ..." for every toolchain it upgraded
# and "<toolchain> unchanged - rustc ..." otherwise
DEFAULT_TOOLCHAIN_MARKER = "updated - "

# -v takes exactly one digit
VERBOSITY_PATTERN = re.compile(r"[0-9]")


def parse_verbosity(value: str) -> int | None:
    """Return the verbosity for a single-digit string, else None."""
    if VERBOSITY_PATTERN.fullmatch(value):
        return int(value)
    return None


def _coerce_verbosity(value: object) -> int:
    if isinstance(value, int) and not isinstance(value, bool) and 0 <= value <= 9:
        return value
    if isinstance(value, str):
        verbosity = parse_verbosity(value.strip())
        if verbosity is not None:
            return verbosity
    logger.warning(f"Invalid verbosity '{value}', using {DEFAULT_VERBOSITY}")
    return DEFAULT_VERBOSITY


def _coerce_bool(key: str, value: object, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    logger.warning(f"Invalid value '{value}' for {key}, using {str(default).lower()}")
    return default


class ToolchainFailurePolicy(Enum):
    """What to do when a stage of the toolchain update fails."""

    WARN = "warn"
    ABORT = "abort"


class ConfigDict(TypedDict, total=False):
    """Type definition for configuration dictionary."""

    source_dir: str
    upstream: str
    binary: str
    features: list[str]
    rustflags: str
    strip: bool
    remote_update: bool
    toolchain_update_cmd: list[str]
    toolchain_marker: str
    toolchain_failure: str
    verbosity: int
    force: bool
    dry_run: bool


@dataclass
class SyncConfig:
    """Runtime configuration for a single sync run."""

    source_dir: Path = field(default_factory=lambda: Path(DEFAULT_SOURCE_DIR).expanduser())
    upstream: str | None = None
    binary: str = DEFAULT_BINARY
    features: list[str] = field(default_factory=lambda: list(DEFAULT_FEATURES))
    rustflags: str = DEFAULT_RUSTFLAGS
    strip: bool = True
    remote_update: bool = True
    toolchain_update_cmd: list[str] = field(
        default_factory=lambda: list(DEFAULT_TOOLCHAIN_UPDATE_CMD)
    )
    toolchain_marker: str = DEFAULT_TOOLCHAIN_MARKER
    toolchain_failure: ToolchainFailurePolicy = ToolchainFailurePolicy.WARN
    verbosity: int = DEFAULT_VERBOSITY
    force: bool = False
    dry_run: bool = False

    @classmethod
    def from_dict(cls, data: ConfigDict) -> SyncConfig:
        """Create from dictionary."""
        policy_str = data.get("toolchain_failure", "warn")
        try:
            policy = ToolchainFailurePolicy(policy_str)
        except ValueError:
            logger.warning(f"Unknown toolchain_failure policy '{policy_str}', using 'warn'")
            policy = ToolchainFailurePolicy.WARN

        features = data.get("features", DEFAULT_FEATURES)
        if isinstance(features, str):
            features = [f.strip() for f in features.split(",") if f.strip()]

        update_cmd = data.get("toolchain_update_cmd", DEFAULT_TOOLCHAIN_UPDATE_CMD)
        if isinstance(update_cmd, str):
            update_cmd = update_cmd.split()

        return cls(
            source_dir=Path(data.get("source_dir", DEFAULT_SOURCE_DIR)).expanduser(),
            upstream=data.get("upstream") or None,
            binary=data.get("binary", DEFAULT_BINARY),
            features=list(features),
            rustflags=data.get("rustflags", DEFAULT_RUSTFLAGS),
            strip=_coerce_bool("strip", data.get("strip", True), True),
            remote_update=_coerce_bool("remote_update", data.get("remote_update", True), True),
            toolchain_update_cmd=list(update_cmd),
            toolchain_marker=data.get("toolchain_marker", DEFAULT_TOOLCHAIN_MARKER),
            toolchain_failure=policy,
            verbosity=_coerce_verbosity(data.get("verbosity", DEFAULT_VERBOSITY)),
            force=_coerce_bool("force", data.get("force", False), False),
            dry_run=_coerce_bool("dry_run", data.get("dry_run", False), False),
        )

    @property
    def target(self) -> Path:
        """Path of the executable the build produces."""
        return self.source_dir / self.binary


def _read_config(path: Path) -> ConfigDict:
    with open(path, encoding="utf-8") as f:
        if path.suffix == ".json":
            return cast(ConfigDict, json.load(f))
        return cast(ConfigDict, yaml.safe_load(f) or {})


def load_config_file(config_path: Path | None = None) -> ConfigDict:
    """Load configuration from file.

    An explicit path must exist. Without one, the working directory and then
    the per-user location are searched; a broken file is reported and skipped.
    """
    if config_path:
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        paths = [config_path]
    else:
        paths = [Path(name) for name in CONFIG_FILE_NAMES]
        paths.append(USER_CONFIG_FILE.expanduser())

    for path in paths:
        if not path.exists():
            continue
        logger.debug(f"Loading config from {path}")
        try:
            data = _read_config(path)
        except (json.JSONDecodeError, yaml.YAMLError, OSError) as e:
            logger.warning(f"Failed to load config file {path}: {e}")
            continue
        if not isinstance(data, dict):
            logger.warning(f"Ignoring config file {path}: expected a mapping")
            continue
        return data

    return {}


def load_env_config() -> ConfigDict:
    """Load configuration from environment variables."""
    config: ConfigDict = {}

    if os.environ.get("RIPGREP_SYNC_DIR"):
        config["source_dir"] = os.environ["RIPGREP_SYNC_DIR"]
    if os.environ.get("RIPGREP_SYNC_UPSTREAM"):
        config["upstream"] = os.environ["RIPGREP_SYNC_UPSTREAM"]
    if os.environ.get("RIPGREP_SYNC_FEATURES"):
        config["features"] = [
            f.strip() for f in os.environ["RIPGREP_SYNC_FEATURES"].split(",") if f.strip()
        ]

    strip = os.environ.get("RIPGREP_SYNC_STRIP", "").lower()
    if strip == "false":
        config["strip"] = False
    elif strip == "true":
        config["strip"] = True

    if os.environ.get("RIPGREP_SYNC_DRY_RUN", "").lower() == "true":
        config["dry_run"] = True

    return config


def merge_configs(*configs: ConfigDict) -> ConfigDict:
    """Merge multiple configurations, later ones override earlier."""
    result: ConfigDict = {}
    for config in configs:
        for key, value in config.items():
            result[key] = value  # type: ignore[literal-required]
    return result
