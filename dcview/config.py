# config.py
# Runtime settings for dcview
#
# Defaults come from environment variables at import time. An optional
# TOML file at <user config dir>/dcv/config.toml can override the
# defaults; environment variables always win over the file.

import os
import sys
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dcview.modules.errors import ConfigError


# =============================================================================
# Environment Defaults
# =============================================================================

DCV_RUNTIME = os.getenv("DCV_RUNTIME", "docker")
DCV_HELPER_PATH = os.getenv("DCV_HELPER_PATH", "/.dcv-helper")
DCV_HELPER_DIR = os.getenv("DCV_HELPER_DIR", "")
DCV_STRICT_ARCH = os.getenv("DCV_STRICT_ARCH", "").lower() in ("1", "true", "yes", "on")
DCV_LOG_LEVEL = os.getenv("DCV_LOG_LEVEL", "WARNING").upper()

VALID_INITIAL_VIEWS = ("files", "snapshot")


@dataclass(frozen=True)
class Settings:
    """Resolved settings passed explicitly to the file access layer."""
    runtime: str = "docker"
    helper_path: str = "/.dcv-helper"
    helper_dir: str = ""
    strict_arch: bool = False
    log_level: str = "WARNING"
    initial_view: str = "files"


# =============================================================================
# Config File
# =============================================================================

def get_config_path() -> Optional[Path]:
    """
    Return the path of the user config file, or None if no config dir exists.

    Follows XDG_CONFIG_HOME on Linux, ~/Library/Application Support on
    macOS and %APPDATA% on Windows.
    """
    if sys.platform == "win32":
        base = os.getenv("APPDATA")
    elif sys.platform == "darwin":
        base = str(Path.home() / "Library" / "Application Support")
    else:
        base = os.getenv("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    if not base:
        return None
    return Path(base) / "dcv" / "config.toml"


def _read_config_file(path: Path) -> dict:
    """Parse the TOML config file. Missing file -> empty dict."""
    if not path.exists():
        return {}
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except OSError as e:
        raise ConfigError(f"failed to read config file {path}: {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"failed to parse config file {path}: {e}") from e


def load_config(path: Optional[Path] = None) -> Settings:
    """
    Build Settings from defaults, the config file, and the environment.

    Args:
        path: Explicit config file path (defaults to get_config_path())

    Returns:
        Frozen Settings instance

    Raises:
        ConfigError: if the file exists but cannot be read or parsed,
            or holds an unknown initial_view
    """
    if path is None:
        path = get_config_path()
    data = _read_config_file(path) if path else {}

    general = data.get("general", {}) or {}
    files = data.get("files", {}) or {}

    initial_view = general.get("initial_view", "files")
    if initial_view not in VALID_INITIAL_VIEWS:
        raise ConfigError(
            f"invalid initial_view {initial_view!r} in {path} "
            f"(expected one of: {', '.join(VALID_INITIAL_VIEWS)})"
        )

    runtime = general.get("runtime", "docker")
    helper_path = files.get("helper_path", "/.dcv-helper")
    strict_arch = bool(files.get("strict_arch", False))

    # Environment variables override the file
    env = os.environ
    if "DCV_RUNTIME" in env:
        runtime = env["DCV_RUNTIME"]
    if "DCV_HELPER_PATH" in env:
        helper_path = env["DCV_HELPER_PATH"]
    if "DCV_STRICT_ARCH" in env:
        strict_arch = env["DCV_STRICT_ARCH"].lower() in ("1", "true", "yes", "on")

    return Settings(
        runtime=runtime,
        helper_path=helper_path,
        helper_dir=env.get("DCV_HELPER_DIR", DCV_HELPER_DIR),
        strict_arch=strict_arch,
        log_level=env.get("DCV_LOG_LEVEL", DCV_LOG_LEVEL).upper(),
        initial_view=initial_view,
    )
