"""
Configuration loading with multi-layer merging.

Implements the configuration precedence chain:
    defaults < user config < project config < env vars
"""

import json
import logging
import os
from pathlib import Path
from typing import Any

from .models import PublishSettings

logger = logging.getLogger(__name__)


def get_xdg_config_home() -> Path:
    """
    Get XDG config home directory.

    Returns:
        Path to config directory (defaults to ~/.config)
    """
    if xdg_home := os.environ.get("XDG_CONFIG_HOME"):
        return Path(xdg_home)
    return Path.home() / ".config"


def get_user_config_path() -> Path:
    """Path to ~/.config/branchpub/config.json (or XDG equivalent)."""
    return get_xdg_config_home() / "branchpub" / "config.json"


def get_project_config_path(cwd: Path | None = None) -> Path:
    """Path to .branchpub.json in the project root."""
    if cwd is None:
        cwd = Path.cwd()
    return cwd / ".branchpub.json"


def load_json_file(path: Path) -> dict[str, Any] | None:
    """
    Load a JSON file, returning None if it doesn't exist or is invalid.

    Args:
        path: Path to JSON file

    Returns:
        Parsed JSON as dict, or None if file doesn't exist or can't be parsed
    """
    if not path.exists():
        return None

    try:
        with path.open() as f:
            data = json.load(f)
            if isinstance(data, dict):
                return data
            return None
    except (json.JSONDecodeError, OSError) as e:
        logger.warning("Failed to parse config at %s: %s", path, e)
        return None


def _parse_bool(value: str) -> bool:
    return value.lower() not in ("false", "0", "")


def apply_env_overrides(config_dict: dict[str, Any]) -> dict[str, Any]:
    """
    Apply environment variable overrides to configuration.

    Supported env vars:
        BRANCHPUB_MAX_ATTEMPTS - overrides max_attempts
        BRANCHPUB_RETRY_DELAY - overrides retry_delay_seconds
        BRANCHPUB_REMOTE_BASE_URL - overrides remote_base_url
        BRANCHPUB_KEEP_SCRATCH - overrides keep_scratch

    Invalid values are logged and ignored.
    """
    result = config_dict.copy()

    if attempts_str := os.environ.get("BRANCHPUB_MAX_ATTEMPTS"):
        try:
            attempts = int(attempts_str)
            if attempts < 1:
                logger.warning(
                    "BRANCHPUB_MAX_ATTEMPTS must be >= 1, got %d, ignoring", attempts
                )
            else:
                result["max_attempts"] = attempts
        except ValueError:
            logger.warning("Invalid BRANCHPUB_MAX_ATTEMPTS value '%s', ignoring", attempts_str)

    if delay_str := os.environ.get("BRANCHPUB_RETRY_DELAY"):
        try:
            delay = float(delay_str)
            if delay < 0:
                logger.warning("BRANCHPUB_RETRY_DELAY must be >= 0, got %s, ignoring", delay)
            else:
                result["retry_delay_seconds"] = delay
        except ValueError:
            logger.warning("Invalid BRANCHPUB_RETRY_DELAY value '%s', ignoring", delay_str)

    if base_url := os.environ.get("BRANCHPUB_REMOTE_BASE_URL"):
        result["remote_base_url"] = base_url

    if keep_str := os.environ.get("BRANCHPUB_KEEP_SCRATCH"):
        result["keep_scratch"] = _parse_bool(keep_str)

    return result


def load_settings(project_dir: Path | None = None) -> PublishSettings:
    """
    Load publish settings with multi-layer merging.

    Precedence (highest to lowest):
        1. Environment variables (BRANCHPUB_*)
        2. Project config (.branchpub.json)
        3. User config (~/.config/branchpub/config.json)
        4. Model defaults

    Raises:
        ValidationError: If the merged config fails Pydantic validation
    """
    merged: dict[str, Any] = {}

    if user_config := load_json_file(get_user_config_path()):
        merged.update(user_config)

    if project_config := load_json_file(get_project_config_path(project_dir)):
        merged.update(project_config)

    merged = apply_env_overrides(merged)

    return PublishSettings(**merged)
