"""Environment loading helpers.

branchpub supports layered environment configuration:
- OS environment (highest precedence)
- Project environment files (e.g. .env)
- User environment files (e.g. ~/.config/branchpub/.env)

A .env file never overrides a variable already present in the process
environment (e.g. one set by the CI runner).

Precedence implemented here:
  os.environ (pre-existing) > project .env > user .env
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable, Mapping

from dotenv import dotenv_values


class MissingEnvironmentError(Exception):
    """A required environment variable is unset or empty."""

    def __init__(self, name: str):
        super().__init__(f"Required environment variable {name} is not set")
        self.name = name


def _read_env(path: Path) -> dict[str, str]:
    if not path.exists():
        return {}
    values = dotenv_values(path)
    out: dict[str, str] = {}
    for k, v in values.items():
        if k is None or v is None:
            continue
        out[str(k)] = str(v)
    return out


def load_layered_env(
    *,
    project_dir: Path | None = None,
    user_env_paths: Iterable[Path] | None = None,
    project_env_paths: Iterable[Path] | None = None,
) -> None:
    """Load environment variables from user + project .env files.

    Args:
        project_dir: base directory for project env paths (defaults to cwd)
        user_env_paths: explicit user env file paths
        project_env_paths: explicit project env file paths

    Notes:
        Keys that came from the user env may be overridden by the project
        env, but pre-existing OS environment is never overridden.
    """
    if project_dir is None:
        project_dir = Path.cwd()

    if user_env_paths is None:
        xdg_home = Path(os.environ.get("XDG_CONFIG_HOME", str(Path.home() / ".config")))
        user_env_paths = [xdg_home / "branchpub" / ".env"]

    if project_env_paths is None:
        project_env_paths = [project_dir / ".env", project_dir / ".env.local"]

    user_set_keys: set[str] = set()
    for p in user_env_paths:
        for k, v in _read_env(Path(p)).items():
            if k not in os.environ:
                os.environ[k] = v
                user_set_keys.add(k)

    for p in project_env_paths:
        for k, v in _read_env(Path(p)).items():
            if k not in os.environ or k in user_set_keys:
                os.environ[k] = v


def require_env(name: str, environ: Mapping[str, str] | None = None) -> str:
    """Return a required variable, failing fast when it is absent or empty."""
    env = os.environ if environ is None else environ
    value = env.get(name)
    if not value:
        raise MissingEnvironmentError(name)
    return value


def optional_env(name: str, environ: Mapping[str, str] | None = None) -> str:
    """Return a variable's value, or an empty string when unset."""
    env = os.environ if environ is None else environ
    return env.get(name, "")
