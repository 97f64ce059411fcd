"""
Configuration models and loading.

This module provides the Pydantic settings model for branchpub
with multi-layer merging: defaults < user < project < env vars.
"""

from .env import MissingEnvironmentError, load_layered_env, optional_env, require_env
from .loader import (
    get_project_config_path,
    get_user_config_path,
    get_xdg_config_home,
    load_settings,
)
from .models import PublishSettings

__all__ = [
    # Models
    "PublishSettings",
    # Loader functions
    "get_project_config_path",
    "get_user_config_path",
    "get_xdg_config_home",
    "load_settings",
    # Environment
    "MissingEnvironmentError",
    "load_layered_env",
    "optional_env",
    "require_env",
]
