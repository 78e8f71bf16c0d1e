"""
hmacpw - Configuration

Defaults and on-disk locations. Everything lives under one config
directory:

    <config_dir>/secret              # the key (mode 0600)
    <config_dir>/sites/<site>.conf   # optional per-site policy

config_dir is ~/.config/pw unless PW_CONFIG_DIR is set.
"""

import os
from typing import Final, Optional


DEFAULT_LENGTH: Final[int] = 12
DEFAULT_SPECIAL_CHARS: Final[str] = "!@#$%^&*"

CONFIG_DIR_ENV: Final[str] = "PW_CONFIG_DIR"
SECRET_FILENAME: Final[str] = "secret"
SITES_DIRNAME: Final[str] = "sites"
POLICY_SUFFIX: Final[str] = ".conf"


def default_config_dir() -> str:
    """Config directory, honouring the PW_CONFIG_DIR override."""
    override = os.environ.get(CONFIG_DIR_ENV)
    if override:
        return os.path.expanduser(override)
    return os.path.join(os.path.expanduser("~"), ".config", "pw")


def secret_path(config_dir: Optional[str] = None) -> str:
    return os.path.join(config_dir or default_config_dir(), SECRET_FILENAME)


def site_config_path(site_key: str, config_dir: Optional[str] = None) -> str:
    """
    Path of the policy file for an already-sanitized site key.

    Args:
        site_key: Output of policy.sanitize_site_key()
        config_dir: Base directory (default: default_config_dir())
    """
    return os.path.join(
        config_dir or default_config_dir(),
        SITES_DIRNAME,
        site_key + POLICY_SUFFIX,
    )
