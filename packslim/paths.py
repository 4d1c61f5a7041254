from __future__ import annotations

import os
from pathlib import Path


def profiles_dir() -> Path:
    """Directory holding the bundled minimization profiles."""

    override = os.environ.get("PACKSLIM_PROFILES")
    if override:
        return Path(override).expanduser().resolve()
    return Path(__file__).resolve().parent / "profiles"


def default_config_path() -> Path:
    override = os.environ.get("PACKSLIM_CONFIG")
    if override:
        return Path(override).expanduser().resolve()
    return Path.cwd() / "packslim.toml"
