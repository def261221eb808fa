# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/fiwarelab/config/loader.py

import logging
import os
import yaml
from pathlib import Path
from .models import FiwareLabConfig

log = logging.getLogger("fiwarelab")


def _deep_merge(base: dict, override: dict) -> dict:
    """
    Recursively merge *override* into *base* (mutates base).
    Only overwrites when the override value is non-empty.
    """
    for key, value in override.items():
        if (
            key in base
            and isinstance(base[key], dict)
            and isinstance(value, dict)
        ):
            _deep_merge(base[key], value)
        else:
            if value not in (None, ""):
                base[key] = value
    return base


def _find_secrets_file(config_path: Path) -> Path | None:
    """
    Locate secrets.yaml:

    1. FIWARELAB_SECRETS_FILE environment variable (explicit override)
    2. secrets.yaml in the same directory as the config file
    """
    env = os.environ.get("FIWARELAB_SECRETS_FILE")
    if env:
        p = Path(env)
        if p.is_file():
            return p
        log.warning("FIWARELAB_SECRETS_FILE=%s does not exist, skipping", env)
        return None

    p = config_path.parent / "secrets.yaml"
    if p.is_file():
        return p

    return None


def _load_yaml(path: Path) -> dict:
    """Load a YAML file, expanding ${ENV_VAR} references."""
    raw = path.read_text()
    expanded = os.path.expandvars(raw)
    return yaml.safe_load(expanded) or {}


def load_config(path: str | Path | None = None) -> FiwareLabConfig:
    """
    Load and validate a fiwarelab YAML config.

    Credentials usually live apart from the config:

    **secrets.yaml**
        Same structure as the config (e.g. ``identity: {password: ...}``),
        deep-merged before validation. Found via ``FIWARELAB_SECRETS_FILE``
        or next to the config file.

    **environment variables**
        ``${ENV_VAR}`` placeholders anywhere in either file are expanded
        with ``os.path.expandvars``.

    With no path, the defaults (public FIWARE Lab endpoints) are returned.
    """
    if path is None:
        return FiwareLabConfig()

    path = Path(path)
    data = _load_yaml(path)

    secrets_path = _find_secrets_file(path)
    if secrets_path:
        log.debug("Merging secrets from %s", secrets_path)
        _deep_merge(data, _load_yaml(secrets_path))
    else:
        log.debug("No secrets.yaml found, proceeding without secrets merge")

    return FiwareLabConfig.model_validate(data)
