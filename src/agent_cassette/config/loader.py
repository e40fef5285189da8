from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Mapping

import yaml

from .models import CassetteConfig

ENV_PATH = "CASSETTE_PATH"
ENV_MODE = "CASSETTE_MODE"


def _load_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}") from exc
    except OSError as exc:
        raise FileNotFoundError(f"Unable to read {path}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected a YAML mapping in {path}")
    return data


def load_config(path: Path | None = None, env: Mapping[str, str] | None = None) -> CassetteConfig:
    """Build a CassetteConfig from an optional YAML file plus environment overrides.

    ``CASSETTE_PATH`` and ``CASSETTE_MODE`` win over the file. A relative
    ``cassette_path`` from the file is resolved against the file's directory.
    """
    environ = os.environ if env is None else env
    data: dict[str, Any] = {}
    if path is not None:
        config_path = path
        if config_path.is_dir():
            config_path = config_path / "cassette.yaml"
        if not config_path.is_file():
            raise FileNotFoundError(f"Cassette config not found: {config_path}")
        data = _load_yaml(config_path)
        cassette_path = data.get("cassette_path")
        if isinstance(cassette_path, str) and cassette_path and not Path(cassette_path).is_absolute():
            data["cassette_path"] = str((config_path.parent / cassette_path).resolve())

    env_path = environ.get(ENV_PATH)
    if env_path:
        data["cassette_path"] = env_path
    env_mode = environ.get(ENV_MODE)
    if env_mode:
        data["mode"] = env_mode.strip().lower()
    return CassetteConfig.model_validate(data)
