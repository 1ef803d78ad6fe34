"""
Engine configuration.

Defaults live on EngineConfig. `load_config` layers a YAML file and then
FORMENGINE_* environment variables on top, e.g.:

    FORMENGINE_UPLOAD_MAX_ATTEMPTS=3
    FORMENGINE_UPLOADER_URL=http://uploader.local
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml

ENV_PREFIX = "FORMENGINE_"

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass
class EngineConfig:
    max_progress_entries: int = 100
    upload_max_attempts: int = 5
    upload_initial_delay: float = 0.5
    upload_backoff_factor: float = 2.0
    upload_max_files: int = 25
    uploader_url: str = "http://localhost:7337"
    uploader_bucket_name: str = "form-uploads"
    http_timeout: float = 10.0
    log_level: str = "INFO"

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "EngineConfig":
        known = {f.name: f for f in fields(cls)}
        kwargs: Dict[str, Any] = {}
        for key, value in values.items():
            if key not in known:
                raise ValueError(f"Unknown configuration key: {key}")
            kwargs[key] = _coerce(known[key].type, value)
        return cls(**kwargs)


def _coerce(type_name: Any, value: Any) -> Any:
    # Field types are strings because of `from __future__ import annotations`
    if type_name == "int":
        return int(value)
    if type_name == "float":
        return float(value)
    return str(value)


def load_config(
    path: Optional[Union[str, Path]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> EngineConfig:
    values: Dict[str, Any] = {}

    if path is not None:
        with open(path, "r", encoding="utf-8") as f:
            loaded = yaml.safe_load(f) or {}
        if not isinstance(loaded, dict):
            raise ValueError(f"Configuration file {path} must contain a mapping")
        values.update(loaded)

    environ = os.environ if environ is None else environ
    names = {f.name for f in fields(EngineConfig)}
    for key, value in environ.items():
        if key.startswith(ENV_PREFIX):
            name = key[len(ENV_PREFIX):].lower()
            if name in names:
                values[name] = value

    return EngineConfig.from_mapping(values)


def configure_logging(config: Optional[EngineConfig] = None) -> None:
    level = (config or EngineConfig()).log_level.upper()
    logging.basicConfig(level=level, format=LOG_FORMAT)
