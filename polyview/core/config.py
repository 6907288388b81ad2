from __future__ import annotations

import json
import tomllib
from pathlib import Path
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .diagnostics import ConfigError

DEFAULT_CONFIG: Dict[str, Any] = {
    "polygon_policy": "forward",
    "log_level": "INFO",
    "logs_dir": None,
}


class LoaderConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)
    # "forward" hands non-triangular polygons to the mesh builder unchanged;
    # "reject" fails during decoding at the first one.
    polygon_policy: Literal["forward", "reject"] = Field(default="forward")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(default="INFO")
    logs_dir: Optional[Path] = None

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value


def load_config(path: Path) -> LoaderConfig:
    data = _load_data(path)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError("Loader config must be a mapping", location=str(path))
    if "polyview" in data and isinstance(data["polyview"], dict):
        data = data["polyview"]
    config = normalize_config(data)
    if config.logs_dir is not None and not config.logs_dir.is_absolute():
        config = config.model_copy(update={"logs_dir": (path.parent / config.logs_dir).resolve()})
    return config


def normalize_config(config: Optional[Dict[str, Any]] = None) -> LoaderConfig:
    merged = json.loads(json.dumps(DEFAULT_CONFIG))
    merged.update(config or {})
    try:
        return LoaderConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(str(exc), location="config") from exc


def _load_data(path: Path) -> Any:
    try:
        if path.suffix in {".yaml", ".yml"}:
            import yaml

            with path.open("r", encoding="utf-8") as handle:
                return yaml.safe_load(handle)
        if path.suffix == ".toml":
            with path.open("rb") as handle:
                return tomllib.load(handle)
        with path.open("r", encoding="utf-8") as handle:
            return json.load(handle)
    except OSError as exc:
        raise ConfigError(f"Cannot read config: {exc}", location=str(path)) from exc
