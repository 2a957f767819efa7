# station_libs/config_models/index_settings.py

from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator


DEFAULT_EXCLUDED_PATH_PREFIXES = ["/Services/SecurityService/"]


class IndexSettings(BaseModel):
    """Settings for the point index rebuild."""
    excluded_path_prefixes: List[str] = Field(
        default_factory=lambda: list(DEFAULT_EXCLUDED_PATH_PREFIXES),
        description="Unescaped source paths starting with any of these prefixes never become sources.",
    )
    device_type: str = Field("driver:Device", description="Type spec of driver devices.")
    point_device_ext_type: str = Field(
        "driver:PointDeviceExt",
        description="Type spec of the points folder under a driver device. Points directly below it are attributed to the device.",
    )
    log_level: str = Field("INFO", description="Logging level used by the command line entry points.")
    model_config = {"extra": "forbid"}

    @field_validator("excluded_path_prefixes")
    @classmethod
    def prefixes_are_absolute(cls, v: List[str]) -> List[str]:
        for prefix in v:
            if not prefix.startswith("/"):
                raise ValueError(f"excluded path prefix '{prefix}' must start with '/'")
        return v

    @field_validator("log_level")
    @classmethod
    def level_is_known(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level '{v}'")
        return level


def load_index_settings(path: Optional[Path] = None) -> IndexSettings:
    """Load index settings from YAML.

    A missing path or file yields the defaults.
    """
    if path is None or not Path(path).is_file():
        return IndexSettings()
    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}
    return IndexSettings.model_validate(raw)
