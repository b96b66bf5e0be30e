from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .core.models import DEFAULT_SEARCH_PATH

DEFAULT_CONF = "conf/hostexec.yaml"


class Settings(BaseSettings):
    # ---- wrapping ----
    chroot_dir: str = ""
    command_map: Dict[str, str] = {}
    search_path: List[str] = Field(default_factory=lambda: list(DEFAULT_SEARCH_PATH))

    # ---- logging ----
    log_level: str = "INFO"
    log_json: bool = True

    # env prefix HOSTEXEC_*
    model_config = SettingsConfigDict(env_prefix="HOSTEXEC_", extra="ignore")

    @field_validator("search_path")
    @classmethod
    def _absolute_dirs(cls, value: List[str]) -> List[str]:
        for entry in value:
            if not entry.startswith("/"):
                raise ValueError(f"search_path entries must be absolute, got {entry!r}")
        return value


def _read_yaml(path: str | os.PathLike) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        data = {}
    return data if isinstance(data, dict) else {}


def load_settings(path: Optional[str | os.PathLike] = None) -> Settings:
    # 0) base from HOSTEXEC_* env
    s = Settings()

    # 1) YAML file: explicit path, $HOSTEXEC_CONF, or conf/hostexec.yaml
    conf = path if path is not None else os.environ.get("HOSTEXEC_CONF", DEFAULT_CONF)
    data = _read_yaml(Path(conf))

    logging_cfg = data.get("logging") or {}
    if not isinstance(logging_cfg, dict):
        logging_cfg = {}

    # 2) file values win over env; go through model_validate so validators run
    merged = s.model_dump()
    for key in ("chroot_dir", "command_map", "search_path"):
        if data.get(key) is not None:
            merged[key] = data[key]
    if "level" in logging_cfg:
        merged["log_level"] = str(logging_cfg["level"])
    if "json" in logging_cfg:
        merged["log_json"] = bool(logging_cfg["json"])

    return Settings.model_validate(merged)
