# === FILE: deploy_scout/config.py ===
"""
Loading and validation of the DeployScout analysis configuration.
The schema is described with Pydantic; YAML and JSON files are accepted.
"""
from __future__ import annotations

import errno
import json
import os
from pathlib import Path
from typing import Any, Optional, Tuple, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)

DEFAULT_KEYWORDS: Tuple[str, ...] = (
    "deploy",
    "deployment",
    "silent",
    "quiet",
    "unattended",
    "install",
    "mass",
    "enterprise",
    "admin",
    "intune",
    "sccm",
    "msi",
    "command-line",
    "documentation",
    "package",
    "guide",
)


class ScoutConfig(BaseModel):
    """Configuration shared by every analysis issued from one process."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    max_pages: int = Field(8, ge=1, le=10, description="Page budget of one crawl.")
    timeout: float = Field(10.0, gt=0, description="Connect+read timeout of one request (seconds).")
    politeness_delay: float = Field(0.5, ge=0, description="Pause between consecutive fetches (seconds).")
    max_attempts: int = Field(3, ge=1, le=5, description="Attempts per URL on transient network errors.")
    retry_backoff: float = Field(1.0, ge=0, description="Linear backoff step between attempts (seconds).")
    user_agent: str = Field(DEFAULT_USER_AGENT, min_length=1, description="User-Agent header.")
    keywords: Tuple[str, ...] = Field(DEFAULT_KEYWORDS, description="Keyword allowlist for link discovery.")
    max_links: int = Field(20, ge=1, description="Links kept per page by the discoverer.")
    analysis_timeout: Optional[float] = Field(
        120.0, gt=0, description="Caller-side timeout of one whole analysis (seconds)."
    )
    crawl_msi: bool = Field(False, description="Crawl documentation for MSI installers too.")

    @field_validator("keywords", mode="after")
    def _normalize_keywords(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        cleaned = tuple(dict.fromkeys(k.strip().lower() for k in v if k and k.strip()))
        if not cleaned:
            raise ValueError("keywords must contain at least one non-empty entry")
        return cleaned


_DEFAULT_CFG = Path("configs/default.yaml")


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Top level of YAML must be a mapping, got {type(data).__name__}")
    return data


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8")) or {}
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Top level of JSON must be a mapping, got {type(data).__name__}")
    return data


def load_config(path: Union[str, Path, None]) -> ScoutConfig:
    """
    Read YAML or JSON and return a validated ScoutConfig.
    Without *path*, ``configs/default.yaml`` is used when present, otherwise the defaults.
    """
    if path is None:
        if not _DEFAULT_CFG.exists():
            return ScoutConfig()
        path_obj = _DEFAULT_CFG
    else:
        path_obj = Path(path).expanduser().resolve()
        if not path_obj.is_file():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    suffix = path_obj.suffix.lower()
    if suffix in (".yaml", ".yml"):
        data = _read_yaml(path_obj)
    elif suffix == ".json":
        data = _read_json(path_obj)
    else:
        raise ValueError(f"Unsupported config format: {suffix}")

    return ScoutConfig(**data)


__all__ = ["ScoutConfig", "load_config", "ValidationError", "DEFAULT_KEYWORDS", "DEFAULT_USER_AGENT"]
