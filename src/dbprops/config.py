"""Configuration loading for dbprops."""

import json
import os
from pathlib import Path
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from dbprops.codes import PropertyType

CONFIG_ENV_VAR = "DBPROPS_CONFIG"


class Config(BaseModel):
    """Settings for an editing workflow."""
    reserved_keys: List[str] = Field(
        default_factory=lambda: ["tags", "aliases", "cssclasses"],
        description="Host-structural keys that cannot be renamed",
    )
    add_default_value: Any = ""  # Value written for added properties
    add_default_type: str = PropertyType.TEXT.value  # Type label shown for added properties
    on_write_error: Literal["abort", "continue"] = "abort"
    backup: bool = False  # Keep a .bak copy of every rewritten document
    suffixes: List[str] = Field(default_factory=lambda: [".md"])
    fuzzy_threshold: float = Field(55.0, ge=0, le=100)

    model_config = ConfigDict(extra="forbid")

    @field_validator("add_default_type")
    @classmethod
    def validate_add_default_type(cls, v: str) -> str:
        """Validate the type label is one of the known labels."""
        labels = [t.value for t in PropertyType]
        if v not in labels:
            raise ValueError(f"Unknown type label '{v}' (expected one of: {', '.join(labels)})")
        return v

    @field_validator("suffixes")
    @classmethod
    def validate_suffixes(cls, v: List[str]) -> List[str]:
        """Normalize suffixes to lower case with a leading dot."""
        if not v:
            raise ValueError("At least one document suffix is required")
        return [s.lower() if s.startswith(".") else f".{s.lower()}" for s in v]


def get_config_path() -> Path:
    """Get the default configuration file path."""
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)
    return Path.home() / ".dbprops" / "config.json"


def load_config(config_path: Optional[Path] = None) -> Config:
    """
    Load configuration from file or return defaults.

    Args:
        config_path: Optional path to config file. Falls back to
            $DBPROPS_CONFIG, then ~/.dbprops/config.json.

    Returns:
        Loaded configuration object.
    """
    path = Path(config_path) if config_path is not None else get_config_path()

    if path.exists():
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
            return Config.model_validate(data)
        except (json.JSONDecodeError, ValueError) as e:
            raise ValueError(
                f"Failed to load config from {path}: {e}. "
                "Fix the file or remove it to use defaults."
            ) from e

    return Config()
