"""Container configuration: global defaults plus one spec per container.

The file is YAML with two top-level mappings::

    options:
      config_base_path: /volume1/docker
      PUID: 1000
      PGID: 1000
    containers:
      plex:
        image: plexinc/pms-docker:plexpass
        arguments:
          p: [[32400, 32400]]

Option and container keys also accept the camelCase spelling used by older
configuration files (``configBasePath``, ``alwaysRun``, ``logLevel``).
"""
from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .arguments import parse_arguments


class ConfigurationError(Exception):
    """Configuration is missing or invalid; nothing can be updated."""


class GlobalDefaults(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    debug: bool = False
    log_level: int = Field(1, ge=0, le=3, validation_alias=AliasChoices("log_level", "logLevel"))

    network: str = "host"
    timezone: str = "Europe/Amsterdam"
    always_run: bool = Field(False, validation_alias=AliasChoices("always_run", "alwaysRun"))
    prune: bool = True
    restart: str = "unless-stopped"

    puid: int | None = Field(None, validation_alias=AliasChoices("puid", "PUID"))
    pgid: int | None = Field(None, validation_alias=AliasChoices("pgid", "PGID"))

    config_base_path: str = Field(..., min_length=1, validation_alias=AliasChoices("config_base_path", "configBasePath"))

    email_from: str | None = None
    email_to: str | None = None
    sendmail: str = "/usr/sbin/sendmail"


class ContainerSpec(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    name: str
    image: str = Field(..., min_length=1)
    always_run: bool | None = Field(None, validation_alias=AliasChoices("always_run", "alwaysRun"))
    debug: bool | None = None
    arguments: dict[str, Any] = Field(default_factory=dict)

    @field_validator("arguments", mode="before")
    @classmethod
    def check_arguments(cls, v: Any) -> Any:
        if v is None:
            return {}
        if not isinstance(v, dict):
            raise ValueError("arguments must be a mapping")
        if "name" in v:
            raise ValueError("'name' is taken from the container key and cannot be set in arguments")
        parse_arguments(v)
        return v


class UpdaterConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    options: GlobalDefaults
    containers: dict[str, ContainerSpec] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def name_containers(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        containers = data.get("containers") or {}
        if not isinstance(containers, dict):
            raise ValueError("containers must be a mapping of name -> container spec")
        named: dict[str, Any] = {}
        for name, spec in containers.items():
            if isinstance(spec, dict):
                spec = {**spec, "name": str(name)}
            named[str(name)] = spec
        return {**data, "containers": named}

    def get(self, name: str) -> ContainerSpec | None:
        return self.containers.get(name)


def resolve_config_dir(base_path: str, name: str) -> str:
    """``<base_path>/<name>/config`` with trailing slashes of the base collapsed."""
    return f"{base_path.rstrip('/')}/{name}/config"


def parse_config(data: Any) -> UpdaterConfig:
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"YAML root must be a mapping, not {type(data).__name__}")

    try:
        return UpdaterConfig.model_validate({**data, "options": data.get("options") or {}})
    except ValidationError as e:
        for err in e.errors():
            loc = err.get("loc") or ()
            if err.get("type") == "missing" and loc[:1] == ("options",) and loc[-1] in ("config_base_path", "configBasePath"):
                raise ConfigurationError(
                    "`config_base_path` not defined. Add it to the `options` mapping of your configuration file."
                ) from e
        raise ConfigurationError(f"Invalid configuration: {e}") from e


def load_config(config_path: Path | str) -> UpdaterConfig:
    """Load and validate the container configuration file.

    Raises:
        ConfigurationError: file missing, unreadable YAML, or invalid content.
    """
    path = Path(config_path)
    if not path.exists():
        raise ConfigurationError(f"'{path}' not found. Can't continue.")

    try:
        with path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in config file: {e}") from e

    return parse_config(data)
