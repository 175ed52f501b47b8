"""Layered configuration loading.

Sources, lowest to highest precedence:
1. Built-in defaults (models.py)
2. Global YAML (~/.config/extannotations/config.yaml)
3. Explicit YAML passed to load_config(), merged key by key over the global one
4. Environment variables (EXTANNOTATIONS__SECTION__KEY)
5. Keyword arguments to load_config()
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from extannotations.config.models import (
    AnnotationsConfig,
    LocationsConfig,
    LoggingConfig,
    ScannerConfig,
    WatcherConfig,
)
from extannotations.core.errors import ConfigError

GLOBAL_CONFIG_PATH = Path("~/.config/extannotations/config.yaml").expanduser()

ENV_PREFIX = "EXTANNOTATIONS__"


def _load_yaml(path: Path) -> dict[str, Any]:
    """Read one YAML file. Missing files and empty documents yield ``{}``."""
    if not path.is_file():
        return {}
    try:
        with path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError.parse_error(str(path), str(e)) from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError.parse_error(str(path), "top-level value must be a mapping")
    return data


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge ``override`` into a copy of ``base``; nested sections merge per key."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = _deep_merge(current, value)
        else:
            merged[key] = value
    return merged


class _PreloadedYamlSource(PydanticBaseSettingsSource):
    """Feeds already-parsed YAML sections to pydantic-settings."""

    def __init__(self, settings_cls: type[BaseSettings], sections: dict[str, Any]) -> None:
        super().__init__(settings_cls)
        self._sections = sections

    def get_field_value(
        self,
        field: Any,  # noqa: ARG002
        field_name: str,
    ) -> tuple[Any, str, bool]:
        value = self._sections.get(field_name)
        return value, field_name, value is not None

    def __call__(self) -> dict[str, Any]:
        return self._sections


def _settings_class_for(sections: dict[str, Any]) -> type[BaseSettings]:
    # A class per call keeps the YAML out of shared class state
    class AnnotationsSettings(BaseSettings):
        model_config = SettingsConfigDict(
            env_prefix=ENV_PREFIX,
            env_nested_delimiter="__",
            case_sensitive=False,
        )

        logging: LoggingConfig = Field(default_factory=LoggingConfig)
        locations: LocationsConfig = Field(default_factory=LocationsConfig)
        scanner: ScannerConfig = Field(default_factory=ScannerConfig)
        watcher: WatcherConfig = Field(default_factory=WatcherConfig)

        @classmethod
        def settings_customise_sources(
            cls,
            settings_cls: type[BaseSettings],
            init_settings: PydanticBaseSettingsSource,
            env_settings: PydanticBaseSettingsSource,
            dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
            file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        ) -> tuple[PydanticBaseSettingsSource, ...]:
            # First source wins
            return (init_settings, env_settings, _PreloadedYamlSource(settings_cls, sections))

    return AnnotationsSettings


def load_config(config_path: Path | None = None, **kwargs: Any) -> AnnotationsConfig:
    """Resolve the configuration from every source.

    Args:
        config_path: Extra YAML file layered over the global one.
        **kwargs: Section overrides, e.g. ``scanner=ScannerConfig(...)``.

    Raises:
        ConfigError: Missing explicit file, unparseable YAML, or a value that
            fails validation.
    """
    sections = _load_yaml(GLOBAL_CONFIG_PATH)
    if config_path is not None:
        if not config_path.is_file():
            raise ConfigError.file_not_found(str(config_path))
        sections = _deep_merge(sections, _load_yaml(config_path))

    try:
        settings = _settings_class_for(sections)(**kwargs)
        return AnnotationsConfig.model_validate(settings.model_dump())
    except ValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first["loc"])
        raise ConfigError.invalid_value(location, first.get("input"), first["msg"]) from e
