"""Project configuration: ``pal.config.json`` in the project root."""

import json
from pathlib import Path

from pydantic import ValidationError

from pal.models import PalConfig

CONFIG_FILENAME = "pal.config.json"


class ProjectConfigError(ValueError):
    """The project has no config, or the config is invalid."""


def get_config_path(project_path: Path) -> Path:
    return project_path / CONFIG_FILENAME


def config_exists(project_path: Path) -> bool:
    return get_config_path(project_path).exists()


def load_config(project_path: Path) -> PalConfig:
    """Load and validate a project's config.

    Raises ProjectConfigError if the file is missing, not JSON, or fails
    validation. Validation errors list each offending field path.
    """
    config_path = get_config_path(project_path)
    if not config_path.exists():
        raise ProjectConfigError(f"{CONFIG_FILENAME} not found in {project_path}")

    try:
        parsed = json.loads(config_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ProjectConfigError(f"Invalid JSON in {config_path}") from e

    try:
        return PalConfig.model_validate(parsed)
    except ValidationError as e:
        errors = "\n".join(
            f"  - {'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ProjectConfigError(f"Invalid {CONFIG_FILENAME}:\n{errors}") from e


def save_config(project_path: Path, config: PalConfig) -> None:
    """Validate and write the config as indented JSON."""
    try:
        validated = PalConfig.model_validate(config.model_dump(by_alias=True))
    except ValidationError as e:
        raise ProjectConfigError("Invalid config data") from e
    data = validated.model_dump(by_alias=True, exclude_none=True)
    get_config_path(project_path).write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")


def create_default_config(project_name: str) -> PalConfig:
    return PalConfig(project_name=project_name)


def secret_id(config: PalConfig, service_id: str) -> str:
    """Keystore identifier for a project's service: ``<projectName>:<serviceId>``."""
    return f"{config.project_name}:{service_id}"
