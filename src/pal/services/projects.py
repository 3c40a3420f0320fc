"""Project operations: registry, adding API services, env state and env sync."""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import TypedDict

from pal.files import ensure_private_dir, write_private
from pal.keystore import Keystore
from pal.models import PalConfig, ProjectsRegistry, RegisteredProject, ServiceConfig
from pal.services.env import (
    ensure_gitignore_has_env,
    env_file_exists,
    is_placeholder,
    read_env_file,
    update_env_file,
)
from pal.services.project_config import (
    config_exists,
    create_default_config,
    load_config,
    save_config,
    secret_id,
)
from pal.services.providers import UnknownProviderError, get_provider, list_providers

logger = logging.getLogger(__name__)


class ServiceState(TypedDict):
    """Per-service health returned by summarize_env_state."""

    service: str
    provider: str
    env_var: str
    in_keystore: bool
    in_env_file: bool
    key_status: str


# --- Registry ---


def load_registry(registry_path: Path) -> ProjectsRegistry:
    ensure_private_dir(registry_path.parent)
    if not registry_path.exists():
        return ProjectsRegistry()
    return ProjectsRegistry.model_validate_json(registry_path.read_text(encoding="utf-8"))


def save_registry(registry_path: Path, registry: ProjectsRegistry) -> None:
    write_private(registry_path, registry.model_dump_json(by_alias=True, indent=2))


def register_project(registry_path: Path, project_path: Path, name: str) -> None:
    """Add a project to the registry, or rename it if its path is already known."""
    registry = load_registry(registry_path)
    path = str(project_path)
    for project in registry.projects:
        if project.path == path:
            project.name = name
            break
    else:
        registry.projects.append(
            RegisteredProject(
                name=name,
                path=path,
                added_at=datetime.now(timezone.utc).isoformat(),
            )
        )
    save_registry(registry_path, registry)


def list_projects(registry_path: Path) -> dict:
    """List registered projects with their configured providers."""
    registry = load_registry(registry_path)
    projects = []
    for project in registry.projects:
        path = Path(project.path)
        exists = path.exists()
        has_config = exists and config_exists(path)
        services = [s.provider for s in load_config(path).services] if has_config else []
        projects.append(
            {
                "name": project.name,
                "path": project.path,
                "exists": exists,
                "has_config": has_config,
                "services": services,
                "added_at": project.added_at,
            }
        )
    return {
        "total_projects": len(projects),
        "projects": projects,
        "available_providers": [
            {
                "id": p.id,
                "name": p.name,
                "env_var": p.default_env_var,
                "sdk_package": p.sdk_package,
            }
            for p in list_providers()
        ],
    }


# --- Services ---


def add_service(
    project_path: Path,
    provider_id: str,
    api_key: str,
    keystore: Keystore,
    registry_path: Path,
    env_var_key: str | None = None,
    service_id: str | None = None,
) -> dict:
    """Store a provider's API key for a project and wire it into the env file.

    Creates a default config (and registers the project) if the project has
    none yet. An existing service with the same id is replaced.

    Raises UnknownProviderError for an unknown provider and ValueError if
    the project directory does not exist.
    """
    provider = get_provider(provider_id)
    if provider is None:
        raise UnknownProviderError(f"Unknown provider: {provider_id}")

    project_path = project_path.resolve()
    if not project_path.is_dir():
        raise ValueError(f"Project path does not exist: {project_path}")

    if config_exists(project_path):
        config = load_config(project_path)
    else:
        config = create_default_config(project_path.name)
        save_config(project_path, config)
        register_project(registry_path, project_path, config.project_name)
        logger.info(f"Initialized project {config.project_name} at {project_path}")

    final_service_id = service_id or provider.id
    final_env_var = env_var_key or provider.default_env_var

    config.services = [s for s in config.services if s.id != final_service_id]
    keystore.store_secret(secret_id(config, final_service_id), api_key)
    config.services.append(
        ServiceConfig(
            id=final_service_id,
            provider=provider.id,
            env_var_key=final_env_var,
            scopes=list(provider.scopes),
        )
    )
    save_config(project_path, config)

    env_result = update_env_file(project_path, {final_env_var: api_key}, config.env_file)
    ensure_gitignore_has_env(project_path, config.env_file)

    return {
        "provider": provider.name,
        "service_id": final_service_id,
        "env_var_key": final_env_var,
        "key_stored": True,
        "env_file_updated": bool(env_result.updated) or env_result.created,
        "env_file": config.env_file,
    }


def _key_status(in_keystore: bool, env_value: str | None) -> str:
    if in_keystore and env_value and "your_" not in env_value:
        return "secure"
    if env_value and is_placeholder(env_value):
        return "placeholder"
    if not env_value:
        return "missing"
    return "unknown"


def _service_state(config: PalConfig, service: ServiceConfig, env: dict[str, str],
                   keystore: Keystore) -> ServiceState:
    env_value = env.get(service.env_var_key)
    in_keystore = keystore.has_secret(secret_id(config, service.id))
    return ServiceState(
        service=service.id,
        provider=service.provider,
        env_var=service.env_var_key,
        in_keystore=in_keystore,
        in_env_file=bool(env_value),
        key_status=_key_status(in_keystore, env_value),
    )


def summarize_env_state(project_path: Path, keystore: Keystore) -> dict:
    """Health summary of a project's env file and stored keys.

    Raises ValueError if the project directory does not exist.
    """
    project_path = project_path.resolve()
    if not project_path.is_dir():
        raise ValueError(f"Project path does not exist: {project_path}")

    if not config_exists(project_path):
        has_env = env_file_exists(project_path)
        summary: dict = {"initialized": False, "env_file_exists": has_env}
        if has_env:
            summary["env_file_path"] = str(project_path / ".env")
            summary["variable_count"] = len(read_env_file(project_path))
        return summary

    config = load_config(project_path)
    env_path = project_path / config.env_file
    env = read_env_file(project_path, config.env_file)
    has_env = env_file_exists(project_path, config.env_file)
    info = keystore.get_keystore_info()

    gitignore = project_path / ".gitignore"
    in_gitignore = False
    if gitignore.exists():
        content = gitignore.read_text(encoding="utf-8")
        in_gitignore = config.env_file in content or ".env" in content

    services = [_service_state(config, s, env, keystore) for s in config.services]
    secure = [s for s in services if s["key_status"] == "secure"]
    attention = [s for s in services if s["key_status"] != "secure"]

    recommendations = []
    if has_env and not in_gitignore:
        recommendations.append(f"Add {config.env_file} to .gitignore")
    if not info.using_keychain:
        recommendations.append("Install an OS keyring backend to keep the master key out of files")
    if attention:
        recommendations.append(f"{len(attention)} service(s) need attention")

    return {
        "project_name": config.project_name,
        "initialized": True,
        "env_file": {
            "path": str(env_path),
            "exists": has_env,
            "in_gitignore": in_gitignore,
            "variable_count": len(env),
        },
        "keystore": {
            "storage": info.storage,
            "secure": info.using_keychain,
            "path": info.path,
        },
        "services": services,
        "health": {
            "score": round(len(secure) / len(services) * 100) if services else 100,
            "secure_services": len(secure),
            "total_services": len(services),
        },
        "recommendations": recommendations,
    }


def sync_env(project_path: Path, keystore: Keystore) -> dict:
    """Write stored keys for every configured service into the env file.

    Services whose key is absent or cannot be decrypted get a placeholder
    value and are reported under ``needs_reentry``. Existing real env values
    are never overwritten; placeholders are.
    """
    project_path = project_path.resolve()
    config = load_config(project_path)

    updates: dict[str, str] = {}
    needs_reentry: list[str] = []
    for service in config.services:
        value = keystore.get_secret(secret_id(config, service.id))
        if value is None:
            needs_reentry.append(service.id)
            updates[service.env_var_key] = f"your_{service.provider}_key_here"
        else:
            updates[service.env_var_key] = value

    result = update_env_file(project_path, updates, config.env_file)
    if needs_reentry:
        logger.warning(f"No usable stored key for: {', '.join(needs_reentry)}")
    return {
        "env_file": result.path,
        "created": result.created,
        "updated": result.updated,
        "skipped": result.skipped,
        "needs_reentry": needs_reentry,
    }
