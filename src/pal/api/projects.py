"""Project routes: registry listing, adding API services, env state and sync."""

from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException, Request

from pal.auth import require_token
from pal.keystore import KeystoreCorruptedError
from pal.models import AddServiceRequest, ProjectPathRequest
from pal.services.project_config import ProjectConfigError
from pal.services.projects import add_service, list_projects, summarize_env_state, sync_env
from pal.services.providers import UnknownProviderError

router = APIRouter(prefix="/api/projects", dependencies=[Depends(require_token)])


@router.get("")
def get_projects(request: Request) -> dict:
    """List registered projects."""
    return list_projects(request.app.state.settings.projects_path)


@router.post("/services", status_code=201)
def add_project_service(body: AddServiceRequest, request: Request) -> dict:
    """Store an API key for a project and add it to the project's env file."""
    try:
        return add_service(
            Path(body.project_path),
            body.provider,
            body.api_key,
            request.app.state.keystore,
            request.app.state.settings.projects_path,
            env_var_key=body.env_var_key,
            service_id=body.service_id,
        )
    except UnknownProviderError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except ProjectConfigError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except KeystoreCorruptedError:
        raise
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/env-state")
def get_env_state(path: str, request: Request) -> dict:
    """Summarize env file and keystore health for a project."""
    try:
        return summarize_env_state(Path(path), request.app.state.keystore)
    except ProjectConfigError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except KeystoreCorruptedError:
        raise
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/sync-env")
def sync_project_env(body: ProjectPathRequest, request: Request) -> dict:
    """Materialize stored keys into the project's env file."""
    try:
        return sync_env(Path(body.project_path), request.app.state.keystore)
    except ProjectConfigError as e:
        detail = str(e)
        if "not found" in detail:
            raise HTTPException(status_code=404, detail=detail)
        raise HTTPException(status_code=409, detail=detail)
