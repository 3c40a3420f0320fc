"""Secret management routes. Values can be written but are never returned."""

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import Response

from pal.auth import require_token
from pal.keystore import Keystore
from pal.models import SecretExistsResponse, SecretListResponse, StoreSecretRequest

# Handlers are plain functions: keystore calls block on the file lock and the
# OS keyring, so FastAPI must run them in its threadpool.
router = APIRouter(prefix="/api/secrets", dependencies=[Depends(require_token)])


def _keystore(request: Request) -> Keystore:
    return request.app.state.keystore


@router.get("", response_model=SecretListResponse)
def list_secrets(request: Request) -> SecretListResponse:
    """List stored secret identifiers."""
    return SecretListResponse(secrets=_keystore(request).list_secret_keys())


@router.get("/{secret_id}", response_model=SecretExistsResponse)
def secret_exists(secret_id: str, request: Request) -> SecretExistsResponse:
    """Report whether a secret is stored. Does not decrypt it."""
    return SecretExistsResponse(id=secret_id, exists=_keystore(request).has_secret(secret_id))


@router.put("/{secret_id}", status_code=204)
def store_secret(secret_id: str, body: StoreSecretRequest, request: Request) -> Response:
    """Store or replace a secret."""
    if not body.value:
        raise HTTPException(status_code=422, detail="Secret value cannot be empty")
    _keystore(request).store_secret(secret_id, body.value)
    return Response(status_code=204)


@router.delete("/{secret_id}", status_code=204)
def delete_secret(secret_id: str, request: Request) -> Response:
    """Delete a secret. 404 if it was not stored."""
    if not _keystore(request).delete_secret(secret_id):
        raise HTTPException(status_code=404, detail=f"Secret '{secret_id}' not found")
    return Response(status_code=204)
