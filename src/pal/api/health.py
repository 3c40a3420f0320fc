"""Health check endpoint."""

from fastapi import APIRouter, Request

from pal.keystore import Keystore
from pal.models import HealthResponse, KeystoreStatus

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
def health(request: Request) -> HealthResponse:
    """Return service health and where the master key lives."""
    keystore: Keystore = request.app.state.keystore
    info = keystore.get_keystore_info()
    return HealthResponse(
        keystore=KeystoreStatus(
            path=info.path,
            using_keychain=info.using_keychain,
            storage=info.storage,
        )
    )
