from collections.abc import Generator

from fastapi import Depends

from app.config import Settings, get_settings
from app.services.forms_client import FormsClient
from app.services.sync_service import SyncGateway


def get_forms_client(
    settings: Settings = Depends(get_settings),
) -> Generator[FormsClient, None, None]:
    """Dependency for FastAPI routes. One client per request."""
    client = FormsClient(settings)
    try:
        yield client
    finally:
        client.close()


def get_sync_gateway(
    settings: Settings = Depends(get_settings),
    client: FormsClient = Depends(get_forms_client),
) -> SyncGateway:
    return SyncGateway(settings, client)
