"""Forms API endpoints: connection test, collections and the proxy."""

import logging
from typing import Any

from fastapi import APIRouter, Depends, Query

from app.dependencies import get_sync_gateway
from app.services.sync_service import SyncGateway

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/connection-test")
def connection_test(gateway: SyncGateway = Depends(get_sync_gateway)) -> dict[str, Any]:
    """Verify the configured API key with one authenticated GET."""
    info = gateway.test_connection()
    return {
        "success": True,
        "message": "Forms API connection successful",
        "data": info,
    }


@router.get("/collections")
def list_collections(gateway: SyncGateway = Depends(get_sync_gateway)) -> dict[str, Any]:
    collections = gateway.list_collections()
    return {
        "success": True,
        "message": f"Found {len(collections)} collections",
        "data": {"collections": collections},
    }


@router.get("/collections/{collection_id}/entries")
def collection_entries(
    collection_id: str, gateway: SyncGateway = Depends(get_sync_gateway)
) -> dict[str, Any]:
    """Entries of one collection in a single, non-paginated request."""
    entries = gateway.get_collection_entries(collection_id)
    return {
        "success": True,
        "message": f"Found entries for collection {collection_id}",
        "data": {"entries": entries, "id": collection_id},
    }


@router.get("/proxy")
def proxy(
    url: str = Query(default="", description="Absolute forms API URL"),
    gateway: SyncGateway = Depends(get_sync_gateway),
) -> dict[str, Any]:
    """Authenticated GET passthrough restricted to the forms API origin."""
    logger.info("Proxying %s", url)
    return {"success": True, "data": gateway.proxy_get(url)}
