import logging
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field, field_validator

from app.dependencies import get_sync_gateway
from app.services.sync_service import SyncGateway, SyncRequest

logger = logging.getLogger(__name__)

router = APIRouter()


class RefreshLocalBody(BaseModel):
    api_url: str = ""
    local_file_path: str = ""
    omit_fields: list[str] = Field(default_factory=list)
    merge_column: str = "Location"
    merge_source_file: str | None = None
    split_location: bool = False

    @field_validator("omit_fields", mode="before")
    @classmethod
    def split_comma_list(cls, value: Any) -> Any:
        """Accept "a, b" as well as ["a", "b"]."""
        if value is None:
            return []
        if isinstance(value, str):
            return [part.strip() for part in value.split(",") if part.strip()]
        return value


class SaveDatasetBody(BaseModel):
    data: list[Any] = Field(default_factory=list)
    file_path: str = ""


@router.post("/refresh-local")
def refresh_local(
    body: RefreshLocalBody, gateway: SyncGateway = Depends(get_sync_gateway)
) -> dict[str, Any]:
    """Fetch from the forms API and overwrite a local CSV dataset."""
    logger.info("Refreshing %s from %s", body.local_file_path, body.api_url)
    result = gateway.refresh_local_file(
        SyncRequest(
            remote_url=body.api_url,
            local_file_path=body.local_file_path,
            merge_column=body.merge_column or "Location",
            merge_source_file=body.merge_source_file or None,
            omit_fields=body.omit_fields,
            split_location=body.split_location,
        )
    )
    logger.info("Refresh completed: %s", result)
    return {
        "success": True,
        "message": f"Saved {result.entries_count} entries to {result.file_path}",
        "data": {"entries_count": result.entries_count, "file_path": result.file_path},
    }


@router.post("/save-dataset")
def save_dataset(
    body: SaveDatasetBody, gateway: SyncGateway = Depends(get_sync_gateway)
) -> dict[str, Any]:
    """Write caller-supplied records to a CSV file."""
    result = gateway.save_dataset(body.data, body.file_path)
    return {
        "success": True,
        "message": f"Saved {result.entries_count} entries to {result.file_path}",
        "data": {"entries_count": result.entries_count, "file_path": result.file_path},
    }
