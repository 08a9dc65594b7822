"""
Pydantic schemas for publishing and syncing.
"""

from datetime import datetime

from pydantic import BaseModel


class PublicationResponse(BaseModel):
    owner_email: str
    folder_ref: str
    object_ref: str
    byte_size: int
    published_at: datetime

    model_config = {"from_attributes": True}


class RemoteObjectResponse(BaseModel):
    ref: str
    name: str
    mime_type: str
    modified_at: datetime | None

    model_config = {"from_attributes": True}


class SyncResultResponse(BaseModel):
    peer_id: str
    status: str
    categories: int
    budgets: int
    expenses: int
    synced_at: datetime | None
    error: str | None

    model_config = {"from_attributes": True}
