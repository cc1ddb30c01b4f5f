from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Literal, Optional, List, Dict, Union
from datetime import datetime

ObjectType = Literal["deal", "contact"]
DocumentStatus = Literal[
    "pending_upload",
    "uploading",
    "uploaded",
    "synced",
    "error",
    "archived",
    "deleted",
]
IssueStatus = Literal["open", "acknowledged", "resolved", "ignored"]
# Known levels; other labels pass through so custom CRM classifications survive.
Confidentiality = Literal["public", "internal", "confidential", "restricted"]

class DocumentMetadata(BaseModel):
    """
    Optional facts attached to a CRM document.
    Empty strings count as "missing" for the metadata check.
    """
    model_config = ConfigDict(populate_by_name=True)

    description: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    category: Optional[str] = None
    confidentiality: Optional[Union[Confidentiality, str]] = None
    retention_date: Optional[datetime] = Field(default=None, alias="retentionDate")
    custom_properties: Dict[str, Any] = Field(default_factory=dict)

class DocumentRecord(BaseModel):
    id: str = Field(alias="_id")
    crm_object_type: ObjectType
    crm_object_id: str
    crm_file_id: Optional[str] = None
    original_filename: str
    mime_type: str = "application/octet-stream"
    size: int = Field(ge=0)
    drive_item_id: Optional[str] = None
    drive_web_url: Optional[str] = None
    secure_link: Optional[str] = None
    secure_link_expiry: Optional[datetime] = None
    current_version_id: Optional[str] = None
    status: DocumentStatus = "pending_upload"
    compliance_score: int = Field(default=100, ge=0, le=100)
    metadata: Optional[DocumentMetadata] = None
    created_at: datetime
    updated_at: datetime

class DocumentVersion(BaseModel):
    id: str = Field(alias="_id")
    document_id: str
    version_number: int
    filename: str
    size: int
    checksum: str
    changed_by: Optional[str] = None
    change_notes: Optional[str] = None
    created_at: datetime

class IssueRecord(BaseModel):
    id: str = Field(alias="_id")
    document_id: str
    type: str
    severity: str
    message: str
    details: Optional[Dict[str, Any]] = None
    status: IssueStatus = "open"
    resolved_at: Optional[datetime] = None
    resolved_by: Optional[str] = None
    created_at: datetime
