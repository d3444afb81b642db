"""Document 요청/응답 계약을 위한 Pydantic 스키마입니다."""

from pydantic import BaseModel
from typing import Optional


class DocumentCreate(BaseModel):
    title: str
    content: Optional[str] = None
    status: str = "draft"


class DocumentUpdate(BaseModel):
    title: Optional[str] = None
    content: Optional[str] = None
    status: Optional[str] = None


class VersionSummaryOut(BaseModel):
    doc_id: int
    entity_id: int
    version: int
    is_current: bool
    title: str

    model_config = {"from_attributes": True}
