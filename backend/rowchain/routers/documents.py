"""Documents 기능 API 라우터입니다. 요청을 검증하고 서비스 레이어로 비즈니스 로직을 위임합니다."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List, Optional
from rowchain.database import get_db
from rowchain.schemas.document import DocumentCreate, DocumentUpdate, VersionSummaryOut
from rowchain.services import document_service

router = APIRouter(tags=["documents"])


@router.get("/api/documents")
def list_documents(status: Optional[str] = None, db: Session = Depends(get_db)):
    return [doc.to_dict() for doc in document_service.list_documents(db, status=status)]


@router.get("/api/documents/archived")
def list_archived_documents(db: Session = Depends(get_db)):
    return [row.to_dict() for row in document_service.list_archived_rows(db)]


@router.post("/api/documents")
def create_document(data: DocumentCreate, db: Session = Depends(get_db)):
    return document_service.create_document(db, data).to_dict()


@router.get("/api/documents/{doc_id}")
def get_document(doc_id: int, db: Session = Depends(get_db)):
    return document_service.get_document(db, doc_id).to_dict()


@router.put("/api/documents/{doc_id}")
def update_document(doc_id: int, data: DocumentUpdate, db: Session = Depends(get_db)):
    return document_service.update_document(db, doc_id, data).to_dict()


@router.post("/api/documents/{doc_id}/view")
def record_document_view(doc_id: int, db: Session = Depends(get_db)):
    return document_service.record_view(db, doc_id).to_dict()


@router.get("/api/documents/{doc_id}/versions", response_model=List[VersionSummaryOut])
def list_document_versions(doc_id: int, db: Session = Depends(get_db)):
    return document_service.list_versions(db, doc_id)


@router.get("/api/documents/{doc_id}/versions/{version}")
def get_document_version(doc_id: int, version: int, db: Session = Depends(get_db)):
    return document_service.get_version(db, doc_id, version).to_dict()


@router.get("/api/documents/{doc_id}/versions/{version}/previous")
def get_previous_document_version(doc_id: int, version: int, db: Session = Depends(get_db)):
    return document_service.get_adjacent_version(db, doc_id, version, "previous").to_dict()


@router.get("/api/documents/{doc_id}/versions/{version}/next")
def get_next_document_version(doc_id: int, version: int, db: Session = Depends(get_db)):
    return document_service.get_adjacent_version(db, doc_id, version, "next").to_dict()
