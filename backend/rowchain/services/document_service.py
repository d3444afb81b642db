"""Document 도메인 서비스 레이어입니다. 버전 체인 저장/조회 규칙을 API 흐름에 연결합니다."""

from datetime import datetime
from typing import List, Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from rowchain.models.document import Document
from rowchain.schemas.document import DocumentCreate, DocumentUpdate
from rowchain.services import history_service, query_service, save_service

DOCUMENT_STATUSES = ("draft", "published", "archived")


def _ensure_status(status: Optional[str]):
    if status is not None and status not in DOCUMENT_STATUSES:
        raise HTTPException(status_code=400, detail="지원하지 않는 문서 상태입니다.")


def _ensure_saved(saved: bool):
    if not saved:
        raise HTTPException(status_code=409, detail="문서 저장이 취소되었거나 실패했습니다.")


def list_documents(db: Session, status: Optional[str] = None) -> List[Document]:
    q = query_service.current_versions(db, Document)
    if status:
        q = q.filter(Document.status == status)
    return q.order_by(Document.entity_id.asc()).all()


def list_archived_rows(db: Session) -> List[Document]:
    return (
        query_service.only_old_versions(db, Document)
        .order_by(Document.entity_id.asc(), Document.version.asc())
        .all()
    )


def get_document(db: Session, doc_id: int) -> Document:
    doc = query_service.current_versions(db, Document).filter(Document.doc_id == doc_id).first()
    if not doc:
        raise HTTPException(status_code=404, detail="문서를 찾을 수 없습니다.")
    return doc


def create_document(db: Session, data: DocumentCreate) -> Document:
    _ensure_status(data.status)
    doc = Document(title=data.title, content=data.content, status=data.status)
    _ensure_saved(save_service.save(db, doc))
    return doc


def update_document(db: Session, doc_id: int, data: DocumentUpdate) -> Document:
    _ensure_status(data.status)
    doc = get_document(db, doc_id)
    for k, v in data.model_dump(exclude_none=True).items():
        setattr(doc, k, v)
    _ensure_saved(save_service.save(db, doc))
    return doc


def record_view(db: Session, doc_id: int) -> Document:
    doc = get_document(db, doc_id)
    doc.view_count = (doc.view_count or 0) + 1
    doc.last_viewed_at = datetime.now()
    # view_count/last_viewed_at 은 minor 속성이므로 새 버전 없이 현재 행만 갱신된다.
    _ensure_saved(save_service.save(db, doc))
    return doc


def list_versions(db: Session, doc_id: int) -> List[Document]:
    doc = get_document(db, doc_id)
    return history_service.list_versions(db, Document, doc.entity_id)


def get_version(db: Session, doc_id: int, version: int) -> Document:
    doc = get_document(db, doc_id)
    row = history_service.get_version(db, Document, doc.entity_id, version)
    if not row:
        raise HTTPException(status_code=404, detail="버전 이력을 찾을 수 없습니다.")
    return row


def get_adjacent_version(db: Session, doc_id: int, version: int, direction: str) -> Document:
    row = get_version(db, doc_id, version)
    if direction == "previous":
        adjacent = history_service.get_previous_version(db, row)
    else:
        adjacent = history_service.get_next_version(db, row)
    if adjacent is None:
        raise HTTPException(status_code=404, detail="해당 방향의 버전이 없습니다.")
    return adjacent
