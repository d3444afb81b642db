"""버전 관리되는 문서(Document)의 SQLAlchemy 모델 정의입니다."""

from sqlalchemy import Column, Integer, String, Text, DateTime
from sqlalchemy.sql import func

from rowchain.database import Base
from rowchain.models.versioned import Versioned


class Document(Versioned, Base):
    __tablename__ = "document"

    # 조회수/최근 조회 시각은 새 버전을 만들지 않고 현재 행을 그대로 갱신한다.
    minor_attributes = ("view_count", "last_viewed_at")

    doc_id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(200), nullable=False)
    content = Column(Text)
    status = Column(String(20), nullable=False, default="draft")  # draft/published/archived
    view_count = Column(Integer, nullable=False, default=0)
    last_viewed_at = Column(DateTime)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, onupdate=func.now())
