"""버전 관리되는 문서 템플릿(Template)의 SQLAlchemy 모델 정의입니다."""

from sqlalchemy import Column, Integer, String, Text, DateTime
from sqlalchemy.sql import func

from rowchain.database import Base
from rowchain.models.versioned import Versioned


class Template(Versioned, Base):
    __tablename__ = "document_template"

    minor_attributes = ("use_count",)

    template_id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    body = Column(Text)
    use_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, server_default=func.now())
