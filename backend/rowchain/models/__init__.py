"""SQLAlchemy 모델 패키지 초기화 모듈입니다."""

from rowchain.models.versioned import Versioned, COLUMN_ENTITY_ID, COLUMN_VERSION, COLUMN_IS_CURRENT
from rowchain.models.document import Document
from rowchain.models.template import Template

__all__ = [
    "Versioned", "COLUMN_ENTITY_ID", "COLUMN_VERSION", "COLUMN_IS_CURRENT",
    "Document",
    "Template",
]
