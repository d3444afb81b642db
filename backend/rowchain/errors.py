"""
버전 체인 관련 예외 타입입니다.

- VersioningError: 기본 예외
- ChainCorruptionError: 체인 불변식(1..N 연속 버전, 현재 행 1개)이 깨진 상태를 발견함
- ArchivedVersionError: 보관(비현재) 행을 수정하려고 함
- ChainFieldChangedError: 저장된 행의 entity_id/version 을 호출부가 직접 바꿈

취소(이벤트 핸들러 거부)와 저장소 오류는 예외가 아니라 save()의 False 결과로 보고된다.
"""

from __future__ import annotations

from typing import Any, Optional


class VersioningError(Exception):
    """Base exception for version chain errors."""


class ChainCorruptionError(VersioningError):
    """A version chain violates its invariants.

    Raised when a previous/next lookup does not find exactly one row, or when
    the allocator sees a gap or a duplicate in the version sequence. These
    are data-integrity failures and must not be treated as "not found".
    """

    def __init__(self, model: str, entity_id: Any, detail: str) -> None:
        super().__init__(f"corrupted version chain for {model} entity_id={entity_id}: {detail}")
        self.model = model
        self.entity_id = entity_id
        self.detail = detail


class ArchivedVersionError(VersioningError):
    """Attempted to change a column on an archived (non-current) row."""

    def __init__(self, model: str, attribute: str, row_id: Optional[Any] = None) -> None:
        super().__init__(f"{model} row {row_id} is an archived version; '{attribute}' is read-only")
        self.model = model
        self.attribute = attribute
        self.row_id = row_id


class ChainFieldChangedError(VersioningError):
    """Attempted to save a persisted row with a changed entity_id or version.

    Both are assigned by the save protocol; a caller-supplied change would
    leave the original entity without a current row.
    """

    def __init__(self, model: str, fields: list[str]) -> None:
        super().__init__(f"{model}: {', '.join(fields)} cannot be changed on a saved row")
        self.model = model
        self.fields = fields
