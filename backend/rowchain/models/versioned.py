"""버전 체인 공통 컬럼과 규칙을 제공하는 SQLAlchemy 선언적 믹스인입니다.

하나의 논리 엔티티(entity_id)는 물리 행 여러 개로 저장된다.
- version 은 entity_id 별로 1부터 빈틈 없이 증가한다.
- is_current 가 True 인 행은 entity_id 별로 정확히 1개이며 가장 큰 version 을 가진다.
- 보관(is_current=False) 행은 한 번 기록되면 변경되지 않는다.
"""

from typing import Any, Dict, Iterable, Tuple

from sqlalchemy import Boolean, Column, Index, Integer, UniqueConstraint, event, inspect, text
from sqlalchemy.orm import declared_attr

from rowchain.errors import ArchivedVersionError

COLUMN_ENTITY_ID = "entity_id"
COLUMN_VERSION = "version"
COLUMN_IS_CURRENT = "is_current"

# entity_id 당 현재 행 1개를 부분 unique 인덱스로 보장할 수 있는 dialect
PARTIAL_INDEX_DIALECTS = ("sqlite", "postgresql")


def column_keys(model) -> list[str]:
    return [prop.key for prop in inspect(model).mapper.column_attrs]


def primary_key_keys(model) -> set[str]:
    mapper = inspect(model).mapper
    return {mapper.get_property_by_column(col).key for col in mapper.primary_key}


def _archived_row_guard(key: str):
    def guard(target, value, oldvalue, initiator):
        state = inspect(target)
        if state.key is not None and state.dict.get(COLUMN_IS_CURRENT) is False:
            raise ArchivedVersionError(type(target).__name__, key, state.identity)
        return value

    return guard


class Versioned:
    """Mixin for models whose rows form a version chain.

    Subclasses set ``minor_attributes`` to the columns whose changes are
    written in place instead of creating a new version. Persistence goes
    through ``rowchain.services.save_service``; reads through
    ``rowchain.services.query_service`` and ``history_service``.
    """

    minor_attributes: Tuple[str, ...] = ()
    hide_versioned: Tuple[str, ...] = (COLUMN_IS_CURRENT, COLUMN_ENTITY_ID)

    entity_id = Column(Integer, nullable=False)
    version = Column(Integer, nullable=False)
    is_current = Column(Boolean, nullable=False, default=True)

    @declared_attr
    def __table_args__(cls):
        # (entity_id, version) 중복과 현재 행 2개를 DB 수준에서 막는다.
        # 부분 인덱스를 지원하는 SQLite/PostgreSQL 에서만 생성한다. 다른 dialect 에서는 일반 unique(entity_id) 가 되어 보관 행 삽입이 막힌다.
        return (
            UniqueConstraint(COLUMN_ENTITY_ID, COLUMN_VERSION, name=f"uq_{cls.__tablename__}_entity_version"),
            Index(
                f"uq_{cls.__tablename__}_current",
                COLUMN_ENTITY_ID,
                unique=True,
                sqlite_where=text(f"{COLUMN_IS_CURRENT} = 1"),
                postgresql_where=text(COLUMN_IS_CURRENT),
            ).ddl_if(dialect=PARTIAL_INDEX_DIALECTS),
        )

    @classmethod
    def __declare_last__(cls):
        if "_versioning_instrumented" in cls.__dict__:
            return
        cls._versioning_instrumented = True
        # active_history: 만료된 속성에 값을 대입해도 이전 값을 먼저 로드해 스냅샷에 쓸 수 있게 한다.
        for key in column_keys(cls):
            event.listen(getattr(cls, key), "set", _archived_row_guard(key), active_history=True, retval=True)

    @property
    def is_versioned(self) -> bool:
        return getattr(self, "_is_versioned", True)

    def set_is_versioned(self, is_versioned: bool = True):
        self._is_versioned = bool(is_versioned)
        return self

    def get_hide_versioned(self, hide: Iterable[str] = ()) -> set[str]:
        return set(hide) | set(self.hide_versioned)

    def to_dict(self, hide: Iterable[str] = ()) -> Dict[str, Any]:
        """Return column values, without bookkeeping fields for current rows.

        Archived rows and instances with versioning disabled keep every field,
        since only history-aware callers look at them.
        """
        attributes = {key: getattr(self, key) for key in column_keys(type(self))}
        if not self.is_versioned or not self.is_current:
            return attributes
        hidden = self.get_hide_versioned(hide)
        return {key: value for key, value in attributes.items() if key not in hidden}
