"""런타임 스키마 동기화 유틸리티.

기존 테이블에 누락된 컬럼, 인덱스, unique 제약을 추가한다.
버전 관리 테이블의 (entity_id, version) unique 제약은 동시 저장 경합을 트랜잭션 실패로 바꾸는
유일한 장치이므로, 제약 없이 만들어진 테이블에는 같은 이름의 unique 인덱스로 보강한다.
"""

from __future__ import annotations

import logging

from sqlalchemy import Table, UniqueConstraint, inspect, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.engine.reflection import Inspector
from sqlalchemy.schema import CreateColumn, MetaData

logger = logging.getLogger(__name__)


def _add_missing_columns(conn: Connection, inspector: Inspector, table: Table) -> list[str]:
    existing = {str(row.get("name")) for row in inspector.get_columns(table.name) if row.get("name")}
    table_sql = conn.dialect.identifier_preparer.format_table(table)
    added = []
    for column in table.columns:
        if column.name in existing:
            continue
        column_sql = str(CreateColumn(column).compile(dialect=conn.dialect)).strip()
        conn.execute(text(f"ALTER TABLE {table_sql} ADD COLUMN {column_sql}"))
        added.append(f"{table.name}.{column.name}")
    return added


def _existing_unique_names(inspector: Inspector, table_name: str) -> set[str]:
    names = {str(row.get("name")) for row in inspector.get_unique_constraints(table_name) if row.get("name")}
    names |= {
        str(row.get("name"))
        for row in inspector.get_indexes(table_name)
        if row.get("name") and row.get("unique")
    }
    return names


def _add_missing_unique_constraints(conn: Connection, inspector: Inspector, table: Table) -> list[str]:
    # 대부분의 dialect(특히 SQLite)는 ALTER TABLE ADD CONSTRAINT 를 지원하지 않으므로 unique 인덱스로 만든다.
    existing = _existing_unique_names(inspector, table.name)
    preparer = conn.dialect.identifier_preparer
    added = []
    for constraint in table.constraints:
        if not isinstance(constraint, UniqueConstraint) or not constraint.name or constraint.name in existing:
            continue
        columns_sql = ", ".join(preparer.quote(column.name) for column in constraint.columns)
        conn.execute(text(
            f"CREATE UNIQUE INDEX {preparer.quote(constraint.name)} "
            f"ON {preparer.format_table(table)} ({columns_sql})"
        ))
        added.append(constraint.name)
    return added


def _add_missing_indexes(conn: Connection, inspector: Inspector, table: Table) -> list[str]:
    existing = {str(row.get("name")) for row in inspector.get_indexes(table.name) if row.get("name")}
    added = []
    for index in table.indexes:
        if not index.name or index.name in existing:
            continue
        # Index.create 는 ddl_if 조건을 따르므로 부분 인덱스를 지원하지 않는 dialect 에서는 건너뛴다.
        index.create(conn)
        if index.name in {str(row.get("name")) for row in inspect(conn).get_indexes(table.name)}:
            added.append(index.name)
    return added


def sync_missing_schema_objects(engine: Engine, metadata: MetaData) -> list[str]:
    """모델 메타데이터 기준으로 누락된 스키마 객체를 DB에 추가하고 추가한 이름을 반환한다."""
    inspector = inspect(engine)
    existing_tables = set(inspector.get_table_names())
    added: list[str] = []

    with engine.begin() as conn:
        for table in metadata.sorted_tables:
            if table.name not in existing_tables:
                continue
            added += _add_missing_columns(conn, inspector, table)
            added += _add_missing_unique_constraints(conn, inspector, table)
            added += _add_missing_indexes(conn, inspector, table)

    for name in added:
        logger.info("[versioning] schema sync added %s", name)
    return added
