"""버전 체인 이력 탐색(이전/다음 버전, 전체 이력, 체인 검증) 기능을 제공합니다."""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from rowchain.errors import ChainCorruptionError
from rowchain.services import query_service

logger = logging.getLogger(__name__)


def _single_or_corrupt(rows: list, model, entity_id: int, version: int):
    if len(rows) != 1:
        logger.error(
            "[versioning] %s entity_id=%s expected one row for version %s, found %s",
            model.__name__, entity_id, version, len(rows),
        )
        raise ChainCorruptionError(model.__name__, entity_id, f"{len(rows)} rows for version {version}")
    return rows[0]


def _version_rows(db: Session, model, entity_id: int, version: int) -> list:
    return (
        query_service.with_old_versions(db, model)
        .filter(model.entity_id == entity_id, model.version == version)
        .all()
    )


def get_previous_version(db: Session, entity):
    if entity.version == 1:
        return None
    model = type(entity)
    version = entity.version - 1
    return _single_or_corrupt(_version_rows(db, model, entity.entity_id, version), model, entity.entity_id, version)


def get_next_version(db: Session, entity):
    if entity.is_current:
        return None
    model = type(entity)
    version = entity.version + 1
    return _single_or_corrupt(_version_rows(db, model, entity.entity_id, version), model, entity.entity_id, version)


def get_current(db: Session, model, entity_id: int):
    rows = query_service.current_versions(db, model).filter(model.entity_id == entity_id).all()
    if not rows:
        return None
    if len(rows) > 1:
        raise ChainCorruptionError(model.__name__, entity_id, f"{len(rows)} current rows")
    return rows[0]


def get_version(db: Session, model, entity_id: int, version: int) -> Optional[object]:
    rows = _version_rows(db, model, entity_id, version)
    if not rows:
        return None
    return _single_or_corrupt(rows, model, entity_id, version)


def list_versions(db: Session, model, entity_id: int) -> List[object]:
    return (
        query_service.with_old_versions(db, model)
        .filter(model.entity_id == entity_id)
        .order_by(model.version.desc())
        .all()
    )


def verify_chain(db: Session, model, entity_id: int) -> List[object]:
    """Return the chain oldest first, or raise if it is not a valid chain.

    Valid means versions are exactly 1..N and the only current row is N.
    """
    rows = list(reversed(list_versions(db, model, entity_id)))
    versions = [row.version for row in rows]
    if versions != list(range(1, len(rows) + 1)):
        raise ChainCorruptionError(model.__name__, entity_id, f"versions {versions} are not 1..{len(rows)}")
    current = [row.version for row in rows if row.is_current]
    if rows and current != [len(rows)]:
        raise ChainCorruptionError(model.__name__, entity_id, f"current versions {current}, expected [{len(rows)}]")
    return rows
