"""버전 체인 저장 프로토콜(신규 삽입 / 현재 행 갱신 / 보관 후 승격)을 구현합니다.

주요 수정(major edit)은 한 트랜잭션 안에서
1) 현재 행을 새 값과 새 version 으로 UPDATE 하고 (기본키/entity_id/is_current 유지)
2) 변경 전 값을 새 물리 행(is_current=False, 이전 version)으로 INSERT 한다.
UPDATE 가 먼저 실패하면 보관 행이 남지 않고, INSERT 가 실패하면 롤백으로 UPDATE 도 취소된다.
"""

import logging
from typing import Any, Dict, Iterable

from sqlalchemy import inspect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from rowchain.config import settings
from rowchain.errors import ChainFieldChangedError
from rowchain.models.versioned import COLUMN_ENTITY_ID, COLUMN_VERSION, column_keys, primary_key_keys
from rowchain.services import lifecycle_service, version_service

logger = logging.getLogger(__name__)

# 저장 프로토콜만 할당하는 컬럼. 호출부가 바꾸면 원래 entity_id 에 현재 행이 사라진다.
CHAIN_FIELDS = (COLUMN_ENTITY_ID, COLUMN_VERSION)


def is_minor_edit(changed_fields: Iterable[str], minor_allowlist: Iterable[str]) -> bool:
    return set(changed_fields) <= set(minor_allowlist)


def _load_unloaded(entity) -> None:
    state = inspect(entity)
    if state.has_identity and state.unloaded:
        # 만료된 속성 하나를 읽으면 수정되지 않은 만료 속성 전체가 함께 로드된다.
        for key in column_keys(type(entity)):
            if key in state.unloaded:
                getattr(entity, key)


def get_dirty(entity) -> Dict[str, Any]:
    state = inspect(entity)
    dirty = {}
    for key in column_keys(type(entity)):
        history = state.attrs[key].history
        if history.has_changes():
            dirty[key] = history.added[0] if history.added else None
    return dirty


def get_original(entity) -> Dict[str, Any]:
    """Column values as of the last load or save.

    Attributes that had no persisted value before this change are left out,
    so they are not backfilled into the archived snapshot.
    """
    state = inspect(entity)
    original = {}
    for key in column_keys(type(entity)):
        history = state.attrs[key].history
        if history.deleted:
            original[key] = history.deleted[0]
        elif history.unchanged:
            original[key] = history.unchanged[0]
    return original


def ensure_chain_fields_unchanged(entity) -> None:
    dirty = get_dirty(entity)
    changed = [key for key in CHAIN_FIELDS if key in dirty]
    if changed:
        raise ChainFieldChangedError(type(entity).__name__, changed)


def only_has_minor_edits(entity) -> bool:
    return is_minor_edit(get_dirty(entity), type(entity).minor_attributes)


def replicate_original(entity):
    model = type(entity)
    excluded = primary_key_keys(model)
    values = {key: value for key, value in get_original(entity).items() if key not in excluded}
    old_version = model(**values)
    old_version.is_current = False
    return old_version


def _lock_current_row(db: Session, entity) -> None:
    model = type(entity)
    mapper = inspect(model)
    identity = inspect(entity).identity
    criteria = [col == value for col, value in zip(mapper.primary_key, identity)]
    db.query(*mapper.primary_key).filter(*criteria).with_for_update().one()


def _rollback(db: Session, entity, exc: Exception) -> None:
    entity_id = inspect(entity).dict.get("entity_id")
    db.rollback()
    logger.warning("[versioning] save failed for %s entity_id=%s: %s", type(entity).__name__, entity_id, exc)


def _perform_insert(db: Session, entity) -> bool:
    model = type(entity)
    if not lifecycle_service.fire("creating", entity):
        return False
    with db.no_autoflush:
        if entity.entity_id is None:
            entity.entity_id = version_service.next_entity_id(db, model)
    entity.version = 1
    entity.is_current = True
    db.add(entity)
    try:
        db.commit()
    except SQLAlchemyError as exc:
        _rollback(db, entity, exc)
        return False
    db.refresh(entity)
    lifecycle_service.fire("created", entity, halt=False)
    logger.debug("[versioning] created %s entity_id=%s", model.__name__, entity.entity_id)
    return True


def _perform_versioned_update(db: Session, entity) -> bool:
    model = type(entity)
    if not lifecycle_service.fire("updating", entity):
        return False

    old_version = replicate_original(entity)
    db.add(entity)
    try:
        with db.no_autoflush:
            if settings.VERSIONING_LOCK_CURRENT_ROW:
                _lock_current_row(db, entity)
            entity.version = version_service.next_version(db, model, entity.entity_id)
        db.flush()

        lifecycle_service.fire("creating", old_version, halt=False)
        db.add(old_version)
        db.flush()
        db.commit()
    except SQLAlchemyError as exc:
        _rollback(db, entity, exc)
        return False
    except Exception:
        db.rollback()
        raise

    db.refresh(entity)
    lifecycle_service.fire("updated", entity, halt=False)
    logger.debug(
        "[versioning] %s entity_id=%s archived version %s, current is now %s",
        model.__name__, entity.entity_id, old_version.version, entity.version,
    )
    return True


def _finish_save(entity) -> None:
    lifecycle_service.fire("saved", entity, halt=False)


def save_minor(db: Session, entity) -> bool:
    """Persist pending changes in place, without creating a new version."""
    state = inspect(entity)
    if state.has_identity:
        _load_unloaded(entity)
        ensure_chain_fields_unchanged(entity)

    if not lifecycle_service.fire("saving", entity):
        return False

    if not state.has_identity:
        saved = _perform_insert(db, entity)
    else:
        saved = True
        if get_dirty(entity):
            if not lifecycle_service.fire("updating", entity):
                return False
            db.add(entity)
            try:
                db.commit()
            except SQLAlchemyError as exc:
                _rollback(db, entity, exc)
                return False
            db.refresh(entity)
            lifecycle_service.fire("updated", entity, halt=False)

    if saved:
        _finish_save(entity)
    return saved


def save(db: Session, entity) -> bool:
    """Save ``entity``, extending its version chain when a major field changed.

    Returns ``False`` when a lifecycle handler cancels or the store rejects
    the write; the session is rolled back in the latter case.
    """
    state = inspect(entity)
    if state.has_identity:
        _load_unloaded(entity)
        ensure_chain_fields_unchanged(entity)
        if only_has_minor_edits(entity):
            return save_minor(db, entity)

    if not lifecycle_service.fire("saving", entity):
        return False

    if state.has_identity:
        saved = _perform_versioned_update(db, entity)
    else:
        saved = _perform_insert(db, entity)

    if saved:
        _finish_save(entity)
    return saved


def set_versioning_enabled(entity, enabled: bool):
    return entity.set_is_versioned(enabled)
