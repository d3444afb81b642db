"""논리 엔티티 식별자와 버전 번호를 할당하는 공용 기능을 제공합니다.

MAX() 집계 기반 할당이므로 동시 저장 두 건이 같은 번호를 받을 수 있다.
(entity_id, version) unique 제약이 이를 트랜잭션 실패로 바꾸고,
설정에 따라 save_service 가 현재 행을 잠근 뒤 호출한다.
"""

from sqlalchemy import distinct, func
from sqlalchemy.orm import Session

from rowchain.errors import ChainCorruptionError


def next_entity_id(db: Session, model) -> int:
    current_max = db.query(func.max(model.entity_id)).scalar()
    return (current_max or 0) + 1


def next_version(db: Session, model, entity_id: int) -> int:
    current_max, row_count, version_count = (
        db.query(
            func.max(model.version),
            func.count(),
            func.count(distinct(model.version)),
        )
        .filter(model.entity_id == entity_id)
        .one()
    )
    current_max = current_max or 0
    if row_count != current_max or version_count != row_count:
        raise ChainCorruptionError(
            model.__name__,
            entity_id,
            f"max(version)={current_max} rows={row_count} distinct_versions={version_count}",
        )
    return current_max + 1
