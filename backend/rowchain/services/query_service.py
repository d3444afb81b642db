"""버전 관리 모델 조회의 기본 범위(현재 버전만)와 우회 조회를 제공합니다.

조회는 항상 이 모듈의 함수로 시작한다. current_versions() 가 기본 경로이고,
이력이 필요한 호출부만 with_old_versions()/only_old_versions() 를 명시적으로 쓴다.
"""

from sqlalchemy.orm import Query, Session


def apply_current_scope(query: Query, model) -> Query:
    return query.filter(model.is_current == True)  # noqa: E712


def current_versions(db: Session, model) -> Query:
    return apply_current_scope(db.query(model), model)


def with_old_versions(db: Session, model) -> Query:
    return db.query(model)


def only_old_versions(db: Session, model) -> Query:
    return with_old_versions(db, model).filter(model.is_current == False)  # noqa: E712
