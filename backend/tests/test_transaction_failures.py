"""저장 취소, 트랜잭션 롤백, 동시 저장 경합 시 체인이 보존되는지 검증하는 테스트입니다."""

import pytest
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from rowchain.errors import ChainCorruptionError, ChainFieldChangedError
from rowchain.models.document import Document
from rowchain.services import history_service, lifecycle_service, query_service, save_service, version_service
from tests.conftest import TestingSession, edit


def _persisted(db, entity_id):
    return (
        db.query(Document.version, Document.is_current, Document.title)
        .filter(Document.entity_id == entity_id)
        .order_by(Document.version.asc())
        .all()
    )


def test_saving_cancel_writes_nothing(db):
    lifecycle_service.listen(Document, "saving", lambda entity: False)
    doc = Document(title="거부될 문서")

    assert save_service.save(db, doc) is False
    assert doc.entity_id is None
    assert db.query(func.count(Document.doc_id)).scalar() == 0


def test_creating_cancel_writes_nothing(db):
    lifecycle_service.listen(Document, "creating", lambda entity: False)
    assert save_service.save(db, Document(title="거부될 문서")) is False
    assert db.query(func.count(Document.doc_id)).scalar() == 0


def test_updating_cancel_leaves_chain_untouched(db, document):
    lifecycle_service.listen(Document, "updating", lambda entity: False)

    assert edit(db, document, title="취소될 수정") is False
    assert _persisted(db, document.entity_id) == [(1, True, "초안")]


def test_archive_insert_failure_rolls_back_live_update(db, document):
    def reject_archive(entity):
        if entity.is_current is False:
            raise SQLAlchemyError("archive insert rejected")

    lifecycle_service.listen(Document, "creating", reject_archive)

    assert edit(db, document, title="롤백될 수정") is False
    assert _persisted(db, document.entity_id) == [(1, True, "초안")]
    assert document.version == 1
    assert document.title == "초안"


def test_duplicate_version_allocation_is_rejected(db, document, monkeypatch):
    monkeypatch.setattr(version_service, "next_version", lambda db, model, entity_id: 1)

    assert edit(db, document, title="중복 버전") is False
    assert _persisted(db, document.entity_id) == [(1, True, "초안")]


def test_concurrent_stale_save_fails_instead_of_duplicating(db, document):
    second = TestingSession()
    try:
        stale = query_service.current_versions(second, Document).filter(Document.entity_id == document.entity_id).one()
        assert stale.version == 1

        assert edit(db, document, title="먼저 저장")
        assert edit(second, stale, title="나중 저장") is False
    finally:
        second.close()

    db.expire_all()
    chain = history_service.verify_chain(db, Document, document.entity_id)
    assert [(row.version, row.title) for row in chain] == [(1, "초안"), (2, "먼저 저장")]


def test_unexpected_error_propagates_after_rollback(db, document):
    def explode(entity):
        if entity.is_current is False:
            raise RuntimeError("handler bug")

    lifecycle_service.listen(Document, "creating", explode)

    with pytest.raises(RuntimeError):
        edit(db, document, title="예외 발생")
    assert _persisted(db, document.entity_id) == [(1, True, "초안")]


def test_gap_in_chain_blocks_allocation(db, document):
    db.execute(
        Document.__table__.insert().values(
            entity_id=document.entity_id, version=3, is_current=False, title="끼어든 행", status="draft", view_count=0,
        )
    )
    db.commit()

    with pytest.raises(ChainCorruptionError):
        version_service.next_version(db, Document, document.entity_id)
    with pytest.raises(ChainCorruptionError):
        edit(db, document, title="손상된 체인")
    assert _persisted(db, document.entity_id)[0] == (1, True, "초안")


def test_saving_cancel_on_minor_edit_keeps_row(db, document):
    lifecycle_service.listen(Document, "saving", lambda entity: False)

    assert edit(db, document, view_count=3) is False
    db.rollback()
    assert _persisted(db, document.entity_id) == [(1, True, "초안")]
    assert db.query(Document.view_count).filter(Document.doc_id == document.doc_id).scalar() == 0


def test_saving_cancel_on_major_edit_creates_no_version(db, document):
    lifecycle_service.listen(Document, "saving", lambda entity: False)

    assert edit(db, document, title="취소될 수정") is False
    db.rollback()
    assert _persisted(db, document.entity_id) == [(1, True, "초안")]
    assert document.version == 1


@pytest.mark.parametrize("changes", [{"entity_id": 99, "title": "옮겨진 문서"}, {"version": 5}, {"entity_id": 99}])
def test_changing_chain_fields_is_rejected(db, document, changes):
    entity_id = document.entity_id

    with pytest.raises(ChainFieldChangedError):
        edit(db, document, **changes)
    db.rollback()

    assert _persisted(db, entity_id) == [(1, True, "초안")]
    assert _persisted(db, 99) == []
    assert db.query(func.count(Document.doc_id)).scalar() == 1


def test_save_minor_rejects_changed_entity_id(db, document):
    document.entity_id = 99
    with pytest.raises(ChainFieldChangedError) as exc_info:
        save_service.save_minor(db, document)
    db.rollback()

    assert exc_info.value.fields == ["entity_id"]
    assert _persisted(db, document.entity_id) == [(1, True, "초안")]
