from rowchain.models.document import Document
from rowchain.services import history_service, save_service
from tests.conftest import edit


def test_current_row_hides_bookkeeping_fields(db, document):
    data = document.to_dict()
    assert "entity_id" not in data
    assert "is_current" not in data
    assert data["version"] == 1
    assert data["doc_id"] == document.doc_id
    assert data["title"] == "초안"


def test_extra_hidden_fields(db, document):
    data = document.to_dict(hide=["content", "view_count"])
    assert "content" not in data
    assert "view_count" not in data
    assert "entity_id" not in data


def test_archived_row_keeps_all_fields(db, document):
    assert edit(db, document, title="수정")
    archived = history_service.get_previous_version(db, document)

    data = archived.to_dict(hide=["content"])
    assert data["entity_id"] == document.entity_id
    assert data["is_current"] is False
    assert data["content"] == "첫 번째 내용"


def test_versioning_disabled_returns_all_fields(db, document):
    save_service.set_versioning_enabled(document, False)
    data = document.to_dict()
    assert data["entity_id"] == document.entity_id
    assert data["is_current"] is True

    save_service.set_versioning_enabled(document, True)
    assert "entity_id" not in document.to_dict()


def test_unsaved_entity_is_not_filtered():
    doc = Document(title="저장 전")
    assert "entity_id" in doc.to_dict()
