# tests/test_attachments.py
from urllib.parse import quote

import pytest
from fastapi.testclient import TestClient

from app.attachment.files import FileStore, build_file_key, filename_from_key
from app.attachment.services import AttachmentRepository, IncomingFile, new_attachment_id
from app.core.config import Settings, get_settings
from app.core.errors import (
    NotFoundError,
    PayloadTooLargeError,
    StoreUnavailableError,
    UnsupportedTypeError,
    ValidationError,
)
from app.main import app

client = TestClient(app)

MB = 1024 * 1024


def pdf(name="report.pdf", data=b"%PDF-1.4 test"):
    return IncomingFile(filename=name, content_type="application/pdf", data=data)


def test_upload_list_and_download():
    r = client.post(
        "/tickets/5/attachments",
        files={"file": ("report.pdf", b"%PDF-1.4 test", "application/pdf")},
    )
    assert r.status_code == 201
    record = r.json()
    assert record["ticketId"] == 5
    assert record["filename"] == "report.pdf"
    assert record["size"] == len(b"%PDF-1.4 test")
    assert record["contentType"] == "application/pdf"
    assert record["fileKey"] == f"5/{record['id']}-report.pdf"
    assert record["url"] == f"/attachments/download?fileKey={quote(record['fileKey'], safe='')}"

    listed = client.get("/tickets/5/attachments").json()
    assert [a["id"] for a in listed] == [record["id"]]

    r2 = client.get(record["url"])
    assert r2.status_code == 200
    assert r2.content == b"%PDF-1.4 test"
    assert r2.headers["content-type"] == "application/pdf"
    assert 'filename="report.pdf"' in r2.headers["content-disposition"]
    assert r2.headers["cache-control"] == "public, max-age=31536000"


def test_upload_rejects_unsupported_type():
    r = client.post(
        "/tickets/5/attachments",
        files={"file": ("bundle.zip", b"PK", "application/zip")},
    )
    assert r.status_code == 415


def test_upload_rejects_oversize_stream():
    app.dependency_overrides[get_settings] = lambda: Settings(MAX_UPLOAD_BYTES=4)
    try:
        r = client.post(
            "/tickets/5/attachments",
            files={"file": ("notes.txt", b"too long", "text/plain")},
        )
        assert r.status_code == 413
    finally:
        app.dependency_overrides.clear()
    assert client.get("/tickets/5/attachments").json() == []


def test_upload_requires_file():
    r = client.post("/tickets/5/attachments")
    assert r.status_code == 422


def test_delete_attachment_then_404():
    record = client.post(
        "/tickets/3/attachments",
        files={"file": ("a.png", b"\x89PNG", "image/png")},
    ).json()

    r = client.delete(f"/attachments/{record['id']}")
    assert r.status_code == 200
    assert r.json() == {"message": "Attachment deleted successfully", "id": record["id"]}

    assert client.delete(f"/attachments/{record['id']}").status_code == 404
    assert client.get("/attachments/download", params={"fileKey": record["fileKey"]}).status_code == 404


def test_download_unknown_key_returns_404():
    r = client.get("/attachments/download", params={"fileKey": "1/nope-missing.pdf"})
    assert r.status_code == 404
    assert r.json()["detail"] == "File not found"


# Repository level


def test_oversize_file_is_rejected(db, settings):
    repo = AttachmentRepository(db, settings)
    big = IncomingFile(filename="big.pdf", content_type="application/pdf", size=101 * MB)
    with pytest.raises(PayloadTooLargeError):
        repo.upload(1, big)
    assert repo.files.keys() == []


def test_zip_is_rejected(db, settings):
    repo = AttachmentRepository(db, settings)
    with pytest.raises(UnsupportedTypeError):
        repo.upload(1, IncomingFile(filename="a.zip", content_type="application/zip", data=b"PK"))
    assert repo.files.keys() == []


def test_missing_filename_is_rejected(db, settings):
    with pytest.raises(ValidationError):
        AttachmentRepository(db, settings).upload(1, pdf(name=""))


def test_valid_pdf_is_retrievable(db, settings):
    repo = AttachmentRepository(db, settings)
    record = repo.upload(1, pdf())
    stored = repo.download(record["fileKey"])
    assert stored.data == b"%PDF-1.4 test"
    assert stored.content_type == "application/pdf"
    assert stored.filename == "report.pdf"


def test_path_components_are_stripped_from_filename(db, settings):
    record = AttachmentRepository(db, settings).upload(1, pdf(name="../../etc/report.pdf"))
    assert record["filename"] == "report.pdf"
    assert record["fileKey"] == f"1/{record['id']}-report.pdf"


def test_attachments_keep_append_order(db, settings):
    repo = AttachmentRepository(db, settings)
    first = repo.upload(1, pdf(name="b.pdf"))
    second = repo.upload(1, pdf(name="a.pdf"))
    assert [a["id"] for a in repo.list(1)] == [first["id"], second["id"]]


def test_locate_finds_owning_ticket(db, settings):
    repo = AttachmentRepository(db, settings)
    repo.upload(1, pdf())
    wanted = repo.upload(2, pdf(name="two.pdf"))
    repo.upload(3, pdf())

    ticket_id, record = repo.locate(wanted["id"])
    assert ticket_id == 2
    assert record == wanted


def test_delete_then_locate_and_download_fail(db, settings):
    repo = AttachmentRepository(db, settings)
    record = repo.upload(1, pdf())
    keep = repo.upload(1, pdf(name="keep.pdf"))

    repo.delete(record["id"])
    with pytest.raises(NotFoundError):
        repo.locate(record["id"])
    with pytest.raises(NotFoundError):
        repo.download(record["fileKey"])
    assert repo.list(1) == [keep]


def test_delete_unknown_attachment(db, settings):
    with pytest.raises(NotFoundError):
        AttachmentRepository(db, settings).delete("0-missing")


def test_failed_record_append_leaves_orphan_payload(db, settings, monkeypatch):
    repo = AttachmentRepository(db, settings)

    def unavailable(key, records):
        raise StoreUnavailableError("Storage unavailable")

    monkeypatch.setattr(repo.store, "write", unavailable)
    with pytest.raises(StoreUnavailableError):
        repo.upload(9, pdf())

    monkeypatch.undo()
    (file_key,) = repo.files.keys("9/")
    assert repo.download(file_key).data == b"%PDF-1.4 test"
    assert repo.list(9) == []


def test_download_falls_back_to_name_in_key(db):
    files = FileStore(db)
    file_key = build_file_key(4, "1700000000000-abc123xyz", "q3-summary.xlsx")
    files.blobs.set(file_key, b"data")

    stored = files.fetch(file_key)
    assert stored.filename == "q3-summary.xlsx"
    assert stored.content_type == "application/octet-stream"


def test_filename_from_key():
    assert filename_from_key("4/1700000000000-abc123xyz-my-file.pdf") == "my-file.pdf"
    assert filename_from_key("4/nodashes") == "download"
    assert filename_from_key("") == "download"


def test_attachment_ids_look_unique():
    ids = {new_attachment_id() for _ in range(50)}
    assert len(ids) == 50
    millis, suffix = next(iter(ids)).split("-")
    assert millis.isdigit()
    assert len(suffix) == 9


def test_delete_rewrites_collection_under_its_stored_key(db, settings):
    # collections written from a raw form field may carry leading zeros
    repo = AttachmentRepository(db, settings)
    file_key = build_file_key("007", "1-abc", "a.pdf")
    repo.files.put(file_key, b"%PDF", "application/pdf", "a.pdf")
    repo.store.write("ticket-007", [{"id": "1-abc", "ticketId": 7, "fileKey": file_key}])

    repo.delete("1-abc")
    assert repo.store.read("ticket-007") == []
    assert repo.store.keys("ticket-") == ["ticket-007"]
    with pytest.raises(NotFoundError):
        repo.download(file_key)


def test_list_tolerates_incomplete_stored_records(db, settings):
    AttachmentRepository(db, settings).store.write("ticket-8", [{"id": "1-old", "filename": "old.pdf"}])

    r = client.get("/tickets/8/attachments")
    assert r.status_code == 200
    (record,) = r.json()
    assert record["id"] == "1-old"
    assert record["fileKey"] is None


def test_incoming_file_size_defaults_to_data_length():
    assert IncomingFile(filename="a.txt", content_type="text/plain", data=b"abcd").size == 4
    assert IncomingFile(filename="a.txt", content_type="text/plain", size=10).size == 10
