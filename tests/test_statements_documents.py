import pytest
from sqlalchemy.exc import SQLAlchemyError

from hellokeys import email_service
from hellokeys.domain.documents.repository import DocumentRepository
from hellokeys.models import AppSetting, Document, Notification
from hellokeys.models_invoice import Invoice
from hellokeys.utils import storage


class FakeStorage:
    def __init__(self, monkeypatch, upload_ok=True, delete_ok=True):
        self.uploaded = []
        self.deleted = []
        self.upload_ok = upload_ok
        self.delete_ok = delete_ok
        monkeypatch.setattr(storage, "upload_object", self.upload_object)
        monkeypatch.setattr(storage, "delete_object", self.delete_object)
        monkeypatch.setattr(storage, "generate_presigned_url", self.generate_presigned_url)

    def upload_object(self, bucket, key, content, content_type):
        self.uploaded.append((bucket, key))
        return self.upload_ok

    def delete_object(self, bucket, key):
        self.deleted.append((bucket, key))
        return self.delete_ok

    def generate_presigned_url(self, bucket, key, expiration=storage.PRESIGNED_URL_EXPIRATION):
        return f"https://storage.example.com/{bucket}/{key}?signed=1"


@pytest.fixture
def sent_emails(monkeypatch):
    sent = []

    async def fake_send_email(to, subject, html_content, from_address=None):
        sent.append({"to": to, "subject": subject, "html": html_content})
        return {"id": "email_1"}

    monkeypatch.setattr(email_service, "send_email", fake_send_email)
    return sent


def add_statement(db, owner, pdf_path="owner/2025-06.pdf"):
    invoice = Invoice(user_id=owner.id, period="Juin 2025", total_amount=1250.0, pdf_path=pdf_path)
    db.add(invoice)
    db.commit()
    return invoice


def test_statement_email_uses_default_template_and_notifies(
    client, db, owner, admin_headers, monkeypatch, sent_emails
):
    FakeStorage(monkeypatch)
    invoice = add_statement(db, owner)

    response = client.post(f"/statements/admin/{invoice.id}/send-email", headers=admin_headers)

    assert response.status_code == 200
    assert len(sent_emails) == 1
    assert sent_emails[0]["to"] == "owner@example.com"
    assert "Juin 2025" in sent_emails[0]["subject"]
    assert "https://storage.example.com/statements/owner/2025-06.pdf?signed=1" in sent_emails[0]["html"]

    notification = db.query(Notification).filter(Notification.user_id == owner.id).one()
    assert notification.link == "/finances"


def test_statement_email_uses_stored_template(client, db, owner, admin_headers, monkeypatch, sent_emails):
    FakeStorage(monkeypatch)
    db.add(
        AppSetting(
            key=email_service.STATEMENT_TEMPLATE_KEY,
            value={"subject": "Relevé {{period}}", "body": "Bonjour {{userName}}\n{{pdfLink}}"},
        )
    )
    db.commit()
    invoice = add_statement(db, owner)

    client.post(
        f"/statements/admin/{invoice.id}/send-email",
        json={"pdf_path": "owner/custom.pdf"},
        headers=admin_headers,
    )

    assert sent_emails[0]["subject"] == "Relevé Juin 2025"
    assert sent_emails[0]["html"] == (
        "Bonjour Camille<br>https://storage.example.com/statements/owner/custom.pdf?signed=1"
    )


def test_statement_email_for_unknown_statement_is_404(client, admin_headers, sent_emails):
    response = client.post("/statements/admin/missing/send-email", headers=admin_headers)
    assert response.status_code == 404
    assert response.json() == {"error": "Facture non trouvée"}
    assert sent_emails == []


def test_statement_download_is_limited_to_owner(client, db, owner, owner_headers, monkeypatch):
    from .conftest import make_token

    FakeStorage(monkeypatch)
    invoice = add_statement(db, owner)

    own = client.get(f"/statements/{invoice.id}/download", headers=owner_headers)
    assert own.status_code == 200
    assert own.json()["expires_in"] == storage.PRESIGNED_URL_EXPIRATION

    stranger = {"Authorization": f"Bearer {make_token('stranger-id', 'x@example.com')}"}
    assert client.get(f"/statements/{invoice.id}/download", headers=stranger).status_code == 403


def test_document_upload_stores_file_then_row(client, db, owner, admin_headers, monkeypatch):
    fake = FakeStorage(monkeypatch)

    response = client.post(
        "/documents/upload",
        data={"user_id": owner.id, "name": "Contrat", "category": "contrat"},
        files={"file": ("contrat.pdf", b"%PDF-1.4 test", "application/pdf")},
        headers=admin_headers,
    )

    assert response.status_code == 201
    assert response.json()["name"] == "Contrat"
    bucket, key = fake.uploaded[0]
    assert key.startswith(f"{owner.id}/") and key.endswith(".pdf")
    assert db.query(Document).one().file_path == key


def test_document_upload_removes_object_when_insert_fails(client, db, owner, admin_headers, monkeypatch):
    fake = FakeStorage(monkeypatch)

    def failing_create(db, **data):
        raise SQLAlchemyError("insert failed")

    monkeypatch.setattr(DocumentRepository, "create", staticmethod(failing_create))

    response = client.post(
        "/documents/upload",
        data={"user_id": owner.id},
        files={"file": ("bail.pdf", b"%PDF-1.4", "application/pdf")},
        headers=admin_headers,
    )

    assert response.status_code == 500
    assert fake.deleted == fake.uploaded
    assert db.query(Document).count() == 0


def test_document_delete_survives_storage_failure(client, db, owner, admin_headers, monkeypatch):
    FakeStorage(monkeypatch, delete_ok=False)
    document = Document(user_id=owner.id, name="Bail", file_path=f"{owner.id}/bail.pdf")
    db.add(document)
    db.commit()

    response = client.delete(f"/documents/{document.id}", headers=admin_headers)

    assert response.status_code == 200
    assert db.query(Document).count() == 0


def test_document_download_requires_owner_or_admin(client, db, owner, owner_headers, admin_headers, monkeypatch):
    from .conftest import make_token

    FakeStorage(monkeypatch)
    document = Document(user_id=owner.id, name="Bail", file_path=f"{owner.id}/bail.pdf")
    db.add(document)
    db.commit()

    assert client.get(f"/documents/{document.id}/download", headers=owner_headers).status_code == 200
    assert client.get(f"/documents/{document.id}/download", headers=admin_headers).status_code == 200

    stranger = {"Authorization": f"Bearer {make_token('stranger-id', 'x@example.com')}"}
    assert client.get(f"/documents/{document.id}/download", headers=stranger).status_code == 403


def test_oversized_document_is_refused_before_storage(client, db, owner, admin_headers, monkeypatch):
    fake = FakeStorage(monkeypatch)
    monkeypatch.setattr(storage, "MAX_DOCUMENT_SIZE_BYTES", 16)

    response = client.post(
        "/documents/upload",
        data={"user_id": owner.id},
        files={"file": ("plan.pdf", b"%PDF-1.4" + b"0" * 1024, "application/pdf")},
        headers=admin_headers,
    )

    assert response.status_code == 413
    assert fake.uploaded == []
    assert db.query(Document).count() == 0


def test_document_at_the_size_limit_is_accepted(client, owner, admin_headers, monkeypatch):
    fake = FakeStorage(monkeypatch)
    monkeypatch.setattr(storage, "MAX_DOCUMENT_SIZE_BYTES", 16)

    response = client.post(
        "/documents/upload",
        data={"user_id": owner.id},
        files={"file": ("plan.pdf", b"%PDF-1.4" + b"0" * 8, "application/pdf")},
        headers=admin_headers,
    )

    assert response.status_code == 201
    assert response.json()["file_size"] == 16
    assert len(fake.uploaded) == 1
