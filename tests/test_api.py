"""
Тесты для HTTP API
"""
import re
import pytest

from .conftest import ADMIN_EMAIL, ADMIN_PASSWORD, ADMIN_USERNAME, PDF_BYTES

CERTIFICATES_URL = "/api/admin/certificates"


def pdf_file(content=PDF_BYTES, content_type="application/pdf", name="certificate.pdf"):
    return {"pdfFile": (name, content, content_type)}


def stored_files(certificates_dir):
    return sorted(p.name for p in certificates_dir.glob("*.pdf"))


class TestAuthAPI:
    """Тесты входа и выхода"""

    def test_login_sets_cookie(self, client, admin_user):
        response = client.post("/api/auth/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})

        assert response.status_code == 200
        data = response.json()
        assert data["token"]
        assert data["user"]["email"] == ADMIN_EMAIL
        assert "password_hash" not in data["user"]

        set_cookie = response.headers["set-cookie"]
        assert set_cookie.startswith("auth-token=")
        assert "HttpOnly" in set_cookie
        assert "Max-Age=86400" in set_cookie
        assert "samesite=lax" in set_cookie.lower()

    def test_login_with_username(self, client, admin_user):
        response = client.post("/api/auth/login", json={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD})
        assert response.status_code == 200

    def test_login_wrong_password(self, client, admin_user):
        response = client.post("/api/auth/login", json={"email": ADMIN_EMAIL, "password": "wrong"})

        assert response.status_code == 401
        body = response.json()
        assert body["success"] is False
        assert body["error"]["code"] == "INVALID_CREDENTIALS"
        assert "set-cookie" not in response.headers

    def test_login_unknown_user(self, client, admin_user):
        response = client.post("/api/auth/login", json={"email": "nobody@example.com", "password": "x"})

        assert response.status_code == 401
        wrong_password = client.post("/api/auth/login", json={"email": ADMIN_EMAIL, "password": "x"})
        assert response.json()["message"] == wrong_password.json()["message"]

    def test_login_missing_fields(self, client):
        response = client.post("/api/auth/login", json={"email": ADMIN_EMAIL})
        assert response.status_code == 400

    def test_login_invalid_body(self, client):
        response = client.post("/api/auth/login", content=b"not json",
                               headers={"content-type": "application/json"})
        assert response.status_code == 400

    def test_logout_clears_cookie(self, admin_client):
        response = admin_client.post("/api/auth/logout")

        assert response.status_code == 200
        set_cookie = response.headers["set-cookie"]
        assert set_cookie.startswith("auth-token=")
        assert "Max-Age=0" in set_cookie


class TestAdminCertificatesAPI:
    """Тесты управления сертификатами"""

    def test_create_multipart_with_pdf(self, admin_client, certificate_data, certificates_dir):
        response = admin_client.post(CERTIFICATES_URL, data=certificate_data, files=pdf_file())

        assert response.status_code == 201
        certificate = response.json()["certificate"]
        assert certificate["dni"] == "12345678"
        assert certificate["fullName"] == "Juan Pérez"
        assert certificate["isActive"] is True
        assert certificate["status"] == "active"
        assert re.fullmatch(
            r"/api/certificates/download/12345678-Safety_101-\d+\.pdf", certificate["pdfUrl"]
        )
        assert stored_files(certificates_dir) == [certificate["pdfUrl"].rsplit("/", 1)[-1]]

    def test_create_multipart_without_pdf(self, admin_client, certificate_data):
        response = admin_client.post(CERTIFICATES_URL, data=certificate_data)

        assert response.status_code == 201
        assert response.json()["certificate"]["pdfUrl"] is None

    def test_create_json(self, admin_client, certificate_data):
        response = admin_client.post(CERTIFICATES_URL, json=certificate_data)

        assert response.status_code == 201
        assert response.json()["certificate"]["course"] == "Safety-101"

    def test_create_missing_field(self, admin_client, certificate_data):
        del certificate_data["company"]
        response = admin_client.post(CERTIFICATES_URL, json=certificate_data)

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_create_unknown_field(self, admin_client, certificate_data):
        certificate_data["pdfUrl"] = "/etc/passwd"
        response = admin_client.post(CERTIFICATES_URL, json=certificate_data)

        assert response.status_code == 400

    def test_create_invalid_dates(self, admin_client, certificate_data):
        certificate_data["expiryDate"] = "yesterday"
        assert admin_client.post(CERTIFICATES_URL, json=certificate_data).status_code == 400

        certificate_data["issueDate"], certificate_data["expiryDate"] = "2025-06-01", "2025-01-01"
        assert admin_client.post(CERTIFICATES_URL, json=certificate_data).status_code == 400

    def test_create_unsupported_body(self, admin_client):
        response = admin_client.post(CERTIFICATES_URL, content=b"dni=1", headers={"content-type": "text/plain"})
        assert response.status_code == 400

    def test_duplicate_rejected(self, admin_client, certificate_data, certificates_dir):
        first = admin_client.post(CERTIFICATES_URL, data=certificate_data, files=pdf_file())
        assert first.status_code == 201

        second = admin_client.post(CERTIFICATES_URL, data=certificate_data, files=pdf_file())

        assert second.status_code == 400
        assert second.json()["error"]["code"] == "DUPLICATE"
        assert len(admin_client.get(CERTIFICATES_URL).json()["certificates"]) == 1
        assert len(stored_files(certificates_dir)) == 1

    def test_non_pdf_rejected(self, admin_client, certificate_data, certificates_dir):
        response = admin_client.post(
            CERTIFICATES_URL, data=certificate_data, files=pdf_file(b"hello", "text/plain", "notes.txt")
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "UNSUPPORTED_MEDIA_TYPE"
        assert stored_files(certificates_dir) == []
        assert admin_client.get(CERTIFICATES_URL).json()["certificates"] == []

    def test_pdf_type_must_match_exactly(self, admin_client, certificate_data, certificates_dir):
        response = admin_client.post(
            CERTIFICATES_URL, data=certificate_data, files=pdf_file(content_type="APPLICATION/PDF; foo=bar")
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "UNSUPPORTED_MEDIA_TYPE"
        assert stored_files(certificates_dir) == []

    def test_too_large_rejected(self, admin_client, certificate_data, settings, certificates_dir):
        response = admin_client.post(
            CERTIFICATES_URL, data=certificate_data, files=pdf_file(b"0" * (settings.max_upload_size + 1))
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "PAYLOAD_TOO_LARGE"
        assert stored_files(certificates_dir) == []

    def test_list(self, admin_client, certificate_data):
        admin_client.post(CERTIFICATES_URL, json=certificate_data)
        certificate_data["course"] = "Second"
        admin_client.post(CERTIFICATES_URL, json=certificate_data)

        certificates = admin_client.get(CERTIFICATES_URL).json()["certificates"]

        assert [cert["course"] for cert in certificates] == ["Second", "Safety-101"]

    def test_get_one(self, admin_client, certificate_data):
        created = admin_client.post(CERTIFICATES_URL, json=certificate_data).json()["certificate"]

        response = admin_client.get(f"{CERTIFICATES_URL}/{created['id']}")

        assert response.status_code == 200
        assert response.json()["certificate"]["id"] == created["id"]
        assert admin_client.get(f"{CERTIFICATES_URL}/missing").status_code == 404

    def test_update(self, admin_client, certificate_data):
        created = admin_client.post(CERTIFICATES_URL, json=certificate_data).json()["certificate"]
        certificate_data["company"] = "Globex"

        response = admin_client.put(f"{CERTIFICATES_URL}/{created['id']}", json=certificate_data)

        assert response.status_code == 200
        assert response.json()["certificate"]["company"] == "Globex"

    def test_update_replaces_pdf(self, admin_client, certificate_data, certificates_dir):
        created = admin_client.post(
            CERTIFICATES_URL, data=certificate_data, files=pdf_file()
        ).json()["certificate"]

        response = admin_client.put(
            f"{CERTIFICATES_URL}/{created['id']}", data=certificate_data, files=pdf_file(b"%PDF-1.7 v2")
        )

        assert response.status_code == 200
        new_url = response.json()["certificate"]["pdfUrl"]
        assert new_url != created["pdfUrl"]
        assert stored_files(certificates_dir) == [new_url.rsplit("/", 1)[-1]]
        assert admin_client.get(new_url).content == b"%PDF-1.7 v2"

    def test_update_with_bad_upload_keeps_pdf(self, admin_client, certificate_data, settings, certificates_dir):
        created = admin_client.post(
            CERTIFICATES_URL, data=certificate_data, files=pdf_file()
        ).json()["certificate"]
        url = f"{CERTIFICATES_URL}/{created['id']}"
        files_before = stored_files(certificates_dir)

        response = admin_client.put(url, data=certificate_data, files=pdf_file(b"hello", "text/plain", "notes.txt"))
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "UNSUPPORTED_MEDIA_TYPE"

        response = admin_client.put(
            url, data=certificate_data, files=pdf_file(b"0" * (settings.max_upload_size + 1))
        )
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "PAYLOAD_TOO_LARGE"

        assert admin_client.get(url).json()["certificate"]["pdfUrl"] == created["pdfUrl"]
        assert stored_files(certificates_dir) == files_before
        assert admin_client.get(created["pdfUrl"]).content == PDF_BYTES

    def test_update_unknown(self, admin_client, certificate_data):
        response = admin_client.put(f"{CERTIFICATES_URL}/missing", json=certificate_data)
        assert response.status_code == 404

    def test_delete(self, admin_client, certificate_data, certificates_dir):
        created = admin_client.post(
            CERTIFICATES_URL, data=certificate_data, files=pdf_file()
        ).json()["certificate"]

        response = admin_client.delete(f"{CERTIFICATES_URL}/{created['id']}")

        assert response.status_code == 200
        assert admin_client.get(CERTIFICATES_URL).json()["certificates"] == []
        assert stored_files(certificates_dir) == []

        everything = admin_client.get(CERTIFICATES_URL, params={"includeInactive": "true"}).json()
        assert everything["certificates"][0]["status"] == "inactive"

    def test_delete_unknown(self, admin_client):
        response = admin_client.delete(f"{CERTIFICATES_URL}/does-not-exist")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"

    def test_delete_twice(self, admin_client, certificate_data):
        created = admin_client.post(CERTIFICATES_URL, json=certificate_data).json()["certificate"]

        assert admin_client.delete(f"{CERTIFICATES_URL}/{created['id']}").status_code == 200
        assert admin_client.delete(f"{CERTIFICATES_URL}/{created['id']}").status_code == 404


class TestPublicAPI:
    """Тесты публичного поиска и скачивания"""

    @pytest.fixture
    def created(self, admin_client, certificate_data):
        response = admin_client.post(CERTIFICATES_URL, data=certificate_data, files=pdf_file())
        assert response.status_code == 201
        return response.json()["certificate"]

    def test_create_then_search(self, client, created):
        client.cookies.clear()
        response = client.get("/api/certificates/search", params={"dni": "12345678"})

        assert response.status_code == 200
        certificates = response.json()["certificates"]
        assert len(certificates) == 1
        assert certificates[0]["id"] == created["id"]
        assert certificates[0]["course"] == "Safety-101"

    def test_search_requires_dni(self, client):
        assert client.get("/api/certificates/search").status_code == 400
        assert client.get("/api/certificates/search", params={"dni": " "}).status_code == 400

    def test_search_unknown(self, client):
        response = client.get("/api/certificates/search", params={"dni": "00000000"})

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"

    def test_search_all_expired(self, admin_client, expired_certificate_data):
        admin_client.post(CERTIFICATES_URL, json=expired_certificate_data)

        response = admin_client.get("/api/certificates/search", params={"dni": "12345678"})

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "ALL_EXPIRED"

    def test_search_hides_deleted(self, admin_client, created):
        admin_client.delete(f"{CERTIFICATES_URL}/{created['id']}")

        response = admin_client.get("/api/certificates/search", params={"dni": "12345678"})
        assert response.status_code == 404

    def test_download_round_trip(self, client, created):
        client.cookies.clear()
        response = client.get(created["pdfUrl"])

        assert response.status_code == 200
        assert response.content == PDF_BYTES
        assert response.headers["content-type"] == "application/pdf"
        assert response.headers["content-disposition"].startswith("attachment")
        assert created["pdfUrl"].rsplit("/", 1)[-1] in response.headers["content-disposition"]
        assert response.headers["cache-control"] == "no-cache"

    def test_download_missing(self, client):
        response = client.get("/api/certificates/download/missing-file-1.pdf")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "FILE_NOT_FOUND"

    def test_download_traversal_rejected(self, client, settings, tmp_path):
        (tmp_path / "secret.pdf").write_bytes(b"secret")

        # Клиент схлопывает буквальные ".." в URL, поэтому разделители закодированы
        for path in ["..%2Fsecret.pdf", "..%2F..%2Fetc%2Fpasswd.pdf", "sub%2Fsecret.pdf"]:
            response = client.get(f"/api/certificates/download/{path}")
            assert response.status_code == 400
            assert response.json()["error"]["code"] == "INVALID_FILENAME"

    def test_download_requires_pdf_extension(self, client):
        assert client.get("/api/certificates/download/notes.txt").status_code == 400


class TestAppEndpoints:
    """Тесты служебных маршрутов"""

    def test_index(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert "search" in response.json()

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["components"]["database"]["status"] == "healthy"
        assert body["components"]["file_storage"]["status"] == "healthy"

    def test_admin_landing(self, admin_client):
        response = admin_client.get("/admin")

        assert response.status_code == 200
        assert response.json()["user"]["identifier"] == ADMIN_EMAIL
