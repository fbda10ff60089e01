"""Tests for notes endpoints (F4)."""

import base64


def _upload(client, name="lecture.pdf", data=b"%PDF-1.4", year="first-year",
            semester="semester-1", **extra):
    body = {"name": name, "content_base64": base64.b64encode(data).decode(), **extra}
    return client.post(f"/api/notes/{year}/{semester}/files", json=body)


class TestGetLibrary:
    """Tests for GET /api/notes."""

    def test_default_layout(self, client):
        response = client.get("/api/notes")

        assert response.status_code == 200
        data = response.json()
        assert data["total_files"] == 0
        assert [y["id"] for y in data["academic_years"]] == [
            "first-year", "second-year", "third-year", "fourth-year"
        ]
        assert data["academic_years"][0]["semesters"][0]["name"] == "First Semester"

    def test_filter(self, client):
        _upload(client, "slides.pdf")
        _upload(client, "photo.png", b"\x89PNG")

        data = client.get("/api/notes", params={"filter": "image"}).json()

        files = data["academic_years"][0]["semesters"][0]["files"]
        assert [f["name"] for f in files] == ["photo.png"]
        assert data["total_files"] == 2

    def test_invalid_filter(self, client):
        assert client.get("/api/notes", params={"filter": "video"}).status_code == 422


class TestUploadFile:
    """Tests for POST /api/notes/{year}/{semester}/files."""

    def test_upload(self, client):
        response = _upload(client, data=b"x" * 1536)

        assert response.status_code == 201
        data = response.json()
        assert data["name"] == "lecture.pdf"
        assert data["size"] == 1536
        assert data["size_label"] == "1.5 KB"
        assert data["type"] == "application/pdf"
        assert "content" not in data

    def test_upload_with_explicit_type(self, client):
        response = _upload(client, "notes.txt", b"hi", type="text/markdown")
        assert response.json()["type"] == "text/markdown"

    def test_unsupported_type(self, client):
        assert _upload(client, "run.exe", b"MZ").status_code == 415

    def test_invalid_base64(self, client):
        response = client.post(
            "/api/notes/first-year/semester-1/files",
            json={"name": "a.txt", "content_base64": "***not base64***"},
        )
        assert response.status_code == 400

    def test_unknown_semester(self, client):
        assert _upload(client, semester="semester-7").status_code == 404
        assert client.get("/api/notes").json()["total_files"] == 0


class TestSearchAndDelete:
    """Tests for search and delete."""

    def test_search(self, client):
        _upload(client, "Calculus.pdf")
        _upload(client, "history.txt", b"h", year="second-year", semester="semester-3")

        data = client.get("/api/notes/search", params={"q": "CALC"}).json()

        assert data["count"] == 1
        match = data["matches"][0]
        assert match["file"]["name"] == "Calculus.pdf"
        assert match["year_id"] == "first-year"
        assert match["semester_name"] == "First Semester"

    def test_search_requires_query(self, client):
        assert client.get("/api/notes/search", params={"q": ""}).status_code == 422

    def test_delete(self, client):
        file_id = _upload(client).json()["id"]

        response = client.delete(f"/api/notes/first-year/semester-1/files/{file_id}")

        assert response.status_code == 204
        assert client.get("/api/notes").json()["total_files"] == 0

    def test_delete_missing(self, client):
        response = client.delete("/api/notes/first-year/semester-1/files/nope")
        assert response.status_code == 404


class TestDownloadFile:
    """Tests for GET /api/notes/{year}/{semester}/files/{file_id}."""

    def test_returns_raw_bytes(self, client):
        payload = b"%PDF-1.4\n\x00\xff binary"
        file_id = _upload(client, "lecture.pdf", payload).json()["id"]

        response = client.get(f"/api/notes/first-year/semester-1/files/{file_id}")

        assert response.status_code == 200
        assert response.content == payload
        assert response.headers["content-type"] == "application/pdf"
        assert "lecture.pdf" in response.headers["content-disposition"]

    def test_uses_stored_mime_type(self, client):
        file_id = _upload(client, "notes.txt", b"hi", type="text/markdown").json()["id"]

        response = client.get(f"/api/notes/first-year/semester-1/files/{file_id}")

        assert response.headers["content-type"].startswith("text/markdown")

    def test_non_ascii_name(self, client):
        file_id = _upload(client, "Física.txt", b"x").json()["id"]

        response = client.get(f"/api/notes/first-year/semester-1/files/{file_id}")

        assert response.status_code == 200
        assert "F%C3%ADsica.txt" in response.headers["content-disposition"]

    def test_unknown_file(self, client):
        response = client.get("/api/notes/first-year/semester-1/files/nope")
        assert response.status_code == 404

    def test_wrong_semester(self, client):
        file_id = _upload(client).json()["id"]

        response = client.get(f"/api/notes/first-year/semester-2/files/{file_id}")

        assert response.status_code == 404
