"""Tests for the HTTP endpoints."""

import os

import pytest
from fastapi.testclient import TestClient

from server.main import create_app


def upload(client, name="hello.txt", content=b"hello", mime="text/plain"):
    return client.post("/api/upload", files={"file": (name, content, mime)})


class TestUploadEndpoint:
    """Test POST /api/upload."""

    def test_upload_success(self, client, storage_dir):
        response = upload(client)

        assert response.status_code == 200
        body = response.json()
        assert body["code"] == 200
        assert body["msg"] == "upload succeeded"

        data = body["data"]
        assert data["displayName"] == "hello.txt"
        assert data["filename"].endswith("__hello.txt")
        assert data["size"] == 5
        assert data["sizeReadable"] == "5 B"
        assert data["mimeType"] == "text/plain"
        assert data["mtime"].endswith("Z")
        assert data["relativeDownloadUrl"] == f"/fileList/{data['filename']}"
        assert data["downloadUrl"] == f"http://testserver/fileList/{data['filename']}"
        assert (storage_dir / data["filename"]).read_bytes() == b"hello"

    def test_upload_unicode_name(self, client):
        response = upload(client, name="报告 2024.txt")

        data = response.json()["data"]
        assert data["displayName"] == "报告 2024.txt"
        assert data["relativeDownloadUrl"].endswith("__%E6%8A%A5%E5%91%8A%202024.txt")

    def test_upload_sanitizes_name(self, client, storage_dir):
        response = upload(client, name='a<b>c|d?.txt')

        data = response.json()["data"]
        assert data["displayName"] == "a_b_c_d_.txt"
        assert os.listdir(storage_dir) == [data["filename"]]

    def test_overlong_name_is_shortened(self, client, storage_dir):
        response = upload(client, name="a" * 250 + ".txt", content=b"long")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["displayName"] == "a" * 196 + ".txt"
        assert (storage_dir / data["filename"]).read_bytes() == b"long"

    def test_same_name_twice_gives_distinct_files(self, client, storage_dir):
        first = upload(client, content=b"one").json()["data"]
        second = upload(client, content=b"two").json()["data"]

        assert first["filename"] != second["filename"]
        assert len(os.listdir(storage_dir)) == 2

    def test_only_first_file_part_is_stored(self, client, storage_dir):
        response = client.post(
            "/api/upload",
            files=[
                ("file", ("first.txt", b"1", "text/plain")),
                ("file", ("second.txt", b"2", "text/plain")),
            ],
        )

        assert response.json()["data"]["displayName"] == "first.txt"
        assert len(os.listdir(storage_dir)) == 1

    @pytest.mark.parametrize("kwargs", [
        {},
        {"data": {"note": "no file here"}},
        {"files": {"other": ("x.txt", b"x", "text/plain")}},
    ])
    def test_missing_file_returns_400(self, client, storage_dir, kwargs):
        response = client.post("/api/upload", **kwargs)

        assert response.status_code == 400
        assert response.json() == {"code": 400, "msg": "No file was uploaded"}
        assert os.listdir(storage_dir) == []


class TestListEndpoint:
    """Test GET /api/files."""

    def test_empty_listing(self, client):
        response = client.get("/api/files")

        assert response.status_code == 200
        assert response.json() == {"code": 200, "msg": "ok", "data": []}

    def test_listing_newest_first_and_filtered(self, client, storage_dir):
        for name, mtime in [("1-1__old.txt", 1000), ("1-2__new.txt", 3000)]:
            path = storage_dir / name
            path.write_text(name)
            os.utime(path, (mtime, mtime))
        (storage_dir / ".hidden").write_text("h")
        (storage_dir / "subdir").mkdir()

        data = client.get("/api/files").json()["data"]

        assert [f["filename"] for f in data] == ["1-2__new.txt", "1-1__old.txt"]
        assert data[0]["mtimeMs"] == pytest.approx(3000000.0)

    def test_listing_reflects_current_size(self, client, storage_dir):
        stored = upload(client, content=b"abc").json()["data"]["filename"]
        (storage_dir / stored).write_bytes(b"a" * 2048)

        data = client.get("/api/files").json()["data"]

        assert data[0]["size"] == 2048
        assert data[0]["sizeReadable"] == "2 KB"

    def test_unreadable_storage_returns_500(self, tmp_path):
        client = TestClient(create_app(storage_dir=tmp_path / "missing"))

        response = client.get("/api/files")

        assert response.status_code == 500
        assert response.json() == {"code": 500, "msg": "Failed to read the file list", "data": []}


class TestDownloadEndpoint:
    """Test GET /fileList/<storedName>."""

    def test_download_round_trip(self, client):
        stored = upload(client, name="my notes.txt", content=b"contents").json()["data"]

        response = client.get(stored["relativeDownloadUrl"])

        assert response.status_code == 200
        assert response.content == b"contents"
        assert response.headers["content-type"].startswith("text/plain")
        assert response.headers["content-disposition"] == "inline; filename*=UTF-8''my%20notes.txt"

    def test_download_unknown_extension(self, client, storage_dir):
        (storage_dir / "1-1__blob.xyz").write_bytes(b"\x00\x01")

        response = client.get("/fileList/1-1__blob.xyz")

        assert response.headers["content-type"] == "application/octet-stream"

    def test_download_name_without_separator(self, client, storage_dir):
        (storage_dir / "legacy.json").write_text("{}")

        response = client.get("/fileList/legacy.json")

        assert response.headers["content-type"] == "application/json"
        assert response.headers["content-disposition"] == "inline; filename*=UTF-8''legacy.json"

    @pytest.mark.parametrize("path", [
        "/fileList/missing.txt",
        "/fileList/.hidden",
        "/fileList/subdir",
        "/fileList/abc%00def.txt",
    ])
    def test_download_not_found(self, client, storage_dir, path):
        (storage_dir / ".hidden").write_text("h")
        (storage_dir / "subdir").mkdir()

        response = client.get(path)

        assert response.status_code == 404
        assert response.json() == {"code": 404, "msg": "File not found"}
        assert response.headers["access-control-allow-origin"] == "*"


class TestCrossCutting:
    """Test CORS, landing page and health endpoints."""

    def test_cors_headers_on_every_response(self, client):
        for response in (client.get("/api/files"), client.get("/fileList/nope"), client.get("/health")):
            assert response.headers["access-control-allow-origin"] == "*"
            assert response.headers["access-control-allow-headers"] == "*"
            assert response.headers["access-control-allow-methods"] == "DELETE,PUT,POST,GET,OPTIONS"
            assert "x-request-id" in response.headers

    @pytest.mark.parametrize("path", ["/api/upload", "/api/files", "/anything/at/all"])
    def test_preflight_short_circuits(self, client, storage_dir, path):
        response = client.options(path)

        assert response.status_code == 200
        assert response.text == "OK"
        assert response.headers["access-control-allow-origin"] == "*"
        assert os.listdir(storage_dir) == []

    def test_landing_page(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/html")
        assert "FileShelf" in response.text

    def test_landing_page_fallback(self, tmp_path):
        client = TestClient(create_app(storage_dir=tmp_path, index_page=tmp_path / "none.html"))

        response = client.get("/")

        assert response.json() == {"message": "FileShelf API", "status": "running"}

    def test_health_check(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "service": "fileshelf"}

    def test_unknown_route_uses_envelope(self, client):
        response = client.get("/api/nothing")

        assert response.status_code == 404
        assert response.json() == {"code": 404, "msg": "Not Found"}
