"""Tests for POST /upload."""

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from fastapi.testclient import TestClient


@pytest.fixture
def upload_dir(monkeypatch, tmp_path):
    path = tmp_path / "uploads"
    monkeypatch.setenv("UPLOAD_DIR", str(path))
    monkeypatch.setenv("MOCK_MODE", "1")
    return path


def _main():
    import importlib
    import main as main_mod
    importlib.reload(main_mod)
    return main_mod


class TestUpload:
    def test_stores_video(self, upload_dir):
        client = TestClient(_main().app)
        resp = client.post("/upload", files={"file": ("cake.mp4", b"fake video content", "video/mp4")})

        assert resp.status_code == 200, resp.text
        body = resp.json()
        assert set(body) == {"fileId", "fileName", "duration"}
        assert body["fileName"] == f"{body['fileId']}.mp4"
        assert body["duration"] == 0
        assert (upload_dir / body["fileName"]).read_bytes() == b"fake video content"

    def test_accepts_other_video_types(self, upload_dir):
        client = TestClient(_main().app)
        resp = client.post("/upload", files={"file": ("cake.webm", b"webm", "video/webm")})
        assert resp.status_code == 200
        assert resp.json()["fileName"].endswith(".webm")

    def test_accepts_mp4_name_with_generic_type(self, upload_dir):
        client = TestClient(_main().app)
        resp = client.post("/upload", files={"file": ("cake.mp4", b"mp4", "application/octet-stream")})
        assert resp.status_code == 200

    def test_rejects_non_video(self, upload_dir):
        client = TestClient(_main().app)
        resp = client.post("/upload", files={"file": ("notes.txt", b"hello", "text/plain")})
        assert resp.status_code == 400
        assert resp.json()["detail"] == "File must be a video (MP4)"
        assert not upload_dir.exists() or not any(upload_dir.iterdir())

    def test_missing_file(self, upload_dir):
        client = TestClient(_main().app)
        resp = client.post("/upload", data={"other": "value"})
        assert resp.status_code == 400

    def test_size_cap_is_50_mib(self, upload_dir):
        assert _main().MAX_UPLOAD_BYTES == 50 * 1024 * 1024

    def test_oversize_rejected_and_not_written(self, upload_dir, monkeypatch):
        main_mod = _main()
        monkeypatch.setattr(main_mod, "MAX_UPLOAD_BYTES", 16)
        client = TestClient(main_mod.app)

        resp = client.post("/upload", files={"file": ("cake.mp4", b"x" * 17, "video/mp4")})
        assert resp.status_code == 400
        assert "too large" in resp.json()["detail"]
        assert not upload_dir.exists() or not any(upload_dir.iterdir())

    def test_exactly_at_cap_accepted(self, upload_dir, monkeypatch):
        main_mod = _main()
        monkeypatch.setattr(main_mod, "MAX_UPLOAD_BYTES", 16)
        client = TestClient(main_mod.app)

        resp = client.post("/upload", files={"file": ("cake.mp4", b"x" * 16, "video/mp4")})
        assert resp.status_code == 200

    def test_storage_failure_is_500(self, upload_dir, monkeypatch):
        main_mod = _main()

        def broken_save(*args, **kwargs):
            raise OSError("disk full")

        monkeypatch.setattr(main_mod, "save_upload", broken_save)
        client = TestClient(main_mod.app)

        resp = client.post("/upload", files={"file": ("cake.mp4", b"data", "video/mp4")})
        assert resp.status_code == 500
        assert resp.json()["detail"] == "Failed to upload file"
