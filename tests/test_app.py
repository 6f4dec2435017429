"""Tests for the HTTP surface."""

import asyncio
import io
import zipfile

import pytest
from fastapi.testclient import TestClient

from server import app as server_app


@pytest.fixture
def client():
    server_app.JOBS.clear()
    server_app.ARCHIVES.clear()
    return TestClient(server_app.app)


def _names(content):
    with zipfile.ZipFile(io.BytesIO(content)) as zf:
        return sorted(zf.namelist())


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_convert_returns_archive(client, supplier_csv):
    resp = client.post(
        "/convert",
        files=[
            ("files", ("kiddo.csv", supplier_csv, "text/csv")),
            ("files", ("bad.xlsx", b"nope", "application/octet-stream")),
        ],
        data={"category": "Toys"},
    )
    assert resp.status_code == 200
    assert resp.headers["content-type"] == "application/zip"
    assert "toys_processed_" in resp.headers["content-disposition"]
    assert resp.headers["x-processed-count"] == "1"
    assert resp.headers["x-failed-count"] == "1"
    assert _names(resp.content) == ["ERROR_bad.xlsx.txt", "kiddo - Converted - Shopify.csv"]


def test_convert_defaults_category(client, supplier_csv):
    resp = client.post("/convert", files=[("files", ("kiddo.csv", supplier_csv, "text/csv"))])
    assert resp.status_code == 200
    assert "fashion_processed_" in resp.headers["content-disposition"]


def test_convert_rejects_unknown_category(client, supplier_csv):
    resp = client.post(
        "/convert",
        files=[("files", ("kiddo.csv", supplier_csv, "text/csv"))],
        data={"category": "Furniture"},
    )
    assert resp.status_code == 422


def test_convert_batch_failure_is_500(client, supplier_csv, monkeypatch):
    def boom(report):
        raise OSError("disk full")

    monkeypatch.setattr(server_app, "build_archive", boom)
    resp = client.post("/convert", files=[("files", ("kiddo.csv", supplier_csv, "text/csv"))])
    assert resp.status_code == 500
    assert resp.json()["detail"] == server_app.BATCH_ERROR


def test_convert_job_lifecycle(client, supplier_csv):
    resp = client.post(
        "/jobs/convert",
        files=[("files", ("kiddo.csv", supplier_csv, "text/csv"))],
        data={"category": "Books"},
    )
    assert resp.status_code == 200
    job = resp.json()
    assert job["kind"] == "convert"
    assert job["params"] == {"category": "Books", "files": ["kiddo.csv"]}

    # background tasks run before TestClient returns
    status = client.get(f"/jobs/{job['id']}").json()
    assert status["status"] == "succeeded"
    assert status["counters"] == {"files": 1, "processed": 1, "failed": 0}
    assert status["archive_name"].startswith("books_processed_")

    dl = client.get(f"/jobs/{job['id']}/download")
    assert dl.status_code == 200
    assert _names(dl.content) == ["kiddo - Converted - Shopify.csv"]


def test_failed_job_cannot_be_downloaded(client, supplier_csv, monkeypatch):
    def boom(report):
        raise OSError("disk full")

    monkeypatch.setattr(server_app, "build_archive", boom)
    job = client.post("/jobs/convert", files=[("files", ("kiddo.csv", supplier_csv, "text/csv"))]).json()
    status = client.get(f"/jobs/{job['id']}").json()
    assert status["status"] == "failed"
    assert status["error"] == "disk full"
    assert client.get(f"/jobs/{job['id']}/download").status_code == 400


def test_unknown_job(client):
    assert client.get("/jobs/missing").status_code == 404
    assert client.get("/jobs/missing/download").status_code == 404


def test_convert_runs_batch_off_the_event_loop(client, supplier_csv, monkeypatch):
    real = server_app._run_batch
    on_loop = []

    def tracking(uploads):
        try:
            asyncio.get_running_loop()
            on_loop.append(True)
        except RuntimeError:
            on_loop.append(False)
        return real(uploads)

    monkeypatch.setattr(server_app, "_run_batch", tracking)
    resp = client.post("/convert", files=[("files", ("kiddo.csv", supplier_csv, "text/csv"))])
    assert resp.status_code == 200
    assert on_loop == [False]


def test_old_job_archives_are_released(client, supplier_csv, monkeypatch):
    settings = dict(server_app.app_settings.default_settings(), max_archives=1)
    monkeypatch.setattr(server_app.app_settings, "get_settings", lambda: settings)

    first = client.post("/jobs/convert", files=[("files", ("a.csv", supplier_csv, "text/csv"))]).json()
    second = client.post("/jobs/convert", files=[("files", ("b.csv", supplier_csv, "text/csv"))]).json()

    assert list(server_app.ARCHIVES) == [second["id"]]
    assert client.get(f"/jobs/{first['id']}").json()["status"] == "succeeded"
    assert client.get(f"/jobs/{first['id']}/download").status_code == 400
    dl = client.get(f"/jobs/{second['id']}/download")
    assert _names(dl.content) == ["b - Converted - Shopify.csv"]
