"""
Tests for the job pipeline: intake, dispatch, status transitions.
"""

from __future__ import annotations

import zipfile
from pathlib import Path

import pytest

from src.engine.errors import StorageError, UnsupportedTarget
from src.engine.job import run_job, start_job
from src.engine.workspace import TempWorkspace
from src.models.job import ConversionJob, JobStatus, Operation, Strategy

from tests.conftest import make_image_bytes


def _saver(data: bytes):
    def save(path: Path) -> None:
        path.write_bytes(data)
    return save


class TestConversionJob:

    def test_job_id_format(self):
        job = ConversionJob(operation="resize", input_path=Path("x"), original_filename="a.png")
        assert job.job_id.startswith("J-")
        assert len(job.job_id) == 10

    def test_stem_and_extension(self):
        job = ConversionJob(operation="convert", input_path=Path("x"), original_filename="My.Photo.PNG")
        assert job.original_stem == "My.Photo"
        assert job.original_extension == ".png"

    def test_complete_without_output_fails(self):
        job = ConversionJob(operation="compress", input_path=Path("x"), original_filename="a")
        job.complete()
        assert job.status is JobStatus.FAILED

    def test_complete_is_final(self):
        job = ConversionJob(operation="compress", input_path=Path("x"), original_filename="a")
        job.output_path = Path("y")
        job.complete()
        job.fail("late")
        job.complete()
        assert job.status is JobStatus.SUCCEEDED


class TestStartJob:

    def test_stores_with_original_extension(self, tmp_path):
        with TempWorkspace(tmp_path) as ws:
            job = start_job(ws, Operation.COMPRESS, "Notes.TXT", None, _saver(b"hi"))
            assert job.input_path.suffix == ".txt"
            assert job.input_path.read_bytes() == b"hi"
            assert job.content_type == "text/plain"
            assert job.status is JobStatus.PENDING
        assert not job.input_path.exists()

    def test_save_failure_is_storage_error(self, tmp_path):
        def broken(path):
            raise OSError("disk full")

        with pytest.raises(StorageError):
            with TempWorkspace(tmp_path) as ws:
                start_job(ws, Operation.COMPRESS, "a.txt", None, broken)
        assert list(tmp_path.iterdir()) == []


class TestRunJob:

    def test_success_status_set_after_release(self, tmp_path):
        with TempWorkspace(tmp_path) as ws:
            job = start_job(ws, Operation.COMPRESS, "a.txt", "text/plain", _saver(b"hello"), level="high")
            result = run_job(job, ws)
            assert job.strategy is Strategy.ARCHIVE
            assert job.status is JobStatus.ENCODING
            assert result.download_name == "a.zip"
            assert result.mimetype == "application/zip"
            with zipfile.ZipFile(result.path) as zf:
                assert zf.namelist() == ["a.txt"]
            release = ws.hand_off()

        assert job.status is JobStatus.ENCODING
        release()
        assert job.status is JobStatus.SUCCEEDED
        assert list(tmp_path.iterdir()) == []

    def test_failure_marks_job(self, tmp_path):
        with pytest.raises(UnsupportedTarget):
            with TempWorkspace(tmp_path) as ws:
                job = start_job(ws, Operation.CONVERT, "a.png", "image/png",
                                _saver(make_image_bytes()), target_format="exe")
                run_job(job, ws)
        assert job.status is JobStatus.FAILED
        assert "Unsupported" in job.error
        assert list(tmp_path.iterdir()) == []

    def test_resize_result(self, tmp_path):
        with TempWorkspace(tmp_path) as ws:
            job = start_job(ws, Operation.RESIZE, "pic.png", "image/png",
                            _saver(make_image_bytes(100, 50)), width=40)
            result = run_job(job, ws)
            assert result.download_name == "pic-resized.jpg"
            assert result.size_bytes > 0

    def test_unexpected_oserror_becomes_storage_error(self, tmp_path, monkeypatch):
        def explode(*args, **kwargs):
            raise PermissionError("read-only filesystem")

        monkeypatch.setattr("src.engine.job.create_archive", explode)
        with pytest.raises(StorageError):
            with TempWorkspace(tmp_path) as ws:
                job = start_job(ws, Operation.COMPRESS, "a.txt", None, _saver(b"x"))
                run_job(job, ws)
        assert job.status is JobStatus.FAILED
