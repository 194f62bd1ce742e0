"""Tests for the scratch workspace."""

import io
import os
from unittest.mock import patch

import pytest
from werkzeug.datastructures import FileStorage

from clipstream.scratch import ScratchWorkspace


class TestAllocate:
    def test_creates_empty_file(self, workspace):
        f = workspace.allocate("upload", suffix=".mp4", owner="abc")
        assert f.path.exists()
        assert f.path.read_bytes() == b""
        assert f.path.parent == workspace.root
        assert f.path.name.startswith("upload_")
        assert f.path.suffix == ".mp4"
        assert f.owner == "abc"
        assert f.deleted is False

    def test_names_are_unique(self, workspace):
        paths = {workspace.allocate("x").path for _ in range(50)}
        assert len(paths) == 50

    def test_ensure_creates_root(self, tmp_path):
        ws = ScratchWorkspace(tmp_path / "a" / "b")
        ws.ensure()
        assert ws.root.is_dir()


class TestRelease:
    def test_deletes_once(self, scratch):
        with patch("clipstream.scratch.os.unlink", wraps=os.unlink) as unlink:
            assert scratch.release() is True
            assert scratch.release() is False
            assert scratch.release() is False
        assert unlink.call_count == 1
        assert scratch.deleted is True
        assert not scratch.path.exists()

    def test_missing_file_is_not_an_error(self, scratch):
        scratch.path.unlink()
        assert scratch.release() is True
        assert scratch.deleted is True


class TestSaveUpload:
    def test_saves_content(self, workspace):
        upload = FileStorage(stream=io.BytesIO(b"CONTENT"), filename="clip.mov")
        f = workspace.save_upload(upload, owner="r1")
        assert f.path.suffix == ".mov"
        assert f.path.read_bytes() == b"CONTENT"

    def test_default_extension(self, workspace):
        upload = FileStorage(stream=io.BytesIO(b"x"), filename="blob")
        assert workspace.save_upload(upload).path.suffix == ".mp4"

    def test_failed_save_releases(self, workspace):
        upload = FileStorage(stream=io.BytesIO(b"x"), filename="a.mp4")
        with patch.object(FileStorage, "save", side_effect=OSError("disk full")):
            with pytest.raises(OSError, match="disk full"):
                workspace.save_upload(upload)
        assert list(workspace.root.iterdir()) == []
