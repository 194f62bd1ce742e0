"""Shared test fixtures."""

import sys
from pathlib import Path

import pytest

from clipstream.scratch import ScratchWorkspace

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def python_cmd():
    """Build argv for a child Python process standing in for ffmpeg."""
    def build(source: str) -> list[str]:
        return [sys.executable, "-c", source]
    return build


@pytest.fixture
def captions_vtt() -> str:
    return (FIXTURES_DIR / "captions.en.vtt").read_text(encoding="utf-8")


@pytest.fixture
def ytdlp_info_json() -> str:
    return (FIXTURES_DIR / "ytdlp_info.json").read_text(encoding="utf-8")


@pytest.fixture
def workspace(tmp_path: Path) -> ScratchWorkspace:
    ws = ScratchWorkspace(tmp_path / "scratch")
    ws.ensure()
    return ws


@pytest.fixture
def scratch(workspace: ScratchWorkspace):
    f = workspace.allocate("upload", suffix=".mp4", owner="test")
    f.path.write_bytes(b"fake video data")
    return f
