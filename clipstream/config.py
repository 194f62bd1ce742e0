"""Default Flask configuration. Override with CLIPSTREAM_* environment variables."""

import tempfile
from pathlib import Path


class DefaultConfig:
    SCRATCH_ROOT = str(Path(tempfile.gettempdir()) / "clipstream")
    MAX_CONTENT_LENGTH = 4 * 1024 * 1024 * 1024  # 4 GB
    CORS_ORIGINS = ["http://localhost:5173"]

    FFMPEG_BIN = "ffmpeg"
    FFPROBE_BIN = "ffprobe"
    YTDLP_BIN = "yt-dlp"

    METADATA_TIMEOUT = 30
    DOWNLOAD_TIMEOUT = 300
    TRANSCRIPT_LANGUAGE = "en"
    DESCRIPTION_LIMIT = 2000

    STREAM_CHUNK_SIZE = 64 * 1024
    STDERR_TAIL_BYTES = 4096
    ERROR_DETAIL_CHARS = 300
