"""FFmpeg/ffprobe subprocess helpers."""

import json
import logging
import shutil
import subprocess
from pathlib import Path

from clipstream.errors import ProbeParseError, ProcessFailedError, SpawnError
from clipstream.models import FilterStage, TrimWindow
from clipstream.scratch import ScratchFile

logger = logging.getLogger(__name__)

# Fragmented MP4 needs no seekable output, so ffmpeg can write to a pipe
STREAMING_MOVFLAGS = "frag_keyframe+empty_moov+default_base_moof"


def missing_tools(*names: str) -> list[str]:
    """Return the subset of *names* that are not on PATH."""
    return [name for name in names if shutil.which(name) is None]


def format_timecode(seconds: float) -> str:
    """Render seconds as ``HH:MM:SS.mmm`` for -ss / -t."""
    millis = round(seconds * 1000)
    h, rem = divmod(millis, 3_600_000)
    m, rem = divmod(rem, 60_000)
    s, ms = divmod(rem, 1000)
    return f"{h:02d}:{m:02d}:{s:02d}.{ms:03d}"


def export_command(
    input_path: Path,
    trim: TrimWindow,
    stages: list[FilterStage],
    tempo: float | None = None,
    ffmpeg: str = "ffmpeg",
) -> list[str]:
    """Build the ffmpeg argv that encodes a trimmed, filtered clip to stdout.

    Seek and duration are rendered independently from the trim window.
    """
    cmd = [
        ffmpeg, "-hide_banner", "-y",
        "-ss", format_timecode(trim.start_sec),
        "-i", str(input_path),
        "-t", format_timecode(trim.duration_sec),
    ]
    if stages:
        cmd += ["-vf", ",".join(str(s) for s in stages)]
    if tempo is not None:
        cmd += ["-af", f"atempo={tempo:.4f}"]
    cmd += [
        "-c:v", "libx264",
        "-preset", "fast",
        "-crf", "22",
        "-c:a", "aac",
        "-b:a", "128k",
        "-f", "mp4",
        "-movflags", STREAMING_MOVFLAGS,
        "pipe:1",
    ]
    return cmd


def parse_duration(stdout: str) -> float:
    """Extract ``format.duration`` from ffprobe JSON; 0.0 when absent."""
    try:
        data = json.loads(stdout)
        duration = (data.get("format") or {}).get("duration")
        value = float(duration) if duration is not None else 0.0
    except (ValueError, TypeError, AttributeError) as e:
        raise ProbeParseError(detail=str(e)) from e
    return max(value, 0.0)


def probe_duration(scratch: ScratchFile, ffprobe: str = "ffprobe") -> float:
    """Return the duration of *scratch* in seconds, then release it."""
    cmd = [
        ffprobe,
        "-v", "quiet",
        "-print_format", "json",
        "-show_format",
        str(scratch.path),
    ]
    try:
        try:
            result = subprocess.run(cmd, capture_output=True, text=True)
        except OSError as e:
            raise SpawnError("Failed to start ffprobe", detail=str(e)) from e

        if result.returncode != 0:
            logger.error("[%s] ffprobe exited %d", scratch.owner, result.returncode)
            raise ProcessFailedError(
                "ffprobe failed",
                detail=(result.stderr or "")[-300:] or None,
                returncode=result.returncode,
            )
        return parse_duration(result.stdout)
    finally:
        scratch.release()
