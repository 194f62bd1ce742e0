"""Remote retrieval via the yt-dlp executable."""

import glob
import json
import logging
import shlex
import subprocess
from pathlib import Path

from clipstream.editors.captions import flatten_vtt
from clipstream.errors import (
    ClipStreamError,
    RetrievalError,
    RetrievalTimeoutError,
    SpawnError,
    TranscriptUnavailableError,
)
from clipstream.models import Chapter, MediaMetadata
from clipstream.scratch import ScratchFile, ScratchWorkspace

logger = logging.getLogger(__name__)


def _sweep(base: Path) -> None:
    """Delete the side files yt-dlp writes next to an output template.

    Format pieces (``<base>.f137.mp4``), pre-remux containers and ``.part``
    files all share the template's base name.
    """
    for leftover in base.parent.glob(glob.escape(base.name) + ".*"):
        try:
            leftover.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning("Could not delete %s: %s", leftover, e)


class RetrievalFetcher:
    """Runs yt-dlp for metadata, captions and downloads into the workspace.

    Each call spawns its own process with a hard timeout; nothing is retried.
    """

    def __init__(
        self,
        workspace: ScratchWorkspace,
        ytdlp: str = "yt-dlp",
        metadata_timeout: float = 30,
        download_timeout: float = 300,
        transcript_language: str = "en",
        description_limit: int = 2000,
    ):
        self.workspace = workspace
        self.ytdlp = ytdlp
        self.metadata_timeout = metadata_timeout
        self.download_timeout = download_timeout
        self.transcript_language = transcript_language
        self.description_limit = description_limit

    def _run(self, args: list[str], timeout: float) -> subprocess.CompletedProcess:
        cmd = [self.ytdlp, *args]
        logger.debug("Running: %s", shlex.join(cmd))
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout)
        except subprocess.TimeoutExpired as e:
            raise RetrievalTimeoutError(
                f"{self.ytdlp} timed out after {timeout:g}s"
            ) from e
        except OSError as e:
            raise SpawnError(f"Failed to start {self.ytdlp}", detail=str(e)) from e

        if result.returncode != 0:
            raise RetrievalError(
                f"{self.ytdlp} failed",
                detail=(result.stderr or "")[-300:] or None,
            )
        return result

    def fetch_metadata(self, url: str) -> MediaMetadata:
        """Read title, duration, chapters, etc. plus a best-effort transcript."""
        result = self._run(
            ["--dump-single-json", "--no-playlist", "--skip-download", "--no-warnings", url],
            self.metadata_timeout,
        )
        try:
            info = json.loads(result.stdout)
        except ValueError as e:
            raise RetrievalError("Unreadable metadata", detail=str(e)) from e
        if not isinstance(info, dict):
            raise RetrievalError("Unreadable metadata", detail="expected a JSON object")

        try:
            chapters = [
                Chapter(
                    title=c.get("title") or "",
                    start_time=float(c.get("start_time") or 0),
                    end_time=float(c.get("end_time") or 0),
                )
                for c in info.get("chapters") or []
                if isinstance(c, dict)
            ]
            tags = [str(t) for t in info.get("tags") or []]
            duration = float(info.get("duration") or 0)
        except (TypeError, ValueError) as e:
            raise RetrievalError("Unreadable metadata", detail=str(e)) from e

        return MediaMetadata(
            id=str(info.get("id") or ""),
            title=info.get("title") or "",
            description=(info.get("description") or "")[: self.description_limit],
            duration=duration,
            thumbnail=info.get("thumbnail"),
            chapters=chapters,
            tags=tags,
            transcript=self.fetch_transcript(url),
        )

    def fetch_transcript(self, url: str) -> str:
        """Return the caption track as ``[HH:MM:SS] line`` text, or "" on any failure."""
        suffix = f".{self.transcript_language}.vtt"
        artifact = self.workspace.allocate("transcript", suffix=suffix)
        # yt-dlp names subtitles <template-without-ext>.<lang>.vtt
        base = Path(str(artifact.path)[: -len(suffix)])
        template = str(base) + ".%(ext)s"
        try:
            self._run(
                [
                    "--skip-download",
                    "--write-subs", "--write-auto-subs",
                    "--sub-langs", self.transcript_language,
                    "--sub-format", "vtt",
                    "--force-overwrites",
                    "--no-playlist", "--no-warnings", "--no-part",
                    "-o", template,
                    url,
                ],
                self.metadata_timeout,
            )
            transcript = flatten_vtt(artifact.path.read_text(encoding="utf-8"))
            if not transcript:
                raise TranscriptUnavailableError(f"No {self.transcript_language} captions")
            return transcript
        except (ClipStreamError, OSError, UnicodeDecodeError) as e:
            logger.info("Transcript unavailable for %s: %s", url, e)
            return ""
        finally:
            artifact.release()
            _sweep(base)

    def download(self, url: str, format_id: str, owner: str = "") -> ScratchFile:
        """Download *url* as MP4 into a new scratch file owned by the caller."""
        scratch = self.workspace.allocate("download", suffix=".mp4", owner=owner)
        base = scratch.path.with_suffix("")
        template = str(base) + ".%(ext)s"
        try:
            self._run(
                [
                    "-f", format_id,
                    "--merge-output-format", "mp4",
                    "--remux-video", "mp4",
                    "--force-overwrites",
                    "--no-playlist", "--no-warnings", "--no-part",
                    "-o", template,
                    url,
                ],
                self.download_timeout,
            )
            if scratch.path.stat().st_size == 0:
                raise RetrievalError("Download produced no data")
        except Exception:
            scratch.release()
            _sweep(base)
            raise
        logger.info("[%s] downloaded %s -> %s", owner, url, scratch.path.name)
        return scratch
