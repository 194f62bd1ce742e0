"""Scratch workspace — single-use files under a service-owned temp root."""

import logging
import os
import secrets
import time
from dataclasses import dataclass, field
from pathlib import Path

from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

logger = logging.getLogger(__name__)


@dataclass
class ScratchFile:
    """A uniquely named file owned by exactly one request."""

    path: Path
    owner: str
    created: float = field(default_factory=time.time)
    deleted: bool = False

    def release(self) -> bool:
        """Delete the file. Returns True only for the call that deleted it."""
        if self.deleted:
            return False
        self.deleted = True
        try:
            os.unlink(self.path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning("Could not delete scratch file %s: %s", self.path, e)
        else:
            logger.debug("[%s] released %s", self.owner, self.path.name)
        return True


class ScratchWorkspace:
    """The scratch root. Built once at startup and handed to each component."""

    def __init__(self, root: Path):
        self.root = Path(root)

    def ensure(self) -> Path:
        self.root.mkdir(parents=True, exist_ok=True)
        return self.root

    def allocate(self, prefix: str, suffix: str = "", owner: str = "") -> ScratchFile:
        """Atomically create an empty, uniquely named file in the root."""
        while True:
            name = f"{prefix}_{int(time.time() * 1000)}_{secrets.token_hex(4)}{suffix}"
            path = self.root / name
            try:
                fd = os.open(path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o600)
            except FileExistsError:
                continue
            os.close(fd)
            return ScratchFile(path=path, owner=owner)

    def save_upload(self, upload: FileStorage, owner: str = "") -> ScratchFile:
        """Persist an uploaded file into a fresh scratch file."""
        ext = Path(secure_filename(upload.filename or "")).suffix or ".mp4"
        scratch = self.allocate("upload", suffix=ext, owner=owner)
        try:
            upload.save(scratch.path)
        except Exception:
            scratch.release()
            raise
        logger.info("[%s] saved upload %r -> %s", owner, upload.filename, scratch.path.name)
        return scratch
