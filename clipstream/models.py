"""Shared data types used across ClipStream."""

from dataclasses import dataclass, field
from enum import Enum

from clipstream.errors import InvalidSpecificationError


@dataclass(frozen=True)
class TextOverlay:
    """A line of text burned into the frame, optionally for a time window."""

    text: str
    color: str = "#FFFFFF"
    font_size: int = 36
    x: float | None = None
    y: float | None = None
    start_sec: float | None = None
    end_sec: float | None = None


@dataclass(frozen=True)
class EditSpecification:
    """Declarative edits applied to a clip. Defaults are all no-ops."""

    aspect_ratio: str = "original"
    brightness: float = 0.0
    contrast: float = 0.0
    saturation: float = 0.0
    speed: float = 1.0
    text_overlays: tuple[TextOverlay, ...] = ()


@dataclass(frozen=True)
class TrimWindow:
    """A start/end time pair in seconds."""

    start_sec: float
    end_sec: float

    def __post_init__(self):
        if self.start_sec < 0:
            raise InvalidSpecificationError(
                "Trim start must be >= 0", detail=f"startSec={self.start_sec}"
            )
        if self.end_sec <= self.start_sec:
            raise InvalidSpecificationError(
                "Trim end must be after start",
                detail=f"startSec={self.start_sec} endSec={self.end_sec}",
            )

    @property
    def duration_sec(self) -> float:
        return self.end_sec - self.start_sec


class StageKind(str, Enum):
    """ffmpeg filter names, in the order stages are applied."""

    CROP = "crop"
    COLOR = "eq"
    SPEED = "setpts"
    OVERLAY = "drawtext"


@dataclass(frozen=True)
class FilterStage:
    """One entry of a -vf filter chain."""

    kind: StageKind
    params: str

    def __str__(self) -> str:
        return f"{self.kind.value}={self.params}"


@dataclass
class Chapter:
    title: str
    start_time: float
    end_time: float


@dataclass
class MediaMetadata:
    """Metadata for a remote source, as reported by yt-dlp."""

    id: str
    title: str
    description: str = ""
    duration: float = 0.0
    thumbnail: str | None = None
    chapters: list[Chapter] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    transcript: str = ""
