"""JSON edit/clip schema — the contract between the browser and the pipeline."""

import json
import math
import re

from clipstream.errors import InputMissingError, InvalidSpecificationError
from clipstream.models import EditSpecification, TextOverlay, TrimWindow

_ASPECT_RE = re.compile(r"^([1-9]\d*):([1-9]\d*)$")

_COLOR_RE = re.compile(r"^#[0-9a-fA-F]{6}([0-9a-fA-F]{2})?$")


def _load_object(raw: str | bytes | dict, label: str) -> dict:
    if isinstance(raw, dict):
        return raw
    try:
        data = json.loads(raw)
    except ValueError as e:
        raise InvalidSpecificationError(f"{label} is not valid JSON", detail=str(e)) from e
    if not isinstance(data, dict):
        raise InvalidSpecificationError(f"{label} must be a JSON object")
    return data


def _number(value) -> float | None:
    """Coerce a JSON value to a finite float, or None if it isn't one."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, str):
        try:
            value = float(value)
        except ValueError:
            return None
    if not isinstance(value, (int, float)) or not math.isfinite(value):
        return None
    return float(value)


def _clamp(value: float, low: float, high: float) -> float:
    return min(max(value, low), high)


def _parse_overlay(entry) -> TextOverlay | None:
    if not isinstance(entry, dict):
        return None
    text = entry.get("text")
    if not isinstance(text, str) or not text:
        return None

    color = entry.get("color")
    if not isinstance(color, str) or not _COLOR_RE.match(color):
        color = "#FFFFFF"

    font_size = _number(entry.get("fontSize"))
    font_size = int(font_size) if font_size and font_size >= 1 else 36

    x = _number(entry.get("x"))
    y = _number(entry.get("y"))

    start = _number(entry.get("startSec"))
    end = _number(entry.get("endSec"))
    # The gate needs both bounds and a non-empty window
    if start is None or end is None or start < 0 or end <= start:
        start = end = None

    return TextOverlay(
        text=text,
        color=color.upper(),
        font_size=font_size,
        x=_clamp(x, 0.0, 1.0) if x is not None else None,
        y=_clamp(y, 0.0, 1.0) if y is not None else None,
        start_sec=start,
        end_sec=end,
    )


def parse_edits(raw: str | bytes | dict) -> EditSpecification:
    """Parse the ``editsJson`` payload into an EditSpecification.

    Invalid fields fall back to their no-op defaults, so a speed of 0 means
    1. Only malformed JSON is rejected outright.
    """
    data = _load_object(raw, "editsJson")

    aspect = data.get("aspectRatio")
    if not isinstance(aspect, str) or not _ASPECT_RE.fullmatch(aspect):
        aspect = "original"

    speed = _number(data.get("speed"))
    if speed is None or speed <= 0:
        speed = 1.0

    brightness = _number(data.get("brightness")) or 0.0
    contrast = _number(data.get("contrast")) or 0.0
    saturation = _number(data.get("saturation")) or 0.0

    overlays = data.get("textOverlays")
    if not isinstance(overlays, list):
        overlays = []
    parsed = (_parse_overlay(o) for o in overlays)

    return EditSpecification(
        aspect_ratio=aspect,
        brightness=_clamp(brightness, -1.0, 1.0),
        contrast=_clamp(contrast, -1.0, 2.0),
        saturation=_clamp(saturation, -1.0, 2.0),
        speed=speed,
        text_overlays=tuple(o for o in parsed if o is not None),
    )


def parse_trim(raw: str | bytes | dict) -> TrimWindow:
    """Parse the ``clipJson`` payload into a TrimWindow."""
    data = _load_object(raw, "clipJson")

    start = data.get("startSec", data.get("startTime"))
    end = data.get("endSec", data.get("endTime"))
    if start is None or end is None:
        raise InputMissingError("clipJson must contain 'startSec' and 'endSec'")

    start_sec = _number(start)
    end_sec = _number(end)
    if start_sec is None or end_sec is None:
        raise InvalidSpecificationError(
            "Trim bounds must be numbers", detail=f"startSec={start!r} endSec={end!r}"
        )
    return TrimWindow(start_sec=start_sec, end_sec=end_sec)
