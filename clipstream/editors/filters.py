"""Filter graph builder — turns an EditSpecification into ffmpeg filter stages."""

from clipstream.models import EditSpecification, FilterStage, StageKind, TextOverlay

MIN_TEMPO = 0.5
MAX_TEMPO = 2.0


def _num(value: float) -> str:
    """Render a number for an ffmpeg expression: fixed, no trailing zeros."""
    text = f"{value:.4f}".rstrip("0").rstrip(".")
    return "0" if text in ("", "-0") else text


def escape_drawtext(text: str) -> str:
    """Escape text so it cannot close the quoted drawtext value.

    Backslashes go first so the escapes added for quotes and colons are not
    themselves doubled.
    """
    return (
        text.replace("\\", "\\\\")
        .replace("'", "\\'")
        .replace(":", "\\:")
    )


def _crop_stage(aspect_ratio: str) -> FilterStage:
    rw, rh = (int(p) for p in aspect_ratio.split(":"))
    wider = f"gt(iw/ih\\,{rw}/{rh})"
    # Centered crop, both sides truncated to even pixels for yuv420p
    crop_w = f"if({wider}\\,trunc(ih*{rw}/{rh}/2)*2\\,trunc(iw/2)*2)"
    crop_h = f"if({wider}\\,trunc(ih/2)*2\\,trunc(iw*{rh}/{rw}/2)*2)"
    return FilterStage(
        StageKind.CROP, f"{crop_w}:{crop_h}:(iw-out_w)/2:(ih-out_h)/2"
    )


def _color_stage(edits: EditSpecification) -> FilterStage | None:
    terms: list[str] = []
    if edits.brightness:
        terms.append(f"brightness={edits.brightness:.4f}")
    if edits.contrast:
        terms.append(f"contrast={1 + edits.contrast:.4f}")
    if edits.saturation:
        terms.append(f"saturation={1 + edits.saturation:.4f}")
    if not terms:
        return None
    return FilterStage(StageKind.COLOR, ":".join(terms))


def _overlay_stage(overlay: TextOverlay) -> FilterStage:
    text = escape_drawtext(overlay.text)
    color = overlay.color.replace("#", "0x")
    x = f"w*{_num(overlay.x)}" if overlay.x is not None else "(w-text_w)/2"
    y = f"h*{_num(overlay.y)}" if overlay.y is not None else "h*0.85"
    params = f"text='{text}':fontsize={overlay.font_size}:fontcolor={color}:x={x}:y={y}"
    if overlay.start_sec is not None and overlay.end_sec is not None:
        params += f":enable='between(t,{_num(overlay.start_sec)},{_num(overlay.end_sec)})'"
    return FilterStage(StageKind.OVERLAY, params)


def build_filters(edits: EditSpecification) -> list[FilterStage]:
    """Return the video filter stages for *edits*, in application order.

    Order is crop, eq, setpts, then one drawtext per overlay. Default edits
    produce an empty list, meaning no -vf argument at all.
    """
    stages: list[FilterStage] = []

    if edits.aspect_ratio != "original":
        stages.append(_crop_stage(edits.aspect_ratio))

    color = _color_stage(edits)
    if color is not None:
        stages.append(color)

    if edits.speed != 1:
        stages.append(FilterStage(StageKind.SPEED, f"{1 / edits.speed:.6f}*PTS"))

    stages.extend(_overlay_stage(o) for o in edits.text_overlays)
    return stages


def audio_tempo(edits: EditSpecification) -> float | None:
    """atempo factor for the audio track, or None when speed is unchanged."""
    if edits.speed == 1:
        return None
    return min(max(edits.speed, MIN_TEMPO), MAX_TEMPO)
