"""Caption flattening — WebVTT cues to a plain ``[HH:MM:SS] line`` transcript."""

import html
import re

_TIMING_RE = re.compile(r"^((?:\d+:)?\d{1,2}:\d{2}[.,]\d{3})\s+-->\s+")
_TAG_RE = re.compile(r"<[^>]*>")


def _parse_timestamp(stamp: str) -> float:
    """Parse ``HH:MM:SS.mmm`` or ``MM:SS.mmm`` into seconds."""
    parts = stamp.replace(",", ".").split(":")
    seconds = float(parts[-1])
    minutes = int(parts[-2])
    hours = int(parts[-3]) if len(parts) == 3 else 0
    return hours * 3600 + minutes * 60 + seconds


def _format_stamp(seconds: float) -> str:
    h = int(seconds // 3600)
    m = int((seconds % 3600) // 60)
    s = int(seconds % 60)
    return f"{h:02d}:{m:02d}:{s:02d}"


def flatten_vtt(text: str) -> str:
    """Flatten WebVTT cues into one ``[HH:MM:SS] text`` line per caption line.

    Inline markup (``<c>``, word timestamps) is stripped. Auto-generated
    captions repeat each line across rolling cues, so consecutive duplicates
    are dropped.
    """
    lines: list[str] = []
    previous = None

    for block in re.split(r"\n\s*\n", text.replace("\r\n", "\n")):
        rows = block.strip().split("\n")
        timing_idx = next(
            (i for i, row in enumerate(rows) if _TIMING_RE.match(row.strip())), None
        )
        # WEBVTT header, NOTE and STYLE blocks carry no timing line
        if timing_idx is None:
            continue

        start = _TIMING_RE.match(rows[timing_idx].strip()).group(1)
        stamp = _format_stamp(_parse_timestamp(start))

        for row in rows[timing_idx + 1:]:
            cue = html.unescape(_TAG_RE.sub("", row)).strip()
            if not cue or cue == previous:
                continue
            lines.append(f"[{stamp}] {cue}")
            previous = cue

    return "\n".join(lines)
