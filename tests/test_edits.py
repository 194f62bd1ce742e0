"""Tests for edit/clip payload parsing and validation."""

import json

import pytest

from clipstream.edits import parse_edits, parse_trim
from clipstream.errors import InputMissingError, InvalidSpecificationError
from clipstream.models import EditSpecification, TextOverlay, TrimWindow


class TestParseEdits:
    def test_empty_object_is_default(self):
        assert parse_edits("{}") == EditSpecification()

    def test_full_payload(self):
        raw = json.dumps({
            "aspectRatio": "9:16",
            "brightness": 0.1,
            "contrast": -0.2,
            "saturation": 0.5,
            "speed": 1.5,
            "textOverlays": [
                {"text": "Hi", "color": "#ff8800", "fontSize": 48, "x": 0.1, "y": 0.2,
                 "startSec": 1, "endSec": 3},
            ],
        })
        edits = parse_edits(raw)
        assert edits.aspect_ratio == "9:16"
        assert edits.brightness == 0.1
        assert edits.contrast == -0.2
        assert edits.saturation == 0.5
        assert edits.speed == 1.5
        assert edits.text_overlays == (
            TextOverlay(text="Hi", color="#FF8800", font_size=48, x=0.1, y=0.2,
                        start_sec=1.0, end_sec=3.0),
        )

    def test_accepts_dict(self):
        assert parse_edits({"speed": 2}).speed == 2.0

    def test_malformed_json(self):
        with pytest.raises(InvalidSpecificationError, match="not valid JSON"):
            parse_edits("{not json")

    def test_non_object(self):
        with pytest.raises(InvalidSpecificationError, match="JSON object"):
            parse_edits("[1, 2]")

    @pytest.mark.parametrize("aspect", ["2:3", "3:2", "7:3", "32:9"])
    def test_any_ratio_accepted(self, aspect):
        assert parse_edits({"aspectRatio": aspect}).aspect_ratio == aspect

    @pytest.mark.parametrize("aspect", ["wide", "0:9", "16:0", "16/9", "-4:3", 16, "4:3 "])
    def test_unknown_aspect_falls_back(self, aspect):
        assert parse_edits({"aspectRatio": aspect}).aspect_ratio == "original"

    def test_wrong_types_fall_back(self):
        edits = parse_edits(json.dumps({
            "brightness": "bright", "contrast": None, "saturation": True,
            "speed": "fast", "textOverlays": "nope",
        }))
        assert edits == EditSpecification()

    def test_numeric_strings_accepted(self):
        assert parse_edits('{"speed": "0.5"}').speed == 0.5

    @pytest.mark.parametrize("speed", [0, -1, "0"])
    def test_non_positive_speed_means_normal(self, speed):
        assert parse_edits(json.dumps({"speed": speed})).speed == 1.0

    def test_color_values_clamped(self):
        edits = parse_edits('{"brightness": 5, "contrast": -3, "saturation": 9}')
        assert edits.brightness == 1.0
        assert edits.contrast == -1.0
        assert edits.saturation == 2.0


class TestParseOverlays:
    def _overlays(self, *entries):
        return parse_edits(json.dumps({"textOverlays": list(entries)})).text_overlays

    def test_defaults(self):
        assert self._overlays({"text": "Hello"}) == (TextOverlay(text="Hello"),)

    def test_entries_without_text_skipped(self):
        overlays = self._overlays({"text": ""}, {"color": "#000000"}, 5, {"text": "kept"})
        assert [o.text for o in overlays] == ["kept"]

    def test_invalid_color_uses_default(self):
        assert self._overlays({"text": "a", "color": "red"})[0].color == "#FFFFFF"

    def test_invalid_font_size_uses_default(self):
        assert self._overlays({"text": "a", "fontSize": -4})[0].font_size == 36

    def test_coordinates_clamped(self):
        o = self._overlays({"text": "a", "x": -0.5, "y": 1.7})[0]
        assert (o.x, o.y) == (0.0, 1.0)

    def test_gate_dropped_when_incomplete(self):
        o = self._overlays({"text": "a", "startSec": 2})[0]
        assert o.start_sec is None and o.end_sec is None

    def test_gate_dropped_when_inverted(self):
        o = self._overlays({"text": "a", "startSec": 5, "endSec": 2})[0]
        assert o.start_sec is None and o.end_sec is None


class TestParseTrim:
    def test_sec_keys(self):
        assert parse_trim('{"startSec": 10, "endSec": 20}') == TrimWindow(10.0, 20.0)

    def test_legacy_time_keys(self):
        trim = parse_trim('{"startTime": 1.5, "endTime": 4}')
        assert trim.start_sec == 1.5
        assert trim.duration_sec == 2.5

    def test_missing_bounds(self):
        with pytest.raises(InputMissingError):
            parse_trim('{"startSec": 1}')

    def test_non_numeric_bounds(self):
        with pytest.raises(InvalidSpecificationError, match="numbers"):
            parse_trim('{"startSec": "a", "endSec": 3}')

    def test_negative_start(self):
        with pytest.raises(InvalidSpecificationError, match=">= 0"):
            parse_trim('{"startSec": -1, "endSec": 3}')

    @pytest.mark.parametrize("end", [5, 4])
    def test_end_must_follow_start(self, end):
        with pytest.raises(InvalidSpecificationError, match="after start"):
            parse_trim(json.dumps({"startSec": 5, "endSec": end}))
