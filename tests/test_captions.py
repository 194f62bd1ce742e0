"""Tests for WebVTT transcript flattening."""

from clipstream.editors.captions import flatten_vtt


class TestFlattenVtt:
    def test_sample_track(self, captions_vtt):
        assert flatten_vtt(captions_vtt).split("\n") == [
            "[00:00:01] Welcome back to the channel",
            "[00:01:02] Fish & chips: today's special",
            "[00:01:02] second line",
            "[01:00:00] That's all",
        ]

    def test_header_only(self):
        assert flatten_vtt("WEBVTT\nKind: captions\nLanguage: en\n") == ""

    def test_empty(self):
        assert flatten_vtt("") == ""

    def test_short_timestamps_and_crlf(self):
        text = "WEBVTT\r\n\r\n01:05.000 --> 01:07.000\r\nHello\r\n"
        assert flatten_vtt(text) == "[00:01:05] Hello"

    def test_repeated_lines_collapsed(self):
        text = (
            "WEBVTT\n\n"
            "00:00:01.000 --> 00:00:02.000\nsame\n\n"
            "00:00:02.000 --> 00:00:03.000\nsame\n\n"
            "00:00:03.000 --> 00:00:04.000\ndifferent\n"
        )
        assert flatten_vtt(text) == "[00:00:01] same\n[00:00:03] different"
