"""
Unit tests for M3U parsing and emission.
"""

import pytest

from streampanel.importers import M3UEntry, M3UParser, detect_input_type, emit_m3u, format_extinf, parse_m3u
from tests.fixtures.mock_responses import M3U_SINGLE_CHANNEL, M3U_THREE_CHANNELS


@pytest.mark.unit
class TestM3UParser:
    """Tests for M3UParser.parse."""

    def test_single_entry(self):
        """A minimal playlist yields one fully populated entry."""
        entries = parse_m3u(M3U_SINGLE_CHANNEL)

        assert len(entries) == 1
        entry = entries[0]
        assert entry.name == "Channel One"
        assert entry.tvg_id == "ch1"
        assert entry.group_title == "Sport"
        assert entry.url == "http://x/1.m3u8"

    def test_attributes_in_any_order(self):
        """Attributes are matched independently of their position."""
        content = (
            "#EXTM3U\n"
            '#EXTINF:-1 group-title="News" tvg-logo="http://l/n.png" tvg-id="n1",News\n'
            "http://x/n.m3u8\n"
        )
        entry = parse_m3u(content)[0]

        assert entry.tvg_id == "n1"
        assert entry.tvg_logo == "http://l/n.png"
        assert entry.group_title == "News"

    def test_multiple_entries(self):
        entries = parse_m3u(M3U_THREE_CHANNELS)

        assert [e.name for e in entries] == ["News One", "Sport One", "Movie Channel"]
        assert entries[0].channel_number == 101
        assert entries[0].tvg_name == "News One"
        assert entries[1].channel_number is None

    def test_orphan_url_is_dropped(self):
        """A URL line without a preceding #EXTINF is ignored."""
        content = "#EXTM3U\nhttp://orphan/stream.m3u8\n#EXTINF:-1,Kept\nhttp://x/kept.m3u8\n"
        entries = parse_m3u(content)

        assert [e.url for e in entries] == ["http://x/kept.m3u8"]

    def test_trailing_extinf_without_url(self):
        content = "#EXTM3U\n#EXTINF:-1,Kept\nhttp://x/kept.m3u8\n#EXTINF:-1,Dangling\n"

        assert [e.name for e in parse_m3u(content)] == ["Kept"]

    def test_comment_lines_between_extinf_and_url(self):
        content = "#EXTM3U\n#EXTINF:-1,With Options\n#EXTVLCOPT:http-user-agent=foo\nhttp://x/a.m3u8\n"
        entries = parse_m3u(content)

        assert len(entries) == 1
        assert entries[0].url == "http://x/a.m3u8"

    def test_name_falls_back_to_tvg_name(self):
        entry = M3UParser.parse_extinf('#EXTINF:-1 tvg-name="From Attr",')
        assert entry["name"] == "From Attr"

    def test_name_falls_back_to_unknown(self):
        entry = M3UParser.parse_extinf("#EXTINF:-1")
        assert entry["name"] == "Unknown"

    def test_windows_line_endings(self):
        content = M3U_SINGLE_CHANNEL.replace("\n", "\r\n")
        assert parse_m3u(content)[0].url == "http://x/1.m3u8"

    def test_empty_content(self):
        assert parse_m3u("") == []
        assert parse_m3u("#EXTM3U\n") == []


@pytest.mark.unit
class TestM3UEmission:
    """Tests for emit_m3u and format_extinf."""

    def test_round_trip_preserves_identity_fields(self):
        entries = [
            M3UEntry(name="Alpha", url="http://x/a.m3u8", tvg_id="a", group_title="G1"),
            M3UEntry(name="Beta", url="rtmp://x/b", tvg_id="b", group_title="G2"),
            M3UEntry(name="Gamma", url="http://x/c.mpd"),
        ]

        parsed = parse_m3u(emit_m3u(entries))

        def key(e):
            return (e.name, e.url, e.tvg_id, e.group_title)

        assert {key(e) for e in parsed} == {key(e) for e in entries}

    def test_plain_playlist_has_no_attributes(self):
        text = emit_m3u([M3UEntry(name="Alpha", url="http://x/a", tvg_id="a")], extended=False)

        assert text == "#EXTM3U\n#EXTINF:-1,Alpha\nhttp://x/a\n"

    def test_format_extinf_skips_none_keeps_empty(self):
        line = format_extinf("Chan", {"tvg-id": None, "tvg-logo": "", "group-title": "G"})

        assert line == '#EXTINF:-1 tvg-logo="" group-title="G",Chan'

    def test_format_extinf_replaces_double_quotes(self):
        line = format_extinf("Chan", {"tvg-name": 'The "Best"'})

        assert 'tvg-name="The \'Best\'"' in line


@pytest.mark.unit
class TestDetectInputType:
    """Tests for detect_input_type precedence."""

    @pytest.mark.parametrize(
        "url,expected",
        [
            ("udp://1.2.3.4:5000", "udp"),
            ("http://x/a@b/stream.m3u8", "udp"),
            ("http://x/manifest.mpd", "mpd"),
            ("rtmp://x/live/key", "rtmp"),
            ("rtsp://cam/stream", "rtsp"),
            ("srt://host:9000", "srt"),
            ("http://x/live/index.m3u8", "hls"),
            ("http://x/something", "hls"),
        ],
    )
    def test_detection(self, url: str, expected: str):
        assert detect_input_type(url) == expected
