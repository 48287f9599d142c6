"""
Unit tests for stream URL resolution.
"""

import pytest

from streampanel.database.models import SeriesEpisode, Stream, VodContent
from streampanel.panel_settings import PanelSettings
from streampanel.streaming import StreamURLResolver, resolve_stream_url


@pytest.mark.unit
class TestPreviewURL:
    """Tests for resolve_stream_url."""

    def test_hls_self_hosted(self):
        url = resolve_stream_url("HBO", "hls", "http://src/live/", PanelSettings(), "http", "panel.local")

        assert url == "http://panel.local/proxy/HBO/index.m3u8"

    def test_hls_hosted_preview(self):
        settings = PanelSettings(hosted_preview=True, edge_functions_url="https://edge.example/")

        url = resolve_stream_url("HBO", "hls", None, settings, "http", "panel.local")

        assert url == "https://edge.example/functions/v1/stream-proxy/HBO/index.m3u8"

    def test_hosted_preview_without_edge_url_falls_back(self):
        settings = PanelSettings(hosted_preview=True)

        url = resolve_stream_url("HBO", "hls", None, settings, "http", "panel.local")

        assert url == "http://panel.local/proxy/HBO/index.m3u8"

    def test_non_hls_uses_live_path(self):
        url = resolve_stream_url("Cam 1", "rtmp", "rtmp://x/live", PanelSettings(), "http", "panel.local")

        assert url == "http://panel.local/live/Cam%201/playlist.m3u8"

    def test_ssl_and_domain(self):
        settings = PanelSettings(ssl_enabled=True, server_domain="tv.example.com")

        url = resolve_stream_url("News", "hls", None, settings, "http", "10.0.0.1")

        assert url == "https://tv.example.com/proxy/News/index.m3u8"

    def test_request_scheme_kept_without_ssl(self):
        url = resolve_stream_url("News", "mpd", None, PanelSettings(), "https", "panel.local")

        assert url.startswith("https://panel.local/live/")


@pytest.mark.unit
class TestPlayerURLs:
    """Tests for the credentialed /live, /movie and /series URLs."""

    @pytest.fixture
    def resolver(self) -> StreamURLResolver:
        settings = PanelSettings(server_ip="192.168.1.10", http_port=8080)
        return StreamURLResolver(settings, "http", "ignored.host")

    def test_base_url_prefers_domain_then_ip(self):
        assert StreamURLResolver(PanelSettings(), "http", "req.host").player_base_url == "http://req.host:80"
        assert (
            StreamURLResolver(PanelSettings(server_ip="1.2.3.4"), "http", "req.host").player_base_url
            == "http://1.2.3.4:80"
        )
        settings = PanelSettings(server_domain="tv.example", server_ip="1.2.3.4", ssl_enabled=True)
        assert StreamURLResolver(settings, "http", "req.host").player_base_url == "https://tv.example:443"

    def test_live_hls_goes_through_proxy(self, resolver: StreamURLResolver):
        stream = Stream(id="s1", name="Sky News", input_type="hls")

        url = resolver.live_url("u1", "p1", stream)

        assert url == "http://192.168.1.10:8080/proxy/u1/p1/Sky%20News/index.m3u8"

    def test_live_other_types_by_id(self, resolver: StreamURLResolver):
        stream = Stream(id="s2", name="Cam", input_type="rtmp")

        assert resolver.live_url("u1", "p1", stream) == "http://192.168.1.10:8080/live/u1/p1/s2.m3u8"
        assert resolver.live_url("u1", "p1", stream, "ts") == "http://192.168.1.10:8080/live/u1/p1/s2.ts"

    def test_movie_and_episode(self, resolver: StreamURLResolver):
        vod = VodContent(id="v1", name="Film", container_extension="mkv")
        episode = SeriesEpisode(id="e1", season_number=1, episode_number=2, container_extension=None)

        assert resolver.movie_url("u1", "p1", vod) == "http://192.168.1.10:8080/movie/u1/p1/v1.mkv"
        assert resolver.episode_url("u1", "p1", episode) == "http://192.168.1.10:8080/series/u1/p1/e1.mp4"
