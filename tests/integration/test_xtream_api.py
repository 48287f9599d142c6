"""
Integration tests for the Xtream Codes player API.
"""

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from streampanel.utils.timeutils import utcnow
from tests.fixtures.factories import (
    CategoryFactory,
    EPGFactory,
    SeriesFactory,
    StreamFactory,
    StreamingUserFactory,
    VodFactory,
    panel_setting,
    save,
)


@pytest.fixture
def user(db: Session):
    user = StreamingUserFactory.create(username="u1", password="p1", expiry_date=datetime(2099, 1, 1))
    save(db, user)
    return user


def player_api(client: TestClient, **params):
    params.setdefault("username", "u1")
    params.setdefault("password", "p1")
    return client.get("/player_api.php", params=params)


@pytest.mark.integration
class TestAuthentication:
    """Tests for the authentication envelope."""

    def test_user_info(self, client: TestClient, user):
        response = player_api(client)

        assert response.status_code == 200
        data = response.json()
        assert data["user_info"]["auth"] == 1
        assert data["user_info"]["username"] == "u1"
        assert data["user_info"]["status"] == "Active"
        assert data["user_info"]["exp_date"] == "4070908800"
        assert data["user_info"]["max_connections"] == "1"
        assert data["server_info"]["url"] == "testserver"
        assert data["server_info"]["server_protocol"] == "http"
        assert data["server_info"]["port"] == "80"

    @pytest.mark.parametrize("action", [None, "get_live_categories", "get_vod_info", "nonsense"])
    def test_wrong_password(self, client: TestClient, user, action):
        params = {"password": "wrong"}
        if action:
            params["action"] = action

        response = player_api(client, **params)

        assert response.status_code == 200
        assert response.json() == {"user_info": {"auth": 0}}

    def test_expired(self, client: TestClient, db: Session):
        save(db, StreamingUserFactory.create_expired(username="old", password="p"))

        response = player_api(client, username="old", password="p")

        assert response.json() == {"user_info": {"auth": 0}}

    def test_missing_credentials(self, client: TestClient, user):
        response = client.get("/player_api.php")

        assert response.json() == {"user_info": {"auth": 0}}

    def test_unknown_action_returns_user_info(self, client: TestClient, user):
        response = player_api(client, action="get_everything")

        assert response.json()["user_info"]["auth"] == 1

    def test_disabled_user(self, client: TestClient, db: Session):
        save(db, StreamingUserFactory.create(username="d", password="p", status="disabled"))

        response = player_api(client, username="d", password="p")

        assert response.json()["user_info"]["status"] == "Disabled"

    def test_server_domain_setting(self, client: TestClient, db: Session, user):
        save(db, panel_setting("server_domain", "tv.example.com"), panel_setting("ssl_enabled", "true"))

        server_info = player_api(client).json()["server_info"]

        assert server_info["url"] == "tv.example.com"
        assert server_info["server_protocol"] == "https"


@pytest.mark.integration
class TestLive:
    """Tests for live categories and streams."""

    @pytest.fixture
    def catalog(self, db: Session, user):
        news = CategoryFactory.live("News")
        save(
            db,
            news,
            StreamFactory.create(name="News One", category="News", channel_number=1),
            StreamFactory.create(name="Sport One", category="Sport", channel_number=2),
            StreamFactory.create(name="Film One", category="Movies", channel_number=3),
            StreamFactory.create(name="Loose", channel_number=4),
            StreamFactory.create(name="Offline", category="Sport", status="inactive"),
        )
        return news

    def test_categories_include_stream_names(self, client: TestClient, catalog):
        response = player_api(client, action="get_live_categories")

        assert response.status_code == 200
        categories = response.json()
        assert categories[0] == {"category_id": catalog.id, "category_name": "News", "parent_id": 0}
        assert {"category_id": "cat_0", "category_name": "Movies", "parent_id": 0} in categories
        assert {"category_id": "cat_2", "category_name": "Sport", "parent_id": 0} in categories
        assert len(categories) == 3

    def test_streams(self, client: TestClient, catalog):
        streams = player_api(client, action="get_live_streams").json()

        assert [s["name"] for s in streams] == ["News One", "Sport One", "Film One", "Loose"]
        by_name = {s["name"]: s for s in streams}
        assert by_name["News One"]["category_id"] == catalog.id
        assert by_name["Sport One"]["category_id"] == "cat_2"
        assert by_name["Loose"]["category_id"] == "1"
        assert by_name["Sport One"]["epg_channel_id"] == "sportone"
        assert by_name["News One"]["stream_type"] == "live"

    def test_filter_by_synthetic_id(self, client: TestClient, catalog):
        streams = player_api(client, action="get_live_streams", category_id="cat_2").json()

        assert [s["name"] for s in streams] == ["Sport One"]

    def test_filter_by_real_id(self, client: TestClient, catalog):
        streams = player_api(client, action="get_live_streams", category_id=catalog.id).json()

        assert [s["name"] for s in streams] == ["News One"]


@pytest.mark.integration
class TestVod:
    """Tests for VOD actions."""

    def test_categories_and_streams(self, client: TestClient, db: Session, user):
        action = CategoryFactory.vod("Action", sort_order=1)
        drama = CategoryFactory.vod("Drama", sort_order=2)
        movie = VodFactory.create(name="Heat", category=action, rating=8.0)
        save(db, action, drama, movie, VodFactory.create(name="Hidden", status="inactive"))

        categories = player_api(client, action="get_vod_categories").json()
        streams = player_api(client, action="get_vod_streams").json()
        filtered = player_api(client, action="get_vod_streams", category_id=drama.id).json()

        assert [c["category_name"] for c in categories] == ["Action", "Drama"]
        assert [s["name"] for s in streams] == ["Heat"]
        assert streams[0]["rating"] == "8"
        assert streams[0]["rating_5based"] == "4.0"
        assert streams[0]["category_id"] == action.id
        assert filtered == []

    def test_info(self, client: TestClient, db: Session, user):
        movie = VodFactory.create(name="Heat", duration=170, tmdb_id=949, container_extension="mkv")
        save(db, movie)

        data = player_api(client, action="get_vod_info", vod_id=movie.id).json()

        assert data["info"]["name"] == "Heat"
        assert data["info"]["duration"] == "02:50:00"
        assert data["info"]["duration_secs"] == 10200
        assert data["info"]["tmdb_id"] == "949"
        assert data["movie_data"]["stream_id"] == movie.id
        assert data["movie_data"]["container_extension"] == "mkv"

    def test_info_not_found(self, client: TestClient, user):
        data = player_api(client, action="get_vod_info", vod_id="missing").json()

        assert data == {"info": {}, "movie_data": {}}


@pytest.mark.integration
class TestSeries:
    """Tests for series actions."""

    def test_series_info(self, client: TestClient, db: Session, user):
        show = SeriesFactory.create(name="The Wire", cover_url="http://img/wire.jpg")
        save(
            db,
            show,
            SeriesFactory.episode(show, 1, 1, title="The Target"),
            SeriesFactory.episode(show, 1, 2),
            SeriesFactory.episode(show, 2, 1),
        )

        listing = player_api(client, action="get_series").json()
        data = player_api(client, action="get_series_info", series_id=show.id).json()

        assert [s["name"] for s in listing] == ["The Wire"]
        assert data["info"]["name"] == "The Wire"
        assert sorted(data["episodes"].keys()) == ["1", "2"]
        assert [e["title"] for e in data["episodes"]["1"]] == ["The Target", "Episode 2"]
        assert data["episodes"]["1"][0]["container_extension"] == "mkv"
        assert data["seasons"][0] == {
            "season_number": 1,
            "name": "Season 1",
            "episode_count": 2,
            "cover": "http://img/wire.jpg",
        }

    def test_series_info_not_found(self, client: TestClient, user):
        data = player_api(client, action="get_series_info", series_id="missing").json()

        assert data == {"seasons": [], "info": {}, "episodes": {}}


@pytest.mark.integration
class TestEPG:
    """Tests for EPG actions."""

    @pytest.fixture
    def channel(self, db: Session, user):
        stream = StreamFactory.create(name="News One")
        save(db, stream)
        channel = EPGFactory.channel(stream, "news1")
        now = utcnow()
        save(
            db,
            channel,
            EPGFactory.program(channel, now - timedelta(hours=2), title="Finished"),
            EPGFactory.program(channel, now - timedelta(minutes=30), title="Now"),
            EPGFactory.program(channel, now + timedelta(minutes=30), title="Next"),
            EPGFactory.program(channel, now + timedelta(minutes=90), title="Later"),
            EPGFactory.program(channel, now + timedelta(hours=30), title="Tomorrow"),
        )
        return stream

    def test_short_epg(self, client: TestClient, channel):
        listings = player_api(client, action="get_short_epg", stream_id=channel.id).json()["epg_listings"]

        assert [p["title"] for p in listings] == ["Now", "Next"]
        assert listings[0]["epg_id"] == "news1"
        assert listings[0]["lang"] == "hr"

    def test_short_epg_limit(self, client: TestClient, channel):
        listings = player_api(client, action="get_short_epg", stream_id=channel.id, limit="3").json()["epg_listings"]

        assert [p["title"] for p in listings] == ["Now", "Next", "Later"]

    def test_simple_data_table(self, client: TestClient, channel):
        listings = player_api(client, action="get_simple_data_table", stream_id=channel.id).json()["epg_listings"]

        assert [p["title"] for p in listings] == ["Next", "Later"]

    def test_unknown_stream(self, client: TestClient, user):
        data = player_api(client, action="get_short_epg", stream_id="missing").json()

        assert data == {"epg_listings": []}
