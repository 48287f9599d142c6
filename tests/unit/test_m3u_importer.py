"""
Unit tests for the M3U importer.
"""

import pytest
from sqlalchemy import select

from streampanel.database.models import Stream
from streampanel.exceptions import ImportInputError
from streampanel.importers import M3UImporter
from streampanel.importers.url_rewrites import RewriteRule
from tests.fixtures.factories import StreamFactory, save
from tests.fixtures.mock_responses import M3U_A1_CHANNEL, M3U_SINGLE_CHANNEL, M3U_THREE_CHANNELS


@pytest.mark.unit
class TestM3UImporter:
    """Tests for upserting playlist entries into streams."""

    def test_import_new(self, db):
        result = M3UImporter(db).import_content(M3U_THREE_CHANNELS)

        assert result.to_dict() == {
            "success": True,
            "total": 3,
            "imported": 3,
            "updated": 0,
            "skipped": 0,
            "failed": 0,
        }
        streams = {s.name: s for s in db.scalars(select(Stream))}
        assert streams["News One"].input_type == "hls"
        assert streams["News One"].channel_number == 101
        assert streams["News One"].epg_channel_id == "news1"
        assert streams["News One"].stream_icon == "http://logo/news.png"
        assert streams["Sport One"].input_type == "rtmp"
        assert streams["Movie Channel"].input_type == "mpd"
        assert all(s.status == "inactive" for s in streams.values())

    def test_existing_skipped(self, db):
        save(db, StreamFactory.create(name="Channel One", input_url="http://old/1.m3u8"))

        result = M3UImporter(db).import_content(M3U_SINGLE_CHANNEL)

        assert result.skipped == 1
        assert result.imported == 0
        assert db.scalars(select(Stream)).one().input_url == "http://old/1.m3u8"

    def test_existing_matched_by_url(self, db):
        save(db, StreamFactory.create(name="Renamed", input_url="http://x/1.m3u8"))

        result = M3UImporter(db).import_content(M3U_SINGLE_CHANNEL)

        assert result.skipped == 1

    def test_overwrite(self, db):
        save(db, StreamFactory.create(name="Channel One", input_url="http://old/1.m3u8"))

        result = M3UImporter(db).import_content(M3U_SINGLE_CHANNEL, overwrite_existing=True)

        assert result.updated == 1
        stream = db.scalars(select(Stream)).one()
        assert stream.input_url == "http://x/1.m3u8"
        assert stream.category == "Sport"

    def test_counters_add_up(self, db):
        save(db, StreamFactory.create(name="News One"))

        result = M3UImporter(db).import_content(M3U_THREE_CHANNELS)

        assert result.imported + result.updated + result.skipped + result.failed == result.total

    def test_default_category(self, db):
        content = "#EXTM3U\n#EXTINF:-1,No Group\nhttp://x/2.m3u8\n"

        M3UImporter(db).import_content(content, default_category="Imported")

        assert db.scalars(select(Stream)).one().category == "Imported"

    def test_a1_rewritten(self, db):
        M3UImporter(db).import_content(M3U_A1_CHANNEL)

        stream = db.scalars(select(Stream)).one()
        assert stream.input_url == "http://cdn.a1.example/__c/A1_sport/hls-ts-avc/master.m3u8"
        assert stream.input_type == "hls"

    def test_empty_playlist(self, db):
        with pytest.raises(ImportInputError):
            M3UImporter(db).import_content("#EXTM3U\n")

    def test_second_import_skips_everything(self, db):
        importer = M3UImporter(db)

        first = importer.import_content(M3U_THREE_CHANNELS)
        second = importer.import_content(M3U_THREE_CHANNELS)

        assert (first.imported, first.updated, first.skipped) == (3, 0, 0)
        assert (second.imported, second.updated, second.skipped) == (0, 0, 3)
        assert len(db.scalars(select(Stream)).all()) == 3

    def test_batched_commits(self, db):
        content = "#EXTM3U\n" + "".join(
            f"#EXTINF:-1,Channel {n}\nhttp://x/{n}.m3u8\n" for n in range(5)
        )

        result = M3UImporter(db, batch_size=2).import_content(content)

        assert result.imported == 5

    def test_failing_entries_do_not_stop_the_import(self, db):
        def reject_bad_host(url: str) -> str:
            if "//bad/" in url:
                raise ValueError("unsupported host")
            return url

        content = "#EXTM3U\n" + "".join(
            f"#EXTINF:-1,Broken {n}\nhttp://bad/{n}.m3u8\n" for n in range(12)
        ) + "#EXTINF:-1,Working\nhttp://good/1.m3u8\n"
        importer = M3UImporter(db, batch_size=5, rewrite_rules=[RewriteRule("reject", reject_bad_host)])

        result = importer.import_content(content)

        assert (result.imported, result.failed) == (1, 12)
        assert result.imported + result.updated + result.skipped + result.failed == result.total
        assert len(result.errors) == 12
        assert len(result.to_dict()["errors"]) == 10
        assert db.scalars(select(Stream.name)).all() == ["Working"]
