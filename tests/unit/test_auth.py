"""
Unit tests for subscriber lookups.
"""

from datetime import timedelta

import pytest

from streampanel.auth import (
    AccountStatus,
    authenticate_user,
    check_account,
    find_user_by_mac,
    normalize_mac,
)
from streampanel.utils.timeutils import utcnow
from tests.fixtures.factories import StreamingUserFactory, save


@pytest.mark.unit
class TestNormalizeMac:
    @pytest.mark.parametrize(
        "value",
        ["00:1a:79:aa:bb:cc", "00-1A-79-AA-BB-CC", "001a79AABBCC", " 00:1A:79:aa:bb:cc "],
    )
    def test_notations_agree(self, value):
        assert normalize_mac(value) == "001A79AABBCC"

    def test_empty(self):
        assert normalize_mac(None) == ""
        assert normalize_mac("") == ""


@pytest.mark.unit
class TestFindUserByMac:
    def test_stored_with_dashes_found_by_colons(self, db):
        user = StreamingUserFactory.create(mac_address="00-1a-79-aa-bb-cc")
        save(db, user)

        assert find_user_by_mac(db, "00:1A:79:AA:BB:CC").id == user.id

    def test_unknown(self, db):
        save(db, StreamingUserFactory.create(mac_address="00:1A:79:AA:BB:CC"))

        assert find_user_by_mac(db, "00:1A:79:00:00:00") is None
        assert find_user_by_mac(db, None) is None


@pytest.mark.unit
class TestAuthenticateUser:
    def test_success(self, db):
        user = StreamingUserFactory.create(username="alice")
        save(db, user)

        assert authenticate_user(db, "alice", "secret").id == user.id

    def test_wrong_password(self, db):
        save(db, StreamingUserFactory.create(username="alice"))

        assert authenticate_user(db, "alice", "nope") is None
        assert authenticate_user(db, "alice", None) is None

    def test_expired(self, db):
        save(db, StreamingUserFactory.create_expired(username="alice"))

        assert authenticate_user(db, "alice", "secret") is None

    def test_expiry_is_exclusive(self, db):
        now = utcnow()
        save(db, StreamingUserFactory.create(username="alice", expiry_date=now))

        assert authenticate_user(db, "alice", "secret", now=now) is None
        assert authenticate_user(db, "alice", "secret", now=now - timedelta(seconds=1)) is not None


@pytest.mark.unit
class TestCheckAccount:
    def test_statuses(self, db):
        save(
            db,
            StreamingUserFactory.create(username="alice"),
            StreamingUserFactory.create_expired(username="bob"),
        )

        assert check_account(db, "alice", "secret")[0] is AccountStatus.OK
        assert check_account(db, "alice", "wrong")[0] is AccountStatus.INVALID
        status, user = check_account(db, "bob", "secret")
        assert status is AccountStatus.EXPIRED
        assert user.username == "bob"
