import asyncio
import json
from datetime import datetime, timedelta, timezone

import pytest
from fakes import FakePage

from feedharvest.errors import AuthExpired, AuthMissing
from feedharvest.session import AuthBundle, SessionStore

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)

COOKIES = [{'name': 'auth_token', 'value': 'abc', 'domain': '.x.com', 'path': '/'}]


def _write(path, login_time):
    path.write_text(json.dumps({
        'cookies': COOKIES,
        'userAgent': 'Mozilla/5.0 test',
        'loginTime': login_time,
    }), encoding='utf-8')


def test_load_bundle(tmp_path):
    auth_file = tmp_path / 'twitter-auth.json'
    _write(auth_file, '2026-03-09T12:00:00.000Z')
    bundle = asyncio.run(SessionStore(auth_file).load())
    assert bundle.cookies == COOKIES
    assert bundle.user_agent == 'Mozilla/5.0 test'
    assert bundle.login_time == '2026-03-09T12:00:00.000Z'


def test_missing_file(tmp_path):
    with pytest.raises(AuthMissing):
        asyncio.run(SessionStore(tmp_path / 'nope.json').load())


def test_corrupt_file(tmp_path):
    auth_file = tmp_path / 'twitter-auth.json'
    auth_file.write_text('{not json', encoding='utf-8')
    with pytest.raises(AuthMissing):
        asyncio.run(SessionStore(auth_file).load())


def test_validity_window():
    store = SessionStore(max_age_days=7)
    fresh = AuthBundle(login_time=(NOW - timedelta(days=6, hours=23)).isoformat())
    stale = AuthBundle(login_time=(NOW - timedelta(days=7)).isoformat())
    unknown = AuthBundle(login_time='')
    assert store.is_valid(fresh, NOW)
    assert not store.is_valid(stale, NOW)
    assert not store.is_valid(unknown, NOW)


def test_require_rejects_stale_bundle(tmp_path):
    auth_file = tmp_path / 'twitter-auth.json'
    _write(auth_file, '2026-03-01T12:00:00.000Z')
    with pytest.raises(AuthExpired):
        asyncio.run(SessionStore(auth_file).require(now=NOW))


def test_require_accepts_fresh_bundle(tmp_path):
    auth_file = tmp_path / 'twitter-auth.json'
    _write(auth_file, '2026-03-08T12:00:00.000Z')
    bundle = asyncio.run(SessionStore(auth_file).require(now=NOW))
    assert bundle.cookies == COOKIES


def test_clear_removes_saved_session(tmp_path):
    auth_file = tmp_path / 'twitter-auth.json'
    _write(auth_file, '2026-03-08T12:00:00.000Z')
    store = SessionStore(auth_file)
    assert store.clear() is True
    assert not auth_file.exists()
    assert store.clear() is False


def test_apply_hands_bundle_to_page():
    page = FakePage([])
    bundle = AuthBundle(cookies=COOKIES, user_agent='ua')
    asyncio.run(SessionStore().apply(page, bundle))
    assert page.credentials is bundle
