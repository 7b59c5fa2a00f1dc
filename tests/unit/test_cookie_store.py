"""
Unit tests for cookie persistence.

Tests CookieRecord, SessionData, JSONCookieStore and MemoryCookieStore.
"""
import json
from datetime import datetime
from pathlib import Path
from unittest.mock import patch

import pytest

from uestc_client.core.cookies import (
    CookieRecord,
    CookieStorage,
    JSONCookieStore,
    MemoryCookieStore,
    SessionData,
)
from uestc_client.core.exceptions import CookieFileCorruptError, CookiePersistError


def make_session(**overrides) -> SessionData:
    cookies = [
        CookieRecord(
            name='CASTGC',
            value='TGT-123-abc',
            domain='idas.uestc.edu.cn',
            path='/authserver',
            secure=True,
            http_only=True,
        ),
        CookieRecord(
            name='route',
            value='9f8e',
            domain='.uestc.edu.cn',
            expires=1893456000,
        ),
    ]
    fields = {
        'cookies': cookies,
        'created_at': datetime(2024, 9, 1, 8, 30, 0),
        'updated_at': datetime(2024, 9, 1, 8, 30, 0),
    }
    fields.update(overrides)
    return SessionData(**fields)


class TestCookieRecord:
    """Tests for CookieRecord model."""

    def test_defaults(self):
        record = CookieRecord(name='a', value='b', domain='x.edu.cn')

        assert record.path == '/'
        assert record.expires is None
        assert record.secure is False
        assert record.http_only is False

    def test_session_cookie_never_expires(self):
        record = CookieRecord(name='a', value='b', domain='x.edu.cn')
        assert record.is_expired(now=4102444800) is False

    def test_is_expired(self):
        record = CookieRecord(name='a', value='b', domain='x.edu.cn', expires=1000)

        assert record.is_expired(now=999) is False
        assert record.is_expired(now=1000) is True

    def test_dict_roundtrip(self):
        record = CookieRecord(
            name='a', value='b', domain='.x.edu.cn', path='/p',
            expires=1700000000, secure=True, http_only=True
        )
        assert CookieRecord.from_dict(record.to_dict()) == record

    def test_from_dict_missing_field(self):
        with pytest.raises(ValueError, match="domain"):
            CookieRecord.from_dict({'name': 'a', 'value': 'b', 'path': '/'})

    def test_from_dict_rejects_bool_expiry(self):
        data = CookieRecord(name='a', value='b', domain='x').to_dict()
        data['expires'] = True

        with pytest.raises(ValueError, match="expires"):
            CookieRecord.from_dict(data)

    @pytest.mark.parametrize('expires', [float('inf'), float('nan'), 10 ** 20, -5])
    def test_from_dict_rejects_out_of_range_expiry(self, expires):
        data = CookieRecord(name='a', value='b', domain='x').to_dict()
        data['expires'] = expires

        with pytest.raises(ValueError, match="expires"):
            CookieRecord.from_dict(data)

    @pytest.mark.parametrize('key', ['secure', 'http_only'])
    def test_from_dict_rejects_string_flags(self, key):
        data = CookieRecord(name='a', value='b', domain='x').to_dict()
        data[key] = 'false'

        with pytest.raises(ValueError, match=key):
            CookieRecord.from_dict(data)

    def test_from_dict_flags_default_to_false(self):
        record = CookieRecord.from_dict({'name': 'a', 'value': 'b', 'domain': 'x', 'path': '/'})

        assert record.secure is False
        assert record.http_only is False


class TestSessionData:
    """Tests for SessionData model."""

    def test_to_dict(self):
        result = make_session().to_dict()

        assert result['version'] == 1
        assert result['created_at'] == '2024-09-01T08:30:00'
        assert result['cookies'][0]['name'] == 'CASTGC'
        assert result['cookies'][1]['expires'] == 1893456000

    def test_json_roundtrip(self):
        data = make_session()
        assert SessionData.from_json(data.to_json()) == data

    def test_json_keeps_non_ascii(self):
        data = make_session(cookies=[CookieRecord(name='n', value='值', domain='x')])
        assert '值' in data.to_json()

    def test_from_json_rejects_garbage(self):
        with pytest.raises(ValueError):
            SessionData.from_json('not json at all')

    def test_from_dict_rejects_non_object(self):
        with pytest.raises(ValueError, match="JSON object"):
            SessionData.from_dict([1, 2, 3])

    def test_from_dict_rejects_unknown_version(self):
        data = make_session().to_dict()
        data['version'] = 99

        with pytest.raises(ValueError, match="version"):
            SessionData.from_dict(data)

    def test_from_dict_rejects_bad_cookie_list(self):
        data = make_session().to_dict()
        data['cookies'] = {'CASTGC': 'x'}

        with pytest.raises(ValueError, match="list"):
            SessionData.from_dict(data)

    def test_from_dict_rejects_bad_timestamp(self):
        data = make_session().to_dict()
        data['created_at'] = 'yesterday'

        with pytest.raises(ValueError):
            SessionData.from_dict(data)

    def test_is_valid(self):
        assert make_session().is_valid() is True
        assert SessionData().is_valid() is False

    def test_update_timestamp(self):
        data = make_session()
        data.update_timestamp()

        assert data.updated_at > data.created_at


class TestMemoryCookieStore:
    """Tests for MemoryCookieStore."""

    def test_implements_protocol(self):
        assert isinstance(MemoryCookieStore(), CookieStorage)

    def test_empty(self):
        store = MemoryCookieStore()

        assert store.load() is None
        assert store.exists() is False

    def test_save_and_load(self):
        store = MemoryCookieStore()
        data = make_session()

        store.save(data)

        assert store.exists() is True
        assert store.load() == data

    def test_load_returns_copy(self):
        store = MemoryCookieStore()
        store.save(make_session())

        loaded = store.load()
        loaded.cookies.clear()

        assert len(store.load().cookies) == 2

    def test_delete(self):
        store = MemoryCookieStore()
        store.save(make_session())

        store.delete()

        assert store.load() is None

    @pytest.mark.asyncio
    async def test_save_async(self):
        store = MemoryCookieStore()
        data = make_session()

        await store.save_async(data)

        assert store.load() == data


class TestJSONCookieStore:
    """Tests for JSONCookieStore."""

    @pytest.fixture
    def cookie_path(self, tmp_path) -> Path:
        return tmp_path / "uestc_cookies.json"

    def test_implements_protocol(self, cookie_path):
        assert isinstance(JSONCookieStore(cookie_path), CookieStorage)

    def test_load_missing_file(self, cookie_path):
        store = JSONCookieStore(cookie_path)

        assert store.load() is None
        assert store.exists() is False

    def test_save_and_load(self, cookie_path):
        store = JSONCookieStore(cookie_path)
        data = make_session()

        store.save(data)

        assert store.exists() is True
        assert store.load() == data

    def test_file_format(self, cookie_path):
        JSONCookieStore(cookie_path).save(make_session())

        document = json.loads(cookie_path.read_text(encoding='utf-8'))

        assert document['version'] == 1
        assert [c['name'] for c in document['cookies']] == ['CASTGC', 'route']
        assert document['cookies'][0]['http_only'] is True

    def test_save_creates_parent_directories(self, tmp_path):
        path = tmp_path / "nested" / "dir" / "cookies.json"
        JSONCookieStore(path).save(make_session())

        assert path.exists()

    def test_save_replaces_previous_file(self, cookie_path):
        store = JSONCookieStore(cookie_path)
        store.save(make_session())

        replacement = make_session(cookies=[CookieRecord(name='only', value='1', domain='x')])
        store.save(replacement)

        assert [c.name for c in store.load().cookies] == ['only']

    def test_save_leaves_no_temp_files(self, cookie_path):
        store = JSONCookieStore(cookie_path)
        store.save(make_session())
        store.save(make_session())

        assert [p.name for p in cookie_path.parent.iterdir()] == ['uestc_cookies.json']

    def test_failed_save_keeps_old_file(self, cookie_path):
        store = JSONCookieStore(cookie_path)
        store.save(make_session())
        before = cookie_path.read_text(encoding='utf-8')

        with patch('uestc_client.core.cookies.json_store.os.replace', side_effect=OSError("disk full")):
            with pytest.raises(CookiePersistError, match="disk full"):
                store.save(make_session(cookies=[]))

        assert cookie_path.read_text(encoding='utf-8') == before
        assert [p.name for p in cookie_path.parent.iterdir()] == ['uestc_cookies.json']

    @pytest.mark.asyncio
    async def test_save_async(self, cookie_path):
        store = JSONCookieStore(cookie_path)
        data = make_session()

        await store.save_async(data)

        assert store.load() == data
        assert [p.name for p in cookie_path.parent.iterdir()] == ['uestc_cookies.json']

    @pytest.mark.asyncio
    async def test_save_async_syncs_before_replace(self, cookie_path):
        store = JSONCookieStore(cookie_path)
        calls = []

        def fsync(fd):
            calls.append(('fsync', cookie_path.exists()))

        with patch('os.fsync', side_effect=fsync):
            await store.save_async(make_session())

        # The target appears only after the temp file was synced
        assert calls == [('fsync', False)]
        assert cookie_path.exists()

    @pytest.mark.parametrize('content', [
        'not json',
        '[]',
        '{"version": 1, "cookies": "nope", "created_at": "2024-01-01T00:00:00", "updated_at": "2024-01-01T00:00:00"}',
        '{"version": 2, "cookies": [], "created_at": "2024-01-01T00:00:00", "updated_at": "2024-01-01T00:00:00"}',
    ])
    def test_corrupt_file(self, cookie_path, content):
        cookie_path.write_text(content, encoding='utf-8')

        with pytest.raises(CookieFileCorruptError) as exc_info:
            JSONCookieStore(cookie_path).load()

        assert exc_info.value.path == str(cookie_path)

    @pytest.mark.parametrize('expires', ['Infinity', 'NaN', '100000000000000000000'])
    def test_unusable_expiry_is_corrupt(self, cookie_path, expires):
        """json accepts these numbers but no cookie jar can hold them."""
        cookie_path.write_text(
            '{"version": 1, "created_at": "2024-01-01T00:00:00", "updated_at": "2024-01-01T00:00:00", '
            '"cookies": [{"name": "CASTGC", "value": "TGT-1", "domain": "idas.uestc.edu.cn", '
            f'"path": "/", "expires": {expires}, "secure": false, "http_only": false}}]}}',
            encoding='utf-8'
        )

        with pytest.raises(CookieFileCorruptError, match="expires"):
            JSONCookieStore(cookie_path).load()

    def test_string_flag_is_corrupt(self, cookie_path):
        document = make_session().to_dict()
        document['cookies'][0]['secure'] = 'false'
        cookie_path.write_text(json.dumps(document), encoding='utf-8')

        with pytest.raises(CookieFileCorruptError, match="secure"):
            JSONCookieStore(cookie_path).load()

    def test_invalid_utf8_is_corrupt(self, cookie_path):
        cookie_path.write_bytes(b'\xff\xfe\x00garbage')

        with pytest.raises(CookieFileCorruptError):
            JSONCookieStore(cookie_path).load()

    def test_delete(self, cookie_path):
        store = JSONCookieStore(cookie_path)
        store.save(make_session())

        store.delete()

        assert not cookie_path.exists()

    def test_delete_missing_file(self, cookie_path):
        JSONCookieStore(cookie_path).delete()

    def test_delete_failure(self, cookie_path):
        store = JSONCookieStore(cookie_path)
        store.save(make_session())

        with patch.object(Path, 'unlink', side_effect=PermissionError("read-only")):
            with pytest.raises(CookiePersistError):
                store.delete()

    def test_context_manager(self, cookie_path):
        with JSONCookieStore(cookie_path) as store:
            store.save(make_session())

        assert cookie_path.exists()
