"""
Unit tests for core helpers: envelope, cache, rate limiter, tokens and uploads

Author: TM3
Date: 2025-10-17
"""
import io
import pytest
from fastapi import HTTPException
from fastapi import UploadFile

from app.core.auth import TokenUser, create_access_token, decode_access_token, hash_password, verify_password
from app.core.cache import MemoryCache, NullCache
from app.core.config import settings
from app.core.exceptions import NotFoundError, ValidationError
from app.core.rate_limit import RateLimiter
from app.core.responses import Pagination, paginated_response, success_response
from app.core.storage import save_upload


class _Model:
    def __init__(self, value):
        self.value = value

    def to_dict(self):
        return {'value': self.value, 'computed': self.value * 2}


class TestResponses:
    """Envelope and pagination"""

    def test_pagination_clamps(self):
        pagination = Pagination.from_params(page=0, limit=1000)
        assert pagination.page == 1
        assert pagination.limit == settings.MAX_PAGE_SIZE

    def test_pagination_meta(self):
        pagination = Pagination.from_params(page=3, limit=10)
        assert pagination.offset == 20
        assert pagination.meta(41) == {'page': 3, 'limit': 10, 'total': 41, 'pages': 5}

    def test_success_serializes_nested_models(self):
        body = success_response({'user': _Model(2), 'items': [_Model(1)]}, message='Done')
        assert body['success'] is True
        assert body['message'] == 'Done'
        assert body['data']['user']['computed'] == 4
        assert body['data']['items'][0]['computed'] == 2

    def test_paginated_response_extra_keys(self):
        body = paginated_response([_Model(1)], Pagination.from_params(1, 20), 1, summary={'total': 5})
        assert body['pagination']['pages'] == 1
        assert body['summary'] == {'total': 5}

    def test_not_found_message(self):
        assert NotFoundError('Order', 7).message == "Order with id '7' not found"
        assert NotFoundError('Order').to_dict() == {'success': False, 'message': 'Order not found'}


class TestMemoryCache:

    def test_set_get_delete(self):
        cache = MemoryCache()
        cache.set('a', {'x': 1})
        assert cache.get('a') == {'x': 1}
        cache.delete('a')
        assert cache.get('a') is None

    def test_returned_values_are_copies(self):
        cache = MemoryCache()
        cache.set('a', {'x': [1]})
        cache.get('a')['x'].append(2)
        assert cache.get('a') == {'x': [1]}

    def test_delete_prefix(self):
        cache = MemoryCache()
        cache.set('translations:vn', 1)
        cache.set('translations:en', 2)
        cache.set('homepage', 3)
        assert cache.delete_prefix('translations:') == 2
        assert cache.get('homepage') == 3

    def test_expired_entries_disappear(self, monkeypatch):
        cache = MemoryCache(default_ttl=10)
        clock = [1000.0]
        monkeypatch.setattr('app.core.cache.time.time', lambda: clock[0])
        cache.set('a', 1)
        clock[0] += 11
        assert cache.get('a') is None

    def test_null_cache(self):
        cache = NullCache()
        cache.set('a', 1)
        assert cache.get('a') is None


class TestRateLimiter:

    def test_blocks_after_limit(self):
        limiter = RateLimiter()
        results = [limiter.is_allowed('ip:1', max_requests=3)[0] for _ in range(4)]
        assert results == [True, True, True, False]

    def test_remaining_and_retry_after(self):
        limiter = RateLimiter()
        allowed, remaining, _ = limiter.is_allowed('ip:2', max_requests=2)
        assert allowed and remaining == 1
        limiter.is_allowed('ip:2', max_requests=2)
        allowed, remaining, retry_after = limiter.is_allowed('ip:2', max_requests=2)
        assert not allowed
        assert remaining == 0
        assert retry_after >= 1

    def test_identifiers_are_independent(self):
        limiter = RateLimiter()
        limiter.is_allowed('ip:a', max_requests=1)
        assert limiter.is_allowed('ip:b', max_requests=1)[0]


class TestTokens:

    def test_round_trip_claims(self):
        token = create_access_token(5, 'staff@shop.vn', 'employee', name='Staff')
        payload = decode_access_token(token)
        assert payload['id'] == 5
        assert payload['sub'] == '5'
        assert payload['role'] == 'employee'

    def test_invalid_token_is_401(self):
        with pytest.raises(HTTPException) as exc_info:
            decode_access_token('not-a-token')
        assert exc_info.value.status_code == 401

    def test_expired_token_is_401(self):
        token = create_access_token(5, 'a@shop.vn', 'customer', expires_minutes=-1)
        with pytest.raises(HTTPException) as exc_info:
            decode_access_token(token)
        assert exc_info.value.detail == 'Token has expired'

    def test_roles(self):
        assert TokenUser(id=1, email='a@b.vn', role='employee').is_staff
        assert not TokenUser(id=1, email='a@b.vn', role='translator').is_staff
        assert TokenUser(id=1, email='a@b.vn', role='admin').is_admin

    def test_password_hashing(self):
        hashed = hash_password('secret123')
        assert hashed != 'secret123'
        assert verify_password('secret123', hashed)
        assert not verify_password('wrong', hashed)


class TestStorage:
    """Local disk uploads"""

    @pytest.fixture(autouse=True)
    def upload_dir(self, tmp_path, monkeypatch):
        monkeypatch.setattr(settings, 'UPLOAD_DIR', str(tmp_path))
        return tmp_path

    def _file(self, name, content=b'\x89PNG data'):
        return UploadFile(file=io.BytesIO(content), filename=name)

    def test_saves_image(self, upload_dir):
        result = save_upload(self._file('proof.PNG'), folder='proofs')

        assert result['url'].startswith('/uploads/proofs/')
        assert result['url'].endswith('.png')
        assert result['size'] == 9
        assert (upload_dir / 'proofs' / result['filename']).exists()

    def test_rejects_pdf_unless_documents_allowed(self):
        with pytest.raises(ValidationError):
            save_upload(self._file('invoice.pdf'), folder='invoices')
        result = save_upload(self._file('invoice.pdf'), folder='invoices', allow_documents=True)
        assert result['url'].endswith('.pdf')

    def test_rejects_unknown_folder(self):
        with pytest.raises(ValidationError, match='Invalid upload folder'):
            save_upload(self._file('a.png'), folder='../etc')

    def test_rejects_empty_file(self):
        with pytest.raises(ValidationError, match='empty'):
            save_upload(self._file('a.png', content=b''))

    def test_rejects_oversized_file(self, monkeypatch):
        monkeypatch.setattr(settings, 'MAX_UPLOAD_SIZE_MB', 0)
        with pytest.raises(ValidationError, match='limit'):
            save_upload(self._file('a.png'))
