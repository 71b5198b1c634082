"""Shared fixtures: environment, auth tokens and in-memory test doubles."""

import itertools
import os
from typing import Any, Dict, Iterable, List, Optional

import bcrypt

# Settings are read at import time, so the environment is prepared before any
# ``cinestream`` module is imported.
ADMIN_PASSWORD = "correct-horse-battery"
os.environ["OBSERVABILITY_ENABLED"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["ENVIRONMENT"] = "test"
os.environ["ADMIN_USERNAME"] = "admin"
os.environ["ADMIN_PASSWORD_HASH"] = bcrypt.hashpw(
    ADMIN_PASSWORD.encode("utf-8"), bcrypt.gensalt(rounds=4)
).decode("utf-8")

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from cinestream.core.security import create_access_token  # noqa: E402
from cinestream.storage.s3_client import S3StorageError, normalize_key  # noqa: E402


# ---------------------------------------------------------------------------
# Test doubles
# ---------------------------------------------------------------------------


class FakeCursor:
    def __init__(self, docs: List[Dict[str, Any]]):
        self._docs = docs

    async def to_list(self) -> List[Dict[str, Any]]:
        return [dict(d) for d in self._docs]


class FakeCollection:
    """In-memory stand-in for a Data API collection (equality and ``$ne``)."""

    def __init__(self, docs: Optional[Iterable[Dict[str, Any]]] = None):
        self.docs: Dict[str, Dict[str, Any]] = {
            d["_id"]: dict(d) for d in (docs or [])
        }

    @staticmethod
    def _matches(doc: Dict[str, Any], query: Dict[str, Any]) -> bool:
        for field, cond in query.items():
            if isinstance(cond, dict) and "$ne" in cond:
                if doc.get(field) == cond["$ne"]:
                    return False
            elif doc.get(field) != cond:
                return False
        return True

    def find(self, filter=None, projection=None, sort=None, limit=None, **kwargs):
        docs = [d for d in self.docs.values() if self._matches(d, filter or {})]
        for field, direction in reversed(list((sort or {}).items())):
            docs.sort(key=lambda d: d.get(field) or "", reverse=direction < 0)
        if limit:
            docs = docs[:limit]
        return FakeCursor(docs)

    async def find_one(self, filter=None, projection=None, **kwargs):
        for doc in self.docs.values():
            if self._matches(doc, filter or {}):
                return dict(doc)
        return None

    async def insert_one(self, document, **kwargs):
        self.docs[document["_id"]] = dict(document)

    async def update_one(self, filter, update, **kwargs):
        for doc in self.docs.values():
            if self._matches(doc, filter):
                doc.update(update.get("$set", {}))
                for field in update.get("$unset", {}):
                    doc.pop(field, None)
                return

    async def delete_one(self, filter, **kwargs):
        for doc_id, doc in list(self.docs.items()):
            if self._matches(doc, filter):
                del self.docs[doc_id]
                return


class FakeObjectStore:
    """Signer embedding a fresh nonce per call; keys containing 'broken' fail."""

    def __init__(self):
        self._nonce = itertools.count(1)
        self.signed: List[str] = []
        self.uploads: List[Dict[str, Any]] = []

    def presigned_get(self, key: str, *, expires_in: Optional[int] = None) -> str:
        k = normalize_key(key)
        if "broken" in k:
            raise S3StorageError("signer unavailable")
        self.signed.append(k)
        return f"https://signed.example/{k}?X-Amz-Expires=3600&nonce={next(self._nonce)}"

    def upload_fileobj(self, key, fileobj, *, content_type, field_name, cache_control=None):
        k = normalize_key(key)
        self.uploads.append(
            {
                "key": k,
                "body": fileobj.read(),
                "content_type": content_type,
                "field_name": field_name,
                "cache_control": cache_control,
            }
        )
        return k


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def admin_password() -> str:
    return ADMIN_PASSWORD


@pytest.fixture
def admin_token() -> str:
    return create_access_token(subject="admin", username="admin", is_admin=True)


@pytest.fixture
def admin_headers(admin_token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {admin_token}"}


@pytest.fixture
def viewer_headers() -> Dict[str, str]:
    token = create_access_token(subject="viewer", username="viewer", is_admin=False)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def fake_store() -> FakeObjectStore:
    return FakeObjectStore()


@pytest.fixture
def make_collection():
    return FakeCollection


@pytest.fixture
def movie_doc():
    """Factory for stored movie documents."""

    def _make(movie_id: str = "m1", **overrides: Any) -> Dict[str, Any]:
        doc = {
            "_id": movie_id,
            "title": "Night Train",
            "description": "A thriller on rails.",
            "director": "A. Director",
            "language": "English",
            "rating": 0,
            "releaseDate": "2021-05-01",
            "genre": ["Thriller"],
            "cast": [],
            "tags": [],
            "videoUrls": {"720p": f"video/{movie_id}-720.mp4"},
            "posterKey": f"image/{movie_id}-poster.png",
            "thumbnailKey": None,
            "views": 0,
            "reviewCount": 0,
            "isFeatured": False,
            "createdAt": "2024-01-01T00:00:00+00:00",
            "updatedAt": "2024-01-01T00:00:00+00:00",
        }
        doc.update(overrides)
        return doc

    return _make


@pytest.fixture
def backend(monkeypatch, fake_store):
    """Wire every service to in-memory collections and the fake object store."""

    from cinestream.services import (
        comment_service,
        media_urls,
        movie_service,
        review_service,
        upload_service,
    )

    collections = {
        movie_service.MOVIES_COLLECTION_NAME: FakeCollection(),
        review_service.REVIEWS_COLLECTION_NAME: FakeCollection(),
        comment_service.COMMENTS_COLLECTION_NAME: FakeCollection(),
    }

    async def _get_collection(name: str):
        return collections[name]

    for module in (movie_service, review_service, comment_service):
        monkeypatch.setattr(module, "get_collection", _get_collection)
    monkeypatch.setattr(media_urls, "get_object_store", lambda: fake_store)
    monkeypatch.setattr(upload_service, "get_object_store", lambda: fake_store)

    class _Backend:
        movies = collections[movie_service.MOVIES_COLLECTION_NAME]
        reviews = collections[review_service.REVIEWS_COLLECTION_NAME]
        comments = collections[comment_service.COMMENTS_COLLECTION_NAME]
        store = fake_store

    return _Backend


@pytest.fixture
def client() -> AsyncClient:
    from cinestream.main import app

    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")
