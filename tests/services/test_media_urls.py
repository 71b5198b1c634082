import pytest
from prometheus_client import REGISTRY

from cinestream.models.movie import Movie
from cinestream.services import media_urls


def _movie(movie_doc, **overrides) -> Movie:
    return Movie.from_document(movie_doc(**overrides))


def _failures(asset: str) -> float:
    value = REGISTRY.get_sample_value(
        "signed_url_failures_total", {"asset": asset}
    )
    return value or 0.0


@pytest.mark.asyncio
async def test_keys_are_replaced_by_signed_urls(movie_doc, fake_store):
    movie = _movie(
        movie_doc,
        videoUrls={"720p": "video/a.mp4", "1080p": "video/b.mp4"},
        posterKey="image/p.png",
        thumbnailKey="image/t.png",
    )

    resolved = await media_urls.resolve_movie(movie, fake_store)

    for key, url in [
        ("video/a.mp4", resolved.videoUrls["720p"]),
        ("video/b.mp4", resolved.videoUrls["1080p"]),
        ("image/p.png", resolved.posterUrl),
        ("image/t.png", resolved.thumbnailUrl),
    ]:
        assert url != key
        assert url.startswith("https://signed.example/")
    # Stored keys are still reported alongside the URLs.
    assert resolved.posterKey == "image/p.png"


@pytest.mark.asyncio
async def test_two_reads_produce_different_urls(movie_doc, fake_store):
    movie = _movie(movie_doc, thumbnailKey="image/t.png")

    first = await media_urls.resolve_movie(movie, fake_store)
    second = await media_urls.resolve_movie(movie, fake_store)

    assert first.videoUrls["720p"] != second.videoUrls["720p"]
    assert first.posterUrl != second.posterUrl
    assert first.thumbnailUrl != second.thumbnailUrl


@pytest.mark.asyncio
async def test_one_failing_key_does_not_affect_the_others(movie_doc, fake_store):
    movie = _movie(
        movie_doc,
        videoUrls={"720p": "video/good.mp4", "1080p": "video/broken.mp4"},
        posterKey="image/broken.png",
    )
    before = _failures("video")

    resolved = await media_urls.resolve_movie(movie, fake_store)

    assert resolved.videoUrls["720p"].startswith("https://signed.example/video/good.mp4")
    assert resolved.videoUrls["1080p"] is None
    assert resolved.posterUrl is None
    assert _failures("video") == before + 1


@pytest.mark.asyncio
async def test_empty_key_is_distinct_from_failed_signing(movie_doc, fake_store):
    movie = _movie(
        movie_doc,
        videoUrls={"480p": "", "720p": "   ", "1080p": "video/broken.mp4"},
        posterKey="",
        thumbnailKey=None,
    )

    resolved = await media_urls.resolve_movie(movie, fake_store)

    assert resolved.videoUrls["480p"] == ""
    assert resolved.videoUrls["720p"] == ""
    assert resolved.videoUrls["1080p"] is None
    assert resolved.posterUrl is None
    assert resolved.thumbnailUrl is None
    assert fake_store.signed == []


@pytest.mark.asyncio
async def test_invalid_key_degrades_to_null(movie_doc, fake_store):
    movie = _movie(movie_doc, videoUrls={"720p": "video/../etc/passwd"})

    resolved = await media_urls.resolve_movie(movie, fake_store)

    assert resolved.videoUrls["720p"] is None


@pytest.mark.asyncio
async def test_list_resolution_isolates_movies(movie_doc, fake_store):
    movies = [
        _movie(movie_doc, movie_id="ok", videoUrls={"720p": "video/ok.mp4"}),
        _movie(
            movie_doc,
            movie_id="bad",
            videoUrls={"720p": "video/broken.mp4"},
            posterKey="image/broken.png",
        ),
    ]

    resolved = await media_urls.resolve_movies(movies, fake_store)

    assert [m.id for m in resolved] == ["ok", "bad"]
    assert resolved[0].videoUrls["720p"].startswith("https://signed.example/")
    assert resolved[1].videoUrls["720p"] is None
    assert resolved[1].posterUrl is None


@pytest.mark.asyncio
async def test_default_store_is_used_when_none_given(monkeypatch, movie_doc, fake_store):
    monkeypatch.setattr(media_urls, "get_object_store", lambda: fake_store)

    resolved = await media_urls.resolve_movie(_movie(movie_doc))

    assert resolved.videoUrls["720p"].startswith("https://signed.example/")
