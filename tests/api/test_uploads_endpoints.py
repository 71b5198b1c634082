import pytest
from fastapi import status


@pytest.mark.asyncio
async def test_upload_video(client, backend, admin_headers):
    async with client as ac:
        response = await ac.post(
            "/api/upload/video",
            files={"video": ("trailer.mp4", b"\x00\x01", "video/mp4")},
            data={"quality": "1080p"},
            headers=admin_headers,
        )

    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["quality"] == "1080p"
    assert body["key"].startswith("video/")
    assert body["key"].endswith("-trailer.mp4")
    assert backend.store.uploads[0]["key"] == body["key"]


@pytest.mark.asyncio
async def test_upload_image_defaults_to_poster(client, backend, admin_headers):
    async with client as ac:
        response = await ac.post(
            "/api/upload/image",
            files={"image": ("cover.png", b"\x89PNG", "image/png")},
            headers=admin_headers,
        )

    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["type"] == "poster"
    assert body["key"].startswith("image/")


@pytest.mark.asyncio
async def test_upload_without_file_is_400(client, backend, admin_headers):
    async with client as ac:
        response = await ac.post(
            "/api/upload/video", data={"quality": "720p"}, headers=admin_headers
        )

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert backend.store.uploads == []


@pytest.mark.asyncio
async def test_upload_wrong_type_is_400(client, backend, admin_headers):
    async with client as ac:
        response = await ac.post(
            "/api/upload/image",
            files={"image": ("notes.txt", b"hello", "text/plain")},
            headers=admin_headers,
        )

    assert response.status_code == status.HTTP_400_BAD_REQUEST


@pytest.mark.asyncio
async def test_upload_requires_admin(client, backend, viewer_headers):
    async with client as ac:
        anonymous = await ac.post(
            "/api/upload/video", files={"video": ("a.mp4", b"x", "video/mp4")}
        )
        viewer = await ac.post(
            "/api/upload/video",
            files={"video": ("a.mp4", b"x", "video/mp4")},
            headers=viewer_headers,
        )

    assert anonymous.status_code == status.HTTP_401_UNAUTHORIZED
    assert viewer.status_code == status.HTTP_403_FORBIDDEN
    assert backend.store.uploads == []
