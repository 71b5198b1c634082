import pytest
from unittest.mock import MagicMock, patch

from cinestream.db import astra_client


@pytest.fixture(autouse=True)
def reset_db_instance():
    astra_client.db_instance = None
    yield
    astra_client.db_instance = None


@pytest.fixture
def configured(monkeypatch):
    monkeypatch.setattr(astra_client.settings, "ASTRA_DB_API_ENDPOINT", "test_endpoint")
    monkeypatch.setattr(astra_client.settings, "ASTRA_DB_APPLICATION_TOKEN", "test_token")
    monkeypatch.setattr(astra_client.settings, "ASTRA_DB_KEYSPACE", "test_keyspace")


@pytest.mark.asyncio
async def test_init_astra_db_success(configured):
    with patch("cinestream.db.astra_client.AstraDB", new_callable=MagicMock) as mock_cls:
        await astra_client.init_astra_db()

    assert astra_client.db_instance is not None
    mock_cls.assert_called_once_with(
        api_endpoint="test_endpoint", token="test_token", namespace="test_keyspace"
    )


@pytest.mark.asyncio
async def test_init_astra_db_missing_config(monkeypatch):
    monkeypatch.setattr(astra_client.settings, "ASTRA_DB_API_ENDPOINT", None)
    with pytest.raises(ValueError, match="AstraDB settings are not fully configured."):
        await astra_client.init_astra_db()
    assert astra_client.db_instance is None


@pytest.mark.asyncio
async def test_init_astra_db_connect_error_propagates(configured):
    import httpx

    with patch(
        "cinestream.db.astra_client.AstraDB",
        side_effect=httpx.ConnectError("refused"),
    ):
        with pytest.raises(httpx.ConnectError):
            await astra_client.init_astra_db()


@pytest.mark.asyncio
async def test_get_astra_db_initialises_once(configured):
    with patch("cinestream.db.astra_client.AstraDB", new_callable=MagicMock) as mock_cls:
        first = await astra_client.get_astra_db()
        second = await astra_client.get_astra_db()

    assert first is second
    mock_cls.assert_called_once()


@pytest.mark.asyncio
async def test_get_collection_uses_shared_handle():
    mock_db = MagicMock()
    mock_db.collection.return_value = "movies-collection"
    astra_client.db_instance = mock_db

    result = await astra_client.get_collection("movies")

    assert result == "movies-collection"
    mock_db.collection.assert_called_once_with("movies")


def test_astra_db_wraps_async_database():
    with patch("cinestream.db.astra_client.DataAPIClient") as mock_client_cls:
        db = astra_client.AstraDB(
            api_endpoint="https://db.example", token="tok", namespace="ks"
        )
        db.collection("movies")

    mock_client_cls.return_value.get_async_database.assert_called_once_with(
        "https://db.example", token="tok", keyspace="ks"
    )
    mock_client_cls.return_value.get_async_database.return_value.get_collection.assert_called_once_with(
        "movies"
    )
