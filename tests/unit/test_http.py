"""Unit tests for utils/http.py."""

import httpx
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from laptop.errors import DownloadFailure
from laptop.utils.http import fetch_text


def mock_client(get):
    client = AsyncMock()
    client.get = get
    client.__aenter__ = AsyncMock(return_value=client)
    client.__aexit__ = AsyncMock(return_value=False)
    return client


@pytest.mark.unit
class TestFetchText:

    @pytest.mark.asyncio
    async def test_returns_body(self):
        response = MagicMock()
        response.text = "3.3.0\n"
        response.raise_for_status = MagicMock()
        client = mock_client(AsyncMock(return_value=response))

        with patch("httpx.AsyncClient", return_value=client):
            body = await fetch_text("http://ruby.example.com/latest")

        assert body == "3.3.0\n"
        client.get.assert_awaited_once_with("http://ruby.example.com/latest")

    @pytest.mark.asyncio
    async def test_connection_error(self):
        client = mock_client(AsyncMock(side_effect=httpx.ConnectError("refused")))

        with patch("httpx.AsyncClient", return_value=client):
            with pytest.raises(DownloadFailure, match="refused"):
                await fetch_text("http://ruby.example.com/latest")

    @pytest.mark.asyncio
    async def test_http_status_error(self):
        response = MagicMock()
        response.raise_for_status = MagicMock(
            side_effect=httpx.HTTPStatusError(
                "404 Not Found", request=MagicMock(), response=MagicMock()
            )
        )
        client = mock_client(AsyncMock(return_value=response))

        with patch("httpx.AsyncClient", return_value=client):
            with pytest.raises(DownloadFailure, match="DOWNLOAD_FAILED"):
                await fetch_text("http://ruby.example.com/latest")

    @pytest.mark.asyncio
    async def test_mock_transport(self):
        """End to end through a real client with a mocked transport."""
        transport = httpx.MockTransport(lambda request: httpx.Response(200, text="echo ok"))
        real_client = httpx.AsyncClient(transport=transport)

        with patch("httpx.AsyncClient", return_value=real_client):
            body = await fetch_text("https://raw.example.com/install.sh")

        assert body == "echo ok"
