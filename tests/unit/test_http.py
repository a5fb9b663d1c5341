"""Tests for the shared carrier HTTP session."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from rp_shipping.services import http
from rp_shipping.services.http import LazySession, get_json


@pytest.mark.asyncio
async def test_close_without_requests_opens_nothing():
    lazy = LazySession(timeout=5)

    with patch.object(http, "create_session") as create:
        assert await lazy.close() is False

    create.assert_not_called()
    assert lazy.opened is False


@pytest.mark.asyncio
async def test_session_opened_once_and_closed():
    lazy = LazySession(timeout=5)

    session = lazy.get()

    assert lazy.get() is session
    assert lazy.opened is True
    assert await lazy.close() is True
    assert session.closed
    assert lazy.opened is False


@pytest.mark.asyncio
async def test_get_json_opens_lazy_session_on_first_request():
    response = MagicMock()
    response.status = 200
    response.json = AsyncMock(return_value={"category": []})
    session = MagicMock()
    session.closed = False
    session.get.return_value.__aenter__.return_value = response
    lazy = LazySession(timeout=7)

    with patch.object(http, "create_session", return_value=session) as create:
        status, data = await get_json(lazy, "https://tariff.example/v2/dictionary", {"json": ""}, 3)

    assert (status, data) == (200, {"category": []})
    create.assert_called_once_with(7)
    assert lazy.opened is True
