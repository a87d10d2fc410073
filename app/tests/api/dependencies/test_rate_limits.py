from unittest.mock import Mock
import pytest
import httpx
from fastapi import Request, FastAPI
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from api.dependencies import rate_limits


def test_forwarded_for_first_hop_is_used():
    mock_request = Mock(spec=Request)
    mock_request.headers = {"X-Forwarded-For": "203.0.113.7, 10.0.0.1"}

    assert rate_limits.client_key_func(mock_request) == "203.0.113.7"


def test_peer_address_without_forwarded_for():
    mock_request = Mock(spec=Request)
    mock_request.headers = {}
    mock_request.client.host = "192.168.1.1"

    assert rate_limits.client_key_func(mock_request) == "192.168.1.1"


def test_empty_forwarded_for_uses_peer_address():
    mock_request = Mock(spec=Request)
    mock_request.headers = {"X-Forwarded-For": " , 10.0.0.1"}
    mock_request.client.host = "192.168.1.1"

    assert rate_limits.client_key_func(mock_request) == "192.168.1.1"


@pytest.mark.asyncio
async def test_rate_limit_handler():
    mock_request = Mock(spec=Request)
    mock_exception = Mock(spec=RateLimitExceeded)

    response = await rate_limits.rate_limit_handler(mock_request, mock_exception)

    assert isinstance(response, JSONResponse)
    assert response.status_code == 429
    assert (
        response.body.decode("utf-8")
        == '{"error":"rate_limit_exceeded","message":"Rate limit exceeded"}'
    )


@pytest.mark.asyncio
async def test_language_endpoint_rate_limiting(app):
    """Integration test: the limit on PUT /language/{tag} is enforced per client."""
    transport = httpx.ASGITransport(app=app)

    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        for _ in range(30):
            response = await client.put("/language/en")
            assert response.status_code == 200

        response = await client.put("/language/en")
        assert response.status_code == 429

        other = await client.put(
            "/language/en", headers={"X-Forwarded-For": "198.51.100.2"}
        )
        assert other.status_code == 200
