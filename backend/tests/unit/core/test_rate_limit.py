"""Tests for rate limiting configuration."""

import json
from unittest.mock import MagicMock

from fastapi import Request

from app.core.rate_limit import _get_rate_limit_key, get_client_ip, rate_limit_exceeded_handler


class TestGetRateLimitKey:
    def test_uses_client_host(self):
        request = MagicMock(spec=Request)
        request.headers = {}
        request.client.host = "192.168.1.1"

        key = _get_rate_limit_key(request)
        assert key == "ip:192.168.1.1"

    def test_prefers_first_forwarded_hop(self):
        request = MagicMock(spec=Request)
        request.headers = {"X-Forwarded-For": "203.0.113.9, 10.0.0.1"}
        request.client.host = "10.0.0.1"

        key = _get_rate_limit_key(request)
        assert key == "ip:203.0.113.9"

    def test_blank_forwarded_header_falls_back(self):
        request = MagicMock(spec=Request)
        request.headers = {"X-Forwarded-For": " "}
        request.client.host = "10.0.0.1"

        assert get_client_ip(request) == "10.0.0.1"

    def test_no_client_returns_unknown(self):
        request = MagicMock(spec=Request)
        request.headers = {}
        request.client = None

        key = _get_rate_limit_key(request)
        assert key == "ip:unknown"


class TestRateLimitExceededHandler:
    def test_returns_429_with_code(self):
        request = MagicMock(spec=Request)
        exc = MagicMock()

        response = rate_limit_exceeded_handler(request, exc)

        assert response.status_code == 429
        body = json.loads(response.body)
        assert body["code"] == "RATE_LIMIT_EXCEEDED"
        assert "Too many reports" in body["error"]
