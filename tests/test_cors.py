"""Tests for the CORS middleware"""
from unittest.mock import Mock
from fastapi.testclient import TestClient

from app.server import ProxyServer
from config import Config
from metrics.client import BaseMetricsClient


ORIGIN = "https://app.example.com"


class TestCORS:
    """Test origin reflection and preflight handling"""

    def setup_method(self):
        """Setup test fixtures"""
        self.statsd = Mock(spec=BaseMetricsClient)
        self.server = ProxyServer(
            Config(jwt_secret="shared-secret-for-tests-0123456789abcdef"),
            client=self.statsd
        )
        self.client = TestClient(self.server.get_app())

    def test_preflight_with_origin(self):
        response = self.client.options("/count/clicks", headers={"Origin": ORIGIN})

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == ORIGIN
        assert "POST" in response.headers["access-control-allow-methods"]
        assert "X-JWT-Token" in response.headers["access-control-allow-headers"]
        assert self.statsd.method_calls == []

    def test_preflight_any_path(self):
        response = self.client.options("/no/such/route", headers={"Origin": ORIGIN})

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == ORIGIN

    def test_preflight_without_origin(self):
        response = self.client.options("/batch")

        assert response.status_code == 200
        assert "access-control-allow-origin" not in response.headers
        assert "access-control-allow-methods" not in response.headers

    def test_origin_reflected_on_success(self):
        response = self.client.get("/heartbeat", headers={"Origin": ORIGIN})

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == ORIGIN
        assert "access-control-allow-methods" not in response.headers

    def test_origin_reflected_on_failure(self):
        response = self.client.post("/count/clicks", headers={"Origin": ORIGIN})

        assert response.status_code == 401
        assert response.headers["access-control-allow-origin"] == ORIGIN

    def test_no_origin_no_header(self):
        response = self.client.get("/heartbeat")

        assert "access-control-allow-origin" not in response.headers

    def test_origin_reflected_on_unhandled_error(self):
        statsd = Mock(spec=BaseMetricsClient)
        statsd.count.side_effect = RuntimeError("transport exploded")
        client = TestClient(ProxyServer(Config(jwt_secret=None), client=statsd).get_app())

        response = client.post("/count/clicks", headers={"Origin": ORIGIN})

        assert response.status_code == 500
        assert response.headers["access-control-allow-origin"] == ORIGIN
