import base64
import logging

import pytest
import requests

from airflow_provider.client import (
    AuthenticatedClient,
    LoggingHTTPAdapter,
    build_base_url,
    quote_segment,
)
from airflow_provider.errors import TransportError
from airflow_provider.settings import ProviderConfiguration
from airflow_provider.tests.fake_airflow import Unreachable

BASE_ENDPOINT = "http://airflow.test"


class TestBaseUrl:
    @pytest.mark.parametrize(
        "endpoint, expected",
        [
            ("https://airflow.example.com", "https://airflow.example.com/api/v1"),
            ("https://airflow.example.com/", "https://airflow.example.com/api/v1"),
            ("https://example.com/airflow///", "https://example.com/airflow/api/v1"),
            ("http://localhost:8080/tools/airflow", "http://localhost:8080/tools/airflow/api/v1"),
        ],
    )
    def test_trailing_slashes_stripped(self, endpoint, expected):
        assert build_base_url(endpoint) == expected

    def test_quote_segment_escapes_slashes(self):
        assert quote_segment("team/a b") == "team%2Fa%20b"

    def test_url_for(self):
        client = AuthenticatedClient("https://airflow.example.com/api/v1/")
        assert client.url_for("/variables/foo") == "https://airflow.example.com/api/v1/variables/foo"


class TestAuthentication:
    def _last_headers(self, client_factory, fake_airflow, **settings):
        config = ProviderConfiguration(base_endpoint=BASE_ENDPOINT, **settings).validate()
        client = client_factory(config)
        client.get("/variables/missing")
        return fake_airflow.requests[-1].headers

    def test_basic_auth(self, client_factory, fake_airflow):
        headers = self._last_headers(client_factory, fake_airflow, username="admin", password="s3cret")
        expected = base64.b64encode(b"admin:s3cret").decode()
        assert headers["Authorization"] == f"Basic {expected}"
        assert "X-Api-Key" not in headers

    def test_bearer_token(self, client_factory, fake_airflow):
        headers = self._last_headers(client_factory, fake_airflow, oauth2_token="tok-123")
        assert headers["Authorization"] == "Bearer tok-123"

    def test_api_key_header(self, client_factory, fake_airflow):
        headers = self._last_headers(client_factory, fake_airflow, x_api_key="key-456")
        assert headers["X-Api-Key"] == "key-456"
        assert "Authorization" not in headers

    def test_anonymous(self, client_factory, fake_airflow):
        headers = self._last_headers(client_factory, fake_airflow)
        assert "Authorization" not in headers
        assert "X-Api-Key" not in headers

    def test_json_accept_and_user_agent(self, client_factory, fake_airflow):
        headers = self._last_headers(client_factory, fake_airflow)
        assert headers["Accept"] == "application/json"
        assert headers["User-Agent"] == "airflow-provider"

    def test_basic_auth_logged_without_secret(self, caplog):
        caplog.set_level(logging.DEBUG, logger="airflow_provider.client")
        config = ProviderConfiguration(base_endpoint=BASE_ENDPOINT, username="admin", password="s3cret")
        client = AuthenticatedClient.from_configuration(config)

        assert "Using API Basic Auth" in caplog.text
        assert "s3cret" not in caplog.text
        assert "s3cret" not in repr(client)


class TestTls:
    def test_verification_on_by_default(self, client_factory, fake_airflow):
        client = client_factory(ProviderConfiguration(base_endpoint=BASE_ENDPOINT))
        client.get("/variables/foo")

        assert client.verify_ssl is True
        # True, or a CA bundle path taken from REQUESTS_CA_BUNDLE
        assert fake_airflow.send_kwargs[-1]["verify"] not in (False, None)
        assert isinstance(client.session.get_adapter("https://airflow.example.com"), LoggingHTTPAdapter)

    def test_verification_disabled(self, client_factory, fake_airflow, caplog):
        caplog.set_level(logging.WARNING, logger="airflow_provider.client")
        config = ProviderConfiguration(base_endpoint=BASE_ENDPOINT, disable_ssl_verification=True)
        client = client_factory(config)
        client.get("/variables/foo")

        assert client.verify_ssl is False
        assert fake_airflow.send_kwargs[-1]["verify"] is False
        assert "SSL certificate verification is disabled" in caplog.text


class TestRequests:
    def test_returns_error_responses_untouched(self, client, fake_airflow):
        response = client.get("/variables/missing")
        assert response.status_code == 404
        assert response.json()["title"] == "Not Found"

    def test_json_body_and_params(self, client, fake_airflow):
        fake_airflow.add_dag("example")
        client.patch("/dags/example", params={"update_mask": "is_paused"}, json={"is_paused": False})

        request = fake_airflow.requests[-1]
        assert request.url == "http://airflow.test/api/v1/dags/example?update_mask=is_paused"
        assert request.body == b'{"is_paused": false}'
        assert fake_airflow.dags["example"]["is_paused"] is False

    def test_transport_failure(self):
        client = AuthenticatedClient("http://unreachable.test/api/v1")
        client.session.mount("http://unreachable.test", Unreachable())

        with pytest.raises(TransportError) as excinfo:
            client.get("/variables/foo")

        error = excinfo.value
        assert error.method == "GET"
        assert error.url == "http://unreachable.test/api/v1/variables/foo"
        assert isinstance(error.__cause__, requests.exceptions.ConnectionError)
        assert "connection refused" in str(error)

    def test_transport_error_with_context(self):
        error = TransportError("GET", "http://x/api/v1/pools/p", OSError("boom"))
        scoped = error.with_context("read", "pool", "p")

        assert str(scoped).startswith("failed to read pool `p`: GET http://x/api/v1/pools/p")
        assert scoped.as_diagnostic()["kind"] == "TransportError"
        assert scoped.as_diagnostic()["operation"] == "read"
