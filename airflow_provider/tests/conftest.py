import os

import pytest

from airflow_provider.client import AuthenticatedClient
from airflow_provider.registry import ResourceRegistry
from airflow_provider.settings import ProviderConfiguration
from airflow_provider.tests.fake_airflow import FakeAirflow

BASE_ENDPOINT = "http://airflow.test"


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep AIRFLOW_* variables from the developer's shell out of the tests."""
    for name in list(os.environ):
        if name.startswith("AIRFLOW_"):
            monkeypatch.delenv(name)


@pytest.fixture
def fake_airflow():
    return FakeAirflow()


@pytest.fixture
def client_factory(fake_airflow):
    """Build clients the real way, then route BASE_ENDPOINT to the fake."""
    def factory(config):
        client = AuthenticatedClient.from_configuration(config)
        client.session.mount(BASE_ENDPOINT, fake_airflow)
        return client
    return factory


@pytest.fixture
def client(client_factory):
    config = ProviderConfiguration(
        base_endpoint=BASE_ENDPOINT, username="admin", password="admin"
    ).validate()
    return client_factory(config)


@pytest.fixture
def resource_registry():
    return ResourceRegistry()
