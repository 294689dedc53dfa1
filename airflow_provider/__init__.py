"""Airflow Provider: declare Airflow objects and converge them over the REST API.

This package maps declared configuration for seven Airflow object kinds
(variables, connections, DAGs, DAG runs, pools, roles, users) onto the
Airflow REST API v1. The orchestration host decides what to create,
read, update, delete or import; each call here is one HTTP round trip.

For host integrations::

    from airflow_provider import AuthenticatedClient, load_configuration, registry

    config = load_configuration({"base_endpoint": "https://airflow.example.com",
                                 "username": "admin", "password": "admin"})
    client = AuthenticatedClient.from_configuration(config)

    variables = registry.instantiate("airflow_variable", client)
    state = variables.create(variables.data_class(key="foo", value="bar"))
    state.id  # "foo"

For adapter authors, subclass ``BaseResource`` and register it via entry
point in your package's pyproject.toml::

    [project.entry-points."airflow_provider.resources"]
    airflow_xcom = "my_package.xcom:XComResource"
"""

from .base import BaseResource, ResourceData
from .client import AuthenticatedClient
from .errors import (
    AirflowProviderError,
    APIError,
    ConfigurationError,
    NotFoundRecoverable,
    TransportError,
)
from .registry import ResourceRegistry, registry
from .settings import ProviderConfiguration, load_configuration

__all__ = [
    "APIError",
    "AirflowProviderError",
    "AuthenticatedClient",
    "BaseResource",
    "ConfigurationError",
    "NotFoundRecoverable",
    "ProviderConfiguration",
    "ResourceData",
    "ResourceRegistry",
    "TransportError",
    "load_configuration",
    "registry",
]

__version__ = "0.1.0"
