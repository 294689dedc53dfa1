"""Airflow connections (``/connections``)."""
from __future__ import annotations

from dataclasses import dataclass

from ..base import BaseResource, ResourceData


@dataclass
class ConnectionData(ResourceData):
    connection_id: str | None = None
    conn_type: str | None = None
    host: str | None = None
    login: str | None = None
    schema: str | None = None
    port: int | None = None
    password: str | None = None
    extra: str | None = None
    description: str | None = None


class ConnectionResource(BaseResource):
    """
    A connection. The opaque ID is the connection ID.

    Airflow never returns the password, so the declared value is kept in
    state as is. Omitted optional fields are cleared with ``null`` on
    update.
    """

    kind = "airflow_connection"
    display_name = "connection"
    data_class = ConnectionData
    collection_path = "/connections"
    key_field = "connection_id"

    required_fields = ("connection_id", "conn_type")
    immutable_fields = ("connection_id",)
    write_only_fields = ("password",)
    sensitive_fields = ("password",)
    field_types = {"port": "int"}
