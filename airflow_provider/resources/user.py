"""Airflow users (``/users``)."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..base import BaseResource, ResourceData


@dataclass
class UserData(ResourceData):
    username: str | None = None
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    password: str | None = None
    roles: list[str] | None = None
    active: bool | None = None
    login_count: int | None = None
    failed_login_count: int | None = None
    last_login: str | None = None
    created_on: str | None = None
    changed_on: str | None = None


class UserResource(BaseResource):
    """
    A webserver user. The opaque ID is the username.

    ``roles`` holds role names; Airflow's ``[{"name": ...}]`` shape is
    flattened on read. The password is write-only and kept as declared.
    """

    kind = "airflow_user"
    display_name = "user"
    data_class = UserData
    collection_path = "/users"
    key_field = "username"

    required_fields = ("username", "email", "first_name", "last_name", "password")
    immutable_fields = ("username",)
    computed_fields = (
        "active",
        "login_count",
        "failed_login_count",
        "last_login",
        "created_on",
        "changed_on",
    )
    write_only_fields = ("password",)
    sensitive_fields = ("password",)
    cleared_values = {"roles": []}
    null_values = {"roles": []}
    field_types = {
        "roles": "set",
        "active": "bool",
        "login_count": "int",
        "failed_login_count": "int",
    }

    def encode_field(self, name: str, value: Any) -> Any:
        if name == "roles" and value is not None:
            return [{"name": role} for role in sorted(set(value))]
        return super().encode_field(name, value)

    def decode_field(self, name: str, value: Any) -> Any:
        if name == "roles":
            return sorted(role["name"] if isinstance(role, dict) else str(role) for role in value)
        return value
