"""Airflow roles (``/roles``)."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..base import BaseResource, ResourceData
from ..errors import ConfigurationError


@dataclass
class RoleData(ResourceData):
    name: str | None = None
    actions: list[dict[str, str]] | None = None


def _normalize(actions) -> list[dict[str, str]]:
    unique = {(item["action"], item["resource"]) for item in actions}
    return [{"action": action, "resource": resource} for action, resource in sorted(unique)]


class RoleResource(BaseResource):
    """
    A security role and its permissions. The opaque ID is the role name.

    ``actions`` is a set of ``{"action": ..., "resource": ...}`` pairs,
    for example ``{"action": "can_read", "resource": "DAGs"}``. It is kept
    sorted and de-duplicated so that ordering never shows up as a change.
    """

    kind = "airflow_role"
    display_name = "role"
    data_class = RoleData
    collection_path = "/roles"
    key_field = "name"

    required_fields = ("name", "actions")
    immutable_fields = ("name",)
    field_types = {"actions": "set"}

    def encode_field(self, name: str, value: Any) -> Any:
        if name != "actions" or value is None:
            return value
        for item in value:
            if not isinstance(item, dict) or not item.get("action") or not item.get("resource"):
                raise ConfigurationError(
                    f"role actions must be mappings with 'action' and 'resource', got {item!r}"
                )
        return [
            {"action": {"name": item["action"]}, "resource": {"name": item["resource"]}}
            for item in _normalize(value)
        ]

    def decode_field(self, name: str, value: Any) -> Any:
        if name != "actions":
            return value
        return _normalize(
            {"action": item["action"]["name"], "resource": item["resource"]["name"]}
            for item in value
        )
