"""Airflow variables (``/variables``)."""
from __future__ import annotations

from dataclasses import dataclass

from ..base import BaseResource, ResourceData


@dataclass
class VariableData(ResourceData):
    key: str | None = None
    value: str | None = None
    description: str | None = None


class VariableResource(BaseResource):
    """
    A key/value variable. The opaque ID is the variable key.

    Airflow has been unreliable about clearing ``description`` when it is
    left out of a PATCH body, so an omitted description is always sent
    as an explicit empty string.
    """

    kind = "airflow_variable"
    display_name = "variable"
    data_class = VariableData
    collection_path = "/variables"
    key_field = "key"

    required_fields = ("key", "value")
    immutable_fields = ("key",)
    cleared_values = {"description": ""}
    null_values = {"description": ""}
