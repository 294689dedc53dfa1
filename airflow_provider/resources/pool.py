"""Airflow pools (``/pools``)."""
from __future__ import annotations

from dataclasses import dataclass

from ..base import BaseResource, ResourceData


@dataclass
class PoolData(ResourceData):
    name: str | None = None
    slots: int | None = None
    description: str | None = None
    occupied_slots: int | None = None
    running_slots: int | None = None
    queued_slots: int | None = None
    open_slots: int | None = None


class PoolResource(BaseResource):
    """A worker slot pool. The opaque ID is the pool name."""

    kind = "airflow_pool"
    display_name = "pool"
    data_class = PoolData
    collection_path = "/pools"
    key_field = "name"

    required_fields = ("name", "slots")
    immutable_fields = ("name",)
    computed_fields = ("occupied_slots", "running_slots", "queued_slots", "open_slots")
    cleared_values = {"description": ""}
    null_values = {"description": ""}
    field_types = {
        "slots": "int",
        "occupied_slots": "int",
        "running_slots": "int",
        "queued_slots": "int",
        "open_slots": "int",
    }
