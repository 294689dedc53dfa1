"""Airflow DAGs (``/dags``).

DAGs come from files parsed by the scheduler and cannot be created over
the API. "Creating" a DAG resource adopts an existing DAG and applies its
paused state; deleting it removes the DAG's metadata from Airflow.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..base import BaseResource, ResourceData


@dataclass
class DagData(ResourceData):
    dag_id: str | None = None
    is_paused: bool | None = None
    description: str | None = None
    fileloc: str | None = None
    file_token: str | None = None
    is_active: bool | None = None
    is_subdag: bool | None = None
    root_dag_id: str | None = None
    owners: list[str] | None = None
    tags: list[str] | None = None


class DagResource(BaseResource):
    kind = "airflow_dag"
    display_name = "DAG"
    data_class = DagData
    collection_path = "/dags"
    key_field = "dag_id"

    required_fields = ("dag_id", "is_paused")
    immutable_fields = ("dag_id",)
    computed_fields = (
        "description",
        "fileloc",
        "file_token",
        "is_active",
        "is_subdag",
        "root_dag_id",
        "owners",
        "tags",
    )
    path_fields = ("dag_id",)
    field_types = {
        "is_paused": "bool",
        "is_active": "bool",
        "is_subdag": "bool",
        "owners": "list",
        "tags": "list",
    }

    def _patch_paused(self, data: DagData):
        return (
            "PATCH",
            self.item_path(self.resource_id(data)),
            {"update_mask": "is_paused"},
            {"is_paused": bool(data.is_paused)},
        )

    def create_request(self, data):
        return self._patch_paused(data)

    def update_request(self, data):
        return self._patch_paused(data)

    def decode_field(self, name: str, value: Any) -> Any:
        if name == "tags":
            return sorted(tag["name"] if isinstance(tag, dict) else str(tag) for tag in value)
        return value
