"""Airflow DAG runs (``/dags/{dag_id}/dagRuns``)."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from ..base import BaseResource, ResourceData
from ..client import quote_segment
from ..errors import ConfigurationError

ID_SEPARATOR = ":"
SETTABLE_STATES = ("queued", "success", "failed")


@dataclass
class DagRunData(ResourceData):
    dag_id: str | None = None
    dag_run_id: str | None = None
    conf: dict[str, Any] | None = None
    state: str | None = None
    logical_date: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    external_trigger: bool | None = None


class DagRunResource(BaseResource):
    """
    A triggered run of a DAG.

    The opaque ID is ``<dag_id>:<dag_run_id>``. DAG IDs cannot contain a
    colon, run IDs can, so the ID splits on the first one. When no
    ``dag_run_id`` is declared Airflow generates one and it is taken from
    the create response.

    Only ``state`` can change after creation; Airflow accepts
    ``queued``, ``success`` and ``failed``.
    """

    kind = "airflow_dag_run"
    display_name = "DAG run"
    data_class = DagRunData
    collection_path = "/dags/{dag_id}/dagRuns"
    key_field = "dag_run_id"

    required_fields = ("dag_id",)
    immutable_fields = ("dag_id", "dag_run_id", "conf")
    computed_fields = ("logical_date", "start_date", "end_date", "external_trigger")
    path_fields = ("dag_id",)
    update_fields = ("state",)
    field_types = {"conf": "map", "external_trigger": "bool"}

    # ── ID handling ───────────────────────────────────────────────────

    def resource_id(self, data: DagRunData, payload: Mapping[str, Any] | None = None) -> str:
        run_id = data.dag_run_id
        if run_id is None and payload:
            run_id = payload.get("dag_run_id")
        if not data.dag_id or not run_id:
            return ""
        return f"{data.dag_id}{ID_SEPARATOR}{run_id}"

    def parse_id(self, resource_id: str) -> dict[str, Any]:
        dag_id, sep, run_id = resource_id.partition(ID_SEPARATOR)
        if not sep or not dag_id or not run_id:
            raise ConfigurationError(
                f"invalid DAG run ID {resource_id!r}, expected <dag_id>{ID_SEPARATOR}<dag_run_id>"
            )
        return {"dag_id": dag_id, "dag_run_id": run_id}

    def item_path(self, resource_id: str) -> str:
        parts = self.parse_id(resource_id)
        return f"/dags/{quote_segment(parts['dag_id'])}/dagRuns/{quote_segment(parts['dag_run_id'])}"

    def describe(self, data: DagRunData) -> str:
        if data.id:
            return data.id
        return f"{data.dag_id or '<unknown>'}{ID_SEPARATOR}{data.dag_run_id or '<generated>'}"

    # ── Requests ──────────────────────────────────────────────────────

    def create_request(self, data: DagRunData):
        body = self.payload(data, ("dag_run_id", "conf"), clear_omitted=False)
        return "POST", f"/dags/{quote_segment(data.dag_id)}/dagRuns", None, body

    def update_request(self, data: DagRunData):
        if data.state is None:
            return None
        self._check_state(data.state)
        return "PATCH", self.item_path(data.id), None, {"state": data.state}

    def create(self, data: DagRunData) -> DagRunData:
        desired_state = data.state
        if desired_state is not None:
            self._check_state(desired_state)
        data = super().create(data)
        if desired_state is not None and data.id and data.state != desired_state:
            data.state = desired_state
            data = self.update(data)
        return data

    def apply_response(self, data: DagRunData, payload: Mapping[str, Any]) -> DagRunData:
        # Airflow < 2.2 reports the logical date as execution_date
        if "logical_date" not in payload and "execution_date" in payload:
            payload = {**payload, "logical_date": payload["execution_date"]}
        return super().apply_response(data, payload)

    def _check_state(self, state: str) -> None:
        if state not in SETTABLE_STATES:
            raise ConfigurationError(
                f"invalid DAG run state {state!r}, expected one of {', '.join(SETTABLE_STATES)}"
            )
