"""Base classes and data contracts for Airflow resource adapters.

Every resource kind (variable, connection, DAG, ...) is one subclass of
``BaseResource`` that only declares a small table: the endpoint family,
the natural key, which fields are required, immutable, computed or
write-only, and how a few fields map onto the wire. The create / read /
update / delete / import behaviour is implemented once, here.

Each kind also has a ``ResourceData`` dataclass record. A record field
set to ``None`` was *omitted*; anything else, including ``""``, ``0``,
``False`` and ``[]``, was *explicitly set*. That distinction drives the
update payload: omitted optional fields are sent as the kind's "cleared"
value, explicit values are sent as given.

Contract with the orchestration host:
    - ``create()`` assigns ``data.id`` (the opaque ID) and refreshes
    - ``read()`` clears ``data.id`` when the remote object is gone
    - ``update()`` patches the remote object and refreshes
    - ``delete()`` tolerates an already-absent object
    - ``import_state()`` rebuilds a record from nothing but the opaque ID
"""
from __future__ import annotations

import dataclasses
import logging
from abc import ABC
from dataclasses import dataclass
from typing import Any, ClassVar, Mapping

import requests

from .client import AuthenticatedClient, quote_segment
from .errors import APIError, ConfigurationError, NotFoundRecoverable, TransportError


# ── Data contract ─────────────────────────────────────────────────────


@dataclass
class ResourceData:
    """
    Typed state of one declared resource.

    ``id`` is the opaque identifier assigned at creation; an empty string
    means the object does not exist (yet, or any more).
    """

    id: str = ""

    @classmethod
    def field_names(cls) -> list[str]:
        return [f.name for f in dataclasses.fields(cls) if f.name != "id"]

    @classmethod
    def from_dict(cls, values: Mapping[str, Any] | None) -> "ResourceData":
        """
        Build a record from a host-supplied mapping.

        Raises:
            ConfigurationError: if the mapping names a field this kind
                does not have.
        """
        values = dict(values or {})
        known = {f.name for f in dataclasses.fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ConfigurationError(
                f"unsupported argument(s) for {cls.__name__}: {', '.join(unknown)}"
            )
        if values.get("id") is None:
            values.pop("id", None)
        return cls(**values)

    def is_set(self, name: str) -> bool:
        """True when ``name`` was explicitly given a value, even an empty one."""
        return getattr(self, name) is not None

    def as_dict(self) -> dict[str, Any]:
        return dataclasses.asdict(self)


# ── Generic adapter ───────────────────────────────────────────────────


class BaseResource(ABC):
    """
    Generic CRUD adapter parameterized by a per-kind table.

    Subclasses must set:
        - ``kind``             host-facing name, e.g. ``airflow_variable``
        - ``display_name``     used in messages, e.g. ``variable``
        - ``data_class``       the ``ResourceData`` subclass for this kind
        - ``collection_path``  e.g. ``/variables``
        - ``key_field``        field holding the natural key

    Optional table entries:
        - ``required_fields`` / ``immutable_fields`` / ``computed_fields``
        - ``write_only_fields``   never returned by Airflow; kept as declared
        - ``sensitive_fields``    flagged in the schema, never logged
        - ``path_fields``         part of the URL, not of the request body
        - ``update_fields``       fields sent on update (default: all body fields)
        - ``cleared_values``      wire value for an omitted optional field on update
        - ``null_values``         record value for a ``null`` returned by Airflow
        - ``field_types``         schema type per field (default ``string``)
        - ``wire_names``          record field -> JSON attribute, when they differ

    Optional hook overrides:
        - ``encode_field()`` / ``decode_field()``  wire shape of one field
        - ``resource_id()`` / ``parse_id()``       opaque ID <-> key fields
        - ``create_request()`` / ``update_request()``
    """

    # ── Subclass must set these ───────────────────────────────────────
    kind: ClassVar[str] = ""
    display_name: ClassVar[str] = ""
    data_class: ClassVar[type[ResourceData]] = ResourceData
    collection_path: ClassVar[str] = ""
    key_field: ClassVar[str] = ""

    # ── Field table ───────────────────────────────────────────────────
    required_fields: ClassVar[tuple[str, ...]] = ()
    immutable_fields: ClassVar[tuple[str, ...]] = ()
    computed_fields: ClassVar[tuple[str, ...]] = ()
    write_only_fields: ClassVar[tuple[str, ...]] = ()
    sensitive_fields: ClassVar[tuple[str, ...]] = ()
    path_fields: ClassVar[tuple[str, ...]] = ()
    update_fields: ClassVar[tuple[str, ...] | None] = None
    cleared_values: ClassVar[dict[str, Any]] = {}
    null_values: ClassVar[dict[str, Any]] = {}
    field_types: ClassVar[dict[str, str]] = {}
    wire_names: ClassVar[dict[str, str]] = {}

    def __init__(self, client: AuthenticatedClient):
        self.client = client
        self.logger = logging.getLogger(f"airflow_provider.resources.{self.kind}")

    # ── Table helpers ─────────────────────────────────────────────────

    @classmethod
    def declared_fields(cls) -> list[str]:
        return [name for name in cls.data_class.field_names() if name not in cls.computed_fields]

    @classmethod
    def body_fields(cls) -> list[str]:
        return [name for name in cls.declared_fields() if name not in cls.path_fields]

    @classmethod
    def schema(cls) -> dict[str, Any]:
        """Describe this kind's fields for the host."""
        fields = {}
        for name in cls.data_class.field_names():
            computed = name in cls.computed_fields
            fields[name] = {
                "type": cls.field_types.get(name, "string"),
                "required": name in cls.required_fields,
                "optional": not computed and name not in cls.required_fields,
                "computed": computed,
                "force_new": name in cls.immutable_fields,
                "sensitive": name in cls.sensitive_fields,
            }
        return {
            "display_name": cls.display_name,
            "key_field": cls.key_field,
            "importable": True,
            "fields": fields,
        }

    @classmethod
    def metadata(cls) -> dict[str, Any]:
        return {
            "kind": cls.kind,
            "display_name": cls.display_name,
            "collection_path": cls.collection_path,
            "class": f"{cls.__module__}.{cls.__name__}",
        }

    # ── Hooks ─────────────────────────────────────────────────────────

    def resource_id(self, data: ResourceData, payload: Mapping[str, Any] | None = None) -> str:
        """Opaque ID for ``data``; ``payload`` is the create response, when there is one."""
        value = getattr(data, self.key_field)
        if value is None and payload:
            value = payload.get(self.wire_names.get(self.key_field, self.key_field))
        return "" if value is None else str(value)

    def parse_id(self, resource_id: str) -> dict[str, Any]:
        """Split an opaque ID into the key fields it encodes."""
        return {self.key_field: resource_id}

    def item_path(self, resource_id: str) -> str:
        return f"{self.collection_path}/{quote_segment(resource_id)}"

    def describe(self, data: ResourceData) -> str:
        """Key shown in error messages."""
        return data.id or self.resource_id(data) or "<unknown>"

    def encode_field(self, name: str, value: Any) -> Any:
        if value is not None and self.field_types.get(name) == "int":
            try:
                return int(value)
            except (TypeError, ValueError) as exc:
                raise ConfigurationError(
                    f"{self.display_name}: {name} must be an integer, got {value!r}"
                ) from exc
        return value

    def decode_field(self, name: str, value: Any) -> Any:
        return value

    def payload(self, data: ResourceData, fields, clear_omitted: bool) -> dict[str, Any]:
        """Build a request body from ``fields`` of ``data``."""
        body: dict[str, Any] = {}
        for name in fields:
            value = getattr(data, name)
            if value is None:
                if not clear_omitted:
                    continue
                value = self.cleared_values.get(name)
            body[self.wire_names.get(name, name)] = self.encode_field(name, value)
        return body

    def create_request(self, data: ResourceData) -> tuple[str, str, dict | None, dict]:
        """Return ``(method, path, params, body)`` for a create call."""
        return "POST", self.collection_path, None, self.payload(data, self.body_fields(), clear_omitted=False)

    def update_request(self, data: ResourceData) -> tuple[str, str, dict | None, dict] | None:
        """
        Return ``(method, path, params, body)`` for an update call.

        ``None`` means there is nothing updatable; the update then only
        refreshes the record.
        """
        fields = self.update_fields if self.update_fields is not None else self.body_fields()
        if not fields:
            return None
        return "PATCH", self.item_path(data.id), None, self.payload(data, fields, clear_omitted=True)

    def apply_response(self, data: ResourceData, payload: Mapping[str, Any]) -> ResourceData:
        """Overwrite every tracked field of ``data`` from the remote object."""
        for name in self.data_class.field_names():
            if name in self.write_only_fields:
                continue
            value = payload.get(self.wire_names.get(name, name))
            if value is None:
                value = self.null_values.get(name)
            else:
                value = self.decode_field(name, value)
            setattr(data, name, value)
        return data

    # ── Operations ────────────────────────────────────────────────────

    def create(self, data: ResourceData) -> ResourceData:
        """
        Create the remote object, assign ``data.id`` and refresh.

        Raises:
            ConfigurationError: if a required field is missing.
            APIError: on any non-2xx response.
            TransportError: if Airflow could not be reached.
        """
        self._check_required(data)
        method, path, params, body = self.create_request(data)
        key = self.describe(data)
        self.logger.info("Creating %s `%s`", self.display_name, key)
        response = self._send("create", key, method, path, params=params, json=body)
        if not response.ok:
            raise APIError.from_response("create", self.display_name, key, response)

        data.id = self.resource_id(data, _json_or_empty(response))
        return self.read(data)

    def read(self, data: ResourceData) -> ResourceData:
        """
        Refresh ``data`` from Airflow.

        A 404 clears ``data.id`` and returns normally; the host treats
        that as "object removed outside of its control".
        """
        if not data.id:
            return data
        try:
            return self._fetch(data, "read")
        except NotFoundRecoverable:
            self.logger.info(
                "%s `%s` no longer exists in Airflow; clearing it from state",
                self.display_name, data.id,
            )
            data.id = ""
            return data

    def update(self, data: ResourceData) -> ResourceData:
        """Patch the remote object from the declared fields and refresh."""
        if not data.id:
            raise ConfigurationError(f"cannot update {self.display_name} without an ID")
        self._fill_from_id(data)
        self._check_required(data)

        request = self.update_request(data)
        if request is not None:
            method, path, params, body = request
            self.logger.info("Updating %s `%s`", self.display_name, data.id)
            response = self._send("update", data.id, method, path, params=params, json=body)
            if not response.ok:
                raise APIError.from_response("update", self.display_name, data.id, response)
        return self.read(data)

    def delete(self, data: ResourceData) -> ResourceData:
        """Delete the remote object; an already-absent object is a success."""
        if not data.id:
            return data
        self.logger.info("Deleting %s `%s`", self.display_name, data.id)
        response = self._send("delete", data.id, "DELETE", self.item_path(data.id))
        if response.status_code == 404:
            self.logger.debug("%s `%s` was already absent", self.display_name, data.id)
        elif not response.ok:
            raise APIError.from_response("delete", self.display_name, data.id, response)
        data.id = ""
        return data

    def import_state(self, resource_id: str) -> ResourceData:
        """
        Build a record from an externally supplied opaque ID.

        Raises:
            ConfigurationError: if the ID is empty or malformed.
            APIError: if the object does not exist or cannot be read.
        """
        resource_id = (resource_id or "").strip()
        if not resource_id:
            raise ConfigurationError(f"cannot import {self.display_name}: empty ID")
        data = self.data_class(id=resource_id)
        self._fill_from_id(data)
        try:
            return self._fetch(data, "import")
        except NotFoundRecoverable as exc:
            raise APIError("import", self.display_name, resource_id, 404, "Not Found", str(exc)) from exc

    # ── Internals ─────────────────────────────────────────────────────

    def _fetch(self, data: ResourceData, operation: str) -> ResourceData:
        response = self._send(operation, data.id, "GET", self.item_path(data.id))
        if response.status_code == 404:
            raise NotFoundRecoverable(self.display_name, data.id)
        if not response.ok:
            raise APIError.from_response(operation, self.display_name, data.id, response)
        return self.apply_response(data, _json_or_empty(response))

    def _send(self, operation: str, key: str, method: str, path: str, **kwargs) -> requests.Response:
        try:
            return self.client.request(method, path, **kwargs)
        except TransportError as exc:
            raise exc.with_context(operation, self.display_name, key) from exc.cause

    def _fill_from_id(self, data: ResourceData) -> None:
        for name, value in self.parse_id(data.id).items():
            current = getattr(data, name)
            if current is None:
                setattr(data, name, value)
            elif name in self.immutable_fields and str(current) != str(value):
                raise ConfigurationError(
                    f"{self.display_name} `{data.id}`: {name} cannot change from "
                    f"{value!r} to {current!r} without replacing the resource"
                )

    def _check_required(self, data: ResourceData) -> None:
        missing = [name for name in self.required_fields if getattr(data, name) is None]
        if missing:
            raise ConfigurationError(
                f"{self.display_name} `{self.describe(data)}`: missing required argument(s): "
                f"{', '.join(missing)}"
            )


def _json_or_empty(response: requests.Response) -> dict[str, Any]:
    if not response.content:
        return {}
    try:
        payload = response.json()
    except ValueError:
        return {}
    return payload if isinstance(payload, dict) else {}
