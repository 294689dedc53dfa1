"""
Host entry point: schema declaration and the plugin serving loop.

The orchestration host talks to this process with one JSON object per
line. Requests carry an ``id`` echoed back in the response::

    -> {"id": 1, "method": "Configure", "params": {"config": {"base_endpoint": "..."}}}
    <- {"id": 1, "result": {"base_url": "https://.../api/v1", "auth_mode": "basic"}}

    -> {"id": 2, "method": "Create", "params": {"type": "airflow_variable",
                                                "config": {"key": "foo", "value": "bar"}}}
    <- {"id": 2, "result": {"id": "foo", "state": {...}}}

    -> {"id": 3, "method": "Read", "params": {"type": "airflow_variable", "id": "foo"}}
    <- {"id": 3, "error": {"kind": "APIError", "message": "...", "status": 403, ...}}

Methods: GetSchema, Configure, Create, Read, Update, Delete, ImportState,
Stop. The first line written is a handshake naming the protocol.
"""
from __future__ import annotations

import json
import logging
import os
import socket
from typing import Any, Callable, TextIO

from .base import BaseResource
from .client import AuthenticatedClient
from .errors import AirflowProviderError, ConfigurationError
from .registry import ResourceRegistry, registry as default_registry
from .settings import SETTINGS, load_configuration

logger = logging.getLogger("airflow_provider.server")

PROVIDER_ADDRESS = "registry.terraform.io/halter/airflow"
PROTOCOL_NAME = "airflow-provider"
PROTOCOL_VERSION = 1
REATTACH_ENVVAR = "AIRFLOW_PROVIDER_REATTACH"


class ProtocolError(AirflowProviderError):
    """A request the serving loop cannot understand."""

    kind = "ProtocolError"


def provider_schema(resource_registry: ResourceRegistry | None = None) -> dict[str, Any]:
    """Return the provider settings schema and every resource kind's schema."""
    resource_registry = resource_registry or default_registry
    settings = {}
    for spec in SETTINGS:
        settings[spec.name] = {
            "type": spec.type,
            "required": spec.required,
            "optional": not spec.required,
            "sensitive": spec.sensitive,
            "default": spec.default,
            "env_var": spec.env_var,
            "description": spec.description,
            "conflicts_with": list(spec.conflicts_with),
            "required_with": list(spec.required_with),
        }
    return {
        "address": PROVIDER_ADDRESS,
        "provider": {"settings": settings},
        "resources": resource_registry.schemas(),
    }


def handshake(transport: str) -> dict[str, Any]:
    return {
        "protocol": PROTOCOL_NAME,
        "version": PROTOCOL_VERSION,
        "address": PROVIDER_ADDRESS,
        "transport": transport,
    }


class PluginServer:
    """
    Dispatches host requests to the configuration and resource adapters.

    Args:
        resource_registry: Where resource kinds are looked up.
        client_factory: Builds the run's client from the configuration;
            tests swap it for one bound to a fake Airflow.
    """

    def __init__(
        self,
        resource_registry: ResourceRegistry | None = None,
        client_factory: Callable[..., AuthenticatedClient] = AuthenticatedClient.from_configuration,
    ):
        self.registry = resource_registry or default_registry
        self.client_factory = client_factory
        self.client: AuthenticatedClient | None = None
        self.stopped = False
        self._handlers = {
            "GetSchema": self._get_schema,
            "Configure": self._configure,
            "Create": self._create,
            "Read": self._read,
            "Update": self._update,
            "Delete": self._delete,
            "ImportState": self._import_state,
            "Stop": self._stop,
        }

    # ── Dispatch ──────────────────────────────────────────────────────

    def handle(self, request: Any) -> dict[str, Any]:
        """Handle one decoded request and return the response object."""
        request_id = request.get("id") if isinstance(request, dict) else None
        try:
            if not isinstance(request, dict):
                raise ProtocolError("request must be a JSON object")
            method = request.get("method")
            handler = self._handlers.get(method)
            if handler is None:
                raise ProtocolError(f"unknown method {method!r}")
            params = request.get("params") or {}
            if not isinstance(params, dict):
                raise ProtocolError("params must be a JSON object")
            result = handler(params)
        except AirflowProviderError as exc:
            logger.debug("Request %s failed: %s", request_id, exc)
            return {"id": request_id, "error": exc.as_diagnostic()}
        except Exception as exc:
            logger.exception("Unexpected error handling request %s", request_id)
            return {"id": request_id, "error": {"kind": "InternalError", "message": str(exc)}}
        return {"id": request_id, "result": result}

    def handle_line(self, line: str) -> dict[str, Any] | None:
        """Decode and handle one protocol line; blank lines are ignored."""
        if not line.strip():
            return None
        try:
            request = json.loads(line)
        except ValueError as exc:
            return {"id": None, "error": ProtocolError(f"malformed JSON request: {exc}").as_diagnostic()}
        return self.handle(request)

    def serve(self, reader: TextIO, writer: TextIO) -> None:
        """Answer requests from ``reader`` until EOF or a ``Stop`` request."""
        for line in reader:
            response = self.handle_line(line)
            if response is not None:
                writer.write(json.dumps(response, default=str) + "\n")
                writer.flush()
            if self.stopped:
                break

    def serve_stdio(self, stdin: TextIO, stdout: TextIO) -> None:
        stdout.write(json.dumps(handshake("stdio")) + "\n")
        stdout.flush()
        self.serve(stdin, stdout)

    def serve_debug(self, announce: TextIO, host: str = "127.0.0.1", port: int = 0) -> None:
        """
        Serve over a local TCP socket so a debugger-run process can be attached.

        Prints ``AIRFLOW_PROVIDER_REATTACH=<json>`` with the address to
        ``announce``; the host connects there instead of spawning the
        plugin. Connections are served one after another until ``Stop``.
        """
        with socket.create_server((host, port)) as listener:
            bound_host, bound_port = listener.getsockname()[:2]
            info = {**handshake("tcp"), "addr": f"{bound_host}:{bound_port}", "pid": os.getpid()}
            announce.write(f"{REATTACH_ENVVAR}={json.dumps(info)}\n")
            announce.flush()
            logger.info("Debug server listening on %s:%s", bound_host, bound_port)

            while not self.stopped:
                conn, peer = listener.accept()
                logger.debug("Host attached from %s:%s", *peer[:2])
                with conn, conn.makefile("r", encoding="utf-8") as reader, \
                        conn.makefile("w", encoding="utf-8") as writer:
                    self.serve(reader, writer)

    # ── Handlers ──────────────────────────────────────────────────────

    def _get_schema(self, params):
        return provider_schema(self.registry)

    def _configure(self, params):
        if self.client is not None:
            self.client.close()
        config = load_configuration(params.get("config") or {})
        self.client = self.client_factory(config)
        logger.info("Configured provider for %s", self.client.base_url)
        return {"base_url": self.client.base_url, "auth_mode": config.auth_mode}

    def _create(self, params):
        adapter = self._adapter(params)
        data = adapter.data_class.from_dict(params.get("config"))
        data.id = ""
        return _state(adapter.create(data))

    def _read(self, params):
        adapter = self._adapter(params)
        data = adapter.data_class.from_dict(params.get("state"))
        data.id = _require_id(params)
        return _state(adapter.read(data))

    def _update(self, params):
        adapter = self._adapter(params)
        data = adapter.data_class.from_dict(params.get("config"))
        data.id = _require_id(params)
        return _state(adapter.update(data))

    def _delete(self, params):
        adapter = self._adapter(params)
        data = adapter.data_class.from_dict(params.get("state"))
        data.id = _require_id(params)
        return _state(adapter.delete(data))

    def _import_state(self, params):
        adapter = self._adapter(params)
        return _state(adapter.import_state(_require_id(params)))

    def _stop(self, params):
        self.stopped = True
        if self.client is not None:
            self.client.close()
        return {}

    def _adapter(self, params) -> BaseResource:
        if self.client is None:
            raise ConfigurationError("provider is not configured; send Configure first")
        kind = params.get("type")
        if not kind:
            raise ProtocolError("missing resource type")
        try:
            return self.registry.instantiate(kind, self.client)
        except ValueError as exc:
            raise ProtocolError(str(exc)) from exc


def _require_id(params) -> str:
    resource_id = params.get("id")
    if not isinstance(resource_id, str):
        raise ProtocolError("missing resource id")
    return resource_id


def _state(data) -> dict[str, Any]:
    state = data.as_dict()
    return {"id": state.pop("id"), "state": state}
