"""Resource adapter registry: kind name -> adapter class.

The registry supports three loading mechanisms:

1. **Built-in adapters**: the seven kinds in ``airflow_provider.resources``.

2. **Entry-point adapters** (for pip-installed packages)::

       # In a package's pyproject.toml:
       [project.entry-points."airflow_provider.resources"]
       airflow_xcom = "my_package.xcom:XComResource"

3. **Runtime registration**: programmatic via ``registry.register()``

The host entry point publishes ``registry.schemas()`` and routes every
resource call through ``registry.instantiate(kind, client)``.
"""
from __future__ import annotations

import logging
from importlib.metadata import entry_points
from typing import Any, Type

from .base import BaseResource
from .client import AuthenticatedClient

logger = logging.getLogger("airflow_provider.registry")

ENTRY_POINT_GROUP = "airflow_provider.resources"


class ResourceRegistry:
    """Registry of resource adapter classes, keyed by ``kind``."""

    def __init__(self):
        self._resources: dict[str, Type[BaseResource]] = {}
        self._discovered = False

    @property
    def resources(self) -> dict[str, Type[BaseResource]]:
        if not self._discovered:
            self.discover()
        return dict(self._resources)

    # ── Registration ──────────────────────────────────────────────────

    def register(self, resource_class: Type[BaseResource]) -> None:
        """
        Register an adapter class.

        Raises:
            TypeError: If not a BaseResource subclass.
            ValueError: If ``kind``, ``collection_path`` or ``key_field``
                is missing.
        """
        if not isinstance(resource_class, type) or not issubclass(resource_class, BaseResource):
            raise TypeError(f"{resource_class} is not a BaseResource subclass")

        if not (resource_class.kind and resource_class.collection_path and resource_class.key_field):
            raise ValueError(
                f"{resource_class.__name__} must set 'kind', 'collection_path' and 'key_field'"
            )

        kind = resource_class.kind
        existing = self._resources.get(kind)
        if existing is not None and existing is not resource_class:
            logger.warning(
                "Replacing resource adapter %s: %s → %s",
                kind,
                existing.__name__,
                resource_class.__name__,
            )

        self._resources[kind] = resource_class
        logger.debug("Registered resource adapter: %s (%s)", kind, resource_class.__name__)

    def unregister(self, kind: str) -> bool:
        """Remove an adapter from the registry. Returns True if it existed."""
        if kind in self._resources:
            del self._resources[kind]
            logger.debug("Unregistered resource adapter: %s", kind)
            return True
        return False

    # ── Discovery ─────────────────────────────────────────────────────

    def discover(self) -> None:
        """
        Load the built-in adapters and any entry-point adapters.

        Called automatically on first access to ``.resources``. Safe to
        call multiple times.
        """
        if self._discovered:
            return

        from .resources import BUILTIN_RESOURCES

        for resource_class in BUILTIN_RESOURCES:
            self.register(resource_class)
        self._discover_entrypoints()
        self._discovered = True

        logger.debug(
            "Resource discovery complete: %d adapters: %s",
            len(self._resources),
            ", ".join(sorted(self._resources)),
        )

    def _discover_entrypoints(self) -> None:
        for ep in entry_points(group=ENTRY_POINT_GROUP):
            try:
                obj = ep.load()
            except Exception:
                logger.exception("Failed to load entry-point resource adapter: %s", ep.name)
                continue

            if isinstance(obj, type) and issubclass(obj, BaseResource):
                self.register(obj)
            elif hasattr(obj, "__path__") or hasattr(obj, "__file__"):
                self.load_module(obj)
            else:
                logger.warning(
                    "Entry point %s resolved to %s which is not a BaseResource subclass",
                    ep.name,
                    obj,
                )

    def load_module(self, module) -> int:
        """Register every concrete BaseResource subclass found in ``module``."""
        count = 0
        for attr_name in dir(module):
            obj = getattr(module, attr_name)
            if (
                isinstance(obj, type)
                and issubclass(obj, BaseResource)
                and obj is not BaseResource
                and obj.kind
            ):
                self.register(obj)
                count += 1
        return count

    # ── Lookup ────────────────────────────────────────────────────────

    def get(self, kind: str) -> Type[BaseResource] | None:
        return self.resources.get(kind)

    def list_resources(self) -> list[dict[str, Any]]:
        """Return metadata about all registered adapters."""
        return [cls.metadata() for _, cls in sorted(self.resources.items())]

    def schemas(self) -> dict[str, dict[str, Any]]:
        """Return each registered kind's field schema."""
        return {kind: cls.schema() for kind, cls in sorted(self.resources.items())}

    def instantiate(self, kind: str, client: AuthenticatedClient) -> BaseResource:
        """
        Create the adapter for ``kind`` bound to the run's client.

        Raises:
            ValueError: If no adapter is registered for ``kind``.
        """
        cls = self.get(kind)
        if cls is None:
            available = ", ".join(sorted(self._resources)) or "(none)"
            raise ValueError(f"No resource adapter registered for {kind}. Available: {available}")
        return cls(client)

    def reset(self) -> None:
        """Clear the registry. Primarily for testing."""
        self._resources.clear()
        self._discovered = False


# Module-level singleton
registry = ResourceRegistry()
