"""Built-in resource adapters, one module per Airflow object kind."""

from .connection import ConnectionData, ConnectionResource
from .dag import DagData, DagResource
from .dag_run import DagRunData, DagRunResource
from .pool import PoolData, PoolResource
from .role import RoleData, RoleResource
from .user import UserData, UserResource
from .variable import VariableData, VariableResource

BUILTIN_RESOURCES = (
    ConnectionResource,
    DagResource,
    DagRunResource,
    VariableResource,
    PoolResource,
    RoleResource,
    UserResource,
)

__all__ = [
    "BUILTIN_RESOURCES",
    "ConnectionData",
    "ConnectionResource",
    "DagData",
    "DagResource",
    "DagRunData",
    "DagRunResource",
    "PoolData",
    "PoolResource",
    "RoleData",
    "RoleResource",
    "UserData",
    "UserResource",
    "VariableData",
    "VariableResource",
]
