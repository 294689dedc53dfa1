"""
Provider configuration.

The settings block declared by the host is overlaid on top of dynaconf's
environment loading, so every setting falls back to an ``AIRFLOW_``
prefixed environment variable when it is not declared:

    AIRFLOW_BASE_ENDPOINT             base_endpoint (required)
    AIRFLOW_OAUTH2_TOKEN              oauth2_token
    AIRFLOW_API_USERNAME              username
    AIRFLOW_API_PASSWORD              password
    AIRFLOW_X_API_KEY                 x_api_key
    AIRFLOW_DISABLE_SSL_VERIFICATION  disable_ssl_verification

Extra settings files (toml/yaml/json/ini/py, anything dynaconf reads) can
be listed in ``AIRFLOW_PROVIDER_SETTINGS_FILES``, separated by commas.
They load before the environment variables.

The resolved values end up in a frozen ``ProviderConfiguration`` whose
``validate()`` enforces the authentication rules, so nothing downstream
depends on dynaconf.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Mapping
from urllib.parse import urlparse

from dynaconf import Dynaconf, ValidationError, Validator

from .errors import ConfigurationError

logger = logging.getLogger("airflow_provider.settings")

ENVVAR_PREFIX = "AIRFLOW"
SETTINGS_FILES_ENVVAR = "AIRFLOW_PROVIDER_SETTINGS_FILES"


# ── Setting declarations ──────────────────────────────────────────────


@dataclass(frozen=True)
class SettingSpec:
    """One entry of the provider settings block."""

    name: str
    key: str
    type: str = "string"
    required: bool = False
    sensitive: bool = False
    default: Any = None
    description: str = ""
    conflicts_with: tuple[str, ...] = ()
    required_with: tuple[str, ...] = ()

    @property
    def env_var(self) -> str:
        return f"{ENVVAR_PREFIX}_{self.key}"


SETTINGS: tuple[SettingSpec, ...] = (
    SettingSpec(
        name="base_endpoint",
        key="BASE_ENDPOINT",
        required=True,
        description="Base URL of the Airflow webserver, e.g. https://airflow.example.com",
    ),
    SettingSpec(
        name="oauth2_token",
        key="OAUTH2_TOKEN",
        sensitive=True,
        description="The oauth to use for API authentication",
        conflicts_with=("username", "password", "x_api_key"),
    ),
    SettingSpec(
        name="username",
        key="API_USERNAME",
        description="The username to use for API basic authentication",
        conflicts_with=("oauth2_token", "x_api_key"),
        required_with=("password",),
    ),
    SettingSpec(
        name="password",
        key="API_PASSWORD",
        sensitive=True,
        description="The password to use for API basic authentication",
        conflicts_with=("oauth2_token", "x_api_key"),
        required_with=("username",),
    ),
    SettingSpec(
        name="x_api_key",
        key="X_API_KEY",
        sensitive=True,
        description="The API key to use for header (X-Api-Key) authentication",
        conflicts_with=("username", "password", "oauth2_token"),
    ),
    SettingSpec(
        name="disable_ssl_verification",
        key="DISABLE_SSL_VERIFICATION",
        type="bool",
        default=False,
        description="Disable SSL verification",
    ),
)

SETTINGS_BY_NAME = {spec.name: spec for spec in SETTINGS}


def _is_http_url(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


validators = [
    Validator(
        "BASE_ENDPOINT",
        must_exist=True,
        ne="",
        messages={
            "must_exist_true": "base_endpoint must be set (or AIRFLOW_BASE_ENDPOINT).",
            "operations": "base_endpoint must not be empty.",
        },
    ),
    Validator(
        "BASE_ENDPOINT",
        condition=_is_http_url,
        messages={"condition": "base_endpoint must be an absolute http or https URL, got {value!r}."},
    ),
    Validator(
        "DISABLE_SSL_VERIFICATION",
        default=False,
        is_type_of=bool,
        messages={"operations": "disable_ssl_verification must be a boolean, got {value!r}."},
    ),
]


# ── Typed configuration ───────────────────────────────────────────────


@dataclass(frozen=True)
class ProviderConfiguration:
    """
    Resolved provider settings for one run.

    Empty strings are treated as "not supplied" for every optional
    setting, matching how an unset environment variable behaves.
    """

    base_endpoint: str
    oauth2_token: str | None = None
    username: str | None = None
    password: str | None = field(default=None, repr=False)
    x_api_key: str | None = field(default=None, repr=False)
    disable_ssl_verification: bool = False

    def __post_init__(self):
        for name in ("oauth2_token", "username", "password", "x_api_key"):
            if getattr(self, name) == "":
                object.__setattr__(self, name, None)

    @property
    def auth_mode(self) -> str | None:
        """Name of the active authentication mode, or None for anonymous access."""
        if self.oauth2_token:
            return "oauth2"
        if self.username or self.password:
            return "basic"
        if self.x_api_key:
            return "api_key"
        return None

    def validate(self) -> "ProviderConfiguration":
        """
        Check the invariants that span several settings.

        Raises:
            ConfigurationError: on a bad endpoint, a half-specified basic
                auth pair, or more than one authentication mode.
        """
        if not _is_http_url(self.base_endpoint):
            raise ConfigurationError(
                f"invalid base_endpoint: {self.base_endpoint!r} is not an absolute http or https URL"
            )

        if self.username and not self.password:
            raise ConfigurationError("found username for basic auth, but password not specified")
        if self.password and not self.username:
            raise ConfigurationError("found password for basic auth, but username not specified")

        supplied = [
            name
            for name, present in (
                ("oauth2_token", bool(self.oauth2_token)),
                ("username/password", bool(self.username)),
                ("x_api_key", bool(self.x_api_key)),
            )
            if present
        ]
        if len(supplied) > 1:
            raise ConfigurationError(
                f"conflicting authentication settings: {', '.join(supplied)}; "
                f"configure at most one authentication mode"
            )
        return self


# ── Loading ───────────────────────────────────────────────────────────


def _settings_files() -> list[str]:
    raw = os.environ.get(SETTINGS_FILES_ENVVAR, "")
    return [path.strip() for path in raw.split(",") if path.strip()]


def _text_setting(settings: Dynaconf, declared: Mapping[str, Any], name: str) -> str | None:
    # dynaconf parses env values as toml, so "true" or "1_000" would lose their text
    spec = SETTINGS_BY_NAME[name]
    if declared.get(name) is not None:
        return str(declared[name])
    if spec.env_var in os.environ:
        return os.environ[spec.env_var]
    value = settings.get(spec.key)
    if value is None:
        return None
    return str(value)


def load_configuration(declared: Mapping[str, Any] | None = None) -> ProviderConfiguration:
    """
    Resolve the provider settings block into a ``ProviderConfiguration``.

    Args:
        declared: Settings declared by the host, keyed by setting name
            (``base_endpoint``, ``username``, ...). ``None`` values are
            ignored so that the environment fallback applies.

    Raises:
        ConfigurationError: on unknown settings, failed validation or
            conflicting authentication modes. Always raised before the
            first network call.
    """
    declared = dict(declared or {})
    unknown = sorted(set(declared) - set(SETTINGS_BY_NAME))
    if unknown:
        raise ConfigurationError(f"unknown provider settings: {', '.join(unknown)}")

    settings = Dynaconf(
        envvar_prefix=ENVVAR_PREFIX,
        settings_files=_settings_files(),
        environments=False,
        load_dotenv=False,
    )
    for name, value in declared.items():
        if value is not None:
            settings.set(SETTINGS_BY_NAME[name].key, value)

    settings.validators.register(*validators)
    try:
        settings.validators.validate()
    except ValidationError as exc:
        raise ConfigurationError(str(exc)) from exc

    config = ProviderConfiguration(
        base_endpoint=str(settings.get("BASE_ENDPOINT")),
        oauth2_token=_text_setting(settings, declared, "oauth2_token"),
        username=_text_setting(settings, declared, "username"),
        password=_text_setting(settings, declared, "password"),
        x_api_key=_text_setting(settings, declared, "x_api_key"),
        disable_ssl_verification=bool(settings.get("DISABLE_SSL_VERIFICATION", False)),
    ).validate()

    logger.debug(
        "Resolved provider configuration: endpoint=%s auth=%s ssl_verification=%s",
        config.base_endpoint,
        config.auth_mode or "none",
        not config.disable_ssl_verification,
    )
    return config
