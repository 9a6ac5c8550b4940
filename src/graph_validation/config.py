"""Service configuration.

This module centralizes process-wide settings: the target graph, the SPARQL
endpoint, the resource namespace for new records, and the knobs of the error
recorder and orchestrator.

Settings are read once at startup from an optional YAML file and then from the
environment (environment wins), and the resulting ``ServiceConfig`` is passed
explicitly to every component that needs it.

Environment variables:
    - MU_APPLICATION_GRAPH: graph all records are written to (required)
    - MU_SPARQL_ENDPOINT: SPARQL query/update endpoint
    - VALIDATION_RESOURCE_BASE: IRI prefix for executions, validations and errors
    - VALIDATION_ERROR_BATCH_SIZE: records per bulk error write
    - VALIDATION_MAX_CONCURRENCY: cap on simultaneous rule evaluations (0 = unbounded)
    - VALIDATION_RULES: path to the rule catalog (YAML file or python module)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from graph_validation.core.exceptions import ConfigurationError

# ============================================================================
# DEFAULTS
# ============================================================================

DEFAULT_SPARQL_ENDPOINT = "http://database:8890/sparql"
DEFAULT_RESOURCE_BASE = "http://mu.semte.ch/services/validation-service/"
DEFAULT_RULES_PATH = "config/validations.yaml"

# Bulk error writes are split so a single INSERT DATA stays within the
# payload limits of the store.
ERROR_BATCH_SIZE = 250

REQUEST_TIMEOUT_SEC = 60.0

# Header the mu-authorization layer honours for privileged writes.
SUDO_HEADER = "mu-auth-sudo"


@dataclass(frozen=True)
class ServiceConfig:
    """Process-wide settings, fixed at startup.

    Attributes:
        application_graph: Graph IRI holding executions, validations and errors.
        sparql_endpoint: URL of the SPARQL endpoint.
        resource_base: IRI prefix for newly created records (ends with "/").
        error_batch_size: Maximum error records per bulk write.
        max_concurrency: Maximum rules evaluated at once; None means unbounded.
        request_timeout: Timeout in seconds for each store request.
        rules_path: Location of the rule catalog.
    """

    application_graph: str
    sparql_endpoint: str = DEFAULT_SPARQL_ENDPOINT
    resource_base: str = DEFAULT_RESOURCE_BASE
    error_batch_size: int = ERROR_BATCH_SIZE
    max_concurrency: Optional[int] = None
    request_timeout: float = REQUEST_TIMEOUT_SEC
    rules_path: str = DEFAULT_RULES_PATH

    def __post_init__(self) -> None:
        """Validate field constraints."""
        if not self.application_graph:
            raise ConfigurationError("application_graph must be set (MU_APPLICATION_GRAPH)")
        if self.error_batch_size < 1:
            raise ConfigurationError(
                f"error_batch_size must be positive, got {self.error_batch_size}"
            )
        if self.max_concurrency is not None and self.max_concurrency < 1:
            raise ConfigurationError(
                f"max_concurrency must be positive or unset, got {self.max_concurrency}"
            )
        if not self.resource_base.endswith("/"):
            object.__setattr__(self, "resource_base", self.resource_base + "/")

    def resource_uri(self, kind: str, identifier: str) -> str:
        """Build the IRI of a new record, e.g. ``.../executions/<id>``."""
        return f"{self.resource_base}{kind}/{identifier}"


_ENV_KEYS = {
    "MU_APPLICATION_GRAPH": "application_graph",
    "MU_SPARQL_ENDPOINT": "sparql_endpoint",
    "VALIDATION_RESOURCE_BASE": "resource_base",
    "VALIDATION_ERROR_BATCH_SIZE": "error_batch_size",
    "VALIDATION_MAX_CONCURRENCY": "max_concurrency",
    "VALIDATION_RULES": "rules_path",
}

_INT_FIELDS = {"error_batch_size", "max_concurrency"}


def _coerce(key: str, value: Any) -> Any:
    if key in _INT_FIELDS:
        try:
            number = int(value)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"{key} must be an integer, got {value!r}") from e
        if key == "max_concurrency" and number == 0:
            return None
        return number
    if key == "request_timeout":
        return float(value)
    return str(value)


def _read_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file must contain a mapping: {path}")
    return data.get("service", data)


def load_config(
    path: Optional[Path] = None, environ: Optional[Mapping[str, str]] = None
) -> ServiceConfig:
    """Load the service configuration.

    Args:
        path: Optional YAML file; keys match ``ServiceConfig`` field names and
            may be nested under a top-level ``service`` key.
        environ: Environment mapping, defaults to ``os.environ``.

    Returns:
        The resolved configuration.

    Raises:
        FileNotFoundError: If ``path`` is given but does not exist.
        ConfigurationError: If a value is invalid or the graph is missing.

    Examples:
        >>> cfg = load_config(environ={"MU_APPLICATION_GRAPH": "http://mu.semte.ch/graphs/public"})
        >>> cfg.error_batch_size
        250
    """
    env = os.environ if environ is None else environ
    values: Dict[str, Any] = {}

    if path is not None:
        known = set(ServiceConfig.__dataclass_fields__)
        for key, value in _read_yaml(Path(path)).items():
            key = str(key).replace("-", "_")
            if key not in known:
                raise ConfigurationError(f"Unknown config key: {key}")
            if value is not None:
                values[key] = _coerce(key, value)

    for env_key, field_name in _ENV_KEYS.items():
        raw = env.get(env_key)
        if raw not in (None, ""):
            values[field_name] = _coerce(field_name, raw)

    if "application_graph" not in values:
        raise ConfigurationError("application_graph must be set (MU_APPLICATION_GRAPH)")
    return ServiceConfig(**values)


def with_overrides(config: ServiceConfig, **overrides: Any) -> ServiceConfig:
    """Return a copy of ``config`` with non-None overrides applied."""
    return replace(config, **{k: v for k, v in overrides.items() if v is not None})


__all__ = [
    "ServiceConfig",
    "load_config",
    "with_overrides",
    "ERROR_BATCH_SIZE",
    "SUDO_HEADER",
]
