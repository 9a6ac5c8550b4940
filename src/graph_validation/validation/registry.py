"""Validation rule catalog.

The catalog is static configuration, loaded once at startup from either:

- a YAML file (``config/validations.yaml``) with one entry per rule:

    ```yaml
    validations:
      - name: mandate-without-start
        description: Every mandate has a start date
        type: select
        query: |
          SELECT ?s WHERE { ?s a mandaat:Mandataris . FILTER NOT EXISTS { ?s mandaat:start ?start } }
        message_template: "Mandate {s} has no start date"
        validation_sets:
          - http://data.lblod.info/id/validation-set/mandatendatabank
    ```

  ``message`` is a fixed text; ``message_template`` is a ``str.format`` template
  over the row's variables. Exactly one of the two is required.

- a Python module exposing ``VALIDATIONS``, a list of rule objects. Use this
  when messages need real functions.
"""

from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence

import yaml

from graph_validation.core.exceptions import ConfigurationError
from .messages import StaticMessage, TemplatedMessage
from .rules import AskRule, SelectRule, ValidationRule

logger = logging.getLogger(__name__)

RULE_TYPES = {
    "select": SelectRule,
    "ask": AskRule,
}


def _rule_from_entry(entry: Dict[str, Any], position: int) -> ValidationRule:
    """Build one rule from a YAML catalog entry."""
    if not isinstance(entry, dict):
        raise ConfigurationError(f"Validation #{position} must be a mapping")
    name = str(entry.get("name") or "")
    rule_type = str(entry.get("type", "select")).lower()
    if rule_type not in RULE_TYPES:
        raise ConfigurationError(
            f"Validation '{name or position}' has unknown type '{rule_type}'. "
            f"Valid types: {', '.join(RULE_TYPES)}"
        )

    has_static = entry.get("message") is not None
    has_template = entry.get("message_template") is not None
    if has_static == has_template:
        raise ConfigurationError(
            f"Validation '{name or position}' needs exactly one of 'message' or 'message_template'"
        )
    message = (
        StaticMessage(str(entry["message"]))
        if has_static
        else TemplatedMessage.from_template(str(entry["message_template"]))
    )

    sets = entry.get("validation_sets") or []
    if isinstance(sets, str):
        sets = [sets]
    try:
        return RULE_TYPES[rule_type](
            name=name,
            description=str(entry.get("description") or ""),
            query=str(entry.get("query") or ""),
            message=message,
            validation_sets=tuple(str(s) for s in sets),
        )
    except ValueError as e:
        raise ConfigurationError(f"Validation #{position}: {e}") from e


class RuleCatalog:
    """The configured validation rules, in configuration order."""

    def __init__(self, rules: Iterable[ValidationRule]) -> None:
        self._rules: List[ValidationRule] = list(rules)
        self._check_rules(self._rules)

    @staticmethod
    def _check_rules(rules: Sequence[ValidationRule]) -> None:
        seen = set()
        for position, rule in enumerate(rules, start=1):
            if not getattr(rule, "name", None) or not getattr(rule, "description", None):
                raise ConfigurationError(
                    f"Validation #{position} must define a name and a description"
                )
            if rule.name in seen:
                raise ConfigurationError(f"Duplicate validation name: {rule.name}")
            seen.add(rule.name)

    @classmethod
    def from_yaml(cls, path: Path) -> "RuleCatalog":
        """Load rules from a YAML catalog file."""
        if not path.exists():
            raise FileNotFoundError(f"Validations file not found: {path}")
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        entries = data.get("validations", []) if isinstance(data, dict) else data
        return cls(_rule_from_entry(e, i) for i, e in enumerate(entries or [], start=1))

    @classmethod
    def from_module(cls, module_name: str) -> "RuleCatalog":
        """Load rules from the ``VALIDATIONS`` list of an importable module."""
        try:
            module = importlib.import_module(module_name)
        except ImportError as e:
            raise ConfigurationError(f"Cannot import rules module '{module_name}': {e}") from e
        rules = getattr(module, "VALIDATIONS", None)
        if rules is None:
            raise ConfigurationError(f"Rules module '{module_name}' has no VALIDATIONS list")
        return cls(rules)

    @classmethod
    def load(cls, location: str) -> "RuleCatalog":
        """Load from a YAML path (``.yaml``/``.yml``) or a dotted module name."""
        if location.endswith((".yaml", ".yml")):
            return cls.from_yaml(Path(location))
        return cls.from_module(location)

    def all(self) -> List[ValidationRule]:
        """Return all configured rules."""
        return list(self._rules)

    def for_set(self, set_uri: Optional[str]) -> List[ValidationRule]:
        """Return the rules of a validation set, or every rule when ``set_uri`` is None."""
        if not set_uri:
            return self.all()
        return [r for r in self._rules if r.in_set(set_uri)]

    def names(self) -> List[str]:
        return [r.name for r in self._rules]

    def __len__(self) -> int:
        return len(self._rules)

    def log_configured(self) -> None:
        logger.info("=== CONFIGURED VALIDATIONS ===")
        for i, rule in enumerate(self._rules, start=1):
            logger.info("[%d] %s", i, rule.name)
        logger.info("===")


__all__ = ["RuleCatalog", "RULE_TYPES"]
