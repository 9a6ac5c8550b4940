"""Error message producers for validation rules.

A rule's message is either a fixed text or a function of the variables bound
by one result row. Row-set rules render once per row with the row's values;
boolean rules render once with no parameters.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Mapping, Optional, Union


@dataclass(frozen=True)
class StaticMessage:
    """A message that does not depend on the query result."""

    text: str

    def render(self, params: Optional[Mapping[str, str]] = None) -> str:
        return self.text


@dataclass(frozen=True)
class TemplatedMessage:
    """A message computed from a row's bound values.

    ``producer`` receives the row values as keyword arguments, or nothing at
    all for boolean rules.
    """

    producer: Callable[..., str]

    def render(self, params: Optional[Mapping[str, str]] = None) -> str:
        if params is None:
            return str(self.producer())
        return str(self.producer(**params))

    @classmethod
    def from_template(cls, template: str) -> "TemplatedMessage":
        """Build a message from a ``str.format`` template.

        Variables the template does not use are ignored; a variable the
        template needs but the row lacks raises ``KeyError`` at render time.

        Examples:
            >>> msg = TemplatedMessage.from_template("Mandate {s} starts {start}")
            >>> msg.render({"s": "http://x/1", "start": "2019-01-01", "extra": "ignored"})
            'Mandate http://x/1 starts 2019-01-01'
        """

        def _render(**params: str) -> str:
            return template.format_map(params)

        return cls(_render)


Message = Union[StaticMessage, TemplatedMessage]


def as_message(value: Union[str, Callable[..., str], Message]) -> Message:
    """Normalize a configured message value into a ``Message``."""
    if isinstance(value, (StaticMessage, TemplatedMessage)):
        return value
    if isinstance(value, str):
        return StaticMessage(value)
    if callable(value):
        return TemplatedMessage(value)
    raise TypeError(f"Unsupported message type: {type(value).__name__}")


__all__ = ["StaticMessage", "TemplatedMessage", "Message", "as_message"]
