"""Defaults and option handling for a kdebug session."""

import re
from dataclasses import dataclass, field

from kdebug.errors import ValidationError
from kdebug.types import WorkloadKind, WorkloadReference

DEFAULT_NAMESPACE = "default"
DEFAULT_POD_NAME = "kdebug-pod"
DEFAULT_TIMEOUT = "30m"
DEFAULT_COMMAND = ["/bin/sh"]
RESIZE_POLL_INTERVAL = 5.0

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(h|ms|m|s)")
_DURATION_UNITS = {"h": 3600.0, "m": 60.0, "s": 1.0, "ms": 0.001}


def parse_duration(raw: str) -> float:
    """Parse a Go-style duration such as ``30m``, ``1h30m`` or ``90s`` into seconds.

    A bare number is taken as seconds.
    """
    value = raw.strip()
    if not value:
        raise ValidationError("timeout unset")
    if re.fullmatch(r"\d+(?:\.\d+)?", value):
        return float(value)

    pos = 0
    total = 0.0
    for match in _DURATION_PART.finditer(value):
        if match.start() != pos:
            break
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        pos = match.end()

    if pos == 0 or pos != len(value):
        raise ValidationError(f"invalid duration {raw!r}")
    return total


def default_entrypoint(timeout_seconds: float) -> list[str]:
    return ["/bin/sleep", f"{timeout_seconds:.0f}"]


@dataclass
class SessionOptions:
    source: str
    namespace: str = DEFAULT_NAMESPACE
    name: str = DEFAULT_POD_NAME
    kind: WorkloadKind = WorkloadKind.DEPLOYMENT
    container_name: str | None = None
    image: str | None = None
    entrypoint: list[str] = field(default_factory=list)
    timeout: str = DEFAULT_TIMEOUT
    command: list[str] = field(default_factory=lambda: list(DEFAULT_COMMAND))
    ready_timeout: int | None = None
    kubeconfig: str | None = None
    context: str | None = None

    def validate(self) -> None:
        if not self.namespace:
            raise ValidationError("namespace unset")
        if not self.name:
            raise ValidationError("name unset")
        if not isinstance(self.kind, WorkloadKind):
            raise ValidationError("invalid resource type")
        if not self.source:
            raise ValidationError("source unset")
        if self.ready_timeout is not None and self.ready_timeout <= 0:
            raise ValidationError("ready timeout must be positive")
        # Parsed even when an explicit entrypoint makes it unused
        parse_duration(self.timeout)

    @property
    def reference(self) -> WorkloadReference:
        return WorkloadReference(
            namespace=self.namespace, kind=self.kind, name=self.source
        )

    def resolved_entrypoint(self) -> list[str]:
        if self.entrypoint:
            return list(self.entrypoint)
        return default_entrypoint(parse_duration(self.timeout))

    def resolved_command(self) -> list[str]:
        return list(self.command) if self.command else list(DEFAULT_COMMAND)
