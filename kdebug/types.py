"""Type definitions for kdebug."""

from dataclasses import dataclass, field
from enum import Enum

from kubernetes.client import V1Pod

from kdebug.errors import TeardownWarning

_UINT16_MAX = 0xFFFF


class WorkloadKind(str, Enum):
    DEPLOYMENT = "deployment"
    JOB = "job"
    CRONJOB = "cronjob"
    STATEFULSET = "statefulset"


class SessionPhase(str, Enum):
    PENDING = "Pending"
    RUNNING = "Running"
    FAILED = "Failed"
    TERMINATED = "Terminated"


@dataclass(frozen=True)
class WorkloadReference:
    namespace: str
    kind: WorkloadKind
    name: str

    def __str__(self) -> str:
        return f"{self.kind.value}/{self.name}"


@dataclass
class DebugPodSpec:
    pod: V1Pod
    target_container: str


@dataclass(frozen=True)
class PodHandle:
    name: str
    namespace: str
    resource_version: str | None = None


@dataclass
class Session:
    spec: DebugPodSpec
    handle: PodHandle | None = None
    phase: SessionPhase = SessionPhase.PENDING
    warnings: list[TeardownWarning] = field(default_factory=list)


@dataclass(frozen=True)
class TerminalDimensions:
    columns: int
    rows: int

    @classmethod
    def clamped(cls, columns: int, rows: int) -> "TerminalDimensions":
        # The exec resize channel carries uint16 values
        return cls(
            columns=max(0, min(columns, _UINT16_MAX)),
            rows=max(0, min(rows, _UINT16_MAX)),
        )
