"""Debug pod lifetime: create, wait for Running, delete."""

from typing import Any, Callable

from kubernetes import client, watch
from kubernetes.client.rest import ApiException
from urllib3.exceptions import HTTPError

from kdebug.errors import (
    PodStartFailed,
    SchedulingError,
    TeardownWarning,
    UnexpectedEvent,
)
from kdebug.types import DebugPodSpec, PodHandle, Session, SessionPhase
from kdebug.ui import print_info

_MODIFIED = "MODIFIED"
# Terminal phase for a pod whose entrypoint exited cleanly
_SUCCEEDED = "Succeeded"


class SessionScheduler:
    """Owns the cluster-side lifetime of one debug pod.

    Calls are sequenced by the caller: create, then await_ready, then
    terminate. Nothing here is safe to call concurrently for the same pod.
    """

    def __init__(
        self,
        core_api: client.CoreV1Api,
        watch_factory: Callable[[], Any] = watch.Watch,
    ):
        self._core = core_api
        self._watch_factory = watch_factory

    def create(self, spec: DebugPodSpec, session: Session | None = None) -> PodHandle:
        pod = spec.pod
        try:
            created = self._core.create_namespaced_pod(pod.metadata.namespace, pod)
        except ApiException as e:
            raise SchedulingError(
                f"pod {pod.metadata.namespace}/{pod.metadata.name} was rejected "
                f"({e.status} {e.reason})"
            ) from e

        handle = PodHandle(
            name=created.metadata.name,
            namespace=created.metadata.namespace,
            resource_version=created.metadata.resource_version,
        )
        if session is not None:
            session.handle = handle
            session.phase = SessionPhase.PENDING
        return handle

    def await_ready(
        self,
        handle: PodHandle,
        deadline: int | None = None,
        session: Session | None = None,
    ) -> None:
        """Block until the pod is Running.

        Watches the single pod from its creation resource version. Only
        MODIFIED events are expected; anything else aborts the wait.

        Raises:
            PodStartFailed: If the pod reaches Failed or Succeeded, the deadline
                elapses or the watch itself fails.
            UnexpectedEvent: If the watch delivers a non-MODIFIED event.
        """
        kwargs: dict[str, Any] = {
            "field_selector": f"metadata.name={handle.name}",
        }
        if handle.resource_version:
            kwargs["resource_version"] = handle.resource_version
        if deadline:
            kwargs["timeout_seconds"] = deadline

        watcher = self._watch_factory()
        events = None
        try:
            events = watcher.stream(
                self._core.list_namespaced_pod, handle.namespace, **kwargs
            )
            for event in events:
                event_type = event.get("type")
                if event_type != _MODIFIED:
                    raise UnexpectedEvent(str(event_type))

                phase = event["object"].status.phase
                print_info(f"Pod status is now '{phase}'")
                if phase in (SessionPhase.FAILED.value, _SUCCEEDED):
                    if session is not None:
                        session.phase = SessionPhase.FAILED
                    raise PodStartFailed(
                        f"pod {handle.name} failed to start"
                        if phase == SessionPhase.FAILED.value
                        else f"pod {handle.name} exited before it reached Running"
                    )
                if phase == SessionPhase.RUNNING.value:
                    if session is not None:
                        session.phase = SessionPhase.RUNNING
                    return
        except ApiException as e:
            raise PodStartFailed(
                f"watch on pod {handle.name} failed ({e.status} {e.reason})"
            ) from e
        except HTTPError as e:
            raise PodStartFailed(f"watch on pod {handle.name} failed: {e}") from e
        finally:
            watcher.stop()
            if events is not None:
                events.close()

        raise PodStartFailed(
            f"pod {handle.name} did not reach Running within {deadline}s"
            if deadline
            else f"watch on pod {handle.name} ended before it reached Running"
        )

    def terminate(
        self, handle: PodHandle, session: Session | None = None
    ) -> TeardownWarning | None:
        """Delete the pod. Failures are reported and returned, never raised."""
        warning = None
        try:
            self._core.delete_namespaced_pod(
                handle.name, handle.namespace, grace_period_seconds=0
            )
        except ApiException as e:
            if e.status != 404:
                warning = TeardownWarning(
                    f"could not remove pod {handle.namespace}/{handle.name}: "
                    f"{e.status} {e.reason}"
                )
        except (HTTPError, OSError) as e:
            warning = TeardownWarning(
                f"could not remove pod {handle.namespace}/{handle.name}: {e}"
            )

        if session is not None:
            session.phase = SessionPhase.TERMINATED
            if warning is not None:
                session.warnings.append(warning)
        return warning
