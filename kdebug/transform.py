"""Derive a debug pod from a workload's pod template."""

import copy

from kubernetes.client import V1Container, V1ObjectMeta, V1Pod, V1PodSpec

from kdebug.errors import ContainerNotFound, TransformError
from kdebug.types import DebugPodSpec

RESTART_POLICY_NEVER = "Never"


def select_container(
    spec: V1PodSpec, container_selector: str | None = None
) -> V1Container:
    """Return the container named by the selector, or the first one."""
    containers = spec.containers or []
    if not containers:
        raise TransformError("pod template has no containers")

    if not container_selector:
        return containers[0]

    for container in containers:
        if container.name == container_selector:
            return container
    raise ContainerNotFound(container_selector)


def transform(
    template: V1PodSpec,
    container_selector: str | None,
    entrypoint: list[str],
    image: str | None = None,
) -> tuple[V1PodSpec, str]:
    """Build a runnable debug pod spec from a workload pod template.

    The template is deep-copied, so the caller's object is never modified.
    Only the target container is rewritten: its command becomes the
    entrypoint, its args are cleared and its health probes removed, since an
    arbitrary entrypoint cannot satisfy the workload's probes. Other
    containers keep their original definition.

    Returns:
        (pod_spec, target_container_name)

    Raises:
        ContainerNotFound: If the selector names no container in the template.
        TransformError: If the template has no containers.
    """
    spec: V1PodSpec = copy.deepcopy(template)
    container = select_container(spec, container_selector)

    spec.restart_policy = RESTART_POLICY_NEVER
    spec.termination_grace_period_seconds = 0

    container.command = list(entrypoint)
    container.args = []
    container.startup_probe = None
    container.readiness_probe = None
    container.liveness_probe = None
    if image:
        container.image = image

    return spec, container.name


def build_debug_pod(
    template: V1PodSpec,
    name: str,
    namespace: str,
    container_selector: str | None,
    entrypoint: list[str],
    image: str | None = None,
) -> DebugPodSpec:
    spec, target = transform(template, container_selector, entrypoint, image)
    pod = V1Pod(
        api_version="v1",
        kind="Pod",
        metadata=V1ObjectMeta(name=name, namespace=namespace),
        spec=spec,
    )
    return DebugPodSpec(pod=pod, target_container=target)
