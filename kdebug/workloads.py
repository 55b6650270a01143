"""Kubernetes client setup and workload template lookups for kdebug."""

from dataclasses import dataclass
from typing import Any, Callable

from kubernetes import client, config
from kubernetes.client import V1PodSpec
from kubernetes.client.rest import ApiException

from kdebug.errors import ConfigurationError, ResolutionError
from kdebug.types import WorkloadKind, WorkloadReference


@dataclass
class ClusterClients:
    core: client.CoreV1Api
    apps: client.AppsV1Api
    batch: client.BatchV1Api


# ===== Client setup =====


def load_clients(
    kubeconfig: str | None = None, context: str | None = None
) -> ClusterClients:
    """Load cluster credentials and build the API clients.

    Tries the kubeconfig file first (``kubeconfig`` or the default location),
    then falls back to the in-cluster service account.
    """
    try:
        config.load_kube_config(config_file=kubeconfig, context=context)
    except config.ConfigException as kube_error:
        if kubeconfig or context:
            raise ConfigurationError(
                f"failed to load kubeconfig: {kube_error}"
            ) from kube_error
        try:
            config.load_incluster_config()
        except config.ConfigException as e:
            raise ConfigurationError(f"failed to load config: {kube_error}") from e

    return ClusterClients(
        core=client.CoreV1Api(),
        apps=client.AppsV1Api(),
        batch=client.BatchV1Api(),
    )


# ===== Workload lookups =====


def _deployment_template(clients: ClusterClients, namespace: str, name: str) -> V1PodSpec:
    deployment = clients.apps.read_namespaced_deployment(name, namespace)
    return deployment.spec.template.spec


def _job_template(clients: ClusterClients, namespace: str, name: str) -> V1PodSpec:
    job = clients.batch.read_namespaced_job(name, namespace)
    return job.spec.template.spec


def _cronjob_template(clients: ClusterClients, namespace: str, name: str) -> V1PodSpec:
    cronjob = clients.batch.read_namespaced_cron_job(name, namespace)
    return cronjob.spec.job_template.spec.template.spec


def _statefulset_template(clients: ClusterClients, namespace: str, name: str) -> V1PodSpec:
    statefulset = clients.apps.read_namespaced_stateful_set(name, namespace)
    return statefulset.spec.template.spec


_TEMPLATE_READERS: dict[WorkloadKind, Callable[[ClusterClients, str, str], Any]] = {
    WorkloadKind.DEPLOYMENT: _deployment_template,
    WorkloadKind.JOB: _job_template,
    WorkloadKind.CRONJOB: _cronjob_template,
    WorkloadKind.STATEFULSET: _statefulset_template,
}


def resolve_pod_template(clients: ClusterClients, ref: WorkloadReference) -> V1PodSpec:
    """Fetch the pod template of a workload.

    Raises:
        ResolutionError: If the workload is missing, access is forbidden, or
            the API call fails.
    """
    reader = _TEMPLATE_READERS[ref.kind]
    try:
        spec = reader(clients, ref.namespace, ref.name)
    except ApiException as e:
        if e.status == 404:
            raise ResolutionError(
                f"{ref} not found in namespace '{ref.namespace}'.\n"
                f"Tip: Check the resource exists with: "
                f"kubectl get {ref.kind.value} -n {ref.namespace}"
            ) from e
        if e.status == 403:
            raise ResolutionError(
                f"access to {ref} in namespace '{ref.namespace}' is forbidden"
            ) from e
        raise ResolutionError(f"failed to fetch {ref}: {e.reason}") from e

    if spec is None:
        raise ResolutionError(f"{ref} has no pod template")
    return spec
