"""Tests for workload lookups and client setup."""

from unittest.mock import MagicMock, patch

import pytest
from kubernetes import config
from kubernetes.client import V1Container, V1PodSpec
from kubernetes.client.rest import ApiException

from kdebug.errors import ConfigurationError, ResolutionError
from kdebug.types import WorkloadKind, WorkloadReference
from kdebug.workloads import ClusterClients, load_clients, resolve_pod_template


def _clients() -> ClusterClients:
    return ClusterClients(core=MagicMock(), apps=MagicMock(), batch=MagicMock())


def _pod_spec(name: str = "app") -> V1PodSpec:
    return V1PodSpec(containers=[V1Container(name=name, image="busybox")])


class TestResolvePodTemplate:
    """Tests for resolve_pod_template - one reader per workload kind."""

    def test_deployment(self):
        """Test a Deployment is read through the apps API."""
        clients = _clients()
        spec = _pod_spec()
        clients.apps.read_namespaced_deployment.return_value.spec.template.spec = spec

        result = resolve_pod_template(
            clients, WorkloadReference("prod", WorkloadKind.DEPLOYMENT, "api")
        )

        assert result is spec
        clients.apps.read_namespaced_deployment.assert_called_once_with("api", "prod")

    def test_job(self):
        clients = _clients()
        spec = _pod_spec()
        clients.batch.read_namespaced_job.return_value.spec.template.spec = spec

        result = resolve_pod_template(
            clients, WorkloadReference("prod", WorkloadKind.JOB, "migrate")
        )

        assert result is spec
        clients.batch.read_namespaced_job.assert_called_once_with("migrate", "prod")

    def test_cronjob_uses_job_template(self):
        """Test a CronJob's pod template is taken from its job template."""
        clients = _clients()
        spec = _pod_spec()
        cronjob = clients.batch.read_namespaced_cron_job.return_value
        cronjob.spec.job_template.spec.template.spec = spec

        result = resolve_pod_template(
            clients, WorkloadReference("prod", WorkloadKind.CRONJOB, "nightly")
        )

        assert result is spec
        clients.batch.read_namespaced_cron_job.assert_called_once_with(
            "nightly", "prod"
        )

    def test_statefulset(self):
        clients = _clients()
        spec = _pod_spec()
        clients.apps.read_namespaced_stateful_set.return_value.spec.template.spec = spec

        result = resolve_pod_template(
            clients, WorkloadReference("prod", WorkloadKind.STATEFULSET, "db")
        )

        assert result is spec
        clients.apps.read_namespaced_stateful_set.assert_called_once_with("db", "prod")

    def test_not_found(self):
        """Test a missing workload names the kind and name."""
        clients = _clients()
        clients.apps.read_namespaced_deployment.side_effect = ApiException(
            status=404, reason="Not Found"
        )

        with pytest.raises(ResolutionError, match="deployment/api not found"):
            resolve_pod_template(
                clients, WorkloadReference("prod", WorkloadKind.DEPLOYMENT, "api")
            )

    def test_forbidden(self):
        """Test RBAC denial is reported as forbidden."""
        clients = _clients()
        clients.batch.read_namespaced_job.side_effect = ApiException(
            status=403, reason="Forbidden"
        )

        with pytest.raises(ResolutionError, match="forbidden"):
            resolve_pod_template(
                clients, WorkloadReference("prod", WorkloadKind.JOB, "migrate")
            )

    def test_other_api_error(self):
        clients = _clients()
        clients.apps.read_namespaced_stateful_set.side_effect = ApiException(
            status=500, reason="Internal Server Error"
        )

        with pytest.raises(ResolutionError, match="Internal Server Error"):
            resolve_pod_template(
                clients, WorkloadReference("prod", WorkloadKind.STATEFULSET, "db")
            )


class TestLoadClients:
    """Tests for load_clients function."""

    @patch("kdebug.workloads.config")
    def test_uses_kubeconfig_and_context(self, mock_config: MagicMock):
        load_clients("/tmp/kubeconfig", "staging")

        mock_config.load_kube_config.assert_called_once_with(
            config_file="/tmp/kubeconfig", context="staging"
        )
        mock_config.load_incluster_config.assert_not_called()

    @patch("kdebug.workloads.config")
    def test_falls_back_to_in_cluster(self, mock_config: MagicMock):
        """Test in-cluster config is tried when no kubeconfig loads."""
        mock_config.ConfigException = config.ConfigException
        mock_config.load_kube_config.side_effect = config.ConfigException("no config")

        load_clients()

        mock_config.load_incluster_config.assert_called_once()

    @patch("kdebug.workloads.config")
    def test_explicit_kubeconfig_does_not_fall_back(self, mock_config: MagicMock):
        """Test an explicit kubeconfig failure is reported, not bypassed."""
        mock_config.ConfigException = config.ConfigException
        mock_config.load_kube_config.side_effect = config.ConfigException("bad file")

        with pytest.raises(ConfigurationError, match="bad file"):
            load_clients("/nope")

        mock_config.load_incluster_config.assert_not_called()

    @patch("kdebug.workloads.config")
    def test_no_config_anywhere(self, mock_config: MagicMock):
        mock_config.ConfigException = config.ConfigException
        mock_config.load_kube_config.side_effect = config.ConfigException("no config")
        mock_config.load_incluster_config.side_effect = config.ConfigException(
            "not in cluster"
        )

        with pytest.raises(ConfigurationError, match="failed to load config"):
            load_clients()
