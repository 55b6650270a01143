"""Tests for the pod spec transform - pure, no cluster needed."""

import copy

import pytest
from kubernetes.client import (
    V1Container,
    V1ExecAction,
    V1PodSpec,
    V1Probe,
    V1Volume,
)

from kdebug.errors import ContainerNotFound, TransformError
from kdebug.transform import build_debug_pod, select_container, transform


def _probe() -> V1Probe:
    return V1Probe(_exec=V1ExecAction(command=["cat", "/tmp/healthy"]))


def _container(name: str, image: str = "registry.local/app:1.0") -> V1Container:
    return V1Container(
        name=name,
        image=image,
        command=["/app/server"],
        args=["--port", "8080"],
        readiness_probe=_probe(),
        liveness_probe=_probe(),
        startup_probe=_probe(),
    )


def _template(*names: str) -> V1PodSpec:
    return V1PodSpec(
        containers=[_container(name) for name in names],
        restart_policy="Always",
        termination_grace_period_seconds=30,
        volumes=[V1Volume(name="data")],
    )


class TestSelectContainer:
    """Tests for select_container function."""

    def test_defaults_to_first_container(self):
        """Test no selector picks the first container."""
        spec = _template("app", "sidecar")

        assert select_container(spec).name == "app"

    def test_empty_selector_means_first_container(self):
        spec = _template("app", "sidecar")

        assert select_container(spec, "").name == "app"

    def test_selector_matches_by_name(self):
        spec = _template("app", "sidecar")

        assert select_container(spec, "sidecar").name == "sidecar"

    def test_unknown_selector_raises(self):
        """Test an unknown container name names the selector in the error."""
        spec = _template("app")

        with pytest.raises(ContainerNotFound) as exc_info:
            select_container(spec, "missing")
        assert exc_info.value.selector == "missing"
        assert "missing" in str(exc_info.value)

    def test_no_containers_raises(self):
        spec = V1PodSpec(containers=[])

        with pytest.raises(TransformError, match="no containers"):
            select_container(spec)


class TestTransform:
    """Tests for transform function."""

    def test_sidecar_scenario(self):
        """Test that only the selected sidecar is rewritten."""
        template = _template("app", "sidecar")

        spec, target = transform(template, "sidecar", ["/bin/sh"])

        assert target == "sidecar"
        sidecar = spec.containers[1]
        assert sidecar.command == ["/bin/sh"]
        assert sidecar.args == []
        assert sidecar.readiness_probe is None
        assert sidecar.liveness_probe is None
        assert sidecar.startup_probe is None
        assert spec.containers[0] == template.containers[0]

    def test_first_container_targeted_without_selector(self):
        """Test targeting a sidecar rewrites only that container."""
        template = _template("app", "sidecar")

        spec, target = transform(template, None, ["/bin/sleep", "1800"])

        assert target == "app"
        assert spec.containers[0].command == ["/bin/sleep", "1800"]
        assert spec.containers[1] == template.containers[1]

    @pytest.mark.parametrize("restart_policy", ["Always", "OnFailure", "Never", None])
    @pytest.mark.parametrize("grace", [None, 0, 30, 600])
    def test_pod_level_fields_forced(self, restart_policy, grace):
        """Test restart policy and grace period are forced whatever the input."""
        template = _template("app")
        template.restart_policy = restart_policy
        template.termination_grace_period_seconds = grace

        spec, _ = transform(template, None, ["/bin/sh"])

        assert spec.restart_policy == "Never"
        assert spec.termination_grace_period_seconds == 0

    def test_unknown_selector_produces_nothing(self):
        template = _template("app", "sidecar")

        with pytest.raises(ContainerNotFound):
            transform(template, "db", ["/bin/sh"])

    def test_template_not_mutated(self):
        """Test the caller's template is left untouched."""
        template = _template("app", "sidecar")
        original = copy.deepcopy(template)

        transform(template, "app", ["/bin/sh"], image="busybox:latest")

        assert template == original

    def test_repeated_calls_are_identical(self):
        template = _template("app", "sidecar")

        first = transform(template, "sidecar", ["/bin/sh", "-c", "sleep 60"])
        second = transform(template, "sidecar", ["/bin/sh", "-c", "sleep 60"])

        assert first == second

    def test_entrypoint_copied_verbatim(self):
        """Test the entrypoint is not shell-split or shared with the caller."""
        entrypoint = ["/bin/sh", "-c", "echo $HOME && sleep 10"]

        spec, _ = transform(_template("app"), None, entrypoint)
        entrypoint.append("ignored")

        assert spec.containers[0].command == ["/bin/sh", "-c", "echo $HOME && sleep 10"]

    def test_image_override_applies_to_target_only(self):
        """Test --image replaces the target image and nothing else."""
        template = _template("app", "sidecar")

        spec, _ = transform(template, "sidecar", ["/bin/sh"], image="busybox:latest")

        assert spec.containers[1].image == "busybox:latest"
        assert spec.containers[0].image == "registry.local/app:1.0"

    def test_no_image_override_keeps_image(self):
        spec, _ = transform(_template("app"), None, ["/bin/sh"])

        assert spec.containers[0].image == "registry.local/app:1.0"

    def test_pod_level_fields_preserved(self):
        spec, _ = transform(_template("app"), None, ["/bin/sh"])

        assert spec.volumes == [V1Volume(name="data")]


class TestBuildDebugPod:
    """Tests for build_debug_pod function."""

    def test_metadata_and_target(self):
        debug_spec = build_debug_pod(
            _template("app", "sidecar"),
            name="kdebug-pod",
            namespace="staging",
            container_selector="sidecar",
            entrypoint=["/bin/sleep", "1800"],
        )

        assert debug_spec.target_container == "sidecar"
        assert debug_spec.pod.kind == "Pod"
        assert debug_spec.pod.metadata.name == "kdebug-pod"
        assert debug_spec.pod.metadata.namespace == "staging"
        assert debug_spec.pod.spec.restart_policy == "Never"
