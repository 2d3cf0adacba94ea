"""Builder for the Kubernetes Jobs behind task workloads."""

from __future__ import annotations

from typing import Any

from oamworkload.statefulset_builder import _apply, _fetch_status
from oamworkload.workload_builder import (
    KubeClient,
    Labels,
    OwnerRefs,
    ParamMap,
    _Component,
    _pod_template,
    form_metadata,
    to_config_maps,
)

_BACKOFF_LIMIT = 4


class JobBuilder:
    """Builds Jobs, exposing only the settings workload types need."""

    def __init__(self, instance_name: str, component: _Component) -> None:
        self.component = component
        self.name = instance_name
        self._labels: Labels = {}
        self._annotations: Labels | None = None
        self._restart_policy = "Never"
        self._owner_ref: OwnerRefs | None = None
        self._parallelism: int | None = None
        self._param_vals: ParamMap = {}

    def labels(self, labels: Labels) -> JobBuilder:
        self._labels = dict(labels)
        return self

    def annotations(self, annotations: Labels | None) -> JobBuilder:
        """Set annotations for the pod template."""
        self._annotations = annotations
        return self

    def parameter_map(self, param_vals: ParamMap) -> JobBuilder:
        self._param_vals = dict(param_vals)
        return self

    def restart_policy(self, policy: str) -> JobBuilder:
        self._restart_policy = policy
        return self

    def owner_ref(self, owner: OwnerRefs | None) -> JobBuilder:
        self._owner_ref = owner
        return self

    def parallelism(self, count: int) -> JobBuilder:
        self._parallelism = count
        return self

    def to_config_maps(self) -> list[dict[str, Any]]:
        configs = self.component.evaluate_configs(dict(self._param_vals))
        return to_config_maps(configs, self._owner_ref, dict(self._labels))

    def to_job(self) -> dict[str, Any]:
        spec: dict[str, Any] = {"backoffLimit": _BACKOFF_LIMIT}
        if self._parallelism is not None:
            spec["parallelism"] = self._parallelism
        spec["template"] = _pod_template(
            self.name,
            self._labels,
            self._annotations,
            self._owner_ref,
            self.component.to_pod_spec_with_policy(dict(self._param_vals), self._restart_policy),
        )
        return {
            "apiVersion": "batch/v1",
            "kind": "Job",
            "metadata": form_metadata(self.name, self._labels, self._owner_ref),
            "spec": spec,
        }

    def get_status(self, client: KubeClient, namespace: str) -> str:
        """Summarise the job as running, failed or succeeded."""
        status = _fetch_status(client, "Job", namespace, self.name)
        if isinstance(status, str):
            return status
        if (status.get("active") or 0) > 0:
            return "running"
        if (status.get("failed") or 0) > 0:
            return "failed"
        return "succeeded"

    def do_request(self, client: KubeClient, namespace: str, phase: str) -> dict[str, Any]:
        """Apply the job; creating it first creates its config maps.

        Returns the API server's response for the job.
        """
        job = self.to_job()
        if phase not in ("modify", "delete"):
            for config in self.to_config_maps():
                client.create("ConfigMap", namespace, config)
        return _apply(client, "Job", namespace, self.name, phase, job)