"""Builder for the StatefulSets behind singleton workloads."""

from __future__ import annotations

from typing import Any

from oamworkload.workload_builder import (
    KubeApiError,
    KubeClient,
    Labels,
    OwnerRefs,
    ParamMap,
    WorkloadError,
    _Component,
    _pod_template,
    form_metadata,
)


def _apply(
    client: KubeClient,
    kind: str,
    namespace: str,
    name: str,
    phase: str,
    body: dict[str, Any],
) -> dict[str, Any]:
    """Send a resource for a phase: "modify" patches, "delete" deletes, anything else creates."""
    if phase == "modify":
        return client.patch(kind, namespace, name, body)
    if phase == "delete":
        return client.delete(kind, namespace, name)
    return client.create(kind, namespace, body)


def _fetch_status(
    client: KubeClient, kind: str, namespace: str, name: str
) -> dict[str, Any] | str:
    """Return a resource's status, or the error text when it cannot be read."""
    try:
        resource = client.get_status(kind, namespace, name)
    except KubeApiError as err:
        return str(err)
    status = resource.get("status")
    if status is None:
        raise WorkloadError(f"{kind.lower()} {name} has no status")
    return status


class StatefulsetBuilder:
    """Builds StatefulSets, exposing only the settings workload types need."""

    def __init__(self, instance_name: str, component: _Component) -> None:
        self.component = component
        self.name = instance_name
        self._labels: Labels = {}
        self._annotations: Labels | None = None
        self._restart_policy = "Always"
        self._owner_ref: OwnerRefs | None = None
        self._param_vals: ParamMap = {}

    def labels(self, labels: Labels) -> StatefulsetBuilder:
        self._labels = dict(labels)
        return self

    def annotations(self, annotations: Labels | None) -> StatefulsetBuilder:
        """Set annotations for the pod template."""
        self._annotations = annotations
        return self

    def parameter_map(self, param_vals: ParamMap) -> StatefulsetBuilder:
        self._param_vals = dict(param_vals)
        return self

    def owner_ref(self, owner: OwnerRefs | None) -> StatefulsetBuilder:
        self._owner_ref = owner
        return self

    def to_statefulset(self) -> dict[str, Any]:
        template = _pod_template(
            self.name,
            self._labels,
            self._annotations,
            self._owner_ref,
            self.component.to_pod_spec_with_policy(dict(self._param_vals), self._restart_policy),
        )
        return {
            "apiVersion": "apps/v1",
            "kind": "StatefulSet",
            "metadata": form_metadata(self.name, self._labels, self._owner_ref),
            "spec": {"selector": {"matchLabels": dict(self._labels)}, "template": template},
        }

    def status(self, client: KubeClient, namespace: str) -> str:
        """Summarise the statefulset as running or updating."""
        status = _fetch_status(client, "StatefulSet", namespace, self.name)
        if isinstance(status, str):
            return status
        replicas = status.get("replicas") or 0
        ready = status.get("readyReplicas") or 0
        return "running" if ready == replicas else "updating"

    def do_request(self, client: KubeClient, namespace: str, phase: str) -> dict[str, Any]:
        """Apply the statefulset and return the API server's response."""
        return _apply(client, "StatefulSet", namespace, self.name, phase, self.to_statefulset())