"""Kubernetes resource builders shared by OAM workload types."""

from __future__ import annotations

import json
import urllib.error
import urllib.request
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

Labels = dict[str, str]
ParamMap = dict[str, Any]
OwnerRefs = list[dict[str, Any]]
Transport = Callable[[str, str, "bytes | None", dict[str, str]], "tuple[int, bytes]"]

_RESOURCES: dict[str, tuple[str, str]] = {
    "Deployment": ("/apis/apps/v1", "deployments"),
    "StatefulSet": ("/apis/apps/v1", "statefulsets"),
    "Job": ("/apis/batch/v1", "jobs"),
    "Service": ("/api/v1", "services"),
    "ConfigMap": ("/api/v1", "configmaps"),
}


class WorkloadError(Exception):
    """Raised when a workload cannot be built, validated or applied."""


class KubeApiError(WorkloadError):
    """Raised when the Kubernetes API rejects or cannot serve a request."""

    def __init__(self, status: int | None, message: str) -> None:
        self.status = status
        self.message = message
        super().__init__(
            f"ApiError {status}: {message}" if status is not None else f"ApiError: {message}"
        )


class _Component(Protocol):
    containers: list[Any]

    def to_pod_spec_with_policy(self, params: ParamMap, restart_policy: str) -> dict[str, Any]:
        ...

    def evaluate_configs(self, params: ParamMap) -> Mapping[str, Mapping[str, str]]:
        ...


def _urllib_transport(
    method: str, url: str, body: bytes | None, headers: dict[str, str]
) -> tuple[int, bytes]:
    request = urllib.request.Request(url, data=body, method=method, headers=headers)
    try:
        with urllib.request.urlopen(request) as response:
            return response.status, response.read()
    except urllib.error.HTTPError as err:
        return err.code, err.read()
    except urllib.error.URLError as err:
        raise KubeApiError(None, str(err.reason)) from err


class KubeClient:
    """A minimal client for the Kubernetes resources that workloads manage."""

    def __init__(self, base_path: str, transport: Transport | None = None) -> None:
        self.base_path = base_path.rstrip("/")
        self.transport: Transport = transport or _urllib_transport

    def _url(self, kind: str, namespace: str, name: str | None = None, sub: str | None = None) -> str:
        try:
            prefix, plural = _RESOURCES[kind]
        except KeyError:
            raise WorkloadError(f"unsupported resource kind {kind!r}") from None
        parts = [self.base_path + prefix, "namespaces", namespace, plural]
        if name is not None:
            parts.append(name)
        if sub is not None:
            parts.append(sub)
        return "/".join(parts)

    def _send(self, method: str, url: str, body: Any, content_type: str) -> dict[str, Any]:
        headers = {"Accept": "application/json"}
        data = None
        if body is not None:
            data = json.dumps(body).encode("utf-8")
            headers["Content-Type"] = content_type
        status, raw = self.transport(method, url, data, headers)
        payload: Any = None
        if raw:
            try:
                payload = json.loads(raw)
            except ValueError:
                payload = None
        if status >= 400:
            if isinstance(payload, dict) and "message" in payload:
                message = str(payload["message"])
            else:
                message = raw.decode("utf-8", "replace") if raw else "request failed"
            raise KubeApiError(status, message)
        return payload if isinstance(payload, dict) else {}

    def create(self, kind: str, namespace: str, body: dict[str, Any]) -> dict[str, Any]:
        """Create a resource in the namespace."""
        return self._send("POST", self._url(kind, namespace), body, "application/json")

    def patch(self, kind: str, namespace: str, name: str, body: Any) -> dict[str, Any]:
        """Merge-patch the named resource."""
        return self._send(
            "PATCH", self._url(kind, namespace, name), body, "application/merge-patch+json"
        )

    def delete(self, kind: str, namespace: str, name: str) -> dict[str, Any]:
        """Delete the named resource."""
        options = {"apiVersion": "v1", "kind": "DeleteOptions"}
        return self._send("DELETE", self._url(kind, namespace, name), options, "application/json")

    def get_status(self, kind: str, namespace: str, name: str) -> dict[str, Any]:
        """Fetch the status subresource of the named resource."""
        return self._send("GET", self._url(kind, namespace, name, "status"), None, "")


def form_metadata(
    name: str, labels: Labels, owner_references: OwnerRefs | None
) -> dict[str, Any]:
    """Build object metadata with a name, labels and optional owner references."""
    metadata: dict[str, Any] = {"name": name, "labels": dict(labels)}
    if owner_references is not None:
        metadata["ownerReferences"] = list(owner_references)
    return metadata


def to_config_maps(
    configs: Mapping[str, Mapping[str, str]],
    owner_ref: OwnerRefs | None,
    labels: Labels | None,
) -> list[dict[str, Any]]:
    """Turn named config data into ConfigMap objects, ordered by name."""
    config_maps = []
    for key, values in sorted(configs.items()):
        metadata: dict[str, Any] = {"name": key}
        if owner_ref is not None:
            metadata["ownerReferences"] = list(owner_ref)
        if labels is not None:
            metadata["labels"] = dict(labels)
        config_maps.append(
            {"apiVersion": "v1", "kind": "ConfigMap", "metadata": metadata, "data": dict(values)}
        )
    return config_maps


def _pod_template(
    name: str,
    labels: Labels,
    annotations: Labels | None,
    owner_ref: OwnerRefs | None,
    pod_spec: dict[str, Any],
) -> dict[str, Any]:
    metadata: dict[str, Any] = {"name": name, "labels": dict(labels)}
    if annotations is not None:
        metadata["annotations"] = dict(annotations)
    if owner_ref is not None:
        metadata["ownerReferences"] = list(owner_ref)
    return {"metadata": metadata, "spec": pod_spec}


@dataclass
class WorkloadMetadata:
    """Common data about a workload."""

    name: str
    component_name: str
    instance_name: str
    namespace: str
    definition: _Component
    client: KubeClient
    params: ParamMap = field(default_factory=dict)
    owner_ref: OwnerRefs | None = None
    annotations: Labels | None = None

    def labels(self, workload_type: str) -> Labels:
        return {
            "app.kubernetes.io/name": self.name,
            "oam.dev/instance-name": self.instance_name,
            "oam.dev/workload-type": workload_type,
        }

    def select_labels(self) -> Labels:
        return {
            "app.kubernetes.io/name": self.name,
            "oam.dev/instance-name": self.instance_name,
        }

    def kube_name(self) -> str:
        return self.instance_name

    def to_config_maps(self, workload_type: str) -> list[dict[str, Any]]:
        configs = self.definition.evaluate_configs(dict(self.params))
        return to_config_maps(configs, self.owner_ref, self.labels(workload_type))

    def create_config_maps(self, workload_type: str) -> None:
        for config in self.to_config_maps(workload_type):
            self.client.create("ConfigMap", self.namespace, config)

    def deployment_status(self) -> str:
        """Summarise the deployment as running, updating or unavailable."""
        try:
            deploy = self.client.get_status("Deployment", self.namespace, self.kube_name())
        except KubeApiError as err:
            return str(err)
        status = deploy.get("status")
        if status is None:
            raise WorkloadError(f"deployment {self.kube_name()} has no status")
        replicas = status.get("replicas") or 0
        available = status.get("availableReplicas") or 0
        unavailable = status.get("unavailableReplicas") or 0
        if available == replicas:
            return "running"
        if unavailable > 0:
            return "unavailable"
        return "updating"


class WorkloadType(ABC):
    """The operations every workload type supports."""

    @abstractmethod
    def kube_name(self) -> str:
        ...

    @abstractmethod
    def add(self) -> None:
        ...

    @abstractmethod
    def modify(self) -> None:
        ...

    @abstractmethod
    def delete(self) -> None:
        ...

    @abstractmethod
    def status(self) -> dict[str, str]:
        ...

    def _problems(self) -> Iterator[str]:
        """Describe what makes the workload invalid; nothing by default."""
        return iter(())

    def validate(self) -> None:
        """Raise WorkloadError if the workload has any problem."""
        problems = list(self._problems())
        if problems:
            raise WorkloadError("; ".join(problems))


class DeploymentBuilder:
    """Builds Deployments, exposing only the settings workload types need."""

    def __init__(self, instance_name: str, component: _Component) -> None:
        self.component = component
        self.name = instance_name
        self._labels: Labels = {}
        self._annotations: Labels | None = None
        self.replicas: int | None = None
        self.restart_policy = "Always"
        self._owner_ref: OwnerRefs | None = None
        self._param_vals: ParamMap = {}

    def labels(self, labels: Labels) -> DeploymentBuilder:
        self._labels = dict(labels)
        return self

    def annotations(self, annotations: Labels | None) -> DeploymentBuilder:
        """Set annotations for the pod template."""
        self._annotations = annotations
        return self

    def parameter_map(self, param_vals: ParamMap) -> DeploymentBuilder:
        self._param_vals = dict(param_vals)
        return self

    def owner_ref(self, owner: OwnerRefs | None) -> DeploymentBuilder:
        self._owner_ref = owner
        return self

    def to_deployment(self) -> dict[str, Any]:
        spec: dict[str, Any] = {
            "selector": {"matchLabels": dict(self._labels)},
            "template": _pod_template(
                self.name,
                self._labels,
                self._annotations,
                self._owner_ref,
                self.component.to_pod_spec_with_policy(dict(self._param_vals), self.restart_policy),
            ),
        }
        if self.replicas is not None:
            spec["replicas"] = self.replicas
        return {
            "apiVersion": "apps/v1",
            "kind": "Deployment",
            "metadata": form_metadata(self.name, self._labels, self._owner_ref),
            "spec": spec,
        }

    def do_request(self, client: KubeClient, namespace: str, phase: str) -> dict[str, Any]:
        """Apply the deployment: "modify" patches, "delete" deletes, anything else creates.

        Returns the API server's response.
        """
        deployment = self.to_deployment()
        if phase == "modify":
            return client.patch("Deployment", namespace, self.name, deployment)
        if phase == "delete":
            return client.delete("Deployment", namespace, self.name)
        return client.create("Deployment", namespace, deployment)