"""Server workload types: replicated and singleton servers behind a Service."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from oamworkload.services import ServiceBuilder
from oamworkload.statefulset_builder import StatefulsetBuilder
from oamworkload.workload_builder import (
    DeploymentBuilder,
    Labels,
    WorkloadError,
    WorkloadMetadata,
    WorkloadType,
    to_config_maps,
)

__all__ = ["ReplicatedServer", "SingletonServer", "to_config_maps"]


@dataclass
class _ServerWorkload(WorkloadType):
    """A pod controller with a Service in front of it."""

    meta: WorkloadMetadata

    def _configured(self, builder: Any, labels: Labels) -> Any:
        return (
            builder.parameter_map(self.meta.params)
            .labels(labels)
            .annotations(self.meta.annotations)
            .owner_ref(self.meta.owner_ref)
        )

    def _service(self, labels: Labels) -> ServiceBuilder:
        return (
            ServiceBuilder(self.meta.instance_name, self.meta.definition)
            .labels(labels)
            .select_labels(self.meta.select_labels())
            .owner_ref(self.meta.owner_ref)
        )

    def _send(self, controller: Any, service: ServiceBuilder, phase: str) -> None:
        for builder in (controller, service):
            builder.do_request(self.meta.client, self.meta.namespace, phase)

    def _service_status(self) -> str:
        return ServiceBuilder(self.meta.instance_name, self.meta.definition).get_status(
            self.meta.client, self.meta.namespace
        )


@dataclass
class ReplicatedServer(_ServerWorkload):
    """A server component that can be scaled up or down, run as a Deployment."""

    def labels(self) -> Labels:
        return self.meta.labels("Service")

    def kube_name(self) -> str:
        return self.meta.instance_name

    def _deployment(self) -> DeploymentBuilder:
        return self._configured(
            DeploymentBuilder(self.kube_name(), self.meta.definition), self.labels()
        )

    def add(self) -> None:
        self.meta.create_config_maps("Service")
        self._send(self._deployment(), self._service(self.labels()), "add")

    def modify(self) -> None:
        self._send(self._deployment(), self._service(self.labels()), "modify")

    def delete(self) -> None:
        name, definition = self.kube_name(), self.meta.definition
        self._send(DeploymentBuilder(name, definition), ServiceBuilder(name, definition), "delete")

    def status(self) -> dict[str, str]:
        name = self.kube_name()
        return {
            f"deployment/{name}": self.meta.deployment_status(),
            f"service/{name}": self._service_status(),
        }


@dataclass
class SingletonServer(_ServerWorkload):
    """A single-instance server, run as a StatefulSet with a Service in front."""

    def labels(self) -> Labels:
        return self.meta.labels("SingletonServer")

    def kube_name(self) -> str:
        return self.meta.instance_name

    def add(self) -> None:
        self.meta.create_config_maps("singleton-service")
        statefulset = self._configured(
            StatefulsetBuilder(self.kube_name(), self.meta.definition), self.labels()
        )
        self._send(statefulset, self._service(self.labels()), "add")

    def modify(self) -> None:
        """Singleton servers cannot be modified; delete and recreate them instead."""
        raise WorkloadError(f"we don't support SingletonServer {self.kube_name()} modify")

    def delete(self) -> None:
        name, definition = self.kube_name(), self.meta.definition
        self._send(
            StatefulsetBuilder(name, definition), ServiceBuilder(name, definition), "delete"
        )

    def status(self) -> dict[str, str]:
        name = self.kube_name()
        state = StatefulsetBuilder(name, self.meta.definition).status(
            self.meta.client, self.meta.namespace
        )
        return {f"statefulset/{name}": state, f"service/{name}": self._service_status()}