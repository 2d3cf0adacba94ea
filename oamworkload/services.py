"""Builder for the Kubernetes Services placed in front of server workloads."""

from __future__ import annotations

import json
import logging
from typing import Any

from oamworkload.workload_builder import (
    KubeApiError,
    KubeClient,
    Labels,
    OwnerRefs,
    form_metadata,
)

logger = logging.getLogger(__name__)


class ServiceBuilder:
    """Builds a Service for a component's listening port."""

    def __init__(self, instance_name: str, component: Any) -> None:
        self.component = component
        self.name = instance_name
        self._labels: Labels = {}
        self._selector: Labels = {}
        self._owner_ref: OwnerRefs | None = None

    def labels(self, labels: Labels) -> ServiceBuilder:
        self._labels = dict(labels)
        return self

    def select_labels(self, labels: Labels) -> ServiceBuilder:
        self._selector = dict(labels)
        return self

    def owner_ref(self, owner_ref: OwnerRefs | None) -> ServiceBuilder:
        self._owner_ref = owner_ref
        return self

    def to_service(self) -> dict[str, Any] | None:
        """Return the Service, or None when the component listens on no port."""
        port = self.component.listening_port()
        if port is None:
            return None
        return {
            "apiVersion": "v1",
            "kind": "Service",
            "metadata": form_metadata(self.name, self._labels, self._owner_ref),
            "spec": {
                "selector": dict(self._selector),
                "ports": [port.to_service_port()],
            },
        }

    def get_status(self, client: KubeClient, namespace: str) -> str:
        """Report whether the service exists."""
        try:
            svc = client.get_status("Service", namespace, self.name)
        except KubeApiError as err:
            return str(err)
        return "created" if svc.get("status") is not None else "not existed"

    def do_request(self, client: KubeClient, namespace: str, phase: str) -> Any:
        """Apply the service: "modify" patches its spec, "delete" deletes, anything else creates."""
        svc = self.to_service()
        if svc is None:
            logger.info("Not attaching service to pod with no container ports.")
            return None
        logger.debug("Service:\n%s", json.dumps(svc, indent=2))
        if phase == "modify":
            return client.patch("Service", namespace, self.name, svc["spec"])
        if phase == "delete":
            return client.delete("Service", namespace, self.name)
        return client.create("Service", namespace, svc)