"""Task workload types: non-daemon processes run as Kubernetes Jobs."""

from __future__ import annotations

from dataclasses import dataclass

from oamworkload.jobs import JobBuilder
from oamworkload.workload_builder import Labels, WorkloadMetadata, WorkloadType


@dataclass
class _TaskWorkload(WorkloadType):
    """A workload run as a single Kubernetes Job."""

    meta: WorkloadMetadata

    def _configured_job(self, labels: Labels) -> JobBuilder:
        return (
            JobBuilder(self.meta.instance_name, self.meta.definition)
            .parameter_map(self.meta.params)
            .labels(labels)
            .annotations(self.meta.annotations)
            .owner_ref(self.meta.owner_ref)
            .restart_policy("Never")
        )

    def _request(self, builder: JobBuilder, phase: str) -> None:
        builder.do_request(self.meta.client, self.meta.namespace, phase)

    def _job_status(self) -> dict[str, str]:
        name = self.meta.instance_name
        state = JobBuilder(name, self.meta.definition).get_status(
            self.meta.client, self.meta.namespace
        )
        return {f"job/{name}": state}


@dataclass
class ReplicatedTask(_TaskWorkload):
    """A non-daemon process that can be parallelized."""

    replica_count: int | None = None

    def labels(self) -> Labels:
        return self.meta.labels("Task")

    def kube_name(self) -> str:
        return self.meta.instance_name

    def _job(self) -> JobBuilder:
        count = 1 if self.replica_count is None else self.replica_count
        return self._configured_job(self.labels()).parallelism(count)

    def add(self) -> None:
        self._request(self._job(), "add")

    def modify(self) -> None:
        self._request(self._job(), "modify")

    def delete(self) -> None:
        self._request(JobBuilder(self.kube_name(), self.meta.definition), "delete")

    def status(self) -> dict[str, str]:
        return self._job_status()


@dataclass
class SingletonTask(_TaskWorkload):
    """A single non-daemon process."""

    def labels(self) -> Labels:
        return self.meta.labels("SingletonTask")

    def kube_name(self) -> str:
        return self.meta.instance_name

    def add(self) -> None:
        self._request(self._configured_job(self.labels()), "add")

    def modify(self) -> None:
        self._request(self._configured_job(self.labels()), "modify")

    def delete(self) -> None:
        self._request(JobBuilder(self.kube_name(), self.meta.definition), "delete")

    def status(self) -> dict[str, str]:
        return self._job_status()