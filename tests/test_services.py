import json
from types import SimpleNamespace

import pytest

from oamworkload.services import ServiceBuilder
from oamworkload.workload_builder import KubeClient


def http_port(number=80):
    return SimpleNamespace(
        to_service_port=lambda: {"name": "http", "port": number, "targetPort": number}
    )


def component(port=None):
    return SimpleNamespace(listening_port=lambda: port)


class FakeCluster:
    """Answers requests from a queue of (status, payload) pairs."""

    def __init__(self, *answers):
        self.answers = list(answers)
        self.seen = []
        self.client = KubeClient("http://k", self.handle)

    def handle(self, method, url, body, headers):
        self.seen.append((method, url, json.loads(body) if body else None))
        status, payload = self.answers.pop(0) if self.answers else (200, {})
        return status, json.dumps(payload).encode()


def test_service_builder():
    svc = (
        ServiceBuilder("test", component(http_port()))
        .labels({"first": "one", "second": "two"})
        .select_labels({"first": "one"})
        .owner_ref([{}])
        .to_service()
    )
    assert len(svc["metadata"]["labels"]) == 2
    assert len(svc["spec"]["selector"]) == 1
    assert len(svc["metadata"]["ownerReferences"]) == 1
    assert svc["spec"]["ports"][0]["port"] == 80
    assert svc["metadata"]["name"] == "test"


def test_service_builder_no_port():
    builder = ServiceBuilder("test", component()).labels({"a": "b"}).owner_ref([{}])
    assert builder.to_service() is None


def test_do_request_without_port_makes_no_calls():
    cluster = FakeCluster()
    ServiceBuilder("test", component()).do_request(cluster.client, "ns", "add")
    assert cluster.seen == []


@pytest.mark.parametrize(
    "phase, method, suffix",
    [
        ("add", "POST", "/namespaces/ns/services"),
        ("modify", "PATCH", "/services/test"),
        ("delete", "DELETE", "/services/test"),
    ],
)
def test_do_request_phases(phase, method, suffix):
    cluster = FakeCluster()
    builder = ServiceBuilder("test", component(http_port())).select_labels({"first": "one"})
    builder.do_request(cluster.client, "ns", phase)
    assert cluster.seen[0][0] == method
    assert cluster.seen[0][1].endswith(suffix)


def test_add_sends_service_and_modify_sends_spec_only():
    cluster = FakeCluster()
    builder = ServiceBuilder("test", component(http_port())).select_labels({"first": "one"})
    builder.do_request(cluster.client, "ns", "add")
    builder.do_request(cluster.client, "ns", "modify")
    assert cluster.seen[0][2]["kind"] == "Service"
    assert cluster.seen[1][2]["selector"] == {"first": "one"}
    assert "metadata" not in cluster.seen[1][2]


def test_get_status_created_missing_and_error():
    cluster = FakeCluster((200, {"status": {}}), (200, {"spec": {}}), (404, {"message": "gone"}))
    builder = ServiceBuilder("test", component(http_port()))
    results = [builder.get_status(cluster.client, "ns") for _ in range(3)]
    assert results[:2] == ["created", "not existed"]
    assert "gone" in results[2]