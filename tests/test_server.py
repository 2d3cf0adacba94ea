import json

import pytest

from oamworkload.server import ReplicatedServer, SingletonServer, to_config_maps
from oamworkload.workload_builder import KubeApiError, KubeClient, WorkloadError, WorkloadMetadata

BASE = "http://kube.test"
DEPLOYMENTS = BASE + "/apis/apps/v1/namespaces/tests/deployments"
STATEFULSETS = BASE + "/apis/apps/v1/namespaces/tests/statefulsets"
SERVICES = BASE + "/api/v1/namespaces/tests/services"
CONFIGMAPS = BASE + "/api/v1/namespaces/tests/configmaps"


class Recorder:
    def __init__(self, responses=None):
        self.calls = []
        self.responses = responses or {}

    def __call__(self, method, url, body, headers):
        self.calls.append((method, url, json.loads(body) if body else None))
        status, payload = self.responses.get((method, url), (200, {}))
        return status, json.dumps(payload).encode()


class FakePort:
    def to_service_port(self):
        return {"name": "http", "port": 80, "targetPort": 80, "protocol": "TCP"}


class FakeComponent:
    def __init__(self, configs=None, port=True):
        self.containers = []
        self.configs = configs or {}
        self.port = FakePort() if port else None

    def to_pod_spec_with_policy(self, params, restart_policy):
        return {"restartPolicy": restart_policy, "containers": []}

    def evaluate_configs(self, params):
        return self.configs

    def listening_port(self):
        return self.port


def make_meta(instance_name, transport=None, component=None):
    return WorkloadMetadata(
        name="de",
        component_name="hydrate",
        instance_name=instance_name,
        namespace="tests",
        definition=component or FakeComponent(),
        client=KubeClient(BASE, transport or Recorder()),
        params={},
        owner_ref=None,
        annotations=None,
    )


def test_singleton_service_kube_name():
    sing = SingletonServer(meta=make_meta("squidgy"))
    assert sing.kube_name() == "squidgy"
    assert sing.labels()["oam.dev/workload-type"] == "SingletonServer"


def test_replicated_service_kube_name():
    rs = ReplicatedServer(meta=make_meta("dehydrate"))
    assert rs.kube_name() == "dehydrate"
    assert rs.labels()["oam.dev/workload-type"] == "Service"


def test_to_config_maps():
    c20 = {"default_user.txt": "admin"}
    c21 = {"db-data": "test one"}
    cms = to_config_maps({"container21": c21, "container20": c20}, None, None)
    assert len(cms) == 2
    assert cms[0]["metadata"]["name"] == "container20"
    assert cms[0]["data"] == c20
    assert cms[1]["data"] == c21


def test_replicated_add_creates_config_maps_deployment_and_service():
    rec = Recorder()
    comp = FakeComponent(configs={"cfg": {"a": "b"}})
    ReplicatedServer(meta=make_meta("web", rec, comp)).add()
    assert [(m, u) for m, u, _ in rec.calls] == [
        ("POST", CONFIGMAPS),
        ("POST", DEPLOYMENTS),
        ("POST", SERVICES),
    ]
    assert rec.calls[0][2]["metadata"]["labels"]["oam.dev/workload-type"] == "Service"
    deployment = rec.calls[1][2]
    assert deployment["metadata"]["name"] == "web"
    assert deployment["spec"]["template"]["spec"]["restartPolicy"] == "Always"
    service = rec.calls[2][2]
    assert service["spec"]["selector"] == {
        "app.kubernetes.io/name": "de",
        "oam.dev/instance-name": "web",
    }


def test_replicated_add_without_port_skips_service():
    rec = Recorder()
    ReplicatedServer(meta=make_meta("web", rec, FakeComponent(port=False))).add()
    assert [(m, u) for m, u, _ in rec.calls] == [("POST", DEPLOYMENTS)]


def test_replicated_add_stops_when_config_map_fails():
    rec = Recorder({("POST", CONFIGMAPS): (409, {"message": "already exists"})})
    comp = FakeComponent(configs={"cfg": {"a": "b"}})
    with pytest.raises(KubeApiError):
        ReplicatedServer(meta=make_meta("web", rec, comp)).add()
    assert len(rec.calls) == 1


def test_replicated_modify_patches():
    rec = Recorder()
    ReplicatedServer(meta=make_meta("web", rec)).modify()
    assert [(m, u) for m, u, _ in rec.calls] == [
        ("PATCH", DEPLOYMENTS + "/web"),
        ("PATCH", SERVICES + "/web"),
    ]


def test_replicated_delete():
    rec = Recorder()
    ReplicatedServer(meta=make_meta("web", rec)).delete()
    assert [(m, u) for m, u, _ in rec.calls] == [
        ("DELETE", DEPLOYMENTS + "/web"),
        ("DELETE", SERVICES + "/web"),
    ]


def test_replicated_status_running():
    rec = Recorder(
        {
            ("GET", DEPLOYMENTS + "/web/status"): (
                200,
                {"status": {"replicas": 2, "availableReplicas": 2}},
            ),
            ("GET", SERVICES + "/web/status"): (200, {"status": {}}),
        }
    )
    status = ReplicatedServer(meta=make_meta("web", rec)).status()
    assert status == {"deployment/web": "running", "service/web": "created"}


def test_replicated_status_reports_api_errors():
    rec = Recorder(
        {
            ("GET", DEPLOYMENTS + "/web/status"): (404, {"message": "not found"}),
            ("GET", SERVICES + "/web/status"): (404, {"message": "not found"}),
        }
    )
    status = ReplicatedServer(meta=make_meta("web", rec)).status()
    assert status == {
        "deployment/web": "ApiError 404: not found",
        "service/web": "ApiError 404: not found",
    }


def test_singleton_add_uses_statefulset():
    rec = Recorder()
    comp = FakeComponent(configs={"cfg": {"a": "b"}})
    SingletonServer(meta=make_meta("solo", rec, comp)).add()
    assert [(m, u) for m, u, _ in rec.calls] == [
        ("POST", CONFIGMAPS),
        ("POST", STATEFULSETS),
        ("POST", SERVICES),
    ]
    labels = rec.calls[0][2]["metadata"]["labels"]
    assert labels["oam.dev/workload-type"] == "singleton-service"
    sts_labels = rec.calls[1][2]["metadata"]["labels"]
    assert sts_labels["oam.dev/workload-type"] == "SingletonServer"


def test_singleton_modify_unsupported():
    rec = Recorder()
    with pytest.raises(WorkloadError, match="we don't support SingletonServer solo modify"):
        SingletonServer(meta=make_meta("solo", rec)).modify()
    assert rec.calls == []


def test_singleton_delete():
    rec = Recorder()
    SingletonServer(meta=make_meta("solo", rec)).delete()
    assert [(m, u) for m, u, _ in rec.calls] == [
        ("DELETE", STATEFULSETS + "/solo"),
        ("DELETE", SERVICES + "/solo"),
    ]


def test_singleton_status():
    rec = Recorder(
        {
            ("GET", STATEFULSETS + "/solo/status"): (
                200,
                {"status": {"replicas": 1, "readyReplicas": 0}},
            ),
            ("GET", SERVICES + "/solo/status"): (200, {}),
        }
    )
    status = SingletonServer(meta=make_meta("solo", rec)).status()
    assert status == {"statefulset/solo": "updating", "service/solo": "not existed"}