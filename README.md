# oamworkload

`oamworkload` turns an OAM component into Kubernetes resource manifests
(plain dictionaries ready for JSON) and creates, patches, deletes and
inspects them through a small Kubernetes API client.

## Workload types

| Class                               | Module                  | Resources             |
|-------------------------------------|-------------------------|-----------------------|
| `ReplicatedServer`                  | `oamworkload.server`    | Deployment + Service  |
| `SingletonServer`                   | `oamworkload.server`    | StatefulSet + Service |
| `ReplicatedWorker`                  | `oamworkload.worker`    | Deployment            |
| `SingletonWorker`                   | `oamworkload.worker`    | StatefulSet           |
| `ReplicatedTask`                    | `oamworkload.task`      | Job                   |
| `SingletonTask`                     | `oamworkload.task`      | Job                   |

Each is a dataclass holding a `WorkloadMetadata` as `meta` (the replicated
task and worker also take an optional `replica_count`) and implements the
`WorkloadType` interface from `oamworkload.workload_builder`:

- `kube_name()` – the instance name used for every resource,
- `labels()` – the labels applied to the resources,
- `add()` – creates the resources; servers and workers create their config
  maps first, tasks create them as part of the Job request,
- `modify()` – patches the resources,
- `delete()` – deletes them,
- `status()` – returns a mapping such as
  `{"deployment/web": "running", "service/web": "created"}`,
- `validate()` – raises `WorkloadError` if the workload is invalid; it is
  not called by `add()` or `modify()`.

Specific behaviour:

- A Service is only sent when the component has a listening port; otherwise
  the service step is skipped.
- Workers must not declare ports: `validate()` (via
  `oamworkload.worker.validate_worker`) raises `WorkloadError` naming the first
  container that does. Other workload types accept any component.
- `SingletonServer.modify()` always raises `WorkloadError`; delete and re-add
  the workload instead.
- `ReplicatedTask` runs its Job with `parallelism` set to `replica_count`
  (1 when unset). `ReplicatedWorker` stores `replica_count` but does not set
  replicas on its Deployment.

Status values: Deployments report `running`, `updating` or `unavailable`;
StatefulSets `running` or `updating`; Jobs `running`, `failed` or
`succeeded`; Services `created` or `not existed`.

Every resource carries these labels from `WorkloadMetadata.labels()`:

- `app.kubernetes.io/name` – the release name (`meta.name`)
- `oam.dev/instance-name` – the instance name
- `oam.dev/workload-type` – the workload type

Services select pods with `WorkloadMetadata.select_labels()`, which holds the
first two.

## Builders

- `DeploymentBuilder(name, component).to_deployment()` –
  `oamworkload.workload_builder`, restart policy `Always`
- `StatefulsetBuilder(name, component).to_statefulset()` –
  `oamworkload.statefulset_builder`, restart policy `Always`
- `JobBuilder(name, component).to_job()` – `oamworkload.jobs`, restart
  policy `Never` by default, `backoffLimit` 4
- `ServiceBuilder(name, component).to_service()` – `oamworkload.services`,
  returns `None` when the component has no listening port

They are configured with chained calls (`labels`, `annotations`,
`parameter_map`, `owner_ref`, plus `restart_policy` and `parallelism` on
`JobBuilder` and `select_labels` on `ServiceBuilder`) and send their resource
with `do_request(client, namespace, phase)`: `"modify"` patches, `"delete"`
deletes, any other phase creates.

`form_metadata(name, labels, owner_references)` and
`to_config_maps(configs, owner_ref, labels)` in `oamworkload.workload_builder`
build object metadata and ConfigMaps (ordered by name) directly.

## Talking to a cluster

`KubeClient(base_path, transport=None)` exposes `create`, `patch` (merge
patch), `delete` and `get_status` for Deployments, StatefulSets, Jobs,
Services and ConfigMaps. By default it uses `urllib`; pass a `transport`
callable `(method, url, body, headers) -> (status, body_bytes)` to send
requests another way. Responses with status 400 or above, and unreachable
servers, raise `KubeApiError` (a subclass of `WorkloadError`).

Status lookups that fail with `KubeApiError` are reported as the error text
instead of being raised; a Deployment, StatefulSet or Job response with no
`status` field raises `WorkloadError`.

## What this package does not do

- It has no component model. The `component` / `meta.definition` you supply
  must provide `containers` (each with `name` and `ports`),
  `to_pod_spec_with_policy(params, restart_policy)`,
  `evaluate_configs(params)` and, for services, `listening_port()` returning
  an object with `to_service_port()`.
- It reads no kubeconfig and adds no credentials to requests; supply a
  transport that does if your cluster requires it.
- It runs no controller or watch loop and provides no command-line tool.

## Installing

```
pip install .
```

Run the tests with:

```
pip install .[test]
pytest
```