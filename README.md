# kubediag

kubediag looks through the state of a Kubernetes cluster and reports resources that are
misconfigured or unhealthy. Each check is a small analyzer for one kind of resource. It
returns plain `Result` objects that say what is wrong and which names appear in the text.

## Installation

```
pip install kubediag
```

To run the test suite:

```
pip install "kubediag[test]"
pytest
```

## Concepts

- `kubediag.cluster.Cluster` is an in-memory store of cluster objects, held as plain
  dictionaries shaped like Kubernetes manifests (`kind`, `metadata`, `spec`, `status`).
  It supports `add`, `list` (with namespace, label and field selectors; an empty
  namespace means every namespace) and `get`, which raises `NotFoundError` when an
  object is missing. Both `NotFoundError` and other request errors derive from
  `ClusterError`. Pod logs are stored with `set_pod_logs` and read back with `pod_logs`,
  optionally limited to the last `tail_lines` lines.
- `kubediag.model.AnalysisContext` holds the cluster, the namespace to look at, the
  results gathered so far, and the `ErrorMetric` to record into.
- Every analyzer has an `analyze(ctx)` method that returns the context's earlier results
  followed by one `Result` per object with problems. Each result has a `kind`, a `name`
  (`namespace/name`, or just the name for cluster-scoped objects such as nodes and
  gateway classes) and a list of `Failure` entries. Every `Failure` carries its text and
  the `Sensitive` values it contains, each given both plainly and masked.
- `kubediag.model.ErrorMetric` records the number of failures found for each object,
  labelled by analyzer, object name and namespace. Each analyzer first clears its own
  series with `delete_partial_match(analyzer_name=...)`. Contexts share the module-level
  `ANALYZER_ERRORS` metric unless given another.

## Analyzers

| Module | Analyzer | Looks at |
|---|---|---|
| `kubediag.deployment` | `DeploymentAnalyzer` | the desired replica count against the actual one |
| `kubediag.node` | `NodeAnalyzer` | node conditions (Ready must be True, all others False) |
| `kubediag.replicaset` | `ReplicaSetAnalyzer` | empty replica sets that failed to create pods |
| `kubediag.pvc` | `PvcAnalyzer` | pending claims whose latest event is a provisioning failure |
| `kubediag.pod` | `PodAnalyzer` | unschedulable, crashing, failing or unready pods |
| `kubediag.log` | `LogAnalyzer` | error lines in the last 100 lines of pod logs |
| `kubediag.pdb` | `PdbAnalyzer` | disruption budgets that allow no disruption |
| `kubediag.netpol` | `NetworkPolicyAnalyzer` | policies that match every pod or no pod |
| `kubediag.service` | `ServiceAnalyzer` | services with no endpoints or with endpoints that are not ready |
| `kubediag.statefulset` | `StatefulSetAnalyzer` | missing services and storage classes |
| `kubediag.ingress` | `IngressAnalyzer` | ingress classes, backend services and TLS secrets |
| `kubediag.hpa` | `HpaAnalyzer` | scale targets and container resources |
| `kubediag.webhook` | `MutatingWebhookAnalyzer`, `ValidatingWebhookAnalyzer` | pods behind the services that webhooks call |
| `kubediag.gateway` | `GatewayAnalyzer`, `GatewayClassAnalyzer` | gateway classes and acceptance status |
| `kubediag.httproute` | `HTTPRouteAnalyzer` | parent gateways, allowed namespaces and backend ports |

`LogAnalyzer` reports its findings with the kind `Pod`.

## Example

```python
from kubediag.cluster import Cluster
from kubediag.model import AnalysisContext
from kubediag.deployment import DeploymentAnalyzer

cluster = Cluster()
cluster.add({
    "kind": "Deployment",
    "metadata": {"name": "example", "namespace": "default"},
    "spec": {"replicas": 3},
    "status": {"replicas": 2},
})

ctx = AnalysisContext(client=cluster, namespace="default")
for result in DeploymentAnalyzer().analyze(ctx):
    print(result.kind, result.name)
    for failure in result.error:
        print("  ", failure.text)
```

This prints:

```
Deployment default/example
   Deployment default/example has 3 replicas but 2 are available
```

## Helpers

- `kubediag.model.mask_string(value)` returns a random alphanumeric string of the same
  length; `sensitive_values(*values)` pairs each value with such a masked copy.
- `kubediag.model.collect_results(ctx, kind, pre_analysis)` turns a mapping of object
  keys to failures into results appended after the context's own.
- `kubediag.cluster.format_label_selector` and `parse_label_selector` convert between
  label dictionaries and `key=value,...` selector strings.
- `kubediag.cluster.labels_include_any(selector, labels)` tells whether any selector
  label is present on an object.
- `kubediag.cluster.fetch_latest_event(client, namespace, name)` returns the event about
  the named object with the latest `lastTimestamp`, or `None`.
- `kubediag.pod.is_error_reason(reason)` tells whether a container waiting reason is a
  failure.
- `kubediag.log.first_error_line(logs)` returns the first log line that mentions an
  error, an exception or a failure.
- `kubediag.hpa.pod_spec_of(workload)` returns the pod template spec of a workload.

## What it does not do

kubediag works only on the objects and logs you load into a `Cluster`. It does not
connect to a Kubernetes API server, has no command-line tool, does not explain results
in prose or send them anywhere, and does not export its metrics to a monitoring system.