import pytest

from kubediag.cluster import Cluster
from kubediag.hpa import HpaAnalyzer, pod_spec_of
from kubediag.model import AnalysisContext, ErrorMetric, Result


def make_hpa(name="example", namespace="default", target_kind="Deployment", target_name="example"):
    return {
        "kind": "HorizontalPodAutoscaler",
        "metadata": {"name": name, "namespace": namespace},
        "spec": {"scaleTargetRef": {"kind": target_kind, "name": target_name}},
    }


def make_workload(kind, name="example", namespace="default", containers=None):
    return {
        "kind": kind,
        "metadata": {"name": name, "namespace": namespace},
        "spec": {"template": {"spec": {"containers": containers or []}}},
    }


WITH_RESOURCES = {
    "name": "app",
    "resources": {"requests": {"cpu": "100m"}, "limits": {"cpu": "200m"}},
}
WITHOUT_RESOURCES = {"name": "sidecar"}


def run(cluster, namespace="default", metrics=None):
    ctx = AnalysisContext(client=cluster, namespace=namespace, metrics=metrics or ErrorMetric())
    return HpaAnalyzer().analyze(ctx)


def texts(results):
    return [failure.text for result in results for failure in result.error]


def test_missing_target_is_reported():
    results = run(Cluster(make_hpa()))
    assert len(results) == 1
    assert results[0].kind == "HorizontalPodAutoscaler"
    assert results[0].name == "default/example"
    assert texts(results) == [
        "HorizontalPodAutoscaler uses Deployment/example as ScaleTargetRef which does not exist."
    ]


def test_unsupported_target_kind_reports_two_failures():
    results = run(Cluster(make_hpa(target_kind="DaemonSet")))
    assert texts(results) == [
        "HorizontalPodAutoscaler uses DaemonSet as ScaleTargetRef which is not an option.",
        "HorizontalPodAutoscaler uses DaemonSet/example as ScaleTargetRef which does not exist.",
    ]


@pytest.mark.parametrize("kind", ["Deployment", "ReplicationController", "ReplicaSet", "StatefulSet"])
def test_configured_target_gives_no_result(kind):
    cluster = Cluster(make_hpa(target_kind=kind), make_workload(kind, containers=[WITH_RESOURCES]))
    assert run(cluster) == []


@pytest.mark.parametrize("kind", ["Deployment", "ReplicationController", "ReplicaSet", "StatefulSet"])
def test_target_without_resources_is_reported(kind):
    cluster = Cluster(make_hpa(target_kind=kind), make_workload(kind, containers=[WITHOUT_RESOURCES]))
    assert texts(run(cluster)) == [f"{kind} default/example does not have resource configured."]


def test_one_configured_container_is_enough():
    cluster = Cluster(
        make_hpa(), make_workload("Deployment", containers=[WITHOUT_RESOURCES, WITH_RESOURCES])
    )
    assert run(cluster) == []


def test_requests_without_limits_count_as_unconfigured():
    container = {"name": "app", "resources": {"requests": {"cpu": "100m"}}}
    cluster = Cluster(make_hpa(), make_workload("Deployment", containers=[container]))
    assert len(texts(run(cluster))) == 1


def test_target_with_no_containers_is_reported():
    cluster = Cluster(make_hpa(), make_workload("Deployment"))
    assert len(run(cluster)) == 1


def test_namespace_filtering():
    cluster = Cluster(make_hpa(), make_hpa(namespace="other-namespace"))
    results = run(cluster)
    assert [result.name for result in results] == ["default/example"]


def test_target_in_other_namespace_is_not_found():
    cluster = Cluster(make_hpa(), make_workload("Deployment", namespace="elsewhere", containers=[WITH_RESOURCES]))
    assert len(run(cluster)) == 1


def test_earlier_results_are_kept():
    earlier = Result(kind="Pod", name="default/p")
    ctx = AnalysisContext(client=Cluster(make_hpa()), namespace="default", results=[earlier], metrics=ErrorMetric())
    results = HpaAnalyzer().analyze(ctx)
    assert results[0] == earlier
    assert len(results) == 2


def test_sensitive_values_mask_target_name():
    failure = run(Cluster(make_hpa()))[0].error[0]
    assert [item.unmasked for item in failure.sensitive] == ["example"]
    assert len(failure.sensitive[0].masked) == len("example")


def test_pod_spec_of_returns_template_spec():
    workload = make_workload("Deployment", containers=[WITH_RESOURCES])
    assert pod_spec_of(workload) == {"containers": [WITH_RESOURCES]}


def test_pod_spec_of_empty_workload():
    assert pod_spec_of({}) == {}