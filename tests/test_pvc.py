from kubediag.cluster import Cluster
from kubediag.model import AnalysisContext, ErrorMetric
from kubediag.pvc import PvcAnalyzer

MESSAGE = 'storageclass.storage.k8s.io "fast" not found'


def claim(phase):
    return {
        "kind": "PersistentVolumeClaim",
        "metadata": {"name": "data", "namespace": "default"},
        "status": {"phase": phase},
    }


def event(reason):
    return {
        "kind": "Event",
        "metadata": {"name": "data.1", "namespace": "default"},
        "involvedObject": {"kind": "PersistentVolumeClaim", "name": "data", "namespace": "default"},
        "reason": reason,
        "message": MESSAGE,
        "lastTimestamp": "2024-01-01T00:00:00Z",
    }


def analyze(*objects):
    ctx = AnalysisContext(client=Cluster(*objects), namespace="default", metrics=ErrorMetric())
    return PvcAnalyzer().analyze(ctx)


def test_provisioning_failure_is_reported():
    results = analyze(claim("Pending"), event("ProvisioningFailed"))
    assert [result.name for result in results] == ["default/data"]
    assert results[0].kind == "PersistentVolumeClaim"
    assert results[0].error[0].text == MESSAGE


def test_pending_claim_without_events_is_ignored():
    assert analyze(claim("Pending")) == []


def test_bound_claim_is_ignored():
    assert analyze(claim("Bound"), event("ProvisioningFailed")) == []


def test_other_event_reason_is_ignored():
    assert analyze(claim("Pending"), event("ExternalProvisioning")) == []