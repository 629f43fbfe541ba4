from kubediag.cluster import Cluster
from kubediag.model import AnalysisContext, ErrorMetric
from kubediag.netpol import NetworkPolicyAnalyzer


def _policy(namespace="default", match_labels=None):
    if match_labels is None:
        match_labels = {"app": "example"}
    return {
        "kind": "NetworkPolicy",
        "metadata": {"name": "example", "namespace": namespace},
        "spec": {
            "podSelector": {"matchLabels": match_labels},
            "ingress": [{"from": [{"podSelector": {"matchLabels": {"app": "database"}}}]}],
        },
    }


def _pod():
    return {
        "kind": "Pod",
        "metadata": {"name": "example", "namespace": "default", "labels": {"app": "example"}},
        "spec": {"containers": [{"name": "example", "image": "example"}]},
    }


def _context(*objects):
    return AnalysisContext(client=Cluster(*objects), namespace="default", metrics=ErrorMetric())


def test_netpol_no_pods():
    results = NetworkPolicyAnalyzer().analyze(_context(_policy()))
    assert len(results) == 1
    assert results[0].kind == "NetworkPolicy"
    assert results[0].error[0].text == "Network policy is not applied to any pods: example"


def test_netpol_with_pod():
    results = NetworkPolicyAnalyzer().analyze(_context(_policy(), _pod()))
    assert len(results) == 0


def test_netpol_no_pods_namespace_filtering():
    results = NetworkPolicyAnalyzer().analyze(
        _context(_policy(), _policy(namespace="other-namespace"))
    )
    assert len(results) == 1
    assert results[0].kind == "NetworkPolicy"
    assert results[0].name == "default/example"


def test_empty_selector_allows_all_pods():
    ctx = _context(_policy(match_labels={}), _pod())
    results = NetworkPolicyAnalyzer().analyze(ctx)
    assert [failure.text for failure in results[0].error] == [
        "Network policy allows traffic to all pods: example"
    ]
    assert results[0].error[0].sensitive[0].unmasked == "example"
    assert ctx.metrics.get("NetworkPolicy", "example", "default") == 1


def test_pod_with_other_labels_does_not_count():
    pod = _pod()
    pod["metadata"]["labels"] = {"app": "other"}
    results = NetworkPolicyAnalyzer().analyze(_context(_policy(), pod))
    assert [result.name for result in results] == ["default/example"]