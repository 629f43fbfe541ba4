"""Finds NetworkPolicies that select every pod or no pod at all."""

from __future__ import annotations

from typing import Any, Iterator, Mapping

from kubediag.deployment import _analyze_each
from kubediag.model import AnalysisContext, Failure, Result, sensitive_values


def _policy_failures(
    ctx: AnalysisContext, policy: Mapping[str, Any], namespace: str, name: str
) -> Iterator[Failure]:
    pod_selector = (policy.get("spec") or {}).get("podSelector") or {}
    match_labels = pod_selector.get("matchLabels") or {}
    if not match_labels:
        text = f"Network policy allows traffic to all pods: {name}"
    elif not ctx.client.list("Pod", ctx.namespace, label_selector=match_labels):
        text = f"Network policy is not applied to any pods: {name}"
    else:
        return
    yield Failure(text=text, sensitive=sensitive_values(name))


class NetworkPolicyAnalyzer:
    """Reports policies that match all pods or are not applied to any."""

    kind = "NetworkPolicy"

    def analyze(self, ctx: AnalysisContext) -> list[Result]:
        return _analyze_each(
            ctx,
            self.kind,
            lambda policy, namespace, name: _policy_failures(ctx, policy, namespace, name),
        )