"""Finds Nodes reporting unhealthy conditions."""

from __future__ import annotations

from typing import Any, Iterator, Mapping

from kubediag.deployment import _analyze_each
from kubediag.model import AnalysisContext, Failure, Result, sensitive_values


def _condition_failures(node: Mapping[str, Any], namespace: str, name: str) -> Iterator[Failure]:
    for condition in (node.get("status") or {}).get("conditions") or []:
        healthy = "True" if condition.get("type") == "Ready" else "False"
        if condition.get("status") != healthy:
            yield Failure(
                text=(
                    f"{name} has condition of type {condition.get('type', '')}, "
                    f"reason {condition.get('reason', '')}: {condition.get('message', '')}"
                ),
                sensitive=sensitive_values(name),
            )


class NodeAnalyzer:
    """Checks that Nodes are Ready and free of pressure conditions."""

    kind = "Node"

    def analyze(self, ctx: AnalysisContext) -> list[Result]:
        return _analyze_each(ctx, self.kind, _condition_failures, cluster_scoped=True)