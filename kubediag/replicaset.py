"""Finds empty ReplicaSets that failed to create their pods."""

from __future__ import annotations

from typing import Any, Iterator, Mapping

from kubediag.deployment import _analyze_each
from kubediag.model import AnalysisContext, Failure, Result


def _create_failures(replica_set: Mapping[str, Any], namespace: str, name: str) -> Iterator[Failure]:
    status = replica_set.get("status") or {}
    if status.get("replicas", 0) != 0:
        return
    for condition in status.get("conditions") or []:
        if condition.get("type") == "ReplicaFailure" and condition.get("reason") == "FailedCreate":
            yield Failure(text=condition.get("message", ""))


class ReplicaSetAnalyzer:
    """Reports ReplicaSets with no replicas and a FailedCreate condition."""

    kind = "ReplicaSet"

    def analyze(self, ctx: AnalysisContext) -> list[Result]:
        return _analyze_each(ctx, self.kind, _create_failures)