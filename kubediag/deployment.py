"""Finds Deployments whose replica count differs from what is running.

Also holds the object loop that every analyzer runs.
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, Iterator, Mapping

from kubediag.model import AnalysisContext, Failure, Result, collect_results, sensitive_values

_Check = Callable[[Mapping[str, Any], str, str], Iterable[Failure]]


def _analyze_each(
    ctx: AnalysisContext,
    kind: str,
    check: _Check,
    *,
    resource: str | None = None,
    result_kind: str | None = None,
    cluster_scoped: bool = False,
) -> list[Result]:
    """Run ``check`` on every listed object and gather its failures into results."""
    ctx.metrics.delete_partial_match(analyzer_name=kind)
    resource = resource or kind
    if cluster_scoped:
        objects = ctx.client.list(resource)
    else:
        objects = ctx.client.list(resource, ctx.namespace)

    pre_analysis: dict[str, list[Failure]] = {}
    for obj in objects:
        metadata = obj.get("metadata") or {}
        name = metadata.get("name", "")
        namespace = metadata.get("namespace", "")
        failures = list(check(obj, namespace, name))
        if failures:
            key = name if cluster_scoped else f"{namespace}/{name}"
            pre_analysis[key] = failures
            ctx.metrics.set(kind, name, namespace, len(failures))

    return collect_results(ctx, result_kind or kind, pre_analysis)


def _replica_failures(deployment: Mapping[str, Any], namespace: str, name: str) -> Iterator[Failure]:
    desired = (deployment.get("spec") or {}).get("replicas", 1)
    current = (deployment.get("status") or {}).get("replicas", 0)
    if desired != current:
        yield Failure(
            text=f"Deployment {namespace}/{name} has {desired} replicas but {current} are available",
            sensitive=sensitive_values(namespace, name),
        )


class DeploymentAnalyzer:
    """Checks Deployments for misconfigured replica counts."""

    kind = "Deployment"

    def analyze(self, ctx: AnalysisContext) -> list[Result]:
        return _analyze_each(ctx, self.kind, _replica_failures)