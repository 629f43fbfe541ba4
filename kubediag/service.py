"""Finds Services without endpoints or with endpoints that are not ready."""

from __future__ import annotations

import logging

from kubediag.cluster import ClusterError
from kubediag.model import AnalysisContext, Failure, Result, collect_results, sensitive_values

LEADER_ELECTION_ANNOTATION = "control-plane.alpha.kubernetes.io/leader"

_log = logging.getLogger(__name__)


class ServiceAnalyzer:
    """Reports Services whose Endpoints are empty or hold addresses that are not ready."""

    kind = "Service"

    def analyze(self, ctx: AnalysisContext) -> list[Result]:
        kind = self.kind
        ctx.metrics.delete_partial_match(analyzer_name=kind)

        pre_analysis: dict[str, list[Failure]] = {}
        for endpoints in ctx.client.list("Endpoints", ctx.namespace):
            metadata = endpoints.get("metadata") or {}
            name = metadata.get("name", "")
            namespace = metadata.get("namespace", "")
            subsets = endpoints.get("subsets") or []

            failures: list[Failure] = []
            if not subsets:
                if LEADER_ELECTION_ANNOTATION in (metadata.get("annotations") or {}):
                    continue
                try:
                    service = ctx.client.get("Service", name, namespace)
                except ClusterError:
                    _log.warning("Service %s/%s does not exist", namespace, name)
                    continue
                selector = (service.get("spec") or {}).get("selector") or {}
                failures.extend(
                    Failure(
                        text=f"Service has no endpoints, expected label {key}={value}",
                        sensitive=sensitive_values(key, value),
                    )
                    for key, value in selector.items()
                )
            else:
                pods: list[str] = []
                for subset in subsets:
                    not_ready = subset.get("notReadyAddresses") or []
                    if not not_ready:
                        continue
                    for address in not_ready:
                        target = address.get("targetRef") or {}
                        pods.append(f"{target.get('kind', '')}/{target.get('name', '')}")
                    failures.append(
                        Failure(
                            text=(
                                f"Service has not ready endpoints, pods: [{' '.join(pods)}], "
                                f"expected {len(pods)}"
                            )
                        )
                    )

            if failures:
                pre_analysis[f"{namespace}/{name}"] = failures
                ctx.metrics.set(kind, name, namespace, len(failures))

        return collect_results(ctx, kind, pre_analysis)