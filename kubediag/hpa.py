"""Finds HorizontalPodAutoscalers whose scale targets are missing or unconfigured."""

from __future__ import annotations

from typing import Any, Mapping

from kubediag.cluster import ClusterError
from kubediag.model import AnalysisContext, Failure, Result, collect_results, sensitive_values

SCALABLE_KINDS = frozenset({"Deployment", "ReplicationController", "ReplicaSet", "StatefulSet"})


def pod_spec_of(workload: Mapping[str, Any]) -> dict[str, Any]:
    """The pod template spec of a Deployment, ReplicaSet, StatefulSet or ReplicationController."""
    template = (workload.get("spec") or {}).get("template") or {}
    return template.get("spec") or {}


def _has_resources(container: Mapping[str, Any]) -> bool:
    resources = container.get("resources") or {}
    return resources.get("requests") is not None and resources.get("limits") is not None


class HpaAnalyzer:
    """Reports autoscalers whose target does not exist or sets no resources."""

    kind = "HorizontalPodAutoscaler"

    def analyze(self, ctx: AnalysisContext) -> list[Result]:
        kind = self.kind
        ctx.metrics.delete_partial_match(analyzer_name=kind)

        pre_analysis: dict[str, list[Failure]] = {}
        for hpa in ctx.client.list("HorizontalPodAutoscaler", ctx.namespace):
            metadata = hpa.get("metadata") or {}
            name = metadata.get("name", "")
            namespace = metadata.get("namespace", "")
            ref = (hpa.get("spec") or {}).get("scaleTargetRef") or {}
            target_kind = ref.get("kind", "")
            target_name = ref.get("name", "")

            failures: list[Failure] = []
            workload = None
            if target_kind in SCALABLE_KINDS:
                try:
                    workload = ctx.client.get(target_kind, target_name, namespace)
                except ClusterError:
                    workload = None
            else:
                failures.append(
                    Failure(
                        text=(
                            f"HorizontalPodAutoscaler uses {target_kind} as ScaleTargetRef "
                            "which is not an option."
                        )
                    )
                )

            if workload is None:
                failures.append(
                    Failure(
                        text=(
                            f"HorizontalPodAutoscaler uses {target_kind}/{target_name} "
                            "as ScaleTargetRef which does not exist."
                        ),
                        sensitive=sensitive_values(target_name),
                    )
                )
            else:
                containers = pod_spec_of(workload).get("containers") or []
                configured = sum(1 for container in containers if _has_resources(container))
                if configured <= 0:
                    failures.append(
                        Failure(
                            text=(
                                f"{target_kind} {ctx.namespace}/{target_name} "
                                "does not have resource configured."
                            ),
                            sensitive=sensitive_values(target_name),
                        )
                    )

            if failures:
                pre_analysis[f"{namespace}/{name}"] = failures
                ctx.metrics.set(kind, name, namespace, len(failures))

        return collect_results(ctx, kind, pre_analysis)