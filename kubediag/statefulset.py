"""Finds StatefulSets that refer to missing Services or StorageClasses."""

from __future__ import annotations

from kubediag.cluster import ClusterError
from kubediag.model import AnalysisContext, Failure, Result, collect_results, sensitive_values


class StatefulSetAnalyzer:
    """Reports StatefulSets whose governing Service or storage classes do not exist."""

    kind = "StatefulSet"

    def analyze(self, ctx: AnalysisContext) -> list[Result]:
        kind = self.kind
        ctx.metrics.delete_partial_match(analyzer_name=kind)

        pre_analysis: dict[str, list[Failure]] = {}
        for sts in ctx.client.list("StatefulSet", ctx.namespace):
            metadata = sts.get("metadata") or {}
            name = metadata.get("name", "")
            namespace = metadata.get("namespace", "")
            spec = sts.get("spec") or {}
            service_name = spec.get("serviceName", "")

            failures: list[Failure] = []
            try:
                ctx.client.get("Service", service_name, namespace)
            except ClusterError:
                failures.append(
                    Failure(
                        text=(
                            f"StatefulSet uses the service {namespace}/{service_name} "
                            "which does not exist."
                        ),
                        sensitive=sensitive_values(namespace, service_name),
                    )
                )

            for template in spec.get("volumeClaimTemplates") or []:
                storage_class = (template.get("spec") or {}).get("storageClassName")
                if storage_class is None:
                    continue
                try:
                    ctx.client.get("StorageClass", storage_class)
                except ClusterError:
                    failures.append(
                        Failure(
                            text=f"StatefulSet uses the storage class {storage_class} which does not exist.",
                            sensitive=sensitive_values(storage_class),
                        )
                    )

            if failures:
                pre_analysis[f"{namespace}/{name}"] = failures
                ctx.metrics.set(kind, name, namespace, len(failures))

        return collect_results(ctx, kind, pre_analysis)