"""Finds Ingresses that refer to missing classes, Services or TLS Secrets."""

from __future__ import annotations

from kubediag.cluster import ClusterError
from kubediag.model import AnalysisContext, Failure, Result, collect_results, sensitive_values

INGRESS_CLASS_ANNOTATION = "kubernetes.io/ingress.class"


class IngressAnalyzer:
    """Reports Ingresses whose class, backend Services or TLS Secrets are missing."""

    kind = "Ingress"

    def analyze(self, ctx: AnalysisContext) -> list[Result]:
        kind = self.kind
        ctx.metrics.delete_partial_match(analyzer_name=kind)

        pre_analysis: dict[str, list[Failure]] = {}
        for ingress in ctx.client.list("Ingress", ctx.namespace):
            metadata = ingress.get("metadata") or {}
            name = metadata.get("name", "")
            namespace = metadata.get("namespace", "")
            spec = ingress.get("spec") or {}

            failures: list[Failure] = []
            class_name = spec.get("ingressClassName")
            if class_name is None:
                annotated = (metadata.get("annotations") or {}).get(INGRESS_CLASS_ANNOTATION, "")
                if annotated:
                    class_name = annotated
                else:
                    failures.append(
                        Failure(
                            text=f"Ingress {namespace}/{name} does not specify an Ingress class.",
                            sensitive=sensitive_values(namespace, name),
                        )
                    )

            if class_name is not None:
                try:
                    ctx.client.get("IngressClass", class_name)
                except ClusterError:
                    failures.append(
                        Failure(
                            text=f"Ingress uses the ingress class {class_name} which does not exist.",
                            sensitive=sensitive_values(class_name),
                        )
                    )

            for rule in spec.get("rules") or []:
                http = rule.get("http")
                if http is None:
                    continue
                for path in http.get("paths") or []:
                    service_name = ((path.get("backend") or {}).get("service") or {}).get("name", "")
                    try:
                        ctx.client.get("Service", service_name, namespace)
                    except ClusterError:
                        failures.append(
                            Failure(
                                text=f"Ingress uses the service {namespace}/{service_name} which does not exist.",
                                sensitive=sensitive_values(namespace, service_name),
                            )
                        )

            for tls in spec.get("tls") or []:
                secret_name = tls.get("secretName", "")
                try:
                    ctx.client.get("Secret", secret_name, namespace)
                except ClusterError:
                    failures.append(
                        Failure(
                            text=(
                                f"Ingress uses the secret {namespace}/{secret_name} "
                                "as a TLS certificate which does not exist."
                            ),
                            sensitive=sensitive_values(namespace, secret_name),
                        )
                    )

            if failures:
                pre_analysis[f"{namespace}/{name}"] = failures
                ctx.metrics.set(kind, name, namespace, len(failures))

        return collect_results(ctx, kind, pre_analysis)