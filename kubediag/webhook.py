"""Finds admission webhooks whose receiving pods are missing or not running."""

from __future__ import annotations

from kubediag.cluster import ClusterError, format_label_selector
from kubediag.model import AnalysisContext, Failure, Result, collect_results, sensitive_values


class _WebhookAnalyzer:
    kind = ""
    label = ""

    def analyze(self, ctx: AnalysisContext) -> list[Result]:
        kind = self.kind
        ctx.metrics.delete_partial_match(analyzer_name=kind)

        pre_analysis: dict[str, list[Failure]] = {}
        for config in ctx.client.list(self.resource):
            config_namespace = (config.get("metadata") or {}).get("namespace", "")
            for webhook in config.get("webhooks") or []:
                webhook_name = webhook.get("name", "")
                service_ref = (webhook.get("clientConfig") or {}).get("service")
                if service_ref is None:
                    continue
                svc_name = service_ref.get("name", "")
                svc_namespace = service_ref.get("namespace", "")

                try:
                    service = ctx.client.get("Service", svc_name, svc_namespace)
                except ClusterError:
                    # Without the service there are no pods to check; nothing is reported.
                    continue

                selector = (service.get("spec") or {}).get("selector") or {}
                if not selector:
                    continue
                pods = ctx.client.list(
                    "Pod", svc_namespace, label_selector=format_label_selector(selector)
                )

                failures: list[Failure] = []
                if not pods:
                    failures.append(
                        Failure(
                            text=(
                                f"No active pods found within service {svc_name} "
                                f"as mapped to by {self.label} {webhook_name}"
                            ),
                            sensitive=sensitive_values(config_namespace),
                        )
                    )
                for pod in pods:
                    if (pod.get("status") or {}).get("phase") != "Running":
                        pod_name = (pod.get("metadata") or {}).get("name", "")
                        failures.append(
                            Failure(
                                text=(
                                    f"{self.label} ({webhook_name}) is pointing to an "
                                    f"inactive receiver pod ({pod_name})"
                                ),
                                sensitive=sensitive_values(config_namespace, webhook_name, pod_name),
                            )
                        )

                if failures:
                    pre_analysis[f"{config_namespace}/{webhook_name}"] = failures
                    ctx.metrics.set(kind, webhook_name, config_namespace, len(failures))

        return collect_results(ctx, kind, pre_analysis)


class MutatingWebhookAnalyzer(_WebhookAnalyzer):
    """Reports mutating webhooks that point at services without running pods."""

    kind = "MutatingWebhookConfiguration"
    resource = "MutatingWebhookConfiguration"
    label = "Mutating Webhook"

    def analyze(self, ctx: AnalysisContext) -> list[Result]:
        return super().analyze(ctx)


class ValidatingWebhookAnalyzer(_WebhookAnalyzer):
    """Reports validating webhooks that point at services without running pods."""

    kind = "ValidatingWebhookConfgiguration"
    resource = "ValidatingWebhookConfiguration"
    label = "Validating Webhook"

    def analyze(self, ctx: AnalysisContext) -> list[Result]:
        return super().analyze(ctx)