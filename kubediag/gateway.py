"""Finds Gateways and GatewayClasses that are missing or not accepted."""

from __future__ import annotations

from typing import Any, Mapping

from kubediag.cluster import Cluster, ClusterError, NotFoundError
from kubediag.model import AnalysisContext, Failure, Result, collect_results, sensitive_values


def _first_condition(obj: Mapping[str, Any]) -> Mapping[str, Any] | None:
    conditions = (obj.get("status") or {}).get("conditions") or []
    return conditions[0] if conditions else None


def _gateway_class_missing(client: Cluster, class_name: str, namespace: str) -> bool:
    """True only when the class is known not to exist, in the namespace or cluster-wide."""
    for scope in dict.fromkeys((namespace, "")):
        try:
            client.get("GatewayClass", class_name, scope)
        except NotFoundError:
            continue
        except ClusterError:
            return False
        return False
    return True


class GatewayAnalyzer:
    """Reports Gateways whose GatewayClass is missing or which are not accepted."""

    kind = "Gateway"

    def analyze(self, ctx: AnalysisContext) -> list[Result]:
        kind = self.kind
        ctx.metrics.delete_partial_match(analyzer_name=kind)

        pre_analysis: dict[str, list[Failure]] = {}
        for gateway in ctx.client.list("Gateway"):
            metadata = gateway.get("metadata") or {}
            name = metadata.get("name", "")
            namespace = metadata.get("namespace", "")
            class_name = (gateway.get("spec") or {}).get("gatewayClassName", "")

            failures: list[Failure] = []
            if _gateway_class_missing(ctx.client, class_name, namespace):
                failures.append(
                    Failure(
                        text=f"Gateway uses the GatewayClass {class_name} which does not exist.",
                        sensitive=sensitive_values(class_name),
                    )
                )

            condition = _first_condition(gateway)
            if condition is not None and condition.get("status") != "True":
                failures.append(
                    Failure(
                        text=(
                            f"Gateway '{namespace}/{name}' is not accepted. "
                            f"Message: '{condition.get('message', '')}'."
                        ),
                        sensitive=sensitive_values(namespace, name),
                    )
                )

            if failures:
                pre_analysis[f"{namespace}/{name}"] = failures
                ctx.metrics.set(kind, name, namespace, len(failures))

        return collect_results(ctx, kind, pre_analysis)


class GatewayClassAnalyzer:
    """Reports GatewayClasses that their controller has not accepted."""

    kind = "GatewayClass"

    def analyze(self, ctx: AnalysisContext) -> list[Result]:
        kind = self.kind
        ctx.metrics.delete_partial_match(analyzer_name=kind)

        pre_analysis: dict[str, list[Failure]] = {}
        for gateway_class in ctx.client.list("GatewayClass"):
            name = (gateway_class.get("metadata") or {}).get("name", "")
            controller = (gateway_class.get("spec") or {}).get("controllerName", "")

            failures: list[Failure] = []
            condition = _first_condition(gateway_class)
            if condition is not None and condition.get("status") != "True":
                failures.append(
                    Failure(
                        text=(
                            f"GatewayClass '{name}' with a controller name '{controller}' "
                            f"is not accepted. Message: '{condition.get('message', '')}'."
                        ),
                        sensitive=sensitive_values(name),
                    )
                )

            if failures:
                pre_analysis[name] = failures
                ctx.metrics.set(kind, name, "", len(failures))

        return collect_results(ctx, kind, pre_analysis)