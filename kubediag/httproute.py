"""Finds HTTPRoutes attached to missing or refusing Gateways, or to bad backends."""

from __future__ import annotations

from typing import Any, Iterator, Mapping

from kubediag.cluster import Cluster, ClusterError, NotFoundError, labels_include_any
from kubediag.model import AnalysisContext, Failure, Result, collect_results, sensitive_values


def _listener_failures(
    route: Mapping[str, Any], gateway: Mapping[str, Any]
) -> Iterator[Failure]:
    route_meta = route.get("metadata") or {}
    route_name = route_meta.get("name", "")
    route_namespace = route_meta.get("namespace", "")
    gateway_meta = gateway.get("metadata") or {}
    gateway_name = gateway_meta.get("name", "")
    gateway_namespace = gateway_meta.get("namespace", "")
    sensitive = (route_namespace, route_name, gateway_namespace, gateway_name)

    for listener in (gateway.get("spec") or {}).get("listeners") or []:
        namespaces = (listener.get("allowedRoutes") or {}).get("namespaces")
        if namespaces is None:
            continue
        allow = namespaces.get("from")
        if allow == "Same":
            if route_namespace != gateway_namespace:
                yield Failure(
                    text=(
                        f"HTTPRoute '{route_namespace}/{route_name}' is deployed in a different "
                        f"namespace from Gateway '{gateway_namespace}/{gateway_name}' which only "
                        "allows HTTPRoutes from its namespace."
                    ),
                    sensitive=sensitive_values(*sensitive),
                )
        elif allow == "Selector":
            match_labels = (namespaces.get("selector") or {}).get("matchLabels")
            if not labels_include_any(match_labels, route_meta.get("labels")):
                yield Failure(
                    text=(
                        f"HTTPRoute '{route_namespace}/{route_name}' can't be attached on Gateway "
                        f"'{gateway_namespace}/{gateway_name}', selector labels do not match "
                        "HTTProute's labels."
                    ),
                    sensitive=sensitive_values(*sensitive),
                )


def _parent_failures(client: Cluster, route: Mapping[str, Any]) -> Iterator[Failure]:
    route_namespace = (route.get("metadata") or {}).get("namespace", "")
    for parent in (route.get("spec") or {}).get("parentRefs") or []:
        namespace = parent.get("namespace")
        if namespace is None:
            namespace = route_namespace
        gateway_name = parent.get("name", "")
        try:
            gateway = client.get("Gateway", gateway_name, namespace)
        except NotFoundError:
            yield Failure(
                text=(
                    f"HTTPRoute uses the Gateway '{namespace}/{gateway_name}' "
                    "which does not exist in the same namespace."
                ),
                sensitive=sensitive_values(namespace, gateway_name),
            )
            continue
        except ClusterError:
            continue
        yield from _listener_failures(route, gateway)


def _backend_failures(client: Cluster, route: Mapping[str, Any]) -> Iterator[Failure]:
    route_namespace = (route.get("metadata") or {}).get("namespace", "")
    for rule in (route.get("spec") or {}).get("rules") or []:
        for backend in rule.get("backendRefs") or []:
            backend_name = backend.get("name", "")
            try:
                service = client.get("Service", backend_name, route_namespace)
            except NotFoundError:
                yield Failure(
                    text=(
                        f"HTTPRoute uses the Service '{route_namespace}/{backend_name}' "
                        "which does not exist."
                    ),
                    sensitive=sensitive_values(route_namespace, backend_name),
                )
                continue
            except ClusterError:
                continue

            port = backend.get("port")
            if port is None:
                continue
            service_ports = (service.get("spec") or {}).get("ports") or []
            if any(svc_port.get("port") == port for svc_port in service_ports):
                continue
            service_meta = service.get("metadata") or {}
            service_name = service_meta.get("name", "")
            service_namespace = service_meta.get("namespace", "")
            yield Failure(
                text=(
                    f"HTTPRoute's backend service '{backend_name}' is using port '{port}' but "
                    f"the corresponding K8s service '{service_namespace}/{service_name}' "
                    "isn't configured with the same port."
                ),
                sensitive=sensitive_values(backend_name, service_name, service_namespace),
            )


class HTTPRouteAnalyzer:
    """Reports HTTPRoutes with unusable parent Gateways or backend Services."""

    kind = "HTTPRoute"

    def analyze(self, ctx: AnalysisContext) -> list[Result]:
        kind = self.kind
        ctx.metrics.delete_partial_match(analyzer_name=kind)

        pre_analysis: dict[str, list[Failure]] = {}
        for route in ctx.client.list("HTTPRoute"):
            metadata = route.get("metadata") or {}
            name = metadata.get("name", "")
            namespace = metadata.get("namespace", "")

            failures = [
                *_parent_failures(ctx.client, route),
                *_backend_failures(ctx.client, route),
            ]
            if failures:
                pre_analysis[f"{namespace}/{name}"] = failures
                ctx.metrics.set(kind, name, namespace, len(failures))

        return collect_results(ctx, kind, pre_analysis)