from kubediag.cluster import Cluster
from kubediag.httproute import HTTPRouteAnalyzer
from kubediag.model import AnalysisContext, ErrorMetric


def build_route_gateway(namespace, name, from_ref):
    route_namespaces = {"from": from_ref if from_ref in ("Same", "Selector") else "All"}
    if from_ref == "Selector":
        route_namespaces["selector"] = {"matchLabels": {"foo": "bar"}}
    return {
        "kind": "Gateway",
        "metadata": {"name": name, "namespace": namespace},
        "spec": {
            "gatewayClassName": "fooclassName",
            "listeners": [
                {
                    "name": "proxy",
                    "port": 80,
                    "protocol": "HTTP",
                    "allowedRoutes": {"namespaces": route_namespaces},
                }
            ],
        },
        "status": {
            "conditions": [
                {"type": "Accepted", "status": "True", "message": "An expected message", "reason": "Test"}
            ]
        },
    }


def build_http_route(backend_name, gateway_name, gateway_namespace, port, namespace, labels=None):
    metadata = {"name": "foohttproute", "namespace": namespace}
    if labels is not None:
        metadata["labels"] = labels
    return {
        "kind": "HTTPRoute",
        "metadata": metadata,
        "spec": {
            "parentRefs": [{"name": gateway_name, "namespace": gateway_namespace}],
            "rules": [{"backendRefs": [{"name": backend_name, "port": port}]}],
        },
    }


def build_service(name="foobackend", namespace="default", port=80):
    return {
        "kind": "Service",
        "metadata": {"name": name, "namespace": namespace},
        "spec": {
            "selector": {"app": "example-app"},
            "ports": [{"name": "http", "protocol": "TCP", "port": port, "targetPort": 8080}],
            "type": "ClusterIP",
        },
    }


def analyze(*objects):
    ctx = AnalysisContext(client=Cluster(*objects), namespace="default", metrics=ErrorMetric())
    return ctx, HTTPRouteAnalyzer().analyze(ctx)


def all_texts(results):
    return [failure.text for result in results for failure in result.error]


def test_missing_gateway():
    route = build_http_route("foobackend", "non-existent", "non-existent", 1027, "default")
    _, results = analyze(route)
    assert (
        "HTTPRoute uses the Gateway 'non-existent/non-existent' which does not exist in the same namespace."
        in all_texts(results)
    )


def test_gateway_allows_only_same_namespace():
    route = build_http_route("foobackend", "gatewayname", "differentnamespace", 1027, "default")
    gateway = build_route_gateway("differentnamespace", "gatewayname", "Same")
    _, results = analyze(route, gateway)
    assert (
        "HTTPRoute 'default/foohttproute' is deployed in a different namespace from Gateway "
        "'differentnamespace/gatewayname' which only allows HTTPRoutes from its namespace."
        in all_texts(results)
    )


def test_gateway_selector_does_not_match():
    route = build_http_route("foobackend", "gatewayname", "default", 1027, "default")
    gateway = build_route_gateway("default", "gatewayname", "Selector")
    _, results = analyze(route, gateway)
    assert (
        "HTTPRoute 'default/foohttproute' can't be attached on Gateway 'default/gatewayname', "
        "selector labels do not match HTTProute's labels."
        in all_texts(results)
    )


def test_gateway_selector_matches_route_labels():
    route = build_http_route("foobackend", "gatewayname", "default", 80, "default", labels={"foo": "bar"})
    gateway = build_route_gateway("default", "gatewayname", "Selector")
    _, results = analyze(route, gateway, build_service())
    assert results == []


def test_missing_service():
    route = build_http_route("foobackend", "gatewayname", "default", 1027, "default")
    gateway = build_route_gateway("default", "gatewayname", "Same")
    _, results = analyze(route, gateway)
    assert all_texts(results) == ["HTTPRoute uses the Service 'default/foobackend' which does not exist."]


def test_service_with_different_port():
    route = build_http_route("foobackend", "gatewayname", "default", 1027, "default")
    gateway = build_route_gateway("default", "gatewayname", "Same")
    ctx, results = analyze(route, gateway, build_service(port=80))
    assert all_texts(results) == [
        "HTTPRoute's backend service 'foobackend' is using port '1027' but the corresponding "
        "K8s service 'default/foobackend' isn't configured with the same port."
    ]
    assert results[0].kind == "HTTPRoute"
    assert results[0].name == "default/foohttproute"
    assert ctx.metrics.get("HTTPRoute", "foohttproute", "default") == 1.0


def test_healthy_route_reports_nothing():
    route = build_http_route("foobackend", "gatewayname", "default", 80, "default")
    gateway = build_route_gateway("default", "gatewayname", "All")
    _, results = analyze(route, gateway, build_service(port=80))
    assert results == []


def test_parent_without_namespace_uses_route_namespace():
    route = build_http_route("foobackend", "gatewayname", None, 80, "default")
    gateway = build_route_gateway("default", "gatewayname", "Same")
    _, results = analyze(route, gateway, build_service(port=80))
    assert results == []