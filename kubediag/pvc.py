"""Finds pending PersistentVolumeClaims whose provisioning failed."""

from __future__ import annotations

from typing import Any, Iterator, Mapping

from kubediag.cluster import Cluster, ClusterError, fetch_latest_event
from kubediag.deployment import _analyze_each
from kubediag.model import AnalysisContext, Failure, Result


def _provisioning_failures(
    client: Cluster, claim: Mapping[str, Any], namespace: str, name: str
) -> Iterator[Failure]:
    if (claim.get("status") or {}).get("phase") != "Pending":
        return
    try:
        event = fetch_latest_event(client, namespace, name)
    except ClusterError:
        return
    if event is not None and event.get("reason") == "ProvisioningFailed" and event.get("message"):
        yield Failure(text=event["message"])


class PvcAnalyzer:
    """Reports pending claims whose latest event is a provisioning failure."""

    kind = "PersistentVolumeClaim"

    def analyze(self, ctx: AnalysisContext) -> list[Result]:
        return _analyze_each(
            ctx,
            self.kind,
            lambda claim, namespace, name: _provisioning_failures(ctx.client, claim, namespace, name),
        )