"""Finds Pods that cannot be scheduled, crash, fail to start or are not ready."""

from __future__ import annotations

from typing import Any, Iterator, Mapping

from kubediag.cluster import Cluster, ClusterError, fetch_latest_event
from kubediag.deployment import _analyze_each
from kubediag.model import AnalysisContext, Failure, Result

_FAILURE_REASONS = frozenset(
    {
        "CrashLoopBackOff",
        "ImagePullBackOff",
        "CreateContainerConfigError",
        "PreCreateHookError",
        "CreateContainerError",
        "PreStartHookError",
        "RunContainerError",
        "ImageInspectError",
        "ErrImagePull",
        "ErrImageNeverPull",
        "InvalidImageName",
    }
)


def is_error_reason(reason: str) -> bool:
    """True when a container waiting reason denotes a failure."""
    return reason in _FAILURE_REASONS


def _event_failure(client: Cluster, namespace: str, name: str, reason: str) -> Iterator[Failure]:
    try:
        event = fetch_latest_event(client, namespace, name)
    except ClusterError:
        return
    if event is not None and event.get("reason") == reason and event.get("message"):
        yield Failure(text=event["message"])


def _pod_failures(client: Cluster, pod: Mapping[str, Any], namespace: str, name: str) -> Iterator[Failure]:
    status = pod.get("status") or {}
    phase = status.get("phase")

    if phase == "Pending":
        for condition in status.get("conditions") or []:
            if (
                condition.get("type") == "PodScheduled"
                and condition.get("reason") == "Unschedulable"
                and condition.get("message")
            ):
                yield Failure(text=condition["message"])

    for container in status.get("containerStatuses") or []:
        waiting = (container.get("state") or {}).get("waiting")
        if waiting is None:
            if not container.get("ready", False) and phase == "Running":
                yield from _event_failure(client, namespace, name, "Unhealthy")
            continue

        reason = waiting.get("reason", "")
        if is_error_reason(reason) and waiting.get("message"):
            yield Failure(text=waiting["message"])
        if reason == "ContainerCreating" and phase == "Pending":
            yield from _event_failure(client, namespace, name, "FailedCreatePodSandBox")
        if reason == "CrashLoopBackOff":
            terminated = (container.get("lastState") or {}).get("terminated") or {}
            yield Failure(
                text=(
                    f"the last termination reason is {terminated.get('reason', '')} "
                    f"container={container.get('name', '')} pod={name}"
                )
            )


class PodAnalyzer:
    """Reports problems found in pod conditions, container states and events."""

    kind = "Pod"

    def analyze(self, ctx: AnalysisContext) -> list[Result]:
        return _analyze_each(
            ctx,
            self.kind,
            lambda pod, namespace, name: _pod_failures(ctx.client, pod, namespace, name),
        )