"""Scans the recent logs of every Pod for error lines."""

from __future__ import annotations

import re
from typing import Any, Iterator, Mapping

from kubediag.cluster import Cluster, ClusterError
from kubediag.deployment import _analyze_each
from kubediag.model import AnalysisContext, Failure, Result, sensitive_values

ERROR_PATTERN = re.compile(r"(error|exception|fail)")
TAIL_LINES = 100


def first_error_line(logs: str) -> str:
    """The first log line mentioning an error, or an empty string."""
    return next(
        (line for line in logs.split("\n") if ERROR_PATTERN.search(line.lower())),
        "",
    )


def _log_failures(client: Cluster, pod: Mapping[str, Any], namespace: str, name: str) -> Iterator[Failure]:
    try:
        logs = client.pod_logs(namespace, name, tail_lines=TAIL_LINES)
    except ClusterError as exc:
        yield Failure(text=f"Error {exc} from Pod {name}", sensitive=sensitive_values(name))
        return
    if ERROR_PATTERN.search(logs.lower()):
        yield Failure(text=first_error_line(logs), sensitive=sensitive_values(name))


class LogAnalyzer:
    """Reports Pods whose last log lines mention errors, exceptions or failures."""

    kind = "Log"

    def analyze(self, ctx: AnalysisContext) -> list[Result]:
        return _analyze_each(
            ctx,
            self.kind,
            lambda pod, namespace, name: _log_failures(ctx.client, pod, namespace, name),
            resource="Pod",
            result_kind="Pod",
        )