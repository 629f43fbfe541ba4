"""Finds PodDisruptionBudgets that currently allow no disruption."""

from __future__ import annotations

from typing import Any, Iterator, Mapping

from kubediag.deployment import _analyze_each
from kubediag.model import AnalysisContext, Failure, Result, sensitive_values


def _budget_failures(pdb: Mapping[str, Any], namespace: str, name: str) -> Iterator[Failure]:
    conditions = (pdb.get("status") or {}).get("conditions") or []
    if not conditions:
        return
    condition = conditions[0]
    if condition.get("type") != "DisruptionAllowed" or condition.get("status") != "False":
        return
    selector = (pdb.get("spec") or {}).get("selector") or {}
    reason = condition.get("reason", "")
    for key, value in (selector.get("matchLabels") or {}).items():
        yield Failure(
            text=f"{reason}, expected pdb pod label {key}={value}",
            sensitive=sensitive_values(key, value),
        )


class PdbAnalyzer:
    """Reports budgets whose DisruptionAllowed condition is False."""

    kind = "PodDisruptionBudget"

    def analyze(self, ctx: AnalysisContext) -> list[Result]:
        return _analyze_each(ctx, self.kind, _budget_failures)