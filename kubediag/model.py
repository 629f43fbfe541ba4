"""Core data types shared by the analyzers: failures, results and metrics."""

from __future__ import annotations

import secrets
import string
import threading
from dataclasses import dataclass, field
from typing import Any, Mapping

_MASK_ALPHABET = string.ascii_letters + string.digits


def mask_string(value: str) -> str:
    """Return a random alphanumeric string as long as ``value``."""
    return "".join(secrets.choice(_MASK_ALPHABET) for _ in value)


@dataclass(frozen=True)
class Sensitive:
    """A value that may be replaced by its masked form before it leaves the host."""

    unmasked: str
    masked: str


def sensitive_values(*args: str) -> list[Sensitive]:
    """Pair every given value with a freshly masked copy."""
    return [Sensitive(unmasked=value, masked=mask_string(value)) for value in args]


@dataclass
class Failure:
    """One problem found on one object."""

    text: str
    sensitive: list[Sensitive] = field(default_factory=list)
    kubernetes_doc: str = ""


@dataclass
class Result:
    """All problems found on one object, keyed by its name."""

    kind: str
    name: str
    error: list[Failure] = field(default_factory=list)
    parent_object: str = ""


class ErrorMetric:
    """A gauge of failure counts labelled by analyzer, object and namespace."""

    LABELS = ("analyzer_name", "object_name", "namespace")

    def __init__(self) -> None:
        self._values: dict[tuple[str, str, str], float] = {}
        self._lock = threading.Lock()

    def set(self, analyzer_name: str, object_name: str, namespace: str, value: float) -> None:
        with self._lock:
            self._values[(analyzer_name, object_name, namespace)] = float(value)

    def get(self, analyzer_name: str, object_name: str, namespace: str) -> float | None:
        with self._lock:
            return self._values.get((analyzer_name, object_name, namespace))

    def delete_partial_match(self, **kwargs: str) -> int:
        """Remove every series whose labels match all the given ones; return how many."""
        unknown = set(kwargs) - set(self.LABELS)
        if unknown:
            raise ValueError(f"unknown label(s): {', '.join(sorted(unknown))}")
        wanted = {self.LABELS.index(label): value for label, value in kwargs.items()}
        with self._lock:
            doomed = [
                key
                for key in self._values
                if all(key[index] == value for index, value in wanted.items())
            ]
            for key in doomed:
                del self._values[key]
        return len(doomed)

    def __len__(self) -> int:
        with self._lock:
            return len(self._values)


ANALYZER_ERRORS = ErrorMetric()


@dataclass
class AnalysisContext:
    """What an analyzer works on: a cluster, a namespace and earlier results."""

    client: Any
    namespace: str = ""
    results: list[Result] = field(default_factory=list)
    metrics: ErrorMetric = field(default_factory=lambda: ANALYZER_ERRORS)


def collect_results(
    ctx: AnalysisContext, kind: str, pre_analysis: Mapping[str, list[Failure]]
) -> list[Result]:
    """Return the context's results followed by one result per analysed object."""
    return [
        *ctx.results,
        *(Result(kind=kind, name=key, error=list(failures)) for key, failures in pre_analysis.items()),
    ]