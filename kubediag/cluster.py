"""An in-memory cluster that stores Kubernetes objects as plain mappings."""

from __future__ import annotations

import copy
from datetime import datetime, timezone
from typing import Any, Mapping


class ClusterError(Exception):
    """Raised when the cluster cannot carry out a request."""


class NotFoundError(ClusterError, LookupError):
    """Raised when a requested object does not exist."""


def labels_include_any(selector: Mapping[str, str] | None, labels: Mapping[str, str] | None) -> bool:
    """True when at least one key/value pair of ``selector`` is present in ``labels``."""
    labels = labels or {}
    return any(key in labels and labels[key] == value for key, value in (selector or {}).items())


def format_label_selector(labels: Mapping[str, str]) -> str:
    """Render labels as a ``key=value`` selector string."""
    return ",".join(f"{key}={value}" for key, value in sorted(labels.items()))


def parse_label_selector(selector: str) -> dict[str, str]:
    """Parse an equality-based selector such as ``app=web,tier=front``."""
    labels: dict[str, str] = {}
    for term in selector.split(","):
        term = term.strip()
        if not term:
            continue
        if "!=" in term:
            raise ValueError(f"unsupported label selector term: {term!r}")
        separator = "==" if "==" in term else "="
        if separator not in term:
            raise ValueError(f"invalid label selector term: {term!r}")
        key, value = (part.strip() for part in term.split(separator, 1))
        if not key:
            raise ValueError(f"invalid label selector term: {term!r}")
        labels[key] = value
    return labels


def _parse_field_selector(selector: str) -> list[tuple[str, bool, str]]:
    requirements = []
    for term in selector.split(","):
        term = term.strip()
        if not term:
            continue
        if "!=" in term:
            path, value = term.split("!=", 1)
            negate = True
        elif "=" in term:
            separator = "==" if "==" in term else "="
            path, value = term.split(separator, 1)
            negate = False
        else:
            raise ValueError(f"invalid field selector term: {term!r}")
        if not path.strip():
            raise ValueError(f"invalid field selector term: {term!r}")
        requirements.append((path.strip(), negate, value.strip()))
    return requirements


def _lookup(obj: Mapping[str, Any], path: str) -> str:
    current: Any = obj
    for part in path.split("."):
        if not isinstance(current, Mapping) or part not in current:
            return ""
        current = current[part]
    return "" if current is None else str(current)


def _key(obj: Any) -> tuple[str, str, str]:
    if not isinstance(obj, Mapping):
        raise ValueError("objects must be mappings")
    kind = obj.get("kind")
    metadata = obj.get("metadata") or {}
    name = metadata.get("name")
    if not kind or not name:
        raise ValueError("objects need a kind and a metadata.name")
    return kind, metadata.get("namespace") or "", name


def _timestamp(value: Any) -> datetime:
    if value is None or value == "":
        return datetime.min.replace(tzinfo=timezone.utc)
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


class Cluster:
    """Holds objects keyed by kind, namespace and name, plus pod logs."""

    def __init__(self, *objects: Mapping[str, Any]) -> None:
        self._objects: dict[tuple[str, str, str], dict[str, Any]] = {}
        self._logs: dict[tuple[str, str], str] = {}
        self.add(*objects)

    def add(self, *args: Mapping[str, Any]) -> None:
        for obj in args:
            key = _key(obj)
            if key in self._objects:
                kind, _, name = key
                raise ClusterError(f'{kind} "{name}" already exists')
            self._objects[key] = copy.deepcopy(dict(obj))

    def list(
        self,
        kind: str,
        namespace: str | None = None,
        label_selector: str | Mapping[str, str] | None = None,
        field_selector: str | None = None,
    ) -> list[dict[str, Any]]:
        """Objects of ``kind``; an empty namespace means every namespace."""
        if isinstance(label_selector, str):
            wanted_labels = parse_label_selector(label_selector)
        else:
            wanted_labels = dict(label_selector or {})
        fields = _parse_field_selector(field_selector or "")

        def matches(obj: dict[str, Any]) -> bool:
            labels = (obj.get("metadata") or {}).get("labels") or {}
            if any(labels.get(key) != value for key, value in wanted_labels.items()):
                return False
            return all((_lookup(obj, path) == value) != negate for path, negate, value in fields)

        return [
            obj
            for (obj_kind, obj_namespace, _), obj in self._objects.items()
            if obj_kind == kind and (not namespace or obj_namespace == namespace) and matches(obj)
        ]

    def get(self, kind: str, name: str, namespace: str | None = None) -> dict[str, Any]:
        try:
            return self._objects[(kind, namespace or "", name)]
        except KeyError:
            raise NotFoundError(f'{kind} "{name}" not found') from None

    def set_pod_logs(self, namespace: str, name: str, logs: str) -> None:
        self._logs[(namespace, name)] = logs

    def pod_logs(self, namespace: str, name: str, tail_lines: int | None = None) -> str:
        """Logs of a pod, limited to its last ``tail_lines`` lines when given."""
        self.get("Pod", name, namespace)
        logs = self._logs.get((namespace, name), "")
        if tail_lines is None:
            return logs
        if tail_lines <= 0:
            return ""
        return "".join(logs.splitlines(keepends=True)[-tail_lines:])


def fetch_latest_event(client: Cluster, namespace: str, name: str) -> dict[str, Any] | None:
    """The most recent event about the object ``name``, or None."""
    latest: dict[str, Any] | None = None
    latest_time: datetime | None = None
    for event in client.list("Event", namespace, field_selector=f"involvedObject.name={name}"):
        when = _timestamp(event.get("lastTimestamp"))
        if latest is None or when > latest_time:
            latest, latest_time = event, when
    return latest