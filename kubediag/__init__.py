"""Analyzers that report misconfigured and unhealthy Kubernetes resources held in an in-memory cluster."""

__version__ = "0.1.0"