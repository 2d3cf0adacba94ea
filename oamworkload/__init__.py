"""Kubernetes manifest builders, an API client and OAM workload types (servers, workers, tasks)."""

__version__ = "0.1.0"