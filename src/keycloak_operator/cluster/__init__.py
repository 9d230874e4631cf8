"""Cluster API client package."""

from .base import (
    ClusterClient,
    ClusterError,
    KindNotRegisteredError,
    NotFoundError,
    ObjectKey,
    ResourceKind,
)

__all__ = [
    "ClusterClient",
    "ClusterError",
    "KindNotRegisteredError",
    "NotFoundError",
    "ObjectKey",
    "ResourceKind",
]
