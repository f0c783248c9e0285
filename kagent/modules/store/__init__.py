"""
Store Module - Black Box Interface

Purpose: Keep Kubernetes-style objects keyed by (kind, namespace, name)
Interface: get(), list(), create(), update(), delete()
Hidden: Redis key layout, JSON serialization, version stamping

Can be replaced with a real API server client exposing the same calls.
"""

from .store import ResourceStore

__all__ = ["ResourceStore"]
