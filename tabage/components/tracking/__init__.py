"""Tracking components: identity store, fingerprint resolution, orphan sweep."""

from .fingerprint_comp import FingerprintResolver, agrees_with, fingerprint_matches
from .identity_store_comp import ENTRIES_KEY, IdentityStore
from .orphan_detection_comp import sweep_orphans

__all__ = [
    "ENTRIES_KEY",
    "FingerprintResolver",
    "IdentityStore",
    "agrees_with",
    "fingerprint_matches",
    "sweep_orphans",
]
