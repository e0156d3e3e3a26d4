"""Bucket components: age classification, definition validation, container reconciliation."""

from .age_classifier_comp import age_in_days, classify, select_bucket, summarize_entries
from .bucket_config_comp import DEFAULT_BUCKETS, load_bucket_definitions, parse_bucket_definitions
from .bucket_reconciler_comp import BucketReconciler, plan_reconciliation

__all__ = [
    "DEFAULT_BUCKETS",
    "BucketReconciler",
    "age_in_days",
    "classify",
    "load_bucket_definitions",
    "parse_bucket_definitions",
    "plan_reconciliation",
    "select_bucket",
    "summarize_entries",
]
