"""Scan ledger exports."""

from .batches import BagBatchService, slugify  # noqa: F401
from .scan_service import ScanOutcome, ScanService  # noqa: F401
