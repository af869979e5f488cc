"""Server expiry tracking, renewal and the scheduled sweep."""

from helium.renewal.service import RenewalService
from helium.renewal.sweeper import ExpirationSweeper, Lifecycle, SweepSummary, classify

__all__ = ["ExpirationSweeper", "Lifecycle", "RenewalService", "SweepSummary", "classify"]
