from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from threading import Lock
from typing import Dict


@dataclass
class RewardSnapshot:
    scans: Dict[str, int]
    spins: Dict[str, int]
    vouchers: Dict[str, int]
    rate_limits: Dict[str, int]

    def as_dict(self) -> Dict[str, object]:
        return {
            "scans": dict(self.scans),
            "spins": dict(self.spins),
            "vouchers": dict(self.vouchers),
            "rate_limits": dict(self.rate_limits),
        }


class RewardObservabilityStore:
    """Collect reward engine outcome counters for dashboards and alerting."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._scans: Dict[str, int] = defaultdict(int)
        self._spins: Dict[str, int] = defaultdict(int)
        self._vouchers: Dict[str, int] = defaultdict(int)
        self._rate_limits: Dict[str, int] = defaultdict(int)

    def record_scan(self, outcome: str) -> None:
        with self._lock:
            self._scans[outcome] += 1

    def record_spin(self, outcome: str) -> None:
        with self._lock:
            self._spins[outcome] += 1

    def record_voucher_transition(self, transition: str) -> None:
        with self._lock:
            self._vouchers[transition] += 1

    def record_rate_limited(self, action: str) -> None:
        with self._lock:
            self._rate_limits[action] += 1

    def snapshot(self) -> RewardSnapshot:
        with self._lock:
            return RewardSnapshot(
                scans=dict(self._scans),
                spins=dict(self._spins),
                vouchers=dict(self._vouchers),
                rate_limits=dict(self._rate_limits),
            )

    def reset(self) -> None:
        with self._lock:
            self._scans.clear()
            self._spins.clear()
            self._vouchers.clear()
            self._rate_limits.clear()


_STORE = RewardObservabilityStore()


def get_reward_store() -> RewardObservabilityStore:
    return _STORE


__all__ = ["get_reward_store", "RewardObservabilityStore", "RewardSnapshot"]
