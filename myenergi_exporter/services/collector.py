# myenergi_exporter/services/collector.py

from __future__ import annotations

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

from prometheus_client.metrics_core import Metric

from myenergi_exporter.models.enums import DeviceKind
from myenergi_exporter.services.decoder import DecodeError, Snapshot
from myenergi_exporter.services.metrics_projector import MetricsProjector
from myenergi_exporter.services.myenergi_client import MyenergiClient, TransportError


class CardinalityError(RuntimeError):
    """The API returned a device count the caller cannot work with."""


@dataclass
class FetchOutcome:
    kind: DeviceKind
    snapshots: List[Snapshot] = field(default_factory=list)
    error: Optional[Exception] = None
    duration_s: float = 0.0

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class CollectionResult:
    outcomes: Dict[DeviceKind, FetchOutcome]

    @property
    def snapshots(self) -> List[Snapshot]:
        found: List[Snapshot] = []
        for outcome in self.outcomes.values():
            found.extend(outcome.snapshots)
        return found

    @property
    def errors(self) -> Dict[DeviceKind, Exception]:
        return {
            kind: outcome.error
            for kind, outcome in self.outcomes.items()
            if outcome.error is not None
        }

    @property
    def ok(self) -> bool:
        return not self.errors


class DeviceCollector:
    """
    Runs one collection pass per scrape: fetch every device family in
    parallel, project what came back, expose the projector's gauges.

    One family failing leaves the other's series intact; the failed family
    simply has no per-device series for that pass.

    Each scrape issues its own fetch pair. Overlapping scrapes are
    serialised on ``_pass_lock`` but never share a fetch; a scrape that
    arrives mid-pass waits out the earlier pass's HTTP calls first.
    """

    def __init__(
        self,
        client: MyenergiClient,
        projector: MetricsProjector,
        log,
        kinds: Sequence[DeviceKind] = (DeviceKind.CHARGER, DeviceKind.DIVERTER),
    ):
        self.client = client
        self.projector = projector
        self.log = log
        self.kinds = tuple(kinds)
        self._pass_lock = threading.RLock()

    # ------------------------------------------------------------------
    def _run_kind(self, kind: DeviceKind) -> FetchOutcome:
        started = time.monotonic()
        try:
            snapshots = self.client.fetch(kind)
        except (TransportError, DecodeError) as exc:
            duration = time.monotonic() - started
            self.log.warning("myenergi %s poll failed: %s", kind.value, exc)
            self.projector.record_poll(kind.value, False, duration)
            return FetchOutcome(kind=kind, error=exc, duration_s=duration)

        for snap in snapshots:
            self.projector.project(snap)
        duration = time.monotonic() - started
        self.projector.record_poll(kind.value, True, duration)
        return FetchOutcome(kind=kind, snapshots=snapshots, duration_s=duration)

    def collect_devices(self) -> CollectionResult:
        if not self.kinds:
            return CollectionResult(outcomes={})

        with self._pass_lock:
            self.projector.reset()
            with ThreadPoolExecutor(
                max_workers=len(self.kinds),
                thread_name_prefix="myenergi-poll",
            ) as pool:
                futures = {kind: pool.submit(self._run_kind, kind) for kind in self.kinds}
            # Leaving the executor joins every task; none is cancelled early.
            outcomes = {kind: fut.result() for kind, fut in futures.items()}

        result = CollectionResult(outcomes=outcomes)
        self.log.debug(
            "Collection pass: %d device(s), failed kinds: %s",
            len(result.snapshots),
            [kind.value for kind in result.errors] or "none",
        )
        return result

    # ------------------------------------------------------------------
    # prometheus_client custom collector protocol
    def describe(self) -> Iterable[Metric]:
        return list(self.projector.describe())

    def collect(self) -> Iterable[Metric]:
        # Read the gauges before an overlapping scrape can reset them.
        with self._pass_lock:
            self.collect_devices()
            return list(self.projector.collect())
