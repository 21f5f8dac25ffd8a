from __future__ import annotations

import json
import logging
import math
import time
from collections import defaultdict
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterator

logger = logging.getLogger(__name__)

REPORT_PREFIX = "voxel_timing"


@dataclass
class _Tick:
    kind: str
    started: float
    context: dict[str, Any] = field(default_factory=dict)
    sections_ms: dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class TimingStats:
    count: int
    avg_ms: float
    p95_ms: float
    max_ms: float

    @classmethod
    def from_samples(cls, samples: list[float]) -> TimingStats:
        if not samples:
            return cls(0, 0.0, 0.0, 0.0)
        ordered = sorted(samples)
        rank = max(0, min(len(ordered) - 1, math.ceil(len(ordered) * 0.95) - 1))
        return cls(len(ordered), sum(ordered) / len(ordered), ordered[rank], ordered[-1])

    def as_dict(self) -> dict[str, float]:
        return {"count": self.count, "avg_ms": self.avg_ms, "p95_ms": self.p95_ms, "max_ms": self.max_ms}


class RuntimeProfiler:
    """Wall-clock timings for named world sections and per-tick totals.

    Sections nest inside an open tick; ticks slower than ``slow_tick_ms`` keep
    a breakdown of the sections that ran during them.
    """

    def __init__(self, enabled: bool = True, slow_tick_ms: float = 25.0, max_slow_ticks: int = 200) -> None:
        self.enabled = enabled
        self.slow_tick_ms = slow_tick_ms
        self.max_slow_ticks = max_slow_ticks
        self.section_samples_ms: dict[str, list[float]] = defaultdict(list)
        self.tick_samples_ms: dict[str, list[float]] = defaultdict(list)
        self.slow_ticks: list[dict[str, Any]] = []
        self._tick: _Tick | None = None

    def begin_frame(self, kind: str, context: dict[str, Any] | None = None) -> None:
        if not self.enabled:
            return
        if self._tick is not None:
            self.end_frame()
        self._tick = _Tick(kind, time.perf_counter(), dict(context or {}))

    def end_frame(self, extra_context: dict[str, Any] | None = None) -> None:
        tick = self._tick
        if not self.enabled or tick is None:
            return
        self._tick = None
        total_ms = (time.perf_counter() - tick.started) * 1000.0
        self.tick_samples_ms[tick.kind].append(total_ms)
        if total_ms < self.slow_tick_ms:
            return

        context = {**tick.context, **(extra_context or {})}
        self.slow_ticks.append(
            {"kind": tick.kind, "total_ms": total_ms, "context": context, "sections_ms": tick.sections_ms}
        )
        del self.slow_ticks[: -self.max_slow_ticks]
        logger.debug("slow %s tick: %.1fms %s", tick.kind, total_ms, context)

    @contextmanager
    def section(self, name: str) -> Iterator[None]:
        if not self.enabled:
            yield
            return
        start = time.perf_counter()
        try:
            yield
        finally:
            self.record_section_ms(name, (time.perf_counter() - start) * 1000.0)

    def record_section_ms(self, name: str, duration_ms: float) -> None:
        if not self.enabled:
            return
        self.section_samples_ms[name].append(duration_ms)
        if self._tick is not None:
            self._tick.sections_ms[name] = self._tick.sections_ms.get(name, 0.0) + duration_ms

    def stats(self) -> dict[str, TimingStats]:
        return {name: TimingStats.from_samples(samples) for name, samples in self.section_samples_ms.items()}

    def summary_lines(self) -> list[str]:
        lines = ["Voxel World Timing Report", f"Slow tick threshold: {self.slow_tick_ms:.1f} ms", ""]
        for title, samples in (("Ticks", self.tick_samples_ms), ("Sections", self.section_samples_ms)):
            lines.append(title)
            by_cost = sorted(
                ((name, TimingStats.from_samples(values)) for name, values in samples.items()),
                key=lambda item: item[1].p95_ms,
                reverse=True,
            )
            for name, stats in by_cost:
                lines.append(
                    f"- {name}: n={stats.count} avg={stats.avg_ms:.3f}ms "
                    f"p95={stats.p95_ms:.3f}ms max={stats.max_ms:.3f}ms"
                )
            lines.append("")
        lines.append(f"Slow ticks: {len(self.slow_ticks)}")
        return lines

    def write_report(self, output_dir: str | Path = "profiling") -> Path | None:
        """Write a text and a JSON report; returns the text path."""
        if not self.enabled:
            return None
        out_dir = Path(output_dir)
        out_dir.mkdir(parents=True, exist_ok=True)
        stamp = time.strftime("%Y%m%d_%H%M%S")

        payload = {
            "generated_at": time.strftime("%Y-%m-%d %H:%M:%S"),
            "ticks_ms": {name: TimingStats.from_samples(v).as_dict() for name, v in self.tick_samples_ms.items()},
            "sections_ms": {name: stats.as_dict() for name, stats in self.stats().items()},
            "slow_ticks": self.slow_ticks,
        }
        (out_dir / f"{REPORT_PREFIX}_{stamp}.json").write_text(json.dumps(payload, indent=2), encoding="utf-8")
        txt_path = out_dir / f"{REPORT_PREFIX}_{stamp}.txt"
        txt_path.write_text("\n".join(self.summary_lines()) + "\n", encoding="utf-8")
        logger.info("wrote timing report to %s", txt_path)
        return txt_path
