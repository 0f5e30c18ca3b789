"""Verification engine — runs grouped probes and aggregates their outcomes.

A run is an ordered list of subsystems, each an ordered list of probes.
Probes execute strictly one after another; a failed *gating* probe skips
the rest of its subsystem. An integration gate is evaluated last from the
recorded subsystem statuses.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field, replace
from enum import Enum

logger = logging.getLogger(__name__)

INTEGRATION = "integration"


# ── Models ───────────────────────────────────────────────────────────────────


class Outcome(str, Enum):
    PASSED = "passed"
    FAILED = "failed"
    WARNING = "warning"


class SubsystemStatus(str, Enum):
    PENDING = "pending"
    PASSED = "passed"
    FAILED = "failed"


class ProbeError(Exception):
    """Base for failures raised inside a probe and reported as its detail."""


class ConfigMissing(ProbeError):
    """A required configuration value is absent or empty."""


class DependencyUnreachable(ProbeError):
    """Network error or timeout talking to a dependency."""


class DependencyRejected(ProbeError):
    """The dependency answered, but with an application-level error."""


@dataclass(frozen=True)
class Verdict:
    """What a check function returns; the probe attaches its name."""

    outcome: Outcome
    detail: str | None = None
    advisories: tuple[str, ...] = ()

    @classmethod
    def ok(cls, detail: str | None = None, advisories: Sequence[str] = ()) -> Verdict:
        return cls(Outcome.PASSED, detail, tuple(advisories))

    @classmethod
    def fail(cls, detail: str | None = None, advisories: Sequence[str] = ()) -> Verdict:
        return cls(Outcome.FAILED, detail, tuple(advisories))

    @classmethod
    def warn(cls, detail: str | None = None) -> Verdict:
        return cls(Outcome.WARNING, detail)

    @classmethod
    def check(cls, passed: bool, detail: str | None = None) -> Verdict:
        return cls(Outcome.PASSED if passed else Outcome.FAILED, detail)


@dataclass(frozen=True)
class ProbeResult:
    """Result of a single probe execution."""

    name: str
    outcome: Outcome
    detail: str | None = None
    advisories: tuple[str, ...] = ()


@dataclass(frozen=True)
class Probe:
    """A named check against one dependency.

    ``gating`` probes stop their subsystem when they fail. Probes that are not
    ``required`` are advisory: a failure is downgraded to a warning.
    """

    name: str
    check: Callable[[], Verdict]
    gating: bool = False
    required: bool = True

    def run(self) -> ProbeResult:
        try:
            verdict = self.check()
        except ProbeError as exc:
            verdict = Verdict.fail(str(exc))
        except Exception as exc:
            logger.warning("Probe %r raised %s: %s", self.name, type(exc).__name__, exc)
            verdict = Verdict.fail(str(exc) or type(exc).__name__)

        outcome = verdict.outcome
        if outcome is Outcome.FAILED and not self.required:
            outcome = Outcome.WARNING
        if outcome is Outcome.FAILED:
            logger.warning("Probe %r failed: %s", self.name, verdict.detail)
        return ProbeResult(self.name, outcome, verdict.detail, verdict.advisories)


@dataclass
class Subsystem:
    """An ordered group of probes sharing a failure domain."""

    key: str
    label: str
    probes: list[Probe] = field(default_factory=list)


@dataclass(frozen=True)
class RunSummary:
    total: int = 0
    passed: int = 0
    failed: int = 0
    warnings: int = 0

    @property
    def success_rate(self) -> int:
        if self.total <= 0:
            return 0
        return round(self.passed / self.total * 100)


@dataclass
class SubsystemRecord:
    key: str
    label: str
    status: SubsystemStatus = SubsystemStatus.PENDING
    results: list[ProbeResult] = field(default_factory=list)
    finalized: bool = False


# ── Recorder ─────────────────────────────────────────────────────────────────


class OutcomeRecorder:
    """Accumulates probe results and counters for one run.

    Append-only. Warning outcomes and advisory notes only move the warning
    counter, so ``total == passed + failed`` always holds.
    """

    def __init__(self) -> None:
        self._records: dict[str, SubsystemRecord] = {}
        self._summary = RunSummary()

    @property
    def summary(self) -> RunSummary:
        return self._summary

    def declare(self, key: str, label: str | None = None) -> SubsystemRecord:
        if key not in self._records:
            self._records[key] = SubsystemRecord(key=key, label=label or key)
        return self._records[key]

    def record(self, key: str, result: ProbeResult) -> None:
        self.declare(key).results.append(result)

        s = self._summary
        warnings = s.warnings + len(result.advisories)
        if result.outcome is Outcome.WARNING:
            self._summary = replace(s, warnings=warnings + 1)
        elif result.outcome is Outcome.PASSED:
            self._summary = replace(s, total=s.total + 1, passed=s.passed + 1, warnings=warnings)
        else:
            self._summary = replace(s, total=s.total + 1, failed=s.failed + 1, warnings=warnings)

    def finalize_subsystem(self, key: str, status: SubsystemStatus) -> None:
        record = self.declare(key)
        if record.finalized:
            raise RuntimeError(f"Subsystem {key!r} already finalized as {record.status.value}")
        record.status = status
        record.finalized = True

    def status(self, key: str) -> SubsystemStatus:
        record = self._records.get(key)
        return record.status if record else SubsystemStatus.PENDING

    def statuses(self) -> dict[str, SubsystemStatus]:
        return {key: r.status for key, r in self._records.items()}

    def records(self) -> list[SubsystemRecord]:
        return list(self._records.values())


def subsystem_status(results: Sequence[ProbeResult]) -> SubsystemStatus:
    """Failed if any result failed, passed if there is at least one result."""
    if not results:
        return SubsystemStatus.PENDING
    if any(r.outcome is Outcome.FAILED for r in results):
        return SubsystemStatus.FAILED
    return SubsystemStatus.PASSED


# ── Integration gate ─────────────────────────────────────────────────────────


class IntegrationGate:
    """Synthetic final probe: passes iff every declared subsystem passed.

    ``advisory`` runs only when the gate passes and may return a warning note
    (e.g. high latency); it never fails the gate.
    """

    name = "Component integration"

    def __init__(self, advisory: Callable[[], str | None] | None = None) -> None:
        self.advisory = advisory

    def evaluate(self, statuses: dict[str, SubsystemStatus]) -> ProbeResult:
        others = {k: v for k, v in statuses.items() if k != INTEGRATION}
        not_ready = [k for k, v in others.items() if v is not SubsystemStatus.PASSED]
        if not others or not_ready:
            detail = f"Not ready: {', '.join(not_ready)}" if not_ready else "No subsystems declared"
            return ProbeResult(self.name, Outcome.FAILED, detail)

        notes: tuple[str, ...] = ()
        if self.advisory is not None:
            try:
                note = self.advisory()
            except Exception as exc:
                note = f"Advisory check error: {exc}"
            if note:
                notes = (note,)
        return ProbeResult(self.name, Outcome.PASSED, "All subsystems communicating", notes)


# ── Runner ───────────────────────────────────────────────────────────────────


class Runner:
    """Executes subsystems in order against a fresh recorder."""

    def __init__(
        self,
        gate: IntegrationGate | None = None,
        on_result: Callable[[str, ProbeResult], None] | None = None,
        on_subsystem: Callable[[Subsystem], None] | None = None,
    ) -> None:
        self.gate = gate
        self.on_result = on_result
        self.on_subsystem = on_subsystem
        self.recorder = OutcomeRecorder()

    def _record(self, key: str, result: ProbeResult) -> None:
        self.recorder.record(key, result)
        if self.on_result:
            self.on_result(key, result)

    def run_subsystem(self, subsystem: Subsystem) -> SubsystemStatus:
        record = self.recorder.declare(subsystem.key, subsystem.label)
        if self.on_subsystem:
            self.on_subsystem(subsystem)

        for i, probe in enumerate(subsystem.probes):
            result = probe.run()
            self._record(subsystem.key, result)
            if probe.gating and result.outcome is Outcome.FAILED:
                skipped = len(subsystem.probes) - i - 1
                if skipped:
                    logger.info(
                        "Gating probe %r failed — skipping %d probe(s) in %s",
                        probe.name, skipped, subsystem.key,
                    )
                break

        status = subsystem_status(record.results)
        if status is not SubsystemStatus.PENDING:
            self.recorder.finalize_subsystem(subsystem.key, status)
        return status

    def run_all(self, subsystems: Sequence[Subsystem]) -> RunSummary:
        """Run every subsystem, then the gate. Each call starts a fresh recorder."""
        keys = [s.key for s in subsystems]
        duplicates = sorted({k for k in keys if keys.count(k) > 1})
        if duplicates:
            raise ValueError(f"Duplicate subsystem key(s): {', '.join(duplicates)}")
        self.recorder = OutcomeRecorder()
        for subsystem in subsystems:
            self.run_subsystem(subsystem)

        if self.gate is not None:
            gate_subsystem = Subsystem(INTEGRATION, "Integration")
            self.recorder.declare(INTEGRATION, gate_subsystem.label)
            if self.on_subsystem:
                self.on_subsystem(gate_subsystem)
            result = self.gate.evaluate(self.recorder.statuses())
            self._record(INTEGRATION, result)
            self.recorder.finalize_subsystem(INTEGRATION, subsystem_status([result]))

        return self.recorder.summary
