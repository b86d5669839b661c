"""Tests for trigger schedules and the button debouncer."""

from __future__ import annotations

import pytest

from ising_ring.sequencer_v1_0 import Sequencer
from ising_ring.trigger_v1_0 import TICKS_PER_SWEEP, ButtonDebouncer, sweep_triggers


def test_sweep_triggers_emit_one_pulse_per_sweep() -> None:
    train = list(sweep_triggers(3))
    assert sum(train) == 3
    assert len(train) == 3 * (TICKS_PER_SWEEP + 1)
    assert train[0] is True


def test_sweep_triggers_reject_overlapping_pulses() -> None:
    with pytest.raises(ValueError):
        list(sweep_triggers(2, idle_ticks=TICKS_PER_SWEEP - 2))


def test_minimal_idle_gap_still_starts_every_sweep() -> None:
    seq = Sequencer()
    seq.run_populate()
    for trigger in sweep_triggers(4, idle_ticks=TICKS_PER_SWEEP - 1):
        seq.tick(trigger=trigger)
    assert seq.state.sweeps_completed == 4
    assert seq.debug_summary()["triggers_ignored"] == 0


def _feed(debouncer: ButtonDebouncer, levels):
    return [debouncer.feed(bool(v)).pulse for v in levels]


def test_bouncing_press_yields_single_pulse() -> None:
    deb = ButtonDebouncer(stable_samples=3)
    pulses = _feed(deb, [1, 0, 1, 1, 1, 1, 1, 0, 1, 1])

    assert pulses.count(True) == 1
    assert pulses.index(True) == 4
    assert deb.presses == 1


def test_release_and_press_again() -> None:
    deb = ButtonDebouncer(stable_samples=2)
    pulses = _feed(deb, [1, 1, 1, 0, 0, 0, 1, 1])

    assert pulses == [False, True, False, False, False, False, False, True]
    assert deb.presses == 2


def test_short_glitch_is_filtered() -> None:
    deb = ButtonDebouncer(stable_samples=3)
    assert not any(_feed(deb, [1, 1, 0, 1, 0, 0]))


def test_stable_samples_must_be_positive() -> None:
    with pytest.raises(ValueError):
        ButtonDebouncer(stable_samples=0)
