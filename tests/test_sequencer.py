"""Tests for the synchronous ring sequencer state machine."""

from __future__ import annotations

from dataclasses import replace
from typing import List

import pytest

from ising_ring.lfsr_v1_0 import LFSR_MASK, LOCKUP_STATE, RESET_SEED, LfsrInvariantError, RandomBitSource
from ising_ring.profiles import PROFILE_FOLDED, PROFILE_HARDWARE, PROFILE_UNBIASED, RingProfile
from ising_ring.sequencer_v1_0 import (
    POPULATE_TICKS,
    SAMPLE_TICKS,
    Phase,
    RingInvariantError,
    RingState,
    Sequencer,
    initial_state,
    next_state,
)
from ising_ring.spin_ring_v1_0 import RING_SIZE, SpinRing, TempBuffer
from ising_ring.trigger_v1_0 import TICKS_PER_SWEEP


def _reference_lfsr(state: int, steps: int) -> int:
    for _ in range(steps):
        new_bit = 1 - (((state >> 27) ^ (state >> 30)) & 1)
        state = ((state << 1) | new_bit) & LFSR_MASK
    return state


def _update_state(ring: int, temp: int, sweep_index: int, r: int) -> RingState:
    return RingState(
        phase=Phase.UPDATE,
        lfsr=RandomBitSource.from_int(r),
        ring=SpinRing.from_int(ring),
        temp=TempBuffer.from_int(temp),
        sweep_index=sweep_index,
    )


def _populated() -> Sequencer:
    seq = Sequencer()
    seq.run_populate()
    return seq


def test_initial_state() -> None:
    s = initial_state()
    assert s.phase is Phase.POPULATE
    assert s.lfsr.value == RESET_SEED
    assert s.ring.snapshot() == 0
    assert s.temp.to_int() == 0
    assert s.tick == 0


def test_populate_lasts_sixteen_ticks() -> None:
    seq = Sequencer()
    for _ in range(POPULATE_TICKS - 1):
        snap = seq.tick()
        assert snap.phase is Phase.POPULATE
    assert seq.state.populate_count == 15

    snap = seq.tick()
    assert snap.phase is Phase.AWAIT_TRIGGER
    assert snap.tick == 16
    assert snap.populate_count == 0


def test_populate_seeds_ring_from_low16_of_lfsr() -> None:
    seq = Sequencer()
    for _ in range(16):
        seq.tick()

    # ring captures the value read in the 16th tick; the LFSR advanced once more
    assert seq.snapshot() == _reference_lfsr(RESET_SEED, 15) & 0xFFFF
    assert seq.state.lfsr.value == _reference_lfsr(RESET_SEED, 16)


def test_populate_ignores_trigger() -> None:
    with_trigger = Sequencer()
    without = Sequencer()
    for _ in range(16):
        with_trigger.tick(trigger=True)
        without.tick()
    assert with_trigger.state == without.state
    assert with_trigger.debug_summary()["triggers_ignored"] == 16


def test_await_trigger_holds_all_registers() -> None:
    seq = _populated()
    before = seq.state
    for _ in range(50):
        seq.tick(trigger=False)
    after = seq.state

    assert after.phase is Phase.AWAIT_TRIGGER
    assert replace(after, tick=before.tick) == before
    assert after.tick == before.tick + 50


def test_trigger_starts_sampling_without_advancing_lfsr() -> None:
    seq = _populated()
    lfsr_before = seq.state.lfsr.value

    snap = seq.tick(trigger=True)

    assert snap.phase is Phase.SAMPLE
    assert snap.sweep_index == 0
    assert snap.sample_index == 0
    assert snap.lfsr_value == lfsr_before


def test_sample_takes_eight_ticks_then_update() -> None:
    seq = _populated()
    seq.tick(trigger=True)
    lfsr_start = seq.state.lfsr.value

    for i in range(SAMPLE_TICKS - 1):
        snap = seq.tick()
        assert snap.phase is Phase.SAMPLE
        assert snap.sample_index == i + 1

    snap = seq.tick()
    assert snap.phase is Phase.UPDATE
    assert snap.sample_index == 0
    assert snap.lfsr_value == _reference_lfsr(lfsr_start, SAMPLE_TICKS)


def test_update_holds_lfsr_and_moves_to_next_position() -> None:
    s = _update_state(ring=0, temp=0, sweep_index=3, r=0x55)
    nxt = next_state(s)

    assert nxt.lfsr == s.lfsr
    assert nxt.phase is Phase.SAMPLE
    assert nxt.sweep_index == 4
    assert nxt.sample_index == 0


def test_full_sweep_returns_to_await_trigger() -> None:
    seq = _populated()
    snaps = seq.run_sweep()

    assert len(snaps) == TICKS_PER_SWEEP
    assert snaps[-1].phase is Phase.AWAIT_TRIGGER
    assert snaps[-1].sweeps_completed == 1
    assert seq.state.sweep_index == 0
    updates = [s for s in snaps if s.phase is Phase.UPDATE]
    assert len(updates) == RING_SIZE


def test_counters_stay_in_bounds() -> None:
    seq = Sequencer()
    seq.run_populate()
    for _ in range(4):
        for snap in seq.run_sweep():
            assert 0 <= snap.sweep_index < RING_SIZE
            assert 0 <= snap.sample_index < SAMPLE_TICKS
            assert 0 <= snap.populate_count < POPULATE_TICKS
            assert 0 <= snap.snapshot <= 0xFFFF


class _ReferenceRing:
    """Plain-integer model of the whole core, written against the register description."""

    def __init__(self, seed: int = RESET_SEED, aligned: int = 186, mixed: int = 127) -> None:
        self.lfsr = seed & LFSR_MASK
        self.ring = 0
        self.temp = 0
        self.phase = "POPULATE"
        self.populate_count = 0
        self.sweep_index = 0
        self.sample_index = 0
        self.aligned = aligned
        self.mixed = mixed

    def step(self, trigger: bool) -> None:
        if self.phase == "POPULATE":
            if self.populate_count == 15:
                self.ring = self.lfsr & 0xFFFF
                self.phase = "AWAIT_TRIGGER"
                self.populate_count = 0
            else:
                self.populate_count += 1
            self.lfsr = _reference_lfsr(self.lfsr, 1)
        elif self.phase == "AWAIT_TRIGGER":
            if trigger:
                self.phase = "SAMPLE"
                self.sweep_index = 0
                self.sample_index = 0
        elif self.phase == "SAMPLE":
            self.lfsr = _reference_lfsr(self.lfsr, 1)
            if self.sample_index == 7:
                self.phase = "UPDATE"
                self.sample_index = 0
            else:
                self.sample_index += 1
        else:
            i = self.sweep_index
            left = (self.ring >> ((i - 1) % 16)) & 1
            right = (self.ring >> ((i + 1) % 16)) & 1
            r = self.lfsr & 0xFF
            if left == right:
                spin = left if r < self.aligned else 1 - left
            else:
                spin = 1 if r >= self.mixed else 0
            self.temp = (self.temp & ~(1 << i) & 0xFFFF) | (spin << i)
            if i == 15:
                self.phase = "AWAIT_TRIGGER"
                self.sweep_index = 0
            else:
                self.ring = self.temp
                self.phase = "SAMPLE"
                self.sweep_index = i + 1


def _trigger_pattern(sweeps: int) -> List[bool]:
    # idle ticks, one pulse per sweep and stray pulses mid-sweep
    pattern = [False] * 20
    for _ in range(sweeps):
        sweep = [False] * (TICKS_PER_SWEEP + 5)
        sweep[0] = True
        sweep[37] = True
        sweep[100] = True
        pattern.extend(sweep)
    return pattern


@pytest.mark.parametrize(
    "profile",
    [PROFILE_HARDWARE, PROFILE_UNBIASED, RingProfile(name="other", seed=0x1234567)],
    ids=lambda p: p.name,
)
def test_sequencer_matches_integer_reference_every_tick(profile: RingProfile) -> None:
    seq = Sequencer(profile)
    ref = _ReferenceRing(profile.seed, profile.aligned_threshold, profile.mixed_threshold)

    for n, trigger in enumerate(_trigger_pattern(4)):
        snap = seq.tick(trigger=trigger)
        ref.step(trigger)
        assert snap.phase.value == ref.phase, f"tick {n + 1}"
        assert snap.snapshot == ref.ring, f"tick {n + 1}"
        assert snap.lfsr_value == ref.lfsr, f"tick {n + 1}"
        assert seq.state.temp.to_int() == ref.temp, f"tick {n + 1}"
        assert snap.sweep_index == ref.sweep_index
        assert snap.sample_index == ref.sample_index
        assert snap.populate_count == ref.populate_count

    assert seq.state.sweeps_completed == 4


def test_different_seed_gives_different_run() -> None:
    a = Sequencer()
    b = Sequencer(RingProfile(name="other", seed=0x1234567))
    for _ in range(3):
        a.run_sweep()
        b.run_sweep()
    assert a.state.lfsr != b.state.lfsr


def test_trigger_during_sweep_is_ignored() -> None:
    clean = _populated()
    noisy = _populated()

    clean.tick(trigger=True)
    noisy.tick(trigger=True)
    for i in range(TICKS_PER_SWEEP - 1):
        clean.tick()
        noisy.tick(trigger=(i % 3 == 0))

    assert noisy.state == clean.state
    assert noisy.debug_summary()["triggers_ignored"] > 0


def test_aligned_up_neighbors_low_sample_keeps_position_up() -> None:
    s = _update_state(ring=0xFFFF, temp=0, sweep_index=5, r=100)
    nxt = next_state(s)
    assert nxt.temp.get(5) == 1
    assert nxt.ring.get(5) == 1


def test_mixed_neighbors_high_sample_sets_position_up() -> None:
    ring = SpinRing.zeros().with_spin(5, 1).snapshot()  # cell 3 DOWN, cell 5 UP
    s = _update_state(ring=ring, temp=0, sweep_index=4, r=200)
    nxt = next_state(s)
    assert nxt.temp.get(4) == 1


def test_non_final_update_folds_entire_temp_buffer() -> None:
    # stale temp bits 12..15 from a previous sweep appear in the ring
    s = _update_state(ring=0x0000, temp=0xF000, sweep_index=3, r=0)
    nxt = next_state(s)

    assert nxt.temp.to_int() == 0xF000
    assert nxt.ring.snapshot() == 0xF000


def test_fresh_value_is_visible_to_next_position() -> None:
    # DOWN/DOWN neighbours with r >= 186 flip position 2 to UP
    s = _update_state(ring=0x0000, temp=0x0000, sweep_index=2, r=200)
    nxt = next_state(s)
    assert nxt.ring.get(2) == 1
    assert nxt.ring.neighbor_left(3) == 1


def test_last_position_is_carried_over_to_next_sweep() -> None:
    s = _update_state(ring=0x0000, temp=0x0000, sweep_index=15, r=200)
    after_last = next_state(s)

    assert after_last.phase is Phase.AWAIT_TRIGGER
    assert after_last.temp.get(15) == 1
    assert after_last.ring.snapshot() == 0x0000
    assert after_last.sweeps_completed == 1

    state = next_state(after_last, trigger=True)
    while state.phase is not Phase.UPDATE:
        assert state.ring.get(15) == 0
        state = next_state(state)
    assert state.sweep_index == 0

    after_first = next_state(state)
    assert after_first.ring.get(15) == 1


def test_fold_last_position_profile_commits_immediately() -> None:
    s = _update_state(ring=0x0000, temp=0x0000, sweep_index=15, r=200)
    nxt = next_state(s, profile=PROFILE_FOLDED)

    assert nxt.phase is Phase.AWAIT_TRIGGER
    assert nxt.ring.get(15) == 1


def test_hardware_profile_is_default() -> None:
    assert Sequencer().profile is PROFILE_HARDWARE


def test_lockup_state_fails_invariant_check() -> None:
    s = replace(initial_state(), lfsr=RandomBitSource.from_int(LOCKUP_STATE))
    with pytest.raises(LfsrInvariantError):
        s.check_invariants()


def test_lockup_seed_is_rejected() -> None:
    with pytest.raises(ValueError, match="fixpunt"):
        Sequencer(RingProfile(name="broken", seed=LOCKUP_STATE))


def test_debug_summary_reports_state() -> None:
    seq = _populated()
    seq.run_sweep()
    summary = seq.debug_summary()

    assert summary["phase"] == "AWAIT_TRIGGER"
    assert summary["sweeps_completed"] == 1
    assert summary["snapshot"] == f"0x{seq.snapshot():04X}"
    assert summary["tick"] == 16 + TICKS_PER_SWEEP


def test_out_of_bounds_counters_fail_invariant_check() -> None:
    s = replace(initial_state(), sweep_index=99, sample_index=42)
    with pytest.raises(RingInvariantError, match="sweep_index=99"):
        s.check_invariants()


@pytest.mark.parametrize(
    "field_name, value",
    [
        ("sweep_index", RING_SIZE),
        ("sweep_index", -1),
        ("sample_index", SAMPLE_TICKS),
        ("populate_count", POPULATE_TICKS),
    ],
)
def test_each_counter_is_bounds_checked(field_name: str, value: int) -> None:
    s = replace(initial_state(), **{field_name: value})
    with pytest.raises(RingInvariantError, match=field_name):
        s.check_invariants()


def test_run_sweep_finishes_a_sweep_in_progress_first() -> None:
    seq = _populated()
    seq.tick(trigger=True)
    for _ in range(10):
        seq.tick()
    assert seq.phase is Phase.SAMPLE

    snaps = seq.run_sweep()

    assert len(snaps) == TICKS_PER_SWEEP
    assert snaps[0].trigger is True
    assert snaps[0].phase is Phase.SAMPLE
    assert snaps[-1].phase is Phase.AWAIT_TRIGGER
    assert seq.state.sweeps_completed == 2
    assert seq.debug_summary()["triggers_ignored"] == 0
