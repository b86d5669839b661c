#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
sequencer_v1_0.py — Ring Sequencer v1.0 (synchrone control state machine)

State Machine:
-------------
```
POPULATE (eenmalig, 16 ticks)
└── AWAIT_TRIGGER  ←──────────────────────────┐
    └── trigger → SAMPLE (8 ticks)             │
                  └── UPDATE (1 tick)          │
                      ├── sweep < 15 → SAMPLE  │
                      └── sweep = 15 ──────────┘
```

Kernprincipes:
-------------
1. Eén RingState bevat alle registers (LFSR, ring, temp, tellers).
2. next_state() is puur: de opvolger wordt alleen uit de gecommitte
   toestand berekend; Sequencer.tick() wisselt hem in één keer in.
3. Tellers zijn vaste breedte (4/3/4 bits) met expliciete modulo.
4. Sequentiële update: niet-laatste posities vouwen de hele TempBuffer
   (incl. de nieuwe waarde) terug in de ring, dus latere posities zien
   eerdere resultaten uit dezelfde sweep.

Carry-over:
----------
Bij positie 15 blijft de ring in die tick ongewijzigd. TempBuffer[15]
wordt pas zichtbaar bij UPDATE van positie 0 in de volgende sweep.
Dit gedrag is behouden; RingProfile.fold_last_position schakelt het uit.
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, List, Optional

from .lfsr_v1_0 import RandomBitSource
from .profiles import PROFILE_HARDWARE, RingProfile
from .spin_ring_v1_0 import DOWN, RING_SIZE, UP, SpinRing, TempBuffer

# === Constants ===============================================================

POPULATE_TICKS = 16    # 4-bit teller
SAMPLE_TICKS = 8       # 3-bit teller
LAST_POSITION = RING_SIZE - 1


class RingInvariantError(AssertionError):
    """Teller buiten zijn vaste breedte: de state machine is kapot."""


class Phase(Enum):
    """Sequencer fases."""
    POPULATE = "POPULATE"
    AWAIT_TRIGGER = "AWAIT_TRIGGER"
    SAMPLE = "SAMPLE"
    UPDATE = "UPDATE"


# === Update regel ============================================================

def update_rule(left: int, right: int, r: int,
                profile: RingProfile = PROFILE_HARDWARE) -> int:
    """
    Nieuwe spin voor een positie uit zijn twee buren en sample r (0..255).

    - buren gelijk : r < aligned_threshold → buurwaarde, anders de andere
    - buren gemengd: r >= mixed_threshold → UP, anders DOWN
    """
    if not 0 <= r < 256:
        raise ValueError(f"sample r={r} buiten 0..255")
    if left == right:
        if r < profile.aligned_threshold:
            return left
        return UP if left == DOWN else DOWN
    return UP if r >= profile.mixed_threshold else DOWN


# === State ===================================================================

@dataclass(frozen=True)
class RingState:
    """Alle registers van de core; één instantie = één gecommitte tick."""
    phase: Phase
    lfsr: RandomBitSource
    ring: SpinRing
    temp: TempBuffer
    sweep_index: int = 0
    sample_index: int = 0
    populate_count: int = 0
    tick: int = 0
    sweeps_completed: int = 0

    def check_invariants(self) -> None:
        self.lfsr.check_invariant()
        bounds = (
            ("sweep_index", self.sweep_index, RING_SIZE),
            ("sample_index", self.sample_index, SAMPLE_TICKS),
            ("populate_count", self.populate_count, POPULATE_TICKS),
        )
        for name, value, limit in bounds:
            if not 0 <= value < limit:
                raise RingInvariantError(f"{name}={value} buiten 0..{limit - 1}")


def initial_state(profile: RingProfile = PROFILE_HARDWARE) -> RingState:
    """Power-on toestand: ring en temp staan op 0, LFSR op het seed."""
    return RingState(
        phase=Phase.POPULATE,
        lfsr=RandomBitSource.seeded(profile.seed),
        ring=SpinRing.zeros(),
        temp=TempBuffer.zeros(),
    )


def _step_populate(s: RingState) -> RingState:
    lfsr_next = s.lfsr.advance()
    if s.populate_count == POPULATE_TICKS - 1:
        # ring leest de LFSR-waarde van deze tick (vóór advance)
        return replace(
            s,
            phase=Phase.AWAIT_TRIGGER,
            lfsr=lfsr_next,
            ring=SpinRing.from_int(s.lfsr.low16()),
            populate_count=0,
        )
    return replace(s, lfsr=lfsr_next, populate_count=(s.populate_count + 1) % POPULATE_TICKS)


def _step_await(s: RingState, trigger: bool) -> RingState:
    if not trigger:
        return s
    return replace(s, phase=Phase.SAMPLE, sweep_index=0, sample_index=0)


def _step_sample(s: RingState) -> RingState:
    lfsr_next = s.lfsr.advance()
    if s.sample_index == SAMPLE_TICKS - 1:
        return replace(s, phase=Phase.UPDATE, lfsr=lfsr_next, sample_index=0)
    return replace(s, lfsr=lfsr_next, sample_index=(s.sample_index + 1) % SAMPLE_TICKS)


def _step_update(s: RingState, profile: RingProfile) -> RingState:
    i = s.sweep_index
    new_spin = update_rule(
        s.ring.neighbor_left(i),
        s.ring.neighbor_right(i),
        s.lfsr.low_byte(),
        profile,
    )
    temp_next = s.temp.with_spin(i, new_spin)

    if i == LAST_POSITION:
        ring_next = temp_next.fold() if profile.fold_last_position else s.ring
        return replace(
            s,
            phase=Phase.AWAIT_TRIGGER,
            ring=ring_next,
            temp=temp_next,
            sweep_index=0,
            sweeps_completed=s.sweeps_completed + 1,
        )

    return replace(
        s,
        phase=Phase.SAMPLE,
        ring=temp_next.fold(),
        temp=temp_next,
        sample_index=0,
        sweep_index=(i + 1) % RING_SIZE,
    )


def next_state(s: RingState, trigger: bool = False,
               profile: RingProfile = PROFILE_HARDWARE) -> RingState:
    """Combinatorische opvolger van s. trigger telt alleen in AWAIT_TRIGGER."""
    if s.phase is Phase.POPULATE:
        nxt = _step_populate(s)
    elif s.phase is Phase.AWAIT_TRIGGER:
        nxt = _step_await(s, bool(trigger))
    elif s.phase is Phase.SAMPLE:
        nxt = _step_sample(s)
    else:
        nxt = _step_update(s, profile)
    return replace(nxt, tick=s.tick + 1)


# === Sequencer ===============================================================

@dataclass
class TickSnapshot:
    """Snapshot van de core na één gecommitte tick."""
    tick: int
    phase: Phase
    snapshot: int
    sweep_index: int
    sample_index: int
    populate_count: int
    lfsr_value: int
    sweeps_completed: int
    trigger: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tick": self.tick,
            "phase": self.phase.value,
            "snapshot": self.snapshot,
            "sweep_index": self.sweep_index,
            "sample_index": self.sample_index,
            "populate_count": self.populate_count,
            "lfsr": self.lfsr_value,
            "sweeps_completed": self.sweeps_completed,
            "trigger": self.trigger,
        }


class Sequencer:
    """
    Eigenaar van de RingState.

    tick(trigger) berekent de opvolger met next_state() en commit die
    atomair. snapshot() is op elk moment leesbaar, ook midden in een sweep.
    """

    def __init__(self, profile: Optional[RingProfile] = None):
        self.profile = profile or PROFILE_HARDWARE
        self._state: RingState = initial_state(self.profile)
        self._triggers_seen = 0
        self._triggers_ignored = 0

    @property
    def state(self) -> RingState:
        return self._state

    @property
    def phase(self) -> Phase:
        return self._state.phase

    def snapshot(self) -> int:
        return self._state.ring.snapshot()

    def tick(self, trigger: bool = False) -> TickSnapshot:
        if trigger:
            self._triggers_seen += 1
            if self._state.phase is not Phase.AWAIT_TRIGGER:
                self._triggers_ignored += 1

        nxt = next_state(self._state, trigger, self.profile)
        if self.profile.check_invariants:
            nxt.check_invariants()
        self._state = nxt

        return TickSnapshot(
            tick=nxt.tick,
            phase=nxt.phase,
            snapshot=nxt.ring.snapshot(),
            sweep_index=nxt.sweep_index,
            sample_index=nxt.sample_index,
            populate_count=nxt.populate_count,
            lfsr_value=nxt.lfsr.value,
            sweeps_completed=nxt.sweeps_completed,
            trigger=bool(trigger),
        )

    def run_populate(self) -> List[TickSnapshot]:
        """Tick tot de eenmalige populate-fase klaar is."""
        snaps: List[TickSnapshot] = []
        while self._state.phase is Phase.POPULATE:
            snaps.append(self.tick())
        return snaps

    def run_sweep(self) -> List[TickSnapshot]:
        """
        Eén volledige sweep: trigger-puls en ticks tot AWAIT_TRIGGER.

        Doet eerst populate als dat nog niet gebeurd is en maakt een lopende
        sweep eerst af, zodat de puls altijd in AWAIT_TRIGGER valt.
        """
        self.run_populate()
        while self._state.phase is not Phase.AWAIT_TRIGGER:
            self.tick()
        snaps = [self.tick(trigger=True)]
        while self._state.phase is not Phase.AWAIT_TRIGGER:
            snaps.append(self.tick())
        return snaps

    def debug_summary(self) -> Dict[str, Any]:
        s = self._state
        return {
            "profile": self.profile.name,
            "tick": s.tick,
            "phase": s.phase.value,
            "snapshot": f"0x{s.ring.snapshot():04X}",
            "temp": f"0x{s.temp.to_int():04X}",
            "lfsr": f"0x{s.lfsr.value:08X}",
            "sweep_index": s.sweep_index,
            "sample_index": s.sample_index,
            "sweeps_completed": s.sweeps_completed,
            "triggers_seen": self._triggers_seen,
            "triggers_ignored": self._triggers_ignored,
            "fold_last_position": self.profile.fold_last_position,
        }
