#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
trigger_v1_0.py — Trigger interface v1.0

De core verwacht per tick één bool en per bedoelde sweep precies één
geïsoleerde True. Deze module levert die pulsen:

- sweep_triggers() : vast schema voor offline runs
- ButtonDebouncer  : host-side stand-in voor de debounce/edge-detectie
                     van een stuiterende knop (gebruikt door het live script)
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Iterator

# 1 trigger-tick + 16 posities * (8 sample + 1 update)
TICKS_PER_SWEEP = 1 + 16 * (8 + 1)


def sweep_triggers(sweeps: int, idle_ticks: int = TICKS_PER_SWEEP) -> Iterator[bool]:
    """
    Yield een pulstrein: per sweep één True gevolgd door idle_ticks False.

    idle_ticks moet minstens TICKS_PER_SWEEP - 1 zijn, anders valt de
    volgende puls midden in een sweep en wordt hij genegeerd.
    """
    if idle_ticks < TICKS_PER_SWEEP - 1:
        raise ValueError(f"idle_ticks={idle_ticks} < {TICKS_PER_SWEEP - 1}: pulsen vallen in een sweep")
    for _ in range(sweeps):
        yield True
        for _ in range(idle_ticks):
            yield False


@dataclass
class DebounceSnapshot:
    level: bool
    pulse: bool
    presses: int


class ButtonDebouncer:
    """
    Zet ruwe knop-samples om in enkelvoudige trigger-pulsen.

    Het niveau wordt pas overgenomen als het stable_samples opeenvolgende
    samples gelijk is; een stijgende flank van het gefilterde niveau geeft
    precies één puls.
    """

    def __init__(self, stable_samples: int = 4):
        if stable_samples < 1:
            raise ValueError("stable_samples moet >= 1 zijn")
        self.stable_samples = stable_samples
        self._level = False
        self._candidate = False
        self._run = 0
        self._presses = 0

    def feed(self, raw: bool) -> DebounceSnapshot:
        raw = bool(raw)
        if raw == self._candidate:
            self._run += 1
        else:
            self._candidate = raw
            self._run = 1

        pulse = False
        if self._run >= self.stable_samples and self._candidate != self._level:
            self._level = self._candidate
            if self._level:
                pulse = True
                self._presses += 1

        return DebounceSnapshot(level=self._level, pulse=pulse, presses=self._presses)

    @property
    def presses(self) -> int:
        return self._presses
