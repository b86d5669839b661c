#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
spin_ring_v1_0.py — SpinRing + TempBuffer v1.0

Ring van 16 binaire cellen (0 = DOWN, 1 = UP), circulair:
  index -1 ≡ 15, index 16 ≡ 0

Beide registers zijn immutable snapshots; with_spin() geeft een nieuw
register terug zodat de sequencer per tick een complete opvolger kan
opbouwen en die in één keer kan committen.
"""

from __future__ import annotations
from dataclasses import dataclass

from bitarray import bitarray, frozenbitarray
from bitarray.util import ba2int, int2ba

# === Constants ===============================================================

RING_SIZE = 16
RING_MASK = (1 << RING_SIZE) - 1

DOWN = 0
UP = 1


def _check_index(i: int) -> int:
    if not 0 <= i < RING_SIZE:
        raise IndexError(f"ring index {i} buiten 0..{RING_SIZE - 1}")
    return i


def _check_spin(v: int) -> int:
    if v not in (DOWN, UP):
        raise ValueError(f"spin moet 0 of 1 zijn, niet {v!r}")
    return int(v)


@dataclass(frozen=True)
class _SpinCells:
    cells: frozenbitarray

    @classmethod
    def from_int(cls, value: int):
        return cls(cells=frozenbitarray(
            int2ba(value & RING_MASK, length=RING_SIZE, endian="little")
        ))

    @classmethod
    def zeros(cls):
        return cls.from_int(0)

    def get(self, i: int) -> int:
        return self.cells[_check_index(i)]

    def with_spin(self, i: int, v: int):
        cells = bitarray(self.cells, endian="little")
        cells[_check_index(i)] = _check_spin(v)
        return type(self)(cells=frozenbitarray(cells))

    def to_int(self) -> int:
        return ba2int(self.cells)

    def as_text(self, up: str = "█", down: str = "·") -> str:
        """Cel 0 links, cel 15 rechts."""
        return "".join(up if b else down for b in self.cells)


class SpinRing(_SpinCells):
    """De zichtbare spin-configuratie."""

    def neighbor_left(self, i: int) -> int:
        return self.get((_check_index(i) + RING_SIZE - 1) % RING_SIZE)

    def neighbor_right(self, i: int) -> int:
        return self.get((_check_index(i) + 1) % RING_SIZE)

    def snapshot(self) -> int:
        """16-bit waarde, bit i = cel i. Dit is de enige output van de core."""
        return self.to_int()


class TempBuffer(_SpinCells):
    """Staging register voor waarden uit de lopende sweep."""

    def fold(self) -> SpinRing:
        """Kopieer de volledige buffer naar een SpinRing."""
        return SpinRing(cells=self.cells)
