#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ising_ring.observables

Fysische grootheden over 16-bit ring snapshots (numpy).

  spin s_i = +1 (UP) of -1 (DOWN)
  magnetization = mean(s_i)
  domain_walls  = #{i : cel_i != cel_(i+1 mod 16)}
  ring_energy   = -sum(s_i * s_(i+1))  (J = 1, circulair)
"""

from __future__ import annotations
from typing import Dict, Iterable

import numpy as np

from .spin_ring_v1_0 import RING_SIZE

_BIT_POSITIONS = np.arange(RING_SIZE, dtype=np.uint32)


def snapshot_to_spins(snapshot: int) -> np.ndarray:
    """0/1 array, index i = cel i."""
    return ((np.uint32(snapshot) >> _BIT_POSITIONS) & 1).astype(np.int8)


def _signed(snapshot: int) -> np.ndarray:
    return 2 * snapshot_to_spins(snapshot).astype(np.int16) - 1


def magnetization(snapshot: int) -> float:
    return float(_signed(snapshot).mean())


def domain_walls(snapshot: int) -> int:
    cells = snapshot_to_spins(snapshot)
    return int(np.count_nonzero(cells != np.roll(cells, -1)))


def ring_energy(snapshot: int) -> int:
    s = _signed(snapshot)
    return int(-(s * np.roll(s, -1)).sum())


def spacetime_matrix(snapshots: Iterable[int]) -> np.ndarray:
    """Eén rij per snapshot (tijd naar beneden), één kolom per cel."""
    rows = [snapshot_to_spins(s) for s in snapshots]
    if not rows:
        return np.zeros((0, RING_SIZE), dtype=np.int8)
    return np.vstack(rows)


def summarize(snapshot: int) -> Dict[str, float]:
    return {
        "magnetization": magnetization(snapshot),
        "domain_walls": domain_walls(snapshot),
        "energy": ring_energy(snapshot),
        "up_count": int(snapshot_to_spins(snapshot).sum()),
    }
