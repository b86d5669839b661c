#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ising_ring.profiles

Configureerbare profielen voor de sequencer.

- PROFILE_HARDWARE : gedrag zoals het register-ontwerp (default)
- PROFILE_FOLDED   : laatste positie wordt in dezelfde tick teruggeschreven
                     (expliciete afwijking van de carry-over)
- PROFILE_UNBIASED : drempels 128/128, referentierun zonder koppeling
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict

from .lfsr_v1_0 import LFSR_MASK, LOCKUP_STATE, RESET_SEED

SAMPLE_RANGE = 256


@dataclass
class RingProfile:
    """Configureerbaar profiel voor de ring-sequencer."""
    name: str = "custom"

    # LFSR reset-waarde (wordt afgekapt op 31 bits)
    seed: int = RESET_SEED

    # Update-regel: r < aligned_threshold → buren volgen (ground state)
    aligned_threshold: int = 186
    # Gemengde buren: r >= mixed_threshold → UP
    mixed_threshold: int = 127

    # Carry-over quirk: False = TempBuffer[15] pas bij de volgende sweep zichtbaar
    fold_last_position: bool = False

    # LFSR fixpunt-check per tick
    check_invariants: bool = True

    def __post_init__(self) -> None:
        for field_name in ("aligned_threshold", "mixed_threshold"):
            v = getattr(self, field_name)
            if not 0 <= v <= SAMPLE_RANGE:
                raise ValueError(f"{field_name}={v} buiten 0..{SAMPLE_RANGE}")
        if self.seed & LFSR_MASK == LOCKUP_STATE:
            # alle-enen is het XNOR-fixpunt: de LFSR zou nooit meer bewegen
            raise ValueError(f"seed=0x{self.seed:X} valt op het LFSR-fixpunt 0x{LOCKUP_STATE:08X}")

    @property
    def aligned_probability(self) -> float:
        """Kans dat een uitgelijnde positie de buren volgt."""
        return self.aligned_threshold / SAMPLE_RANGE

    @property
    def mixed_up_probability(self) -> float:
        return (SAMPLE_RANGE - self.mixed_threshold) / SAMPLE_RANGE


# Preset profielen
PROFILE_HARDWARE = RingProfile(
    name="hardware",
    seed=RESET_SEED,
    aligned_threshold=186,
    mixed_threshold=127,
    fold_last_position=False,
)

PROFILE_FOLDED = RingProfile(
    name="folded",
    seed=RESET_SEED,
    aligned_threshold=186,
    mixed_threshold=127,
    fold_last_position=True,
)

PROFILE_UNBIASED = RingProfile(
    name="unbiased",
    seed=RESET_SEED,
    aligned_threshold=128,
    mixed_threshold=128,
    fold_last_position=False,
)

PROFILES: Dict[str, RingProfile] = {
    p.name: p for p in (PROFILE_HARDWARE, PROFILE_FOLDED, PROFILE_UNBIASED)
}


def get_profile(name: str) -> RingProfile:
    if name not in PROFILES:
        raise ValueError(f"Profile '{name}' onbekend. Beschikbaar: {list(PROFILES.keys())}")
    return PROFILES[name]


def load_profile_from_json(json_path: str, profile_name: str) -> RingProfile:
    """
    Laad een RingProfile uit een JSON configuratie.

    Verwacht formaat:
      {"profiles": {"<naam>": {"params": {"seed": "0x4E1ACE1A",
                                           "thresholds": {"aligned": 186, "mixed": 127},
                                           "fold_last_position": false}}}}
    Ontbrekende velden vallen terug op de hardware-defaults.
    """
    import json

    with open(json_path, "r", encoding="utf-8") as f:
        doc = json.load(f)

    profiles = doc.get("profiles", {})
    if profile_name not in profiles:
        raise ValueError(f"Profile '{profile_name}' niet gevonden. Beschikbaar: {list(profiles.keys())}")

    p = profiles[profile_name].get("params", {})
    thresholds = p.get("thresholds", {})

    seed = p.get("seed", PROFILE_HARDWARE.seed)
    if isinstance(seed, str):
        seed = int(seed, 0)

    return RingProfile(
        name=profile_name,
        seed=seed,
        aligned_threshold=int(thresholds.get("aligned", PROFILE_HARDWARE.aligned_threshold)),
        mixed_threshold=int(thresholds.get("mixed", PROFILE_HARDWARE.mixed_threshold)),
        fold_last_position=bool(p.get("fold_last_position", False)),
        check_invariants=bool(p.get("check_invariants", True)),
    )
