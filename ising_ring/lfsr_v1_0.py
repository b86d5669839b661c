#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
lfsr_v1_0.py — RandomBitSource v1.0 (31-bit XNOR LFSR)

Kernprincipes:
- register van 31 bits, bit 0 = laatst ingeschoven bit
- feedback: new_bit = bit[27] XNOR bit[30]
- shift naar hogere posities, bit 30 valt eruit, new_bit komt op positie 0
- immutable: advance() geeft een nieuwe RandomBitSource terug

Polynoom x^31 + x^28 + 1 is maximaal: de reeks doorloopt alle 2^31 - 1
toestanden behalve het fixpunt. Bij XNOR-feedback is dat fixpunt all-ones
(1 XNOR 1 = 1); all-zero is een gewone toestand (schuift een 1 in).
"""

from __future__ import annotations
from dataclasses import dataclass

from bitarray import bitarray, frozenbitarray
from bitarray.util import ba2int, int2ba

# === Constants ===============================================================

LFSR_WIDTH = 31
TAP_A = 27
TAP_B = 30

LFSR_MASK = (1 << LFSR_WIDTH) - 1

# 17 hex digits, afgekapt op de registerbreedte -> 0x4E1ACE1A
RESET_SEED_PATTERN = 0xACE1ACE1ACE1ACE1A
RESET_SEED = RESET_SEED_PATTERN & LFSR_MASK

LOCKUP_STATE = LFSR_MASK


class LfsrInvariantError(AssertionError):
    """LFSR staat in zijn feedback-fixpunt: tap-configuratie is kapot."""


def _to_bits(value: int) -> frozenbitarray:
    return frozenbitarray(int2ba(value & LFSR_MASK, length=LFSR_WIDTH, endian="little"))


@dataclass(frozen=True)
class RandomBitSource:
    """Snapshot van het LFSR-register (31 bits, little-endian: index i = bit i)."""
    bits: frozenbitarray

    @classmethod
    def from_int(cls, value: int) -> "RandomBitSource":
        return cls(bits=_to_bits(value))

    @classmethod
    def seeded(cls, seed: int = RESET_SEED) -> "RandomBitSource":
        """Reset-toestand. Het seed wordt afgekapt op 31 bits."""
        src = cls.from_int(seed)
        src.check_invariant()
        return src

    @property
    def value(self) -> int:
        return ba2int(self.bits)

    def feedback_bit(self) -> int:
        return 1 - (self.bits[TAP_A] ^ self.bits[TAP_B])

    def advance(self) -> "RandomBitSource":
        """Eén klok-tick: schuif omhoog en zet de feedback-bit op positie 0."""
        nxt = bitarray([self.feedback_bit()], endian="little")
        nxt.extend(self.bits[:-1])
        return RandomBitSource(bits=frozenbitarray(nxt))

    def rewind(self) -> "RandomBitSource":
        """
        Inverse van advance(): de unieke voorganger.

        bit[0] van de huidige toestand was oud[27] XNOR oud[30]; oud[27]
        staat nu op positie 28, dus oud[30] = NOT(bit[0] XOR bit[28]).
        """
        old_top = 1 - (self.bits[0] ^ self.bits[TAP_A + 1])
        prev = bitarray(self.bits[1:], endian="little")
        prev.append(old_top)
        return RandomBitSource(bits=frozenbitarray(prev))

    def low_byte(self) -> int:
        return ba2int(self.bits[:8])

    def low16(self) -> int:
        return ba2int(self.bits[:16])

    def is_lockup(self) -> bool:
        return self.bits.all()

    def check_invariant(self) -> None:
        if len(self.bits) != LFSR_WIDTH:
            raise LfsrInvariantError(f"LFSR breedte {len(self.bits)} != {LFSR_WIDTH}")
        if self.is_lockup():
            raise LfsrInvariantError(
                f"LFSR in fixpunt 0x{self.value:08X} (taps {TAP_A}/{TAP_B}, XNOR)"
            )

