"""
Ising Ring – ising_ring package
Geklokte simulator van een ring van 16 spins (LFSR + sequencer).

Modules:
- lfsr_v1_0                             : 31-bit LFSR (RandomBitSource)
- spin_ring_v1_0                        : SpinRing + TempBuffer (16 cellen, circulair)
- sequencer_v1_0                        : control state machine (populate/await/sample/update)
- profiles                              : RingProfile presets + JSON loader
- observables                           : magnetisatie, domain walls, energie (numpy)
- trigger_v1_0                          : trigger schema's + button debouncer
- run_offline                           : CLI voor offline sweeps en tick traces
"""

__all__ = [
    "lfsr_v1_0",
    "spin_ring_v1_0",
    "sequencer_v1_0",
    "profiles",
    "observables",
    "trigger_v1_0",
    "run_offline",
]

# versie van het pakket
VERSION = "1.0"
