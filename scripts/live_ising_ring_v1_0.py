#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
live_ising_ring_v1_0.py — Live knop via seriële poort + Ring Sequencer v1.0

Het bord (ESP32/Arduino) stuurt per sample een regel met het ruwe
knopniveau: "0" of "1". Deze host doet de debounce, klokt de sequencer
met een vaste tick-rate en tekent de ring in de terminal.

Gebruik:
    python3 live_ising_ring_v1_0.py [--port /dev/ttyUSB0] [--profile hardware]
    python3 live_ising_ring_v1_0.py --tick-hz 2000 --stable-samples 5 --log
"""

import os
import sys
import json
import time
import argparse
from pathlib import Path
from datetime import datetime
from typing import List, Optional

# === Symlink proof =================================================

HERE = Path(__file__).resolve()
env_root = os.getenv("ISING_RING_ROOT")
PROJECT_ROOT = None

if env_root:
    PROJECT_ROOT = Path(env_root).expanduser().resolve()
else:
    for parent in [HERE.parent, *HERE.parents]:
        if (parent / "ising_ring").exists():
            PROJECT_ROOT = parent
            break

if PROJECT_ROOT is None:
    raise RuntimeError(
        "Kon 'ising_ring' niet vinden. "
        "Zet ISING_RING_ROOT of zorg dat er ergens boven deze file een 'ising_ring/' map staat."
    )

if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from ising_ring import observables
from ising_ring.profiles import PROFILES, get_profile
from ising_ring.sequencer_v1_0 import Phase, Sequencer, TickSnapshot
from ising_ring.spin_ring_v1_0 import SpinRing
from ising_ring.trigger_v1_0 import ButtonDebouncer


# === LINE STREAM =============================================================

class LevelStream:
    """Leest "0"/"1" regels van de seriële poort; overige regels worden genegeerd."""

    def __init__(self, ser):
        self.ser = ser
        self.buf = bytearray()
        self.bad_lines = 0

    def read_levels(self):
        chunk = self.ser.read(256)
        if chunk:
            self.buf.extend(chunk)

        while True:
            idx = self.buf.find(b"\n")
            if idx < 0:
                break
            line = bytes(self.buf[:idx]).strip()
            del self.buf[:idx + 1]
            if line == b"1":
                yield True
            elif line == b"0":
                yield False
            elif line:
                self.bad_lines += 1


# === TERMINAL UI =============================================================

class TerminalUI:
    CLEAR_LINE = "\033[K"
    HIDE_CURSOR = "\033[?25l"
    SHOW_CURSOR = "\033[?25h"
    BOLD = "\033[1m"
    RESET = "\033[0m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    CYAN = "\033[96m"
    DIM = "\033[2m"

    def __init__(self, num_lines=12):
        self.num_lines = num_lines
        self.initialized = False

    def init(self):
        print(self.HIDE_CURSOR, end='')
        for _ in range(self.num_lines):
            print()
        self.initialized = True

    def update(self, lines: list):
        if not self.initialized:
            self.init()
        print(f"\033[{self.num_lines}A", end='')
        for line in lines[:self.num_lines]:
            print(f"{self.CLEAR_LINE}{line}")
        for _ in range(self.num_lines - len(lines)):
            print(self.CLEAR_LINE)

    def cleanup(self):
        print(self.SHOW_CURSOR, end='')


def format_display(seq: Sequencer, presses: int, elapsed: float) -> List[str]:
    """Format sequencer state voor terminal display."""
    ui = TerminalUI
    s = seq.state
    snap = seq.snapshot()
    obs = observables.summarize(snap)

    phase_colors = {
        "POPULATE": ui.DIM,
        "AWAIT_TRIGGER": ui.GREEN,
        "SAMPLE": ui.YELLOW,
        "UPDATE": ui.CYAN,
    }
    color = phase_colors.get(s.phase.value, ui.RESET)

    ring = SpinRing.from_int(snap).as_text()
    cursor = " " * s.sweep_index + "^" if s.phase in (Phase.SAMPLE, Phase.UPDATE) else ""

    lines = []
    lines.append(f"{ui.BOLD}═══════════════════════════════════════════════════════════════{ui.RESET}")
    lines.append(f"{ui.BOLD}  ISING RING v1.0 — profile {seq.profile.name}{ui.RESET}")
    lines.append(f"═══════════════════════════════════════════════════════════════")
    lines.append(f"  Phase:      {color}{s.phase.value:<14}{ui.RESET} sweep={s.sweep_index:2d} sample={s.sample_index}")
    lines.append(f"  Ring:       [{ring}]  0x{snap:04X}")
    lines.append(f"               {cursor}")
    lines.append(f"  m:          {obs['magnetization']:+.3f}        walls: {obs['domain_walls']:2d}   E: {obs['energy']:+d}")
    lines.append(f"───────────────────────────────────────────────────────────────")
    lines.append(f"  Sweeps:     {s.sweeps_completed:6d}        presses: {presses}")
    lines.append(f"  Ticks:      {s.tick:8d}      Tijd: {elapsed:.1f}s")
    lines.append(f"═══════════════════════════════════════════════════════════════")
    return lines


# === MAIN ====================================================================

def main():
    parser = argparse.ArgumentParser(
        description='Live ring sequencer met knop via seriële poort'
    )
    parser.add_argument('--port', '-p', default='/dev/ttyUSB0')
    parser.add_argument('--baud', '-b', type=int, default=115200)
    parser.add_argument('--profile', choices=sorted(PROFILES), default='hardware')
    parser.add_argument('--tick-hz', type=float, default=1000.0,
                        help='Gesimuleerde klok (ticks per seconde)')
    parser.add_argument('--stable-samples', type=int, default=4,
                        help='Debounce: aantal gelijke samples voor een niveauwissel')
    parser.add_argument('--log', '-l', action='store_true')
    parser.add_argument('--simple', '-s', action='store_true')

    args = parser.parse_args()

    # Import serial
    try:
        import serial
    except ImportError:
        print("❌ pyserial niet geïnstalleerd!")
        print("   pip install pyserial")
        return 1

    profile = get_profile(args.profile)

    print(f"[i] Opening {args.port} @ {args.baud}...")
    try:
        ser = serial.Serial(args.port, args.baud, timeout=0.01)
    except serial.SerialException as e:
        print(f"❌ {e}")
        return 1

    stream = LevelStream(ser)
    debouncer = ButtonDebouncer(stable_samples=args.stable_samples)
    seq = Sequencer(profile=profile)

    log_file = None
    if args.log:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_path = f"live_ring_{timestamp}.jsonl"
        log_file = open(log_path, 'w')
        print(f"[i] Logging to: {log_path}")

    ui = None if args.simple else TerminalUI(num_lines=12)

    print(f"[i] Profile: {profile.name} (thresholds {profile.aligned_threshold}/{profile.mixed_threshold})")
    print(f"[i] Klok: {args.tick_hz:.0f} Hz, debounce: {args.stable_samples} samples")
    print(f"[i] Listening... (Ctrl+C to stop)")
    print()

    if ui:
        ui.init()

    t0 = time.time()
    last_display = t0
    tick_interval_s = 1.0 / args.tick_hz
    next_tick = t0
    pending_trigger = False
    last_sweeps = 0
    snap: Optional[TickSnapshot] = None

    try:
        while True:
            now = time.time()

            for level in stream.read_levels():
                if debouncer.feed(level).pulse:
                    pending_trigger = True

            # Klok inhalen: alle ticks die sinds de vorige iteratie vervallen zijn
            while next_tick <= now:
                snap = seq.tick(trigger=pending_trigger)
                pending_trigger = False
                next_tick += tick_interval_s

                if snap.sweeps_completed != last_sweeps:
                    last_sweeps = snap.sweeps_completed
                    if log_file:
                        entry = {"t": round(now - t0, 4)}
                        entry.update(snap.to_dict())
                        entry.update(observables.summarize(snap.snapshot))
                        log_file.write(json.dumps(entry) + "\n")

            if now - last_display > 0.1:
                elapsed = now - t0
                if ui:
                    ui.update(format_display(seq, debouncer.presses, elapsed))
                elif args.simple and snap is not None:
                    print(f"\r[{elapsed:6.1f}s] {snap.phase.value:<13} "
                          f"{SpinRing.from_int(snap.snapshot).as_text()} "
                          f"sweeps={snap.sweeps_completed}   ",
                          end='', flush=True)
                last_display = now

    except KeyboardInterrupt:
        print("\n\n[i] Stopped")

    finally:
        if ui:
            ui.cleanup()
        ser.close()
        if log_file:
            log_file.close()

        elapsed = time.time() - t0
        summary = seq.debug_summary()
        print()
        print("=" * 65)
        print("SESSION SUMMARY")
        print("=" * 65)
        print(f"  Duration:        {elapsed:.1f}s")
        print(f"  Button presses:  {debouncer.presses}")
        print(f"  Ignored pulses:  {summary['triggers_ignored']}")
        print(f"  Bad lines:       {stream.bad_lines}")
        print(f"  Sweeps:          {summary['sweeps_completed']}")
        print(f"  Final phase:     {summary['phase']}")
        print(f"  Final ring:      {summary['snapshot']}")
        print("=" * 65)

    return 0


if __name__ == "__main__":
    sys.exit(main())
