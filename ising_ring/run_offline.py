#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ising_ring.run_offline

Offline simulatie van de ring-sequencer:

  populate → (trigger → 16 x [8 sample + 1 update])*

Gebruik:
  1) N sweeps draaien, samenvatting per sweep:
       python3 -m ising_ring.run_offline sweeps 200 --csv out/sweeps.csv

  2) Met per-tick JSONL log en space-time plot:
       python3 -m ising_ring.run_offline sweeps 64 --log out/ticks.jsonl --plot

  3) De eerste ticks tonen (populate + begin eerste sweep):
       python3 -m ising_ring.run_offline trace --ticks 40

  4) Profiel uit JSON:
       python3 -m ising_ring.run_offline sweeps 100 --config ring.json --profile lab
"""

from __future__ import annotations

import argparse
import csv
import json
import os
from typing import Any, Dict, List, Optional

from . import observables
from .lfsr_v1_0 import LFSR_MASK
from .profiles import PROFILES, RingProfile, get_profile, load_profile_from_json
from .sequencer_v1_0 import Phase, Sequencer
from .spin_ring_v1_0 import SpinRing
from .trigger_v1_0 import sweep_triggers

CSV_FIELDS = [
    "sweep", "tick", "snapshot", "snapshot_hex", "ring",
    "magnetization", "domain_walls", "energy", "up_count",
]


def ensure_dir(path: str):
    d = os.path.dirname(os.path.abspath(path))
    if d and not os.path.exists(d):
        os.makedirs(d, exist_ok=True)


def resolve_profile(args: argparse.Namespace) -> RingProfile:
    if args.config:
        profile = load_profile_from_json(args.config, args.profile)
    else:
        profile = get_profile(args.profile)
    if args.seed is not None:
        profile = RingProfile(
            name=f"{profile.name}+seed",
            seed=int(args.seed, 0),
            aligned_threshold=profile.aligned_threshold,
            mixed_threshold=profile.mixed_threshold,
            fold_last_position=profile.fold_last_position,
            check_invariants=profile.check_invariants,
        )
    return profile


def sweep_record(sweep: int, tick: int, snapshot: int) -> Dict[str, Any]:
    row: Dict[str, Any] = {
        "sweep": sweep,
        "tick": tick,
        "snapshot": snapshot,
        "snapshot_hex": f"0x{snapshot:04X}",
        "ring": SpinRing.from_int(snapshot).as_text(up="1", down="0"),
    }
    row.update(observables.summarize(snapshot))
    return row


def simulate_sweeps(
    sequencer: Sequencer,
    sweeps: int,
    tick_log: Optional[Any] = None,
) -> List[Dict[str, Any]]:
    """
    Draai populate + sweeps en geef per sweep een record terug.

    Record 0 is de toestand direct na populate. Elke tick gaat naar
    tick_log (open JSONL file) als die gegeven is.
    """
    records: List[Dict[str, Any]] = []

    for snap in sequencer.run_populate():
        if tick_log:
            tick_log.write(json.dumps(snap.to_dict()) + "\n")
    records.append(sweep_record(0, sequencer.state.tick, sequencer.snapshot()))

    for trigger in sweep_triggers(sweeps):
        snap = sequencer.tick(trigger=trigger)
        if tick_log:
            tick_log.write(json.dumps(snap.to_dict()) + "\n")
        # sweep klaar: net terug in AWAIT_TRIGGER na de laatste UPDATE
        if (snap.phase is Phase.AWAIT_TRIGGER
                and snap.sweeps_completed > len(records) - 1):
            records.append(sweep_record(snap.sweeps_completed, snap.tick, snap.snapshot))

    return records


def write_csv(records: List[Dict[str, Any]], path: str) -> None:
    ensure_dir(path)
    with open(path, "w", encoding="utf-8", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=CSV_FIELDS)
        writer.writeheader()
        for row in records:
            writer.writerow({k: row[k] for k in CSV_FIELDS})


def plot_spacetime(records: List[Dict[str, Any]], title: str) -> None:
    import matplotlib.pyplot as plt

    mat = observables.spacetime_matrix(r["snapshot"] for r in records)
    mags = [r["magnetization"] for r in records]
    xs = [r["sweep"] for r in records]

    fig, (ax1, ax2) = plt.subplots(1, 2, figsize=(11, 6),
                                   gridspec_kw={"width_ratios": [1, 2]})
    ax1.set_title("space-time (UP = wit)")
    ax1.imshow(mat, aspect="auto", cmap="gray", interpolation="nearest")
    ax1.set_xlabel("cel")
    ax1.set_ylabel("sweep")

    ax2.set_title(title)
    ax2.plot(xs, mags, label="magnetization")
    ax2.plot(xs, [r["domain_walls"] / 16.0 for r in records], label="domain walls / 16")
    ax2.set_xlabel("sweep")
    ax2.grid(True, which="both", linestyle=":", linewidth=0.5)
    ax2.legend(loc="best")
    plt.tight_layout()
    try:
        plt.show()
    except KeyboardInterrupt:
        print("\n[i] Plot afgebroken met Ctrl+C (KeyboardInterrupt genegeerd).")


# ------------------------------ CLI -----------------------------------------


def cmd_sweeps(args: argparse.Namespace) -> int:
    profile = resolve_profile(args)
    sequencer = Sequencer(profile=profile)

    print(
        f"[i] Ring simulatie: {args.sweeps} sweeps\n"
        f"    profile = {profile.name}, seed = 0x{profile.seed & LFSR_MASK:08X}, "
        f"thresholds = {profile.aligned_threshold}/{profile.mixed_threshold}, "
        f"fold_last_position = {profile.fold_last_position}"
    )

    log_file = None
    if args.log:
        ensure_dir(args.log)
        log_file = open(args.log, "w", encoding="utf-8")
        print(f"[i] Tick log naar: {args.log}")

    try:
        records = simulate_sweeps(sequencer, args.sweeps, tick_log=log_file)
    finally:
        if log_file:
            log_file.close()

    if not args.quiet:
        for r in records:
            print(
                f"{r['sweep']:5d}  {r['snapshot_hex']}  {r['ring']}  "
                f"m={r['magnetization']:+.3f}  walls={r['domain_walls']:2d}  "
                f"E={r['energy']:+3d}"
            )

    if args.csv:
        write_csv(records, args.csv)
        print(f"[i] CSV geschreven naar {args.csv}")

    mags = [r["magnetization"] for r in records[1:]]
    walls = [r["domain_walls"] for r in records[1:]]
    summary = sequencer.debug_summary()
    print()
    print("=" * 65)
    print("RUN SUMMARY")
    print("=" * 65)
    print(f"  Ticks:            {summary['tick']}")
    print(f"  Sweeps:           {summary['sweeps_completed']}")
    print(f"  Final snapshot:   {summary['snapshot']}")
    if mags:
        print(f"  <m>:              {sum(mags) / len(mags):+.4f}")
        print(f"  <|m|>:            {sum(abs(m) for m in mags) / len(mags):.4f}")
        print(f"  <walls>:          {sum(walls) / len(walls):.2f}")
    print("=" * 65)

    if args.plot:
        plot_spacetime(records, f"profile {profile.name}")
    return 0


def cmd_trace(args: argparse.Namespace) -> int:
    profile = resolve_profile(args)
    sequencer = Sequencer(profile=profile)

    print(f"[i] Tick trace: {args.ticks} ticks, trigger na populate, profile = {profile.name}")
    print(f"{'tick':>5}  {'phase':<13} {'cnt':>3} {'sw':>2} {'sa':>2}  {'lfsr':<10}  ring")

    for _ in range(args.ticks):
        trigger = sequencer.phase is Phase.AWAIT_TRIGGER
        snap = sequencer.tick(trigger=trigger)
        print(
            f"{snap.tick:5d}  {snap.phase.value:<13} {snap.populate_count:3d} "
            f"{snap.sweep_index:2d} {snap.sample_index:2d}  0x{snap.lfsr_value:08X}  "
            f"{SpinRing.from_int(snap.snapshot).as_text()}"
        )
    return 0


def add_profile_args(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--profile",
        default="hardware",
        help=f"Profielnaam ({', '.join(PROFILES)} of naam uit --config).",
    )
    p.add_argument(
        "--config",
        default=None,
        help="JSON bestand met profielen (optioneel).",
    )
    p.add_argument(
        "--seed",
        default=None,
        help="Overschrijf LFSR seed, bv. 0x1234ABCD.",
    )


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="Offline simulatie van de 16-spin ring sequencer"
    )
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_sweeps = sub.add_parser("sweeps", help="Draai N sweeps en vat ze samen.")
    p_sweeps.add_argument("sweeps", type=int, help="Aantal sweeps.")
    add_profile_args(p_sweeps)
    p_sweeps.add_argument("--csv", default=None, help="Schrijf per-sweep CSV.")
    p_sweeps.add_argument("--log", default=None, help="Schrijf per-tick JSONL log.")
    p_sweeps.add_argument("--quiet", action="store_true", help="Geen regel per sweep.")
    p_sweeps.add_argument("--plot", action="store_true", help="Toon space-time plot.")
    p_sweeps.set_defaults(func=cmd_sweeps)

    p_trace = sub.add_parser("trace", help="Toon de eerste ticks één voor één.")
    p_trace.add_argument("--ticks", type=int, default=40, help="Aantal ticks (default: 40).")
    add_profile_args(p_trace)
    p_trace.set_defaults(func=cmd_trace)

    args = parser.parse_args(argv)
    try:
        return args.func(args)
    except (ValueError, FileNotFoundError) as e:
        print(f"❌ {e}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
