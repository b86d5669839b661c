#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
visualize_ising_ring_v1_0.py

Visualisatie van ring-runs (CSV output van `ising_ring.run_offline sweeps --csv`).

Gebruik:
    python3 visualize_ising_ring_v1_0.py <csv_file> [--output-dir <dir>] [--show]

Voorbeeld:
    python3 -m ising_ring.run_offline sweeps 500 --csv out/sweeps.csv --quiet
    python3 visualize_ising_ring_v1_0.py out/sweeps.csv --output-dir ./plots

Gegenereerde plots:
    1. spacetime.png         - space-time diagram (sweep x cel)
    2. observables.png       - magnetisatie, domain walls, energie per sweep
    3. cell_occupancy.png    - UP-fractie per cel + autocorrelatie van m
"""

import os
import sys
import argparse
from pathlib import Path
import pandas as pd
import numpy as np
import matplotlib.pyplot as plt
from matplotlib.gridspec import GridSpec

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

from ising_ring.observables import spacetime_matrix
from ising_ring.spin_ring_v1_0 import RING_SIZE

# Configuratie
plt.rcParams['figure.facecolor'] = 'white'
plt.rcParams['axes.facecolor'] = 'white'
plt.rcParams['axes.grid'] = True
plt.rcParams['grid.alpha'] = 0.3
plt.rcParams['font.size'] = 10


def load_data(csv_path: str) -> pd.DataFrame:
    """Laad de CSV en voeg de 16 celkolommen toe (cell_0 .. cell_15)."""
    df = pd.read_csv(csv_path)

    bits = spacetime_matrix(int(s) for s in df['snapshot'])
    for i in range(RING_SIZE):
        df[f'cell_{i}'] = bits[:, i].astype(np.int8)

    # sweep 0 = na populate, niet door de update-regel gemaakt
    df['is_sweep'] = df['sweep'] > 0
    return df


def cell_matrix(df: pd.DataFrame) -> np.ndarray:
    return df[[f'cell_{i}' for i in range(RING_SIZE)]].to_numpy()


def _finish(fig, output_path: Path, name: str, show: bool):
    if output_path:
        plt.savefig(output_path / name, dpi=150, bbox_inches='tight')
        print(f"  → {output_path / name}")
    if show:
        plt.show()
    plt.close(fig)


def plot_spacetime(df: pd.DataFrame, output_path: Path = None, show: bool = False):
    """Plot 1: space-time diagram, tijd naar beneden."""
    fig, ax = plt.subplots(figsize=(6, 9))
    ax.imshow(cell_matrix(df), aspect='auto', cmap='gray', interpolation='nearest')
    ax.set_xlabel('Cel')
    ax.set_ylabel('Sweep')
    ax.set_xticks(range(RING_SIZE))
    ax.set_title('Space-time (wit = UP)')
    ax.grid(False)
    _finish(fig, output_path, 'spacetime.png', show)


def plot_observables(df: pd.DataFrame, output_path: Path = None, show: bool = False):
    """Plot 2: drie panelen met de grootheden per sweep."""
    fig = plt.figure(figsize=(12, 9))
    gs = GridSpec(3, 1, figure=fig, hspace=0.35)
    d = df[df['is_sweep']]

    ax1 = fig.add_subplot(gs[0, 0])
    ax1.plot(d['sweep'], d['magnetization'], 'b-', linewidth=1, label='m')
    ax1.plot(d['sweep'], d['magnetization'].rolling(20, min_periods=1).mean(),
             'k--', linewidth=1.5, label='m (rolling 20)')
    ax1.axhline(y=0, color='gray', linestyle=':', alpha=0.7)
    ax1.set_ylabel('Magnetisatie')
    ax1.set_ylim(-1.05, 1.05)
    ax1.legend(loc='upper right', fontsize=8)

    ax2 = fig.add_subplot(gs[1, 0], sharex=ax1)
    ax2.step(d['sweep'], d['domain_walls'], where='post', color='tab:orange')
    ax2.set_ylabel('Domain walls')
    ax2.set_ylim(bottom=0)

    ax3 = fig.add_subplot(gs[2, 0], sharex=ax1)
    ax3.plot(d['sweep'], d['energy'], 'g-', linewidth=1)
    ax3.axhline(y=-RING_SIZE, color='gray', linestyle='--', alpha=0.5, label='ground state')
    ax3.set_xlabel('Sweep')
    ax3.set_ylabel('Energie')
    ax3.legend(loc='upper right', fontsize=8)

    fig.suptitle('Ring observables per sweep')
    _finish(fig, output_path, 'observables.png', show)


def autocorrelation(x: np.ndarray, max_lag: int) -> np.ndarray:
    x = x - x.mean()
    var = float(np.dot(x, x))
    if var == 0.0:
        return np.zeros(max_lag + 1)
    return np.array([np.dot(x[:len(x) - k], x[k:]) / var for k in range(max_lag + 1)])


def plot_cell_occupancy(df: pd.DataFrame, output_path: Path = None, show: bool = False):
    """Plot 3: UP-fractie per cel en autocorrelatie van m over sweeps."""
    d = df[df['is_sweep']]
    fig, (ax1, ax2) = plt.subplots(1, 2, figsize=(12, 4))

    occ = cell_matrix(d).mean(axis=0) if len(d) else np.zeros(RING_SIZE)
    ax1.bar(range(RING_SIZE), occ, color='skyblue')
    ax1.axhline(y=0.5, color='gray', linestyle='--', alpha=0.7)
    ax1.set_xticks(range(RING_SIZE))
    ax1.set_xlabel('Cel')
    ax1.set_ylabel('P(UP)')
    ax1.set_ylim(0, 1)
    ax1.set_title('UP-fractie per cel')

    mags = d['magnetization'].to_numpy(dtype=float)
    max_lag = min(50, max(len(mags) - 1, 0))
    ac = autocorrelation(mags, max_lag) if len(mags) > 1 else np.zeros(1)
    ax2.plot(range(len(ac)), ac, 'b.-')
    ax2.axhline(y=0, color='gray', linestyle=':')
    ax2.set_xlabel('Lag (sweeps)')
    ax2.set_ylabel('Autocorrelatie m')
    ax2.set_title('Geheugen tussen sweeps')

    _finish(fig, output_path, 'cell_occupancy.png', show)


def generate_summary(df: pd.DataFrame, csv_path: str) -> str:
    d = df[df['is_sweep']]
    summary = []
    summary.append("=" * 60)
    summary.append(f"ISING RING RUN: {csv_path}")
    summary.append("=" * 60)
    summary.append(f"  Sweeps:            {len(d)}")
    summary.append(f"  Start (populate):  {df['snapshot_hex'].iloc[0]}")
    summary.append(f"  Final:             {df['snapshot_hex'].iloc[-1]}")
    if len(d):
        summary.append(f"  <m>:               {d['magnetization'].mean():+.4f}")
        summary.append(f"  <|m|>:             {d['magnetization'].abs().mean():.4f}")
        summary.append(f"  <walls>:           {d['domain_walls'].mean():.2f}")
        summary.append(f"  <E>:               {d['energy'].mean():+.2f}")
        summary.append(f"  Ordered sweeps:    {(d['domain_walls'] == 0).sum()}")
    summary.append("=" * 60)
    return "\n".join(summary)


def main():
    parser = argparse.ArgumentParser(
        description='Visualisatie toolkit voor ising_ring sweep CSV'
    )
    parser.add_argument('csv_file', help='Input CSV bestand')
    parser.add_argument('--output-dir', '-o', help='Output directory voor plots')
    parser.add_argument('--show', '-s', action='store_true', help='Toon plots interactief')
    parser.add_argument('--summary', action='store_true', help='Print alleen tekstuele samenvatting')

    args = parser.parse_args()

    csv_path = Path(args.csv_file)
    if not csv_path.exists():
        print(f"❌ Bestand niet gevonden: {csv_path}")
        return 1

    print(f"[i] Laden: {csv_path}")
    df = load_data(str(csv_path))
    print(f"[i] {len(df)} rijen geladen")

    print(generate_summary(df, str(csv_path)))

    if args.summary:
        return 0

    output_path = None
    if args.output_dir:
        output_path = Path(args.output_dir)
        output_path.mkdir(parents=True, exist_ok=True)
        print(f"\n[i] Output directory: {output_path}")

    print("\n[i] Genereren plots...")
    plot_spacetime(df, output_path, args.show)
    plot_observables(df, output_path, args.show)
    plot_cell_occupancy(df, output_path, args.show)

    print("\n✅ Klaar!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
