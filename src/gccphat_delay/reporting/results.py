from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Optional

import numpy as np

from ..pipeline import DelayTrack

CSV_HEADER = ["Time (s)", "Time Delay (ms)", "RMS Value"]


def default_csv_path(audio_path: str) -> Path:
    p = Path(audio_path)
    return p.with_name(f"{p.stem}_timedelay_ms_vs_time_s.csv")


def format_table(track: DelayTrack) -> str:
    lines = [f"{'Time Delay (ms)':<15} {'RMS Value':<15}", "-" * 30]
    for d, r in zip(track.delays_ms, track.rms):
        lines.append(f"{d!s:<15} {r!s:<15}")
    return "\n".join(lines)


def write_csv(path: Path, track: DelayTrack) -> Path:
    """
    Semicolon separated; one row per processed window, timed by its window start.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", newline="") as f:
        w = csv.writer(f, delimiter=";")
        w.writerow(CSV_HEADER)
        for t, d, r in zip(track.start_times_s, track.delays_ms, track.rms):
            w.writerow([f"{t:.6f}", f"{d:.3f}", f"{r:.3f}"])
    return path


def _stat(x: np.ndarray, fn) -> Optional[float]:
    return float(fn(x)) if x.size else None


def track_summary(track: DelayTrack, **extra) -> dict:
    d = track.delays_ms
    return {
        **extra,
        "fs_hz": track.fs,
        "buffer_size": track.buffer_size,
        "windows_total": track.num_windows,
        "windows_processed": len(track),
        "windows_failed": [{"index": f.index, "reason": f.reason} for f in track.failures],
        "delay_ms": {
            "median": _stat(d, np.median),
            "mean": _stat(d, np.mean),
            "std": _stat(d, np.std),
            "min": _stat(d, np.min),
            "max": _stat(d, np.max),
        },
    }


def save_json(path: Path, obj: dict) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(obj, f, indent=2)
