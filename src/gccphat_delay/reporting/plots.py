from __future__ import annotations
from pathlib import Path
import matplotlib.pyplot as plt

from ..pipeline import DelayTrack


def _mkdir(p: Path) -> None:
    p.parent.mkdir(parents=True, exist_ok=True)


def plot_delay_track(track: DelayTrack, *, out_path: Path, title: str = "GCC-PHAT delay per window") -> Path:
    """
    Delay (ms) and window RMS against window start time. Failed windows show as gaps.
    """
    out_path = Path(out_path)
    _mkdir(out_path)
    t = track.start_times_s

    fig, axs = plt.subplots(2, 1, sharex=True, figsize=(10, 6))

    axs[0].plot(t, track.delays_ms, marker=".", linestyle="none", color="tab:blue")
    axs[0].axhline(0.0, linestyle="--", alpha=0.5)
    axs[0].set_ylabel("Time delay (ms)")
    axs[0].set_title(title)
    axs[0].grid(alpha=0.2)

    axs[1].plot(t, track.rms, color="tab:orange")
    axs[1].set_ylabel("RMS")
    axs[1].set_xlabel("Time (s)")
    axs[1].grid(alpha=0.2)

    for f in track.failures:
        t0 = f.index * track.buffer_size / track.fs
        axs[0].axvspan(t0, t0 + track.buffer_size / track.fs, color="tab:red", alpha=0.15)

    plt.tight_layout()
    plt.savefig(out_path, dpi=150)
    plt.close(fig)
    return out_path

