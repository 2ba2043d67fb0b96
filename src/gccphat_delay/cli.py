from __future__ import annotations
import argparse
import logging
import time
from dataclasses import asdict
from pathlib import Path
from typing import List, Optional

from .audio.io import read_stereo
from .config import OUTPUT_MODES, load_config
from .core.context import SpectralContext
from .errors import AudioDecodeError, ConfigurationError
from .metrics.levels import compute_levels
from .pipeline import estimate_delays
from .reporting.results import default_csv_path, format_table, save_json, track_summary, write_csv

logger = logging.getLogger(__name__)

LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}


def configure_logging(
    level_name: str,
    log_file: Optional[Path] = None,
    *,
    fmt: str = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    datefmt: str = "%H:%M:%S",
) -> None:
    level = LOG_LEVELS.get(level_name.lower())
    if level is None:
        valid = ", ".join(sorted(LOG_LEVELS))
        raise ValueError(f"Invalid log level '{level_name}'. Choose from: {valid}")
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    root.setLevel(level)

    formatter = logging.Formatter(fmt=fmt, datefmt=datefmt)
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="gccphat-delay",
        description="Per-buffer GCC-PHAT delay between the two channels of a stereo recording.",
    )
    ap.add_argument("audio", help="stereo audio file")
    ap.add_argument("--config", default=None, help="YAML file with analysis defaults")
    ap.add_argument("--buffer-size", type=int, default=None, help="samples per window (power of two)")
    ap.add_argument("--fmin", type=float, default=None, help="lower band edge, Hz")
    ap.add_argument("--fmax", type=float, default=None, help="upper band edge, Hz (default fs/2)")
    ap.add_argument("--output", choices=OUTPUT_MODES, default=None)
    ap.add_argument("--csv-path", default=None, help="default: <audio>_timedelay_ms_vs_time_s.csv")
    ap.add_argument("--summary", dest="summary_path", default=None, help="write a JSON run summary")
    ap.add_argument("--plot", dest="plot_path", default=None, help="write a PNG of delay/RMS over time")
    ap.add_argument("--workers", type=int, default=None)
    ap.add_argument("--lut-points", type=int, default=None)
    ap.add_argument("--no-phat", action="store_true", help="disable PHAT weighting")
    ap.add_argument("--no-rms", action="store_true", help="skip the per-window RMS column")
    ap.add_argument("--log-level", default="warning", choices=sorted(LOG_LEVELS))
    ap.add_argument("--log-file", default=None, help="also write log records to this file")
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level, args.log_file)

    if not Path(args.audio).exists():
        print(f"The provided file path does not exist: {args.audio}")
        return 2

    try:
        cfg = load_config(
            args.config,
            buffer_size=args.buffer_size,
            fmin=args.fmin,
            fmax=args.fmax,
            output=args.output,
            csv_path=args.csv_path,
            summary_path=args.summary_path,
            plot_path=args.plot_path,
            workers=args.workers,
            lut_points=args.lut_points,
            normalize=False if args.no_phat else None,
            compute_rms=False if args.no_rms else None,
        ).validate()
        left, right, fs = read_stereo(args.audio)
        cfg.validate(fs)
    except (ConfigurationError, AudioDecodeError, OSError) as exc:
        print(f"Error: {exc}")
        return 2
    print("Channels separated successfully.")

    ctx = SpectralContext(lut_points=cfg.lut_points)
    t0 = time.perf_counter()
    track = estimate_delays(
        left,
        right,
        fs=fs,
        buffer_size=cfg.buffer_size,
        fmin=cfg.fmin,
        fmax=cfg.resolved_fmax(fs),
        normalize=cfg.normalize,
        compute_rms=cfg.compute_rms,
        workers=cfg.workers,
        context=ctx,
    )
    elapsed = time.perf_counter() - t0
    print("Time delays computed successfully.")

    if cfg.output == "console":
        print(format_table(track))
    else:
        out = write_csv(Path(cfg.csv_path) if cfg.csv_path else default_csv_path(args.audio), track)
        print(f"Time delays and RMS values written to CSV file successfully: {out}")

    if cfg.summary_path:
        save_json(Path(cfg.summary_path), track_summary(
            track,
            audio=str(args.audio),
            band_hz=[cfg.fmin, cfg.resolved_fmax(fs)],
            phat=cfg.normalize,
            levels={"left": asdict(compute_levels(left)), "right": asdict(compute_levels(right))},
            elapsed_s=elapsed,
        ))
        logger.info("Summary written to %s", cfg.summary_path)

    if cfg.plot_path:
        from .reporting.plots import plot_delay_track
        plot_delay_track(track, out_path=Path(cfg.plot_path))
        logger.info("Plot written to %s", cfg.plot_path)

    print(f"Execution time: {elapsed:.3f} seconds")
    return 0
