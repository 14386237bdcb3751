"""
beatlane.py

Command line entrypoint. Analyses an audio file and prints the generated chart as JSON.

Commands
- analyze <audio>  decode, detect band onsets, generate a chart, print it
- config           print the resolved configuration

Integration
- Loads config (config.py), optionally from --config
- audio_source decodes the file, BandOnsetDetector runs the analysis coroutine
- ChartGenerator builds the chart; --seed makes it reproducible
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from analysis_models import Band
import audio_source
from band_onset_detector import BandOnsetDetector
import chart_generator
import config as config_module


logger = logging.getLogger("beatlane")


def _build_argument_parser() -> argparse.ArgumentParser:
    argument_parser = argparse.ArgumentParser(prog="beatlane", description="Rhythm chart generation from audio")
    argument_parser.add_argument("--config", type=Path, default=None, help="Path to a beatlane_config.json file.")
    argument_parser.add_argument("--verbose", action="store_true", help="Log analysis progress to stderr.")

    subparsers = argument_parser.add_subparsers(dest="command", required=True)

    analyze_parser = subparsers.add_parser("analyze", help="Generate a chart from an audio file.")
    analyze_parser.add_argument("audio_path", type=Path)
    analyze_parser.add_argument(
        "--difficulty", default=None, help="easy, normal or hard. Defaults to the configured difficulty."
    )
    analyze_parser.add_argument("--level", type=float, default=None, help="Retention level in [0, 1]. Overrides --difficulty.")
    analyze_parser.add_argument("--seed", type=int, default=None, help="Seed for lane choice and thinning.")
    analyze_parser.add_argument("--song-id", default=None, help="Derive the seed from this id when --seed is absent.")
    analyze_parser.add_argument("--mobile", action="store_true", help="Emit the reduced two-lane chart.")
    analyze_parser.add_argument("--onsets", action="store_true", help="Include per-band onset times in the output.")

    subparsers.add_parser("config", help="Print the resolved configuration.")
    return argument_parser


def _print_json(payload: dict) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


def _log_progress(fraction: float) -> None:
    logger.info("Analysing... %d%%", int(fraction * 100))


async def _analyze(parsed_args: argparse.Namespace, app_config: config_module.AppConfig) -> dict:
    sample_buffer = audio_source.load_sample_buffer(parsed_args.audio_path)

    detector = BandOnsetDetector(app_config.analysis)
    onsets = await detector.detect_by_band(sample_buffer, _log_progress)

    chart_config = app_config.chart
    difficulty = parsed_args.difficulty or chart_config.difficulty
    level = parsed_args.level
    if level is None and parsed_args.difficulty is None:
        level = chart_config.difficulty_level
    difficulty = chart_generator.difficulty_label(difficulty, level)

    seed = parsed_args.seed
    if seed is None and parsed_args.song_id:
        seed = chart_generator.seed_for(str(parsed_args.song_id), difficulty)
    if seed is not None:
        chart_config = chart_config.model_copy(update={"seed": int(seed)})

    generator = chart_generator.ChartGenerator(chart_config)
    generated = generator.generate(
        onsets,
        duration_seconds=sample_buffer.duration_seconds,
        difficulty=difficulty,
        level=level,
    )
    chart = generator.adjust_for_mobile(generated.chart) if parsed_args.mobile else generated.chart

    payload = {
        "ok": True,
        "audio_path": str(parsed_args.audio_path),
        "sample_rate": sample_buffer.sample_rate,
        "seed": generated.seed,
        "generator_version": generated.generator_version,
        "onset_counts": {band.value: len(onsets.times_for(band)) for band in Band},
        "chart": chart.to_payload(),
    }
    if parsed_args.onsets:
        payload["onsets"] = onsets.as_dict()
    return payload


def main(argv: Optional[List[str]] = None) -> int:
    parsed_args = _build_argument_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if parsed_args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        if parsed_args.config is None:
            app_config, config_path = config_module.get_config()
        else:
            app_config, config_path = config_module.load_config(parsed_args.config)
    except (OSError, ValueError) as exception:
        _print_json({"ok": False, "error": str(exception)})
        return 2

    if parsed_args.command == "config":
        _print_json(
            {
                "ok": True,
                "config_path": str(config_path) if config_path is not None else None,
                "config": app_config.model_dump(),
            }
        )
        return 0

    try:
        payload = asyncio.run(_analyze(parsed_args, app_config))
    except audio_source.AudioLoadError as exception:
        _print_json({"ok": False, "error": str(exception)})
        return 2

    _print_json(payload)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
