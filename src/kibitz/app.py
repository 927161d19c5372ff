"""Command-line entry point: print engine suggestions for every position of a PGN."""

from __future__ import annotations

import argparse
import asyncio
import logging
import shlex
import sys
from collections.abc import Sequence
from dataclasses import replace
from pathlib import Path

import chess.pgn

from kibitz.analysis.timeline import build_timeline, sanitize_history
from kibitz.config import EngineSettings
from kibitz.engine.service import EngineService


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="kibitz", description=__doc__)
    parser.add_argument("pgn", type=Path, help="PGN file; the first game is used")
    parser.add_argument("--engine", help="engine command (default: $KIBITZ_ENGINE or stockfish)")
    parser.add_argument("--think-ms", type=int, help="think time per position")
    parser.add_argument("--lines", type=int, help="ranked lines per position")
    parser.add_argument("-v", "--verbose", action="store_true", help="log engine traffic")
    return parser.parse_args(argv)


async def _analyse(settings: EngineSettings, pgn_path: Path) -> int:
    with pgn_path.open(encoding="utf-8") as handle:
        game = chess.pgn.read_game(handle)
    if game is None:
        print(f"No game found in {pgn_path}", file=sys.stderr)
        return 1

    start_fen = game.board().fen()
    history = sanitize_history(game.mainline_moves(), start_fen)
    if history.truncated_at is not None:
        print(f"Warning: game truncated at move {history.truncated_at + 1}", file=sys.stderr)
    timeline = build_timeline(history.moves, start_fen)

    service = EngineService(settings)
    await service.start()
    try:
        for entry in timeline:
            await service.load_suggestions(entry.position)
            suggestions = service.cache.get(entry.position) or ()
            played = entry.played_move.san if entry.played_move else "start"
            lines = ", ".join(f"{s.san} ({s.score:+d})" for s in suggestions)
            print(f"{entry.index:3d}. {played:<8} {lines or '-'}")
    finally:
        await service.shutdown()
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    settings = EngineSettings.from_env()
    if args.engine:
        settings = replace(settings, engine_command=tuple(shlex.split(args.engine)))
    if args.think_ms:
        settings = replace(settings, think_time_ms=args.think_ms)
    if args.lines:
        settings = replace(settings, analysis_lines=args.lines)

    return asyncio.run(_analyse(settings, args.pgn))


if __name__ == "__main__":
    sys.exit(main())
