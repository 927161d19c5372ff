"""UCI command builders and reply parsers.

Only the subset of the protocol that kibitz drives is covered here.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

import chess

UCI = "uci"
UCIOK = "uciok"
ISREADY = "isready"
READYOK = "readyok"
UCINEWGAME = "ucinewgame"
STOP = "stop"

MATE_SCORE = 100_000

_RANKED_LINE_RE = re.compile(
    r"multipv\s+(\d+).*score\s+(cp|mate)\s+(-?\d+).*pv\s+([a-h][1-8][a-h][1-8][qrbn]?)"
)
_BESTMOVE_RE = re.compile(r"bestmove\s+(\S+)")


@dataclass(slots=True, frozen=True)
class RankedLine:
    """A parsed ``info ... multipv`` line."""

    rank: int
    score: int
    uci: str


def set_option(name: str, value: object) -> str:
    if isinstance(value, bool):
        value = "true" if value else "false"
    return f"setoption name {name} value {value}"


def position_fen(fen: str) -> str:
    return f"position fen {fen}"


def go_movetime(milliseconds: int) -> str:
    return f"go movetime {milliseconds}"


def normalize_score(kind: str, value: int) -> int:
    """Map a ``cp``/``mate`` score to centipawns.

    Any mate outranks any finite evaluation: a mate for the side to move is
    ``+MATE_SCORE``, a mate against it ``-MATE_SCORE``.
    """
    if kind == "cp":
        return value
    return MATE_SCORE if value > 0 else -MATE_SCORE


def parse_ranked_line(line: str) -> RankedLine | None:
    match = _RANKED_LINE_RE.search(line)
    if match is None:
        return None
    rank_text, kind, value_text, uci = match.groups()
    rank = int(rank_text)
    if rank < 1:
        return None
    return RankedLine(rank=rank, score=normalize_score(kind, int(value_text)), uci=uci)


def parse_bestmove(line: str) -> chess.Move | None:
    """Return the move from a ``bestmove`` reply, or ``None`` if there is none."""
    match = _BESTMOVE_RE.search(line)
    if match is None:
        return None
    token = match.group(1)
    if token in ("(none)", "0000"):
        return None
    try:
        return chess.Move.from_uci(token)
    except ValueError:
        return None
