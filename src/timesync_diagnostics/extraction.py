"""Extract typed records from time-sync query output.

Both extractors are pure functions of the raw text. They never raise: a field
that cannot be found keeps its default and is reported by
``SyncStatus.missing_fields``.
"""

from __future__ import annotations

import re

from .models import PeerList, SyncStatus

SOURCE_PREFIX = "Source:"
LAST_SYNC_PREFIX = "Last Successful Sync Time:"
POLL_INTERVAL_PREFIX = "Poll Interval:"
MODE_PREFIX = "Mode:"

PEER_MARKER = "Peer:"

# w32tm reports exponents well below this; larger values are treated as malformed.
MAX_POLL_EXPONENT = 31

# "10 (1024s)" -> "10"; the parenthesised annotation is ignored.
_EXPONENT = re.compile(r"([0-9]+)(?:\s|\(|$)", re.ASCII)


def _split_lines(raw_text: str) -> list[str]:
    # Lines end at "\n" only; a trailing "\r" is dropped.
    return [line.rstrip("\r") for line in raw_text.split("\n")]


def _first_value(lines: list[str], prefix: str) -> str | None:
    for line in lines:
        if line.startswith(prefix):
            return line[len(prefix):].strip()
    return None


def parse_poll_exponent(value: str) -> int | None:
    """Return ``2**n`` seconds for a poll interval exponent, or None."""

    match = _EXPONENT.match(value)
    if match is None:
        return None
    exponent = int(match.group(1))
    if exponent > MAX_POLL_EXPONENT:
        return None
    return 2**exponent


def extract_status(raw_text: str) -> SyncStatus:
    """Build a SyncStatus from ``w32tm /query /status`` style output."""

    lines = _split_lines(raw_text)
    poll_value = _first_value(lines, POLL_INTERVAL_PREFIX)
    return SyncStatus(
        time_source=_first_value(lines, SOURCE_PREFIX),
        last_sync_time=_first_value(lines, LAST_SYNC_PREFIX),
        poll_interval_seconds=parse_poll_exponent(poll_value) if poll_value is not None else None,
        sync_type=_first_value(lines, MODE_PREFIX),
    )


def extract_peers(raw_text: str) -> PeerList:
    """Return peer identifiers in order of appearance."""

    peers: list[str] = []
    for line in _split_lines(raw_text):
        _, marker, rest = line.partition(PEER_MARKER)
        if not marker:
            continue
        peers.append(rest.strip())
    return tuple(peers)
