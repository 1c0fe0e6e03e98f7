"""
Streaming parser for three-line TLE text.

Source format (fixed, case-sensitive), repeated:

    ISS (ZARYA)
    1 25544U 98067A   24001.50000000  .00016717  00000-0  10270-3 0  9005
    2 25544  51.6400 208.9163 0006317  69.9862  25.2906 15.49815308 12345

Blank lines between groups are ignored. Malformed groups are dropped
silently; the parser never raises on bad input.

The scanner is a three-state machine carrying one pending line1:

    NAME   any non-blank line is taken as the name        -> LINE1
    LINE1  '1 ' line is remembered                        -> LINE2
           anything else is re-read as a new name line    -> LINE1
    LINE2  '2 ' line emits a record                       -> NAME
           anything else drops the pending block          -> NAME
"""

import logging
import re
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Iterable, Iterator, Optional

from satplan.ingestion.records import OrbitalElementRecord

logger = logging.getLogger(__name__)

LINE1_PREFIX = '1 '
LINE2_PREFIX = '2 '

_CATALOG_ID_RE = re.compile(r'^1\s+(\d+)')


class ParserState(str, Enum):
    NAME = 'name'
    LINE1 = 'line1'
    LINE2 = 'line2'


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def extract_catalog_id(line1: str) -> Optional[str]:
    """
    Extract the NORAD catalog number from TLE line 1.

    Takes the first integer token after the leading '1' marker and drops
    leading zeros, e.g. '1 00005U 58002B ...' -> '5'. Returns None if
    there is no such token.
    """
    match = _CATALOG_ID_RE.match(line1)
    if not match:
        return None
    try:
        return str(int(match.group(1)))
    except ValueError:
        return None


def iter_element_records(
    lines: Iterable[str],
    clock: Callable[[], datetime] = _utcnow,
) -> Iterator[OrbitalElementRecord]:
    """
    Lazily turn text lines into OrbitalElementRecords.

    Args:
        lines: Source lines in order (trailing newlines are fine)
        clock: Supplies captured_at for each emitted record

    Yields one record per well-formed name/line1/line2 group.
    """
    state = ParserState.NAME
    pending_line1 = ''

    for raw in lines:
        line = raw.strip()
        if not line:
            continue

        if state is ParserState.LINE2:
            state = ParserState.NAME
            if line.startswith(LINE2_PREFIX):
                catalog_id = extract_catalog_id(pending_line1)
                if catalog_id is None:
                    logger.debug(f'Dropping TLE block, no catalog number in {pending_line1!r}')
                    continue

                yield OrbitalElementRecord(
                    catalog_id=catalog_id,
                    captured_at=clock(),
                    line1=pending_line1,
                    line2=line,
                )
                continue

            logger.debug(f'Dropping TLE block, expected line 2 after {pending_line1!r}')
            continue

        if state is ParserState.LINE1:
            if line.startswith(LINE1_PREFIX):
                pending_line1 = line
                state = ParserState.LINE2
                continue
            state = ParserState.NAME

        # NAME: a line rejected in LINE1 lands here as the next name
        state = ParserState.LINE1


def parse_tle_text(
    text: str,
    clock: Callable[[], datetime] = _utcnow,
) -> Iterator[OrbitalElementRecord]:
    """Parse a whole response body; see iter_element_records."""
    return iter_element_records(text.splitlines(), clock=clock)
