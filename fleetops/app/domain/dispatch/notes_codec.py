"""
Notes codec.

Legacy trips packed three optional pieces of structured data into their
single free-text notes column:

    STATUS:in_progress
                                  <- blank line ends the status prefix
    Pick up at gate B             <- free-form notes
    Flight: BA123                 <- flight lines, any subset
    Airline: British Airways
    Terminal: T5

    Passengers:                   <- manifest, one name per line,
    John Doe                         ended by a blank line or end of text
    Jane Roe

Trips now store these as columns. The codec reads the packed form when
importing or normalizing incoming notes and renders it for export.
Decoding never raises: anything it cannot make sense of is left in the
free text and reported as a CodecWarning on the result.
"""

import logging
import re
from typing import List, Optional

from pydantic import BaseModel, Field

from fleetops.app.core.exceptions import CodecWarning
from fleetops.app.models.trip_enums import TripStatus

logger = logging.getLogger("fleetops.dispatch.codec")

FLIGHT_LABEL = "Flight"
AIRLINE_LABEL = "Airline"
TERMINAL_LABEL = "Terminal"
PASSENGERS_MARKER = "Passengers:"
STATUS_PREFIX = "STATUS:"

_FLIGHT_LINE = re.compile(r"^(Flight|Airline|Terminal):[ \t]*(.*?)[ \t]*$")
_PASSENGERS_LINE = re.compile(r"^Passengers:[ \t]*$", re.IGNORECASE)
_STATUS_LINE = re.compile(r"^STATUS:([A-Za-z_]*)[ \t]*$", re.IGNORECASE)
_BULLET = re.compile(r"^-\s+")
_LINE_BREAKS = re.compile(r"[ \t]*[\r\n]+[ \t]*")


class FlightInfo(BaseModel):
    """Flight details for airport pickups and dropoffs."""
    flight: Optional[str] = None
    airline: Optional[str] = None
    terminal: Optional[str] = None

    def is_empty(self) -> bool:
        return not (self.flight or self.airline or self.terminal)


class DecodedNotes(BaseModel):
    """Result of decoding a notes field."""
    notes: str = ""
    flight: Optional[FlightInfo] = None
    passengers: List[str] = Field(default_factory=list)
    status: Optional[TripStatus] = None
    warnings: List[str] = Field(default_factory=list)


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    # One line per value; inner spacing is kept as written
    value = _LINE_BREAKS.sub(" ", value).strip()
    return value or None


def clean_passengers(passengers: Optional[List[str]]) -> List[str]:
    cleaned = []
    for name in passengers or []:
        name = _clean(_BULLET.sub("", name.strip()) if name else None)
        if name:
            cleaned.append(name)
    return cleaned


def _trim_blank_lines(lines: List[str]) -> List[str]:
    start, end = 0, len(lines)
    while start < end and not lines[start].strip():
        start += 1
    while end > start and not lines[end - 1].strip():
        end -= 1
    return lines[start:end]


def _warn(result: DecodedNotes, message: str) -> None:
    result.warnings.append(message)
    logger.warning("%s: %s", CodecWarning.__name__, message)


def encode(
    notes: Optional[str] = None,
    flight: Optional[FlightInfo] = None,
    passengers: Optional[List[str]] = None,
    status: Optional[TripStatus] = None
) -> str:
    """
    Pack free text and structured trip metadata into one notes string.

    Order is fixed: status prefix, free notes, flight lines, passenger block.

    Args:
        notes: Free-form text; trailing/leading blank lines are dropped
        flight: Flight details; empty parts are omitted
        passengers: Passenger names; blank names are omitted
        status: Trip status to write as a STATUS: prefix

    Returns:
        The packed string ("" when there is nothing to write)
    """
    sections = []

    body = "\n".join(_trim_blank_lines((notes or "").splitlines()))
    flight_lines = []
    if flight is not None:
        for label, value in ((FLIGHT_LABEL, flight.flight), (AIRLINE_LABEL, flight.airline),
                             (TERMINAL_LABEL, flight.terminal)):
            value = _clean(value)
            if value:
                flight_lines.append(f"{label}: {value}")

    head = "\n".join(part for part in (body, "\n".join(flight_lines)) if part)
    if head:
        sections.append(head)

    names = clean_passengers(passengers)
    if names:
        sections.append("\n".join([PASSENGERS_MARKER] + names))

    text = "\n\n".join(sections)

    if status is not None:
        status_value = TripStatus(status).value
        text = f"{STATUS_PREFIX}{status_value}\n\n{text}" if text else f"{STATUS_PREFIX}{status_value}"

    return text


def decode(text: Optional[str]) -> DecodedNotes:
    """
    Unpack a notes string into free text and structured metadata.

    Each piece is found independently; a missing piece decodes to None or
    an empty list. Lines that belong to a recognised piece are removed from
    the returned free text, everything else is kept in order.
    """
    result = DecodedNotes()
    if not text:
        return result

    lines = text.replace("\r\n", "\n").replace("\r", "\n").split("\n")

    # Status prefix: only on the first non-empty line
    first = next((i for i, line in enumerate(lines) if line.strip()), None)
    if first is not None:
        match = _STATUS_LINE.match(lines[first].strip())
        if match:
            raw_status = match.group(1).lower()
            try:
                result.status = TripStatus(raw_status)
            except ValueError:
                # Unrecognised markers stay in the free text
                _warn(result, f"Unknown status marker '{raw_status or '<empty>'}'")
            else:
                lines = lines[first + 1:]

    remainder = []
    flight = FlightInfo()
    index = 0
    while index < len(lines):
        line = lines[index]
        stripped = line.strip()

        if _PASSENGERS_LINE.match(stripped):
            index += 1
            block_started = False
            while index < len(lines):
                entry = lines[index].strip()
                if not entry:
                    # Blank line right after the marker is tolerated
                    if block_started:
                        # The terminating blank line belongs to the block
                        index += 1
                        break
                    index += 1
                    continue
                block_started = True
                name = _clean(_BULLET.sub("", entry))
                if name:
                    result.passengers.append(name)
                index += 1
            if not block_started:
                _warn(result, "Passenger marker without any names")
            continue

        match = _FLIGHT_LINE.match(stripped)
        if match:
            label, value = match.group(1), _clean(match.group(2))
            field = label.lower()
            if getattr(flight, field) is not None:
                _warn(result, f"Duplicate '{label}' line ignored")
            elif value is None:
                _warn(result, f"Empty '{label}' line ignored")
            else:
                setattr(flight, field, value)
            index += 1
            continue

        remainder.append(line.rstrip())
        index += 1

    result.notes = "\n".join(_trim_blank_lines(remainder))
    if not flight.is_empty():
        result.flight = flight
    return result
