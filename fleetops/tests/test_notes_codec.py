"""
Notes codec tests.

Covers the packed legacy notes format: flight lines, passenger block and
the STATUS: prefix.
"""

from fleetops.app.domain.dispatch import notes_codec
from fleetops.app.domain.dispatch.notes_codec import FlightInfo
from fleetops.app.models.trip_enums import TripStatus


def test_flight_details_round_trip():
    flight = FlightInfo(flight="BA123", airline="British Airways", terminal="T5")
    text = notes_codec.encode(notes="Meet at arrivals", flight=flight)

    decoded = notes_codec.decode(text)

    assert decoded.flight == flight
    assert decoded.notes == "Meet at arrivals"
    assert decoded.warnings == []


def test_flight_lines_found_independently():
    text = "Terminal: 3\nsome text\nFlight: EK001"

    decoded = notes_codec.decode(text)

    assert decoded.flight.flight == "EK001"
    assert decoded.flight.airline is None
    assert decoded.flight.terminal == "3"
    assert decoded.notes == "some text"


def test_flight_values_keep_inner_spacing():
    flight = FlightInfo(flight="BA  123", airline="British\nAirways", terminal=" T5 ")

    decoded = notes_codec.decode(notes_codec.encode(flight=flight))

    assert decoded.flight == FlightInfo(flight="BA  123", airline="British Airways", terminal="T5")


def test_passenger_block_extraction():
    text = "VIP pickup\n\nPassengers:\nJohn Doe\n- Jane Roe\n\nCall on arrival"

    decoded = notes_codec.decode(text)

    assert decoded.passengers == ["John Doe", "Jane Roe"]
    assert decoded.notes == "VIP pickup\n\nCall on arrival"


def test_passenger_block_ends_at_end_of_text():
    assert notes_codec.decode("Passengers:\nA\nB").passengers == ["A", "B"]


def test_encode_order_is_status_notes_flight_passengers():
    text = notes_codec.encode(
        notes="Gate B",
        flight=FlightInfo(flight="LH400"),
        passengers=["Ann", "Bob"],
        status=TripStatus.IN_PROGRESS
    )

    assert text == "STATUS:in_progress\n\nGate B\nFlight: LH400\n\nPassengers:\nAnn\nBob"


def test_empty_pieces_are_omitted():
    assert notes_codec.encode() == ""
    assert notes_codec.encode(flight=FlightInfo(), passengers=["  "]) == ""
    assert notes_codec.encode(status=TripStatus.SCHEDULED) == "STATUS:scheduled"


def test_status_prefix_re_encode_is_idempotent():
    original = notes_codec.encode(notes="Late flight", status=TripStatus.CANCELLED)

    decoded = notes_codec.decode(original)
    again = notes_codec.encode(notes=decoded.notes, flight=decoded.flight,
                               passengers=decoded.passengers, status=decoded.status)

    assert decoded.status == TripStatus.CANCELLED
    assert again == original
    assert original.count("STATUS:") == 1


def test_status_prefix_is_split_from_notes():
    decoded = notes_codec.decode("STATUS:completed\n\nDropped at hotel")

    assert decoded.status == TripStatus.COMPLETED
    assert decoded.notes == "Dropped at hotel"
    assert notes_codec.decode("no marker").status is None


def test_status_marker_only_recognised_on_first_line():
    decoded = notes_codec.decode("hello\nSTATUS:completed")

    assert decoded.status is None
    assert "STATUS:completed" in decoded.notes


def test_unknown_status_is_warned_and_kept_in_notes():
    decoded = notes_codec.decode("STATUS:teleported\n\nstill here")

    assert decoded.status is None
    assert decoded.notes == "STATUS:teleported\n\nstill here"
    assert len(decoded.warnings) == 1


def test_unknown_status_survives_a_cycle():
    text = notes_codec.encode(notes="STATUS:VIP\n\nMeet at lobby")

    decoded = notes_codec.decode(text)

    assert decoded.notes == "STATUS:VIP\n\nMeet at lobby"
    assert decoded.warnings == ["Unknown status marker 'vip'"]


def test_malformed_content_never_raises():
    samples = [
        None,
        "",
        "\n\n\n",
        "Passengers:",
        "Flight:\nFlight: AA1\nFlight: AA2",
        "STATUS:",
        "\r\nAirline: KLM\r\nPassengers:\r\n\r\n",
    ]
    for sample in samples:
        decoded = notes_codec.decode(sample)
        assert isinstance(decoded.notes, str)

    duplicate = notes_codec.decode("Flight: AA1\nFlight: AA2")
    assert duplicate.flight.flight == "AA1"
    assert duplicate.warnings


def test_decode_then_encode_is_stable_after_one_cycle():
    messy = "  \nPassengers:\n\n- Ann  Lee\nBob\nFlight:   QF1  \nnote"

    first = notes_codec.decode(messy)
    once = notes_codec.encode(first.notes, first.flight, first.passengers, first.status)
    second = notes_codec.decode(once)
    twice = notes_codec.encode(second.notes, second.flight, second.passengers, second.status)

    assert once == twice
