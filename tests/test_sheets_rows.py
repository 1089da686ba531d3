from datetime import datetime

from ticket_intake_agent.models import TicketRequest
from ticket_intake_agent.sheets import ROW_COLUMNS, build_row, format_timestamp
from ticket_intake_agent.utils import get_zone

MOMENT = datetime(2026, 10, 19, 15, 4, 5, tzinfo=get_zone("America/Chicago"))


def test_row_for_minimal_request_fills_blanks():
    row = build_row(TicketRequest(artist_or_event="Hamilton", ticket_qty=2), MOMENT)
    assert len(row) == len(ROW_COLUMNS) == 9
    assert row[1] == "Hamilton"
    assert row[2] == 2
    # D, E, F, G, H, I
    assert row[3:] == ["", "", "", "", "", ""]
    parsed = datetime.strptime(row[0], "%m/%d/%Y, %I:%M:%S %p")
    assert (parsed.year, parsed.month, parsed.day, parsed.hour) == (2026, 10, 19, 15)


def test_row_keeps_column_order_for_form_submissions():
    request = TicketRequest(
        artist_or_event="Eras Tour",
        ticket_qty="4",
        name="Sam Lee",
        email="sam@example.com",
        phone=3125550100,
        city_or_residence="Evanston",
        budget_tier="$100–$149",
        notes="aisle seats",
    )
    row = build_row(request, MOMENT)
    assert row[1:] == [
        "Eras Tour",
        4,
        "Sam Lee",
        "sam@example.com",
        "3125550100",
        "Evanston",
        "$100–$149",
        "aisle seats",
    ]


def test_budget_wins_over_budget_tier():
    row = build_row(TicketRequest(artist_or_event="X", budget="$200", budget_tier="$500+"), MOMENT)
    assert row[7] == "$200"


def test_unparseable_quantity_is_blank():
    assert build_row(TicketRequest(artist_or_event="X", ticket_qty="a few"), MOMENT)[2] == ""
    assert build_row(TicketRequest(artist_or_event="X", ticket_qty="3 tickets"), MOMENT)[2] == 3
    assert build_row(TicketRequest(artist_or_event="X"), MOMENT)[2] == ""


def test_timestamp_uses_twelve_hour_clock():
    assert format_timestamp(MOMENT) == "10/19/2026, 3:04:05 PM"
    assert format_timestamp(datetime(2026, 1, 2, 0, 5, 9)) == "1/2/2026, 12:05:09 AM"
    assert format_timestamp(datetime(2026, 1, 2, 12, 0, 0)) == "1/2/2026, 12:00:00 PM"
