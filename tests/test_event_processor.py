"""Unit tests for EventProcessor."""
import re
from datetime import date, datetime

import pytest

from processor.aggregator import EventAggregator
from processor.event_processor import EventProcessor, category_for_provider_id
from processor.models import EventbriteEvent, EventQuery


TODAY = date(2024, 1, 10)


class TestEventProcessor:
    """Test cases for mapping batch-import payloads."""

    def test_process_payloads_valid_record(self):
        """Test mapping a complete record."""
        processor = EventProcessor()

        events = processor.process_payloads([{
            'external_id': 'ext-1',
            'title': 'Live Music Night',
            'description': 'Enjoy live entertainment',
            'category': 'music',
            'venue_name': 'Doug Fir Lounge',
            'venue_city': 'Portland',
            'venue_state': 'OR',
            'start_date': '2024-01-15',
            'start_time': '19:00',
            'end_time': '21:00',
            'ticket_url': 'https://example.com/tickets',
        }], 'manual', today=TODAY)

        assert len(events) == 1
        event = events[0]
        assert event.external_id == 'ext-1'
        assert event.api_source == 'manual'
        assert event.title == 'Live Music Night'
        assert event.start_date == '2024-01-15T19:00:00'
        assert event.end_date == '2024-01-15T21:00:00'
        assert event.venue_state == 'OR'
        assert event.ticket_url == 'https://example.com/tickets'
        assert event.is_active is True
        assert event.last_updated > 0

    def test_process_payloads_applies_defaults(self):
        """Test that a sparse record gets the documented defaults."""
        processor = EventProcessor()

        events = processor.process_payloads([{}], 'manual', today=TODAY)

        event = events[0]
        assert event.title == 'Untitled Event'
        assert event.category == 'other'
        assert event.venue_name == 'TBA'
        assert event.venue_city == 'Portland'
        assert event.venue_state == 'Oregon'
        assert event.start_date == '2024-01-10T00:00:00'
        assert event.is_featured is False

    def test_process_payloads_accepts_alternate_keys(self):
        """Test price/url/image aliases used by spreadsheet importers."""
        processor = EventProcessor()

        events = processor.process_payloads([{
            'title': 'Market',
            'start_date': '2024-02-01',
            'price': '$5',
            'url': 'https://example.com/t',
            'image': 'https://example.com/i.png',
            'website': 'https://example.com',
        }], 'sheet', today=TODAY)

        event = events[0]
        assert event.price_display == '$5'
        assert event.ticket_url == 'https://example.com/t'
        assert event.image_url == 'https://example.com/i.png'
        assert event.website_url == 'https://example.com'

    @pytest.mark.parametrize('flag, expected', [
        (True, True),
        ('true', True),
        ('1', True),
        ('false', False),
        ('no', False),
        (0, False),
        (None, False),
    ])
    def test_is_featured_parsing(self, flag, expected):
        """Test that string flags such as 'false' are not read as truthy."""
        processor = EventProcessor()

        events = processor.process_payloads([{'title': 'Flag', 'is_featured': flag}], 'manual', today=TODAY)

        assert events[0].is_featured is expected

    def test_synthesized_external_id_format(self):
        """Test external id built from source, record id and random suffix."""
        processor = EventProcessor()

        events = processor.process_payloads([{'id': 42, 'title': 'X'}], 'sheet', today=TODAY)

        assert re.match(r'^sheet-42-[a-z0-9]{9}$', events[0].external_id)

    def test_synthesized_external_id_uses_epoch_without_record_id(self):
        """Test that the epoch in milliseconds stands in for a missing record id."""
        processor = EventProcessor()

        external_id = processor.synthesize_external_id('manual', None)

        assert re.match(r'^manual-\d{13}-[a-z0-9]{9}$', external_id)

    def test_invalid_start_date_falls_back_to_today(self):
        """Test that an unparsable date does not drop the record."""
        processor = EventProcessor()

        events = processor.process_payloads(
            [{'title': 'Odd date', 'start_date': 'not-a-date'}], 'manual', today=TODAY
        )

        assert events[0].start_date == '2024-01-10T00:00:00'

    def test_naive_timestamp_is_kept_as_local(self):
        """Test that a timestamp without an offset is stored unchanged."""
        processor = EventProcessor()

        events = processor.process_payloads(
            [{'title': 'Stamp', 'start_date': '2024-03-01T18:30:00'}], 'manual', today=TODAY
        )

        assert events[0].start_date == '2024-03-01T18:30:00'

    @pytest.mark.parametrize('raw, expected', [
        ('2024-01-11T03:00:00Z', '2024-01-10T19:00:00'),
        ('2024-01-11T03:00:00.000Z', '2024-01-10T19:00:00'),
        ('2024-01-11T03:00:00+00:00', '2024-01-10T19:00:00'),
        ('2024-01-10T22:00:00-05:00', '2024-01-10T19:00:00'),
        ('2024-07-01T03:00:00Z', '2024-06-30T20:00:00'),
    ])
    def test_offset_timestamps_converted_to_local_time(self, raw, expected):
        """Test that UTC and other offsets are converted to Pacific time, DST included."""
        processor = EventProcessor()

        events = processor.process_payloads([{'title': 'Utc', 'start_date': raw}], 'manual', today=TODAY)

        assert events[0].start_date == expected

    def test_offset_timestamps_follow_configured_timezone(self):
        """Test conversion into a non-default timezone."""
        processor = EventProcessor(timezone='America/New_York')

        events = processor.process_payloads(
            [{'title': 'East', 'start_date': '2024-01-11T03:00:00Z', 'end_date': '2024-01-11T05:00:00Z'}],
            'manual',
            today=TODAY,
        )

        assert events[0].start_date == '2024-01-10T22:00:00'
        assert events[0].end_date == '2024-01-11T00:00:00'

    def test_end_time_past_midnight_rolls_to_next_day(self):
        """Test that an end clock earlier than the start means the next day."""
        processor = EventProcessor()

        events = processor.process_payloads([{
            'title': 'Late show',
            'start_date': '2024-01-15',
            'start_time': '10:00 PM',
            'end_time': '1:00 AM',
        }], 'manual', today=TODAY)

        assert events[0].start_date == '2024-01-15T22:00:00'
        assert events[0].end_date == '2024-01-16T01:00:00'

    def test_process_payloads_truncates_long_fields(self):
        """Test that long title and description are truncated."""
        processor = EventProcessor()

        events = processor.process_payloads(
            [{'title': 'A' * 300, 'description': 'B' * 6000}], 'manual', today=TODAY
        )

        assert len(events[0].title) == 200
        assert len(events[0].description) == 5000

    def test_html_description_reduced_to_text(self):
        """Test that markup in descriptions is reduced to plain text."""
        processor = EventProcessor()

        events = processor.process_payloads(
            [{'title': 'Html', 'description': '<p>Doors at <b>7</b></p>'}], 'manual', today=TODAY
        )

        assert events[0].description == 'Doors at 7'

    def test_process_payloads_skips_non_objects(self):
        """Test mix of valid records and garbage entries."""
        processor = EventProcessor()

        events = processor.process_payloads(
            [{'title': 'Valid 1'}, 'not an object', None, {'title': 'Valid 2'}], 'manual', today=TODAY
        )

        assert [event.title for event in events] == ['Valid 1', 'Valid 2']

    def test_normalize_date_us_format(self):
        """Test date normalization with US and long formats."""
        processor = EventProcessor()

        assert processor._normalize_date("01/15/2024") == "2024-01-15"
        assert processor._normalize_date("January 15, 2024") == "2024-01-15"
        assert processor._normalize_date("invalid-date") is None

    @pytest.mark.parametrize('raw, expected', [
        ('19:00', '19:00'),
        ('7:00 PM', '19:00'),
        ('9:30 AM', '09:30'),
        ('7:00PM', '19:00'),
        ('invalid-time', None),
    ])
    def test_normalize_time(self, raw, expected):
        """Test time normalization across accepted formats."""
        assert EventProcessor()._normalize_time(raw) == expected


class TestEventbriteMapping:
    """Test cases for mapping Eventbrite listings."""

    def _listing(self, **overrides):
        payload = {
            'id': '9001',
            'name': {'text': 'Tech Meetup'},
            'description': {'text': 'Talks and pizza'},
            'start': {'local': '2024-02-01T18:00:00'},
            'end': {'local': '2024-02-01T20:00:00'},
            'category_id': '102',
            'is_free': True,
            'url': 'https://eventbrite.com/e/9001',
            'venue': {'name': 'Hub', 'address': {'city': 'Portland', 'region': 'OR'}},
            'organizer': {'name': 'PDX Tech'},
        }
        payload.update(overrides)
        return EventbriteEvent.from_payload(payload)

    def test_free_listing(self):
        """Test mapping a free listing with venue and organizer."""
        events = EventProcessor().process_eventbrite([self._listing()], today=TODAY)

        event = events[0]
        assert event.api_source == 'eventbrite'
        assert event.external_id == '9001'
        assert event.category == 'technology'
        assert event.price_min == 0
        assert event.price_display == 'Free'
        assert event.venue_name == 'Hub'
        assert event.organizer_name == 'PDX Tech'
        assert event.start_date == '2024-02-01T18:00:00'

    def test_paid_listing_without_organizer(self):
        """Test price and organizer defaults for a paid listing."""
        listing = self._listing(is_free=False, organizer=None)

        event = EventProcessor().process_eventbrite([listing], today=TODAY)[0]

        assert event.price_min is None
        assert event.price_display == 'TBA'
        assert event.organizer_name == 'Unknown'

    def test_utc_only_listing_converted_to_local(self):
        """Test that a listing with only UTC times is stored in local time."""
        listing = self._listing(
            start={'utc': '2024-01-11T03:00:00Z'},
            end={'utc': '2024-01-11T05:00:00Z'},
        )

        event = EventProcessor().process_eventbrite([listing], today=TODAY)[0]

        assert event.start_date == '2024-01-10T19:00:00'
        assert event.end_date == '2024-01-10T21:00:00'

    def test_started_utc_listing_is_not_upcoming(self):
        """Test that a converted listing that already started is filtered out."""
        listing = self._listing(start={'utc': '2024-01-11T03:00:00Z'}, end={})
        stored = EventProcessor().process_eventbrite([listing], today=TODAY)
        aggregator = EventAggregator(lambda: stored, lambda: [])

        events = aggregator.aggregate(EventQuery(), datetime(2024, 1, 10, 20, 0))

        assert events == []

    def test_unmapped_category_is_entertainment(self):
        """Test the fallback for provider categories without a tag."""
        listing = self._listing(category_id='999')

        event = EventProcessor().process_eventbrite([listing], today=TODAY)[0]

        assert event.category == 'entertainment'

    def test_category_for_provider_id(self):
        """Test the provider category lookup directly."""
        assert category_for_provider_id('103') == 'music'
        assert category_for_provider_id(None) == 'entertainment'
