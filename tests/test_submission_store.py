"""Unit tests for moderated submission storage."""
from datetime import date

import pytest
from botocore.exceptions import ClientError

from processor.errors import ValidationError
from processor.models import ModerationStatus, Venue
from processor.validation import build_artist_application, build_music_video, build_user_event, build_venue
from storage.dynamodb_manager import is_conditional_check_failure
from storage.submission_store import ArtistApplicationStore, MusicVideoStore, SubmissionStore
from storage.venue_store import VenueStore


def submission(**overrides):
    payload = {
        'title': 'Porch Concert',
        'description': 'Acoustic set',
        'venue_name': 'Backyard',
        'venue_city': 'Portland',
        'start_date': '2030-05-01',
    }
    payload.update(overrides)
    return build_user_event(payload, 'user-1', date(2030, 4, 1))


@pytest.fixture
def submission_store(dynamodb):
    return SubmissionStore('user-events')


@pytest.fixture
def video_store(dynamodb):
    return MusicVideoStore('music-videos')


@pytest.fixture
def venue_store(dynamodb):
    return VenueStore('venues')


@pytest.fixture
def application_store(dynamodb):
    return ArtistApplicationStore('artist-applications')


class TestModeration:
    """Test cases for approving and rejecting pending events."""

    def test_approve_pending_event(self, submission_store):
        """Test that approval records the moderator and makes the event public."""
        event = submission_store.create(submission())

        record = submission_store.update_status(event.id, 'approved', 'mod-1')

        assert record['status'] == 'approved'
        assert record['approved_by'] == 'mod-1'
        assert 'rejection_reason' not in record
        assert [e.id for e in submission_store.get_approved_events()] == [event.id]

    def test_reject_with_reason(self, submission_store):
        """Test that a rejection stores its reason."""
        event = submission_store.create(submission())

        record = submission_store.update_status(event.id, 'rejected', 'mod-1', rejection_reason='Duplicate')

        assert record['status'] == 'rejected'
        assert record['rejection_reason'] == 'Duplicate'

    def test_decided_record_cannot_be_moderated_again(self, submission_store):
        """Test that a second decision fails the pending condition and changes nothing."""
        event = submission_store.create(submission())
        submission_store.update_status(event.id, 'approved', 'mod-1')

        with pytest.raises(ClientError) as exc_info:
            submission_store.update_status(event.id, 'rejected', 'mod-2')

        assert is_conditional_check_failure(exc_info.value)
        assert submission_store.get_event(event.id).status == 'approved'

    def test_missing_record_is_conditional_failure(self, submission_store):
        """Test that moderating an unknown id does not create a record."""
        with pytest.raises(ClientError) as exc_info:
            submission_store.update_status('missing', 'approved', 'mod-1')

        assert is_conditional_check_failure(exc_info.value)

    def test_invalid_target_status_writes_nothing(self, submission_store):
        """Test that 'pending' is not an allowed target status."""
        event = submission_store.create(submission())

        with pytest.raises(ValidationError):
            submission_store.update_status(event.id, 'pending', 'mod-1')

        assert submission_store.get_event(event.id).status == 'pending'

    def test_pending_queue(self, submission_store):
        """Test that decided events leave the pending queue."""
        first = submission_store.create(submission(title='First'))
        second = submission_store.create(submission(title='Second'))
        submission_store.update_status(first.id, 'approved', 'mod-1')

        assert [e.id for e in submission_store.get_pending_events()] == [second.id]
        assert [item['id'] for item in submission_store.pending_records()] == [second.id]


class TestOwnerDeletes:
    """Test cases for owners withdrawing their submissions."""

    def test_owner_deletes_pending(self, submission_store):
        """Test that the submitter can delete a pending event."""
        event = submission_store.create(submission())

        submission_store.delete_pending(event.id, 'user-1')

        assert submission_store.get_event(event.id) is None

    def test_other_user_cannot_delete(self, submission_store):
        """Test that another user's delete fails the owner condition."""
        event = submission_store.create(submission())

        with pytest.raises(ClientError):
            submission_store.delete_pending(event.id, 'user-2')

    def test_approved_event_cannot_be_deleted(self, submission_store):
        """Test that a decided event can no longer be withdrawn."""
        event = submission_store.create(submission())
        submission_store.update_status(event.id, 'approved', 'mod-1')

        with pytest.raises(ClientError):
            submission_store.delete_pending(event.id, 'user-1')


class TestVenueSources:
    """Test cases for the stores that feed the venue directory."""

    def test_approved_venue_rows(self, submission_store):
        """Test that only approved events contribute venue columns."""
        approved = submission_store.create(submission(venue_name='Doug Fir'))
        submission_store.create(submission(venue_name='Still Pending'))
        submission_store.update_status(approved.id, 'approved', 'mod-1')

        rows = submission_store.approved_venue_rows()

        assert [row['venue_name'] for row in rows] == ['Doug Fir']
        assert rows[0]['venue_city'] == 'Portland'

    def test_venue_store_lists_approved(self, dynamodb):
        """Test that listed venues are approved and sorted by name."""
        table = dynamodb.Table('venues')
        table.put_item(Item={'id': '1', 'name': 'Zeta', 'status': 'approved'})
        table.put_item(Item={'id': '2', 'name': 'Alpha', 'status': 'approved'})
        table.put_item(Item={'id': '3', 'name': 'Hidden', 'status': 'pending'})

        venues = VenueStore('venues').list_approved()

        assert venues == [Venue(id='2', name='Alpha'), Venue(id='1', name='Zeta')]


class TestVenueModeration:
    """Test cases for user-proposed venues."""

    def test_proposed_venue_hidden_until_approved(self, venue_store):
        """Test that a proposed venue is listed only after approval."""
        venue = venue_store.create(build_venue({'name': 'Mississippi Studios', 'city': 'Portland'}, 'user-1'))

        assert venue_store.list_approved() == []
        assert [item['id'] for item in venue_store.pending_records()] == [venue.id]

        record = venue_store.update_status(venue.id, 'approved', 'mod-1')

        assert record['approved_by'] == 'mod-1'
        listed = venue_store.list_approved()
        assert [v.name for v in listed] == ['Mississippi Studios']
        assert listed[0].created_by == 'user-1'

    def test_rejected_venue_stays_hidden(self, venue_store):
        """Test that a rejected venue keeps its reason and is never listed."""
        venue = venue_store.create(build_venue({'name': 'Nowhere'}, 'user-1'))

        record = venue_store.update_status(venue.id, 'rejected', 'mod-1', rejection_reason='Closed')

        assert record['rejection_reason'] == 'Closed'
        assert venue_store.list_approved() == []
        assert venue_store.pending_records() == []

    def test_owner_withdraws_proposed_venue(self, venue_store):
        """Test that the proposer can delete a pending venue and others cannot."""
        venue = venue_store.create(build_venue({'name': 'Pop-up'}, 'user-1'))

        with pytest.raises(ClientError):
            venue_store.delete_pending(venue.id, 'user-2')

        venue_store.delete_pending(venue.id, 'user-1')

        assert venue_store.get_item(venue.id) is None


class TestArtistApplications:
    """Test cases for artist application moderation."""

    def application(self, user_id='user-1'):
        return build_artist_application(
            {'city': 'Portland', 'state': 'OR', 'zip_code': '97214', 'artist_name': 'The Pines'},
            user_id,
        )

    def test_application_moderation(self, application_store):
        """Test the pending queue and approval of an application."""
        application = application_store.create(self.application())

        assert [a.id for a in application_store.get_applications(ModerationStatus.PENDING)] == [application.id]

        record = application_store.update_status(application.id, 'approved', 'mod-1')

        assert record['status'] == 'approved'
        assert record['approved_by'] == 'mod-1'
        assert application_store.get_applications(ModerationStatus.PENDING) == []
        assert application_store.get_applications()[0].artist_name == 'The Pines'

    def test_reject_application_with_reason(self, application_store):
        """Test that a rejected application records the reason."""
        application = application_store.create(self.application())

        record = application_store.update_status(
            application.id, 'rejected', 'mod-1', rejection_reason='Outside service area'
        )

        assert record['rejection_reason'] == 'Outside service area'

    def test_applications_owned_by_user(self, application_store):
        """Test that owner lookups and deletes use the applicant's user id."""
        mine = application_store.create(self.application('user-1'))
        application_store.create(self.application('user-2'))

        assert [item['id'] for item in application_store.items_for_owner('user-1')] == [mine.id]

        application_store.delete_pending(mine.id, 'user-1')

        assert application_store.items_for_owner('user-1') == []


class TestMusicVideos:
    """Test cases for music video moderation."""

    def test_video_moderation(self, video_store):
        """Test that an approved video leaves the pending queue."""
        video = video_store.create(
            build_music_video('Live Session', 'https://youtu.be/dQw4w9WgXcQ', 'artist-1')
        )

        assert [v.id for v in video_store.get_videos(ModerationStatus.PENDING)] == [video.id]

        video_store.update_status(video.id, 'approved', 'mod-1')

        assert video_store.get_videos(ModerationStatus.PENDING) == []
        assert video_store.get_videos()[0].status == 'approved'

    def test_artist_deletes_own_pending_video(self, video_store):
        """Test that the artist can withdraw a pending video."""
        video = video_store.create(
            build_music_video('Demo', 'https://youtu.be/dQw4w9WgXcQ', 'artist-1')
        )

        video_store.delete_pending(video.id, 'artist-1')

        assert video_store.get_videos() == []
