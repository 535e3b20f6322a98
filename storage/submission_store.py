"""Storage for moderated submissions: user events, music videos and artist applications."""
import logging
from dataclasses import asdict, fields
from typing import Any, Dict, List, Optional

from boto3.dynamodb.conditions import Attr

from processor.models import ArtistApplication, ModerationStatus, MusicVideo, UserSourcedEvent
from processor.moderation import moderation_changes, parse_target_status
from storage.dynamodb_manager import DynamoDBManager, from_dynamodb, to_dynamodb

logger = logging.getLogger(__name__)

VENUE_ATTRIBUTES = ('venue_name', 'venue_address', 'venue_city', 'venue_state', 'venue_zip')


class ModerationStore(DynamoDBManager):
    """Table of records keyed by 'id' that carry a moderation status."""

    OWNER_FIELD = 'created_by'

    def update_status(
        self,
        record_id: str,
        status: str,
        moderator_id: Optional[str],
        rejection_reason: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Approve or reject a pending record.

        Args:
            record_id: Record id
            status: 'approved' or 'rejected'
            moderator_id: Id of the moderator, stored as approved_by
            rejection_reason: Stored only when rejecting

        Returns:
            The updated record's attributes

        Raises:
            ValidationError: For an unsupported target status
            ClientError: Unchanged from DynamoDB, including
                ConditionalCheckFailedException when the record is missing
                or no longer pending
        """
        target = parse_target_status(status)
        changes = moderation_changes(target, moderator_id, rejection_reason)
        changes = to_dynamodb(changes)

        names = {f'#{key}': key for key in changes}
        values = {f':{key}': value for key, value in changes.items()}
        values[':pending'] = ModerationStatus.PENDING.value

        response = self.table.update_item(
            Key={'id': record_id},
            UpdateExpression='SET ' + ', '.join(f'#{key} = :{key}' for key in changes),
            ConditionExpression='#status = :pending',
            ExpressionAttributeNames=names,
            ExpressionAttributeValues=values,
            ReturnValues='ALL_NEW',
        )
        logger.info(f"Record {record_id} in {self.table_name} set to {target.value} by {moderator_id}")
        return from_dynamodb(response.get('Attributes', {}))

    def delete_pending(self, record_id: str, owner_id: str) -> None:
        """Delete a record that is still pending and belongs to ``owner_id``."""
        self.table.delete_item(
            Key={'id': record_id},
            ConditionExpression='#owner = :owner AND #status = :pending',
            ExpressionAttributeNames={'#owner': self.OWNER_FIELD, '#status': 'status'},
            ExpressionAttributeValues={
                ':owner': owner_id,
                ':pending': ModerationStatus.PENDING.value,
            },
        )
        logger.info(f"Deleted pending record {record_id} from {self.table_name}")

    def get_item(self, record_id: str) -> Optional[Dict[str, Any]]:
        item = self.table.get_item(Key={'id': record_id}).get('Item')
        return from_dynamodb(item) if item else None

    def items_with_status(self, status: ModerationStatus) -> List[Dict[str, Any]]:
        return self.scan_items(Attr('status').eq(status.value))

    def items_for_owner(self, owner_id: str) -> List[Dict[str, Any]]:
        return self.scan_items(Attr(self.OWNER_FIELD).eq(owner_id))

    def pending_records(self) -> List[Dict[str, Any]]:
        """Moderation queue, newest first."""
        items = self.items_with_status(ModerationStatus.PENDING)
        return sorted(items, key=lambda item: item.get('created_at') or '', reverse=True)

    def _put(self, record) -> None:
        self.table.put_item(
            Item=to_dynamodb(asdict(record)),
            ConditionExpression='attribute_not_exists(id)',
        )


class SubmissionStore(ModerationStore):
    """User-submitted events."""

    OWNER_FIELD = 'created_by'
    FIELDS = {f.name for f in fields(UserSourcedEvent)}

    def create(self, event: UserSourcedEvent) -> UserSourcedEvent:
        self._put(event)
        logger.info(f"Stored pending event {event.id} submitted by {event.created_by}")
        return event

    def get_event(self, event_id: str) -> Optional[UserSourcedEvent]:
        item = self.get_item(event_id)
        return self._to_event(item) if item else None

    def get_approved_events(self) -> List[UserSourcedEvent]:
        return [self._to_event(item) for item in self.items_with_status(ModerationStatus.APPROVED)]

    def get_pending_events(self) -> List[UserSourcedEvent]:
        events = [self._to_event(item) for item in self.items_with_status(ModerationStatus.PENDING)]
        return sorted(events, key=lambda event: event.created_at or '', reverse=True)

    def approved_venue_rows(self) -> List[Dict[str, Any]]:
        """Venue columns of approved events that name a venue."""
        items = self.scan_items(
            Attr('status').eq(ModerationStatus.APPROVED.value) & Attr('venue_name').exists()
        )
        return [{key: item.get(key) for key in VENUE_ATTRIBUTES} for item in items]

    def _to_event(self, item: Dict[str, Any]) -> UserSourcedEvent:
        return UserSourcedEvent(**{k: v for k, v in item.items() if k in self.FIELDS})


class MusicVideoStore(ModerationStore):
    """Artist music videos."""

    OWNER_FIELD = 'artist_id'
    FIELDS = {f.name for f in fields(MusicVideo)}

    def create(self, video: MusicVideo) -> MusicVideo:
        self._put(video)
        logger.info(f"Stored pending music video {video.id} for artist {video.artist_id}")
        return video

    def get_videos(self, status: Optional[ModerationStatus] = None) -> List[MusicVideo]:
        items = self.items_with_status(status) if status else self.scan_items()
        videos = [MusicVideo(**{k: v for k, v in item.items() if k in self.FIELDS}) for item in items]
        return sorted(videos, key=lambda video: video.created_at or '', reverse=True)


class ArtistApplicationStore(ModerationStore):
    """Requests from users to be listed as artists."""

    OWNER_FIELD = 'user_id'
    FIELDS = {f.name for f in fields(ArtistApplication)}

    def create(self, application: ArtistApplication) -> ArtistApplication:
        self._put(application)
        logger.info(f"Stored pending artist application {application.id} from {application.user_id}")
        return application

    def get_applications(self, status: Optional[ModerationStatus] = None) -> List[ArtistApplication]:
        items = self.items_with_status(status) if status else self.scan_items()
        applications = [
            ArtistApplication(**{k: v for k, v in item.items() if k in self.FIELDS}) for item in items
        ]
        return sorted(applications, key=lambda application: application.created_at or '', reverse=True)
