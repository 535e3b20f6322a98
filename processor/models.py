"""Data models for event aggregation, import and moderation."""
from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from processor.errors import ValidationError

DEFAULT_CATEGORY = 'other'
USER_SUBMITTED_SOURCE = 'user_submitted'


class ModerationStatus(str, Enum):
    """Workflow flag gating public visibility of submitted content."""
    PENDING = 'pending'
    APPROVED = 'approved'
    REJECTED = 'rejected'


class SyncStatus(str, Enum):
    """State of one import/sync run."""
    RUNNING = 'running'
    SUCCESS = 'success'
    PARTIAL_SUCCESS = 'partial_success'
    ERROR = 'error'


class DateFilter(str, Enum):
    """Date buckets accepted by the event listing."""
    ALL = 'all'
    TODAY = 'today'
    TOMORROW = 'tomorrow'
    THIS_WEEK = 'this-week'

    @classmethod
    def parse(cls, value: Optional[str]) -> 'DateFilter':
        if not value:
            return cls.ALL
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise ValidationError(f"Unsupported date filter: {value}")


def _text(value: Any) -> Optional[str]:
    """Coerce a loosely-typed JSON value to a stripped string or None."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _number(value: Any) -> Optional[float]:
    if value is None or value == '' or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _flag(value: Any) -> bool:
    """Read a boolean that may arrive as a JSON bool, number or string."""
    if isinstance(value, str):
        return value.strip().lower() in ('1', 'true', 'yes')
    return bool(value)


@dataclass
class ApiSourcedEvent:
    """Synced event record, keyed by (api_source, external_id)."""
    external_id: str
    api_source: str
    title: str
    start_date: str
    description: Optional[str] = None
    category: str = DEFAULT_CATEGORY
    venue_name: str = 'TBA'
    venue_address: Optional[str] = None
    venue_city: Optional[str] = None
    venue_state: Optional[str] = None
    venue_zip: Optional[str] = None
    end_date: Optional[str] = None
    price_min: Optional[float] = None
    price_max: Optional[float] = None
    price_display: Optional[str] = None
    image_url: Optional[str] = None
    ticket_url: Optional[str] = None
    website_url: Optional[str] = None
    organizer_name: Optional[str] = None
    organizer_url: Optional[str] = None
    is_featured: bool = False
    is_active: bool = True
    last_updated: int = 0


@dataclass
class UserSourcedEvent:
    """Event submitted through the site and gated by moderation."""
    id: str
    title: str
    start_date: str
    description: Optional[str] = None
    category: str = DEFAULT_CATEGORY
    venue_name: str = 'TBA'
    venue_address: Optional[str] = None
    venue_city: Optional[str] = None
    venue_state: Optional[str] = None
    venue_zip: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    price_display: Optional[str] = None
    price_min: Optional[float] = None
    price_max: Optional[float] = None
    organizer_name: Optional[str] = None
    organizer_email: Optional[str] = None
    organizer_phone: Optional[str] = None
    ticket_url: Optional[str] = None
    website_url: Optional[str] = None
    image_url: Optional[str] = None
    image_urls: List[str] = field(default_factory=list)
    is_featured: bool = False
    is_recurring: bool = False
    recurrence_type: Optional[str] = None
    recurrence_pattern: Optional[str] = None
    recurrence_end_date: Optional[str] = None
    status: str = ModerationStatus.PENDING.value
    rejection_reason: Optional[str] = None
    approved_by: Optional[str] = None
    approved_at: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Optional[str] = None


EventSource = Union[ApiSourcedEvent, UserSourcedEvent]


@dataclass
class Event:
    """Unified event view returned by the listing."""
    id: str
    external_id: str
    api_source: str
    title: str
    start_date: datetime
    end_date: Optional[datetime]
    category: str
    venue_name: str
    description: Optional[str] = None
    venue_address: Optional[str] = None
    venue_city: Optional[str] = None
    venue_state: Optional[str] = None
    venue_zip: Optional[str] = None
    price_min: Optional[float] = None
    price_max: Optional[float] = None
    price_display: Optional[str] = None
    image_url: Optional[str] = None
    ticket_url: Optional[str] = None
    website_url: Optional[str] = None
    organizer_name: Optional[str] = None
    is_featured: bool = False
    created_by: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['start_date'] = self.start_date.isoformat()
        data['end_date'] = self.end_date.isoformat() if self.end_date else None
        return data


@dataclass
class EventQuery:
    """Listing options: free-text search, category and date bucket."""
    search_term: Optional[str] = None
    category: Optional[str] = None
    date_filter: DateFilter = DateFilter.ALL
    featured_only: bool = False

    @classmethod
    def from_params(cls, params: Dict[str, str]) -> 'EventQuery':
        return cls(
            search_term=_text(params.get('search')),
            category=_text(params.get('category')),
            date_filter=DateFilter.parse(params.get('date')),
            featured_only=_flag(params.get('featured')),
        )


@dataclass
class ImportRecord:
    """One loosely-shaped event from a batch-import payload."""
    external_id: Optional[str] = None
    source_id: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    venue_name: Optional[str] = None
    venue_address: Optional[str] = None
    venue_city: Optional[str] = None
    venue_state: Optional[str] = None
    venue_zip: Optional[str] = None
    start_date: Optional[str] = None
    start_time: Optional[str] = None
    end_date: Optional[str] = None
    end_time: Optional[str] = None
    price_min: Optional[float] = None
    price_max: Optional[float] = None
    price_display: Optional[str] = None
    ticket_url: Optional[str] = None
    website_url: Optional[str] = None
    image_url: Optional[str] = None
    organizer_name: Optional[str] = None
    organizer_url: Optional[str] = None
    is_featured: bool = False

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> 'ImportRecord':
        """Build a record, accepting the alternate keys importers commonly send."""
        if not isinstance(payload, dict):
            raise ValidationError('Each event must be a JSON object')
        return cls(
            external_id=_text(payload.get('external_id')),
            source_id=_text(payload.get('id')),
            title=_text(payload.get('title')),
            description=_text(payload.get('description')),
            category=_text(payload.get('category')),
            venue_name=_text(payload.get('venue_name')),
            venue_address=_text(payload.get('venue_address')),
            venue_city=_text(payload.get('venue_city')),
            venue_state=_text(payload.get('venue_state')),
            venue_zip=_text(payload.get('venue_zip')),
            start_date=_text(payload.get('start_date')),
            start_time=_text(payload.get('start_time')),
            end_date=_text(payload.get('end_date')),
            end_time=_text(payload.get('end_time')),
            price_min=_number(payload.get('price_min')),
            price_max=_number(payload.get('price_max')),
            price_display=_text(payload.get('price_display') or payload.get('price')),
            ticket_url=_text(payload.get('ticket_url') or payload.get('url')),
            website_url=_text(payload.get('website_url') or payload.get('website')),
            image_url=_text(payload.get('image_url') or payload.get('image')),
            organizer_name=_text(payload.get('organizer_name')),
            organizer_url=_text(payload.get('organizer_url')),
            is_featured=_flag(payload.get('is_featured')),
        )


@dataclass
class EventbriteEvent:
    """A listing as returned by the Eventbrite search endpoint."""
    id: Optional[str]
    name: Optional[str]
    description: Optional[str]
    start_local: Optional[str]
    end_local: Optional[str]
    category_id: Optional[str]
    is_free: bool = False
    url: Optional[str] = None
    logo_url: Optional[str] = None
    venue_name: Optional[str] = None
    venue_address: Optional[str] = None
    venue_city: Optional[str] = None
    venue_region: Optional[str] = None
    venue_postal_code: Optional[str] = None
    organizer_name: Optional[str] = None
    organizer_url: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> 'EventbriteEvent':
        name = payload.get('name') or {}
        description = payload.get('description') or {}
        start = payload.get('start') or {}
        end = payload.get('end') or {}
        venue = payload.get('venue') or {}
        address = venue.get('address') or {}
        organizer = payload.get('organizer') or {}
        logo = payload.get('logo') or {}
        return cls(
            id=_text(payload.get('id')),
            name=_text(name.get('text')),
            description=_text(description.get('html') or description.get('text')),
            start_local=_text(start.get('local') or start.get('utc')),
            end_local=_text(end.get('local') or end.get('utc')),
            category_id=_text(payload.get('category_id')),
            is_free=bool(payload.get('is_free', False)),
            url=_text(payload.get('url')),
            logo_url=_text(logo.get('url')),
            venue_name=_text(venue.get('name')),
            venue_address=_text(address.get('address_1')),
            venue_city=_text(address.get('city')),
            venue_region=_text(address.get('region')),
            venue_postal_code=_text(address.get('postal_code')),
            organizer_name=_text(organizer.get('name')),
            organizer_url=_text(organizer.get('url')),
        )


@dataclass
class Venue:
    """Venue listed on the site."""
    id: str
    name: str
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    status: str = ModerationStatus.APPROVED.value
    created_by: Optional[str] = None
    approved_by: Optional[str] = None
    approved_at: Optional[str] = None
    rejection_reason: Optional[str] = None
    created_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class SyncResult:
    """Aggregate statistics of one import run."""
    processed: int = 0
    added: int = 0
    updated: int = 0
    errors: List[str] = field(default_factory=list)

    @property
    def status(self) -> SyncStatus:
        return SyncStatus.PARTIAL_SUCCESS if self.errors else SyncStatus.SUCCESS

    def to_stats(self) -> Dict[str, Any]:
        stats: Dict[str, Any] = {
            'processed': self.processed,
            'added': self.added,
            'updated': self.updated,
            'errors': len(self.errors),
        }
        if self.errors:
            stats['error_details'] = list(self.errors)
        return stats


@dataclass
class SyncLog:
    """One row per import/sync run."""
    log_id: str
    api_source: str
    sync_type: str
    status: str
    started_at: str
    completed_at: Optional[str] = None
    events_processed: int = 0
    events_added: int = 0
    events_updated: int = 0
    error_message: Optional[str] = None


@dataclass
class MusicVideo:
    """Artist-submitted video awaiting or past moderation."""
    id: str
    artist_id: str
    title: str
    youtube_url: str
    youtube_id: str
    status: str = ModerationStatus.PENDING.value
    approved_by: Optional[str] = None
    approved_at: Optional[str] = None
    rejection_reason: Optional[str] = None
    created_at: Optional[str] = None


@dataclass
class ArtistApplication:
    """A user's request to be listed as a local artist."""
    id: str
    user_id: str
    city: str
    state: str
    zip_code: str
    artist_name: Optional[str] = None
    status: str = ModerationStatus.PENDING.value
    approved_by: Optional[str] = None
    approved_at: Optional[str] = None
    rejection_reason: Optional[str] = None
    created_at: Optional[str] = None


@dataclass
class DonationRequest:
    """Body of a create-donation call."""
    amount: Any
    donor_name: Optional[str] = None
    donor_email: Optional[str] = None
    message: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> 'DonationRequest':
        return cls(
            amount=payload.get('amount'),
            donor_name=_text(payload.get('donorName')),
            donor_email=_text(payload.get('donorEmail')),
            message=_text(payload.get('message')),
        )

    def amount_cents(self) -> int:
        """
        Validated donation amount in cents.

        Raises:
            ValidationError: If the amount is missing, non-numeric or below $1.00
        """
        amount = self.amount
        if isinstance(amount, bool) or not isinstance(amount, (int, float)):
            raise ValidationError('Amount must be at least $1.00')
        if amount < 100:
            raise ValidationError('Amount must be at least $1.00')
        if int(amount) != amount:
            raise ValidationError('Amount must be a whole number of cents')
        return int(amount)


@dataclass
class Donation:
    """Donation row recorded when a payment order is created."""
    id: str
    order_id: str
    amount: int
    donor_name: str
    email: Optional[str]
    message: str
    status: str
    user_id: Optional[str] = None
    created_at: Optional[str] = None
