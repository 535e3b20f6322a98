"""Validation of user submissions: events, music videos, venues and artist applications."""
import re
import uuid
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from bs4 import BeautifulSoup

from processor.errors import ValidationError
from processor.models import (
    ArtistApplication,
    DEFAULT_CATEGORY,
    ModerationStatus,
    MusicVideo,
    UserSourcedEvent,
    Venue,
)
from processor.recurrence import is_valid_pattern, next_occurrence, parse_pattern

MAX_TITLE_LENGTH = 200
MAX_DESCRIPTION_LENGTH = 5000
URL_FIELDS = ('ticket_url', 'website_url', 'image_url')

YOUTUBE_ID_RE = re.compile(
    r'(?:youtube\.com/(?:[^/]+/.+/|(?:v|e(?:mbed)?)/|.*[?&]v=)|youtu\.be/)([^"&?/\s]{11})'
)
TIME_RE = re.compile(r'^([01]\d|2[0-3]):[0-5]\d(:[0-5]\d)?$')
EVENT_HANDLER_ATTR_RE = re.compile(r'on\w+\s*=', re.IGNORECASE)
JAVASCRIPT_RE = re.compile(r'javascript:', re.IGNORECASE)


def is_valid_url(url: Optional[str]) -> bool:
    """Empty is allowed; otherwise only absolute http(s) URLs pass."""
    if not url:
        return True
    parsed = urlparse(url)
    return parsed.scheme in ('http', 'https') and bool(parsed.netloc)


def sanitize_text(text: Optional[str]) -> str:
    """Strip script/iframe/style elements and inline handlers from free text."""
    if not text:
        return ''
    if '<' in text:
        soup = BeautifulSoup(text, 'html.parser')
        for element in soup(['script', 'iframe', 'style']):
            element.decompose()
        text = soup.get_text()
    text = JAVASCRIPT_RE.sub('', text)
    text = EVENT_HANDLER_ATTR_RE.sub('', text)
    return text.strip()


def extract_youtube_id(url: Optional[str]) -> Optional[str]:
    if not url:
        return None
    match = YOUTUBE_ID_RE.search(url)
    return match.group(1) if match else None


def _optional(payload: Dict[str, Any], key: str) -> Optional[str]:
    value = payload.get(key)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def validate_event_payload(payload: Dict[str, Any]) -> List[str]:
    """Collect every problem with a submitted event instead of stopping at the first."""
    errors = []
    title = _optional(payload, 'title')
    description = _optional(payload, 'description')

    if not title:
        errors.append('Event title is required')
    if not description:
        errors.append('Event description is required')
    if not _optional(payload, 'venue_name'):
        errors.append('Venue name is required')

    for field_name in URL_FIELDS:
        if not is_valid_url(_optional(payload, field_name)):
            errors.append(f"Invalid URL format for {field_name.replace('_', ' ')}")

    if title and len(title) > MAX_TITLE_LENGTH:
        errors.append(f'Event title must be less than {MAX_TITLE_LENGTH} characters')
    if description and len(description) > MAX_DESCRIPTION_LENGTH:
        errors.append(f'Event description must be less than {MAX_DESCRIPTION_LENGTH} characters')

    for field_name in ('start_time', 'end_time'):
        value = _optional(payload, field_name)
        if value and not TIME_RE.match(value):
            errors.append(f"{field_name.replace('_', ' ').capitalize()} must be HH:MM")

    start_date = _optional(payload, 'start_date')
    if start_date:
        try:
            date.fromisoformat(start_date)
        except ValueError:
            errors.append('Start date must be YYYY-MM-DD')

    if payload.get('is_recurring'):
        if not is_valid_pattern(_optional(payload, 'recurrence_pattern')):
            errors.append('Recurring events need a pattern such as every-friday or last-sunday')
    elif not start_date:
        errors.append('Start date is required')

    return errors


def build_user_event(payload: Dict[str, Any], owner_id: str, today: date) -> UserSourcedEvent:
    """
    Validate a submission and build the pending record to store.

    Raises:
        ValidationError: With all problems joined, before anything is written
    """
    errors = validate_event_payload(payload)
    if errors:
        raise ValidationError('; '.join(errors))

    is_recurring = bool(payload.get('is_recurring'))
    pattern = _optional(payload, 'recurrence_pattern') if is_recurring else None
    start_date = _optional(payload, 'start_date')
    if not start_date:
        start_date = (next_occurrence(pattern, today) or today).isoformat()

    image_urls = [str(url) for url in payload.get('image_urls') or [] if is_valid_url(str(url))]

    return UserSourcedEvent(
        id=str(uuid.uuid4()),
        title=sanitize_text(_optional(payload, 'title')),
        description=sanitize_text(_optional(payload, 'description')),
        category=_optional(payload, 'category') or DEFAULT_CATEGORY,
        venue_name=sanitize_text(_optional(payload, 'venue_name')),
        venue_address=_optional(payload, 'venue_address'),
        venue_city=_optional(payload, 'venue_city'),
        venue_state=_optional(payload, 'venue_state'),
        venue_zip=_optional(payload, 'venue_zip'),
        start_date=start_date,
        start_time=_optional(payload, 'start_time'),
        end_time=_optional(payload, 'end_time'),
        price_display=_optional(payload, 'price_display'),
        organizer_name=_optional(payload, 'organizer_name'),
        organizer_email=_optional(payload, 'organizer_email'),
        organizer_phone=_optional(payload, 'organizer_phone'),
        ticket_url=_optional(payload, 'ticket_url'),
        website_url=_optional(payload, 'website_url'),
        image_url=_optional(payload, 'image_url'),
        image_urls=image_urls,
        is_recurring=is_recurring,
        recurrence_type=parse_pattern(pattern).kind if pattern else None,
        recurrence_pattern=pattern,
        recurrence_end_date=_optional(payload, 'recurrence_end_date') if is_recurring else None,
        status=ModerationStatus.PENDING.value,
        created_by=owner_id,
        created_at=datetime.now(timezone.utc).isoformat(),
    )


def build_music_video(title: Optional[str], youtube_url: Optional[str], artist_id: str) -> MusicVideo:
    """Build a pending music video; the URL must carry a YouTube video id."""
    title = sanitize_text(title)
    if not title:
        raise ValidationError('Video title is required')
    if len(title) > MAX_TITLE_LENGTH:
        raise ValidationError(f'Video title must be less than {MAX_TITLE_LENGTH} characters')

    youtube_id = extract_youtube_id(youtube_url)
    if not youtube_id:
        raise ValidationError('Invalid YouTube URL')

    return MusicVideo(
        id=str(uuid.uuid4()),
        artist_id=artist_id,
        title=title,
        youtube_url=youtube_url.strip(),
        youtube_id=youtube_id,
        status=ModerationStatus.PENDING.value,
        created_at=datetime.now(timezone.utc).isoformat(),
    )


def build_venue(payload: Dict[str, Any], owner_id: str) -> Venue:
    """
    Build a pending venue proposed by a user.

    Raises:
        ValidationError: If the name is missing or too long, or the website is not a URL
    """
    name = sanitize_text(_optional(payload, 'name'))
    if not name:
        raise ValidationError('Venue name is required')
    if len(name) > MAX_TITLE_LENGTH:
        raise ValidationError(f'Venue name must be less than {MAX_TITLE_LENGTH} characters')
    website = _optional(payload, 'website')
    if not is_valid_url(website):
        raise ValidationError('Invalid URL format for website')

    return Venue(
        id=str(uuid.uuid4()),
        name=name,
        address=sanitize_text(_optional(payload, 'address')) or None,
        city=_optional(payload, 'city'),
        state=_optional(payload, 'state'),
        zip_code=_optional(payload, 'zip_code'),
        phone=_optional(payload, 'phone'),
        website=website,
        status=ModerationStatus.PENDING.value,
        created_by=owner_id,
        created_at=datetime.now(timezone.utc).isoformat(),
    )


def build_artist_application(payload: Dict[str, Any], user_id: str) -> ArtistApplication:
    """Build a pending artist application; city, state and zip code are required."""
    errors = [
        f"{label} is required"
        for key, label in (('city', 'City'), ('state', 'State'), ('zip_code', 'Zip code'))
        if not _optional(payload, key)
    ]
    if errors:
        raise ValidationError('; '.join(errors))

    return ArtistApplication(
        id=str(uuid.uuid4()),
        user_id=user_id,
        city=sanitize_text(_optional(payload, 'city')),
        state=sanitize_text(_optional(payload, 'state')),
        zip_code=_optional(payload, 'zip_code'),
        artist_name=sanitize_text(_optional(payload, 'artist_name')) or None,
        status=ModerationStatus.PENDING.value,
        created_at=datetime.now(timezone.utc).isoformat(),
    )
