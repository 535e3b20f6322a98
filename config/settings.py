"""Runtime configuration for the event functions."""
import os
from dataclasses import dataclass
from datetime import datetime
from typing import Mapping, Optional

import pytz


@dataclass
class Settings:
    """Explicit configuration handed to each component by the handlers."""
    aws_region: str = 'us-west-2'
    events_table: str = 'events'
    user_events_table: str = 'user-events'
    venues_table: str = 'venues'
    sync_log_table: str = 'api-sync-log'
    music_videos_table: str = 'music-videos'
    artist_applications_table: str = 'artist-applications'
    donations_table: str = 'donations'
    log_level: str = 'INFO'
    http_timeout: int = 30
    timezone: str = 'America/Los_Angeles'
    eventbrite_api_key: Optional[str] = None
    eventbrite_location: str = 'Portland,OR'
    paypal_client_id: Optional[str] = None
    paypal_client_secret: Optional[str] = None
    paypal_base_url: str = 'https://api-m.sandbox.paypal.com'
    google_places_api_key: Optional[str] = None
    sync_api_token: Optional[str] = None

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'Settings':
        """
        Build settings from environment variables.

        Args:
            environ: Mapping to read from (defaults to os.environ)

        Returns:
            Settings instance
        """
        env = os.environ if environ is None else environ
        defaults = cls()
        return cls(
            aws_region=env.get('AWS_REGION', defaults.aws_region),
            events_table=env.get('EVENTS_TABLE', defaults.events_table),
            user_events_table=env.get('USER_EVENTS_TABLE', defaults.user_events_table),
            venues_table=env.get('VENUES_TABLE', defaults.venues_table),
            sync_log_table=env.get('SYNC_LOG_TABLE', defaults.sync_log_table),
            music_videos_table=env.get('MUSIC_VIDEOS_TABLE', defaults.music_videos_table),
            artist_applications_table=env.get(
                'ARTIST_APPLICATIONS_TABLE', defaults.artist_applications_table
            ),
            donations_table=env.get('DONATIONS_TABLE', defaults.donations_table),
            log_level=env.get('LOG_LEVEL', defaults.log_level),
            http_timeout=int(env.get('HTTP_TIMEOUT_SECONDS', str(defaults.http_timeout))),
            timezone=env.get('TIMEZONE', defaults.timezone),
            eventbrite_api_key=env.get('EVENTBRITE_API_KEY') or None,
            eventbrite_location=env.get('EVENTBRITE_LOCATION', defaults.eventbrite_location),
            paypal_client_id=env.get('PAYPAL_CLIENT_ID') or None,
            paypal_client_secret=env.get('PAYPAL_CLIENT_SECRET') or None,
            paypal_base_url=env.get('PAYPAL_BASE_URL', defaults.paypal_base_url),
            google_places_api_key=env.get('GOOGLE_PLACES_API_KEY') or None,
            sync_api_token=env.get('SYNC_API_TOKEN') or None,
        )

    def local_now(self) -> datetime:
        """Current wall-clock time in the configured timezone, without tzinfo."""
        return datetime.now(pytz.timezone(self.timezone)).replace(tzinfo=None)
