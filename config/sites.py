"""Per-domain site configuration, keyed by hostname."""
from dataclasses import dataclass, field
from typing import Dict, List, Optional

DEFAULT_DOMAIN = 'portland.events'


@dataclass
class LocationFilter:
    """Restricts listings to the cities/states a site covers."""
    cities: List[str] = field(default_factory=list)
    states: List[str] = field(default_factory=list)

    def matches(self, city: Optional[str], state: Optional[str]) -> bool:
        city = (city or '').strip().lower()
        state = (state or '').strip().lower()
        # Listings without any location are kept
        if not city and not state:
            return True
        cities = {c.lower() for c in self.cities}
        states = {s.lower() for s in self.states}
        if cities and city in cities:
            return True
        if states and state in states:
            return True
        return not cities and not states


@dataclass
class SiteConfig:
    """Branding and location defaults for one public domain."""
    domain: str
    name: str
    tagline: str
    default_city: str = 'Portland'
    default_state: str = 'Oregon'
    location_filter: Optional[LocationFilter] = None

    @property
    def donation_description(self) -> str:
        return f"Support {self.name} Development"


SITES: Dict[str, SiteConfig] = {
    'public.events': SiteConfig(
        domain='public.events',
        name='Public.Events',
        tagline='Discover Events Worldwide',
    ),
    'dmv.events': SiteConfig(
        domain='dmv.events',
        name='DMV.Events',
        tagline='Discover DC Metro Area Events',
        default_city='Washington',
        default_state='DC',
        location_filter=LocationFilter(
            cities=[
                'Washington', 'Alexandria', 'Arlington', 'Bethesda', 'Rockville',
                'Silver Spring', 'Fairfax', 'Reston', 'Vienna', 'Falls Church',
            ],
            states=['DC', 'District of Columbia'],
        ),
    ),
    'portland.events': SiteConfig(
        domain='portland.events',
        name='Portland.Events',
        tagline='Discover Portland, Oregon Events',
        location_filter=LocationFilter(cities=['Portland'], states=['Oregon', 'OR']),
    ),
}


def resolve_site(hostname: Optional[str]) -> SiteConfig:
    """
    Look up the site for a request hostname.

    Exact matches win, then subdomains (staging.portland.events), and
    anything else (localhost, unknown hosts) gets the default site.
    """
    host = (hostname or '').split(':')[0].strip().lower()
    if host in SITES:
        return SITES[host]
    for domain, site in SITES.items():
        if host.endswith('.' + domain):
            return site
    return SITES[DEFAULT_DOMAIN]
