from typing import List
from urllib.parse import urlencode

from .models import FilterCriteria, NavigationTarget

DEFAULT_BASE_URL = 'https://x.com'

TARGET_BOOKMARKS = 'bookmarks'
TARGET_SEARCH = 'search'
TARGET_TIMELINE = 'timeline'
TARGET_HOME = 'home'


def build_search_query(criteria: FilterCriteria) -> str:
    """build the search box query string in the order the site expects"""
    parts: List[str] = [criteria.search or '']

    if criteria.handle:
        parts.append(f'from:{criteria.handle}')
    if criteria.since:
        parts.append(f'since:{criteria.since}')
    if criteria.until:
        parts.append(f'until:{criteria.until}')
    if criteria.hashtag:
        parts.append(criteria.hashtag)
    if criteria.lang:
        parts.append(f'lang:{criteria.lang}')
    if not criteria.include_replies:
        parts.append('-filter:replies')
    if not criteria.include_retweets:
        parts.append('-filter:retweets')
    if criteria.verified_only:
        parts.append('filter:verified')

    return ' '.join(parts).strip()


def build_target(criteria: FilterCriteria,
                 base_url: str = DEFAULT_BASE_URL,
                 search_mode: str = 'live') -> NavigationTarget:
    """Pick the view to load for the given criteria.

    Bookmarks win over everything, a search term (with or without an author)
    goes to the search view, an author alone goes to their timeline, and
    anything else lands on the home feed.
    """
    base_url = base_url.rstrip('/')

    if criteria.bookmarks:
        return NavigationTarget(TARGET_BOOKMARKS, f'{base_url}/i/bookmarks')

    if criteria.search:
        query = build_search_query(criteria)
        params = urlencode({'q': query, 'src': 'typed_query', 'f': search_mode})
        return NavigationTarget(TARGET_SEARCH, f'{base_url}/search?{params}', query)

    if criteria.handle:
        return NavigationTarget(TARGET_TIMELINE, f'{base_url}/{criteria.handle}')

    return NavigationTarget(TARGET_HOME, f'{base_url}/home')
