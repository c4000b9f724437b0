"""Resilient element lookup over a parsed page snapshot.

Markup on the feed changes without notice, so every lookup is an ordered
list of matchers tried from most to least specific. The first matcher that
finds an element and reads it cleanly wins; a total miss yields the field's
default instead of an error, so one broken field never costs the record.
"""
import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple
from urllib.parse import urljoin, urlparse

from bs4 import Tag

from .errors import NoMatchFound, TransientExtractionFailure
from .models import parse_timestamp

log = logging.getLogger(__name__)

_NON_DIGIT = re.compile(r'\D')
_STATUS_PATH = re.compile(r'^/[^/]+/status/\d+')

SITE_URL = 'https://x.com'

# first path segments that are site routes, never profiles
RESERVED_PATHS = frozenset({
    'i', 'home', 'search', 'explore', 'notifications', 'messages',
    'settings', 'compose', 'hashtag', 'login', 'logout',
})

# most specific first; the generic article roles catch markup renames
CONTAINER_PATTERNS: Tuple[str, ...] = (
    'article[data-testid="tweet"]',
    '[data-testid="tweet"]',
    'article',
    '[role="article"]',
)

# any of these inside a container means the container wraps another post
NESTED_RECORD_PATTERN = '[data-testid="tweet"]'

MEDIA_PATTERN = 'img[src], video[src], video source[src]'

EMPTY_STATE_PATTERN = '[data-testid="emptyState"]'


def _present(el: Tag) -> bool:
    return True


def read_text(el: Tag) -> str:
    return el.get_text()


def read_counter(el: Tag) -> int:
    """visible counter text with everything but digits stripped, '' -> 0"""
    digits = _NON_DIGIT.sub('', el.get_text())
    return int(digits) if digits else 0


def read_datetime(el: Tag) -> str:
    value = el.get('datetime') or ''
    if parse_timestamp(value) is None:
        raise TransientExtractionFailure(f'unparseable datetime attribute {value!r}')
    return value


def read_lang(el: Tag) -> str:
    value = (el.get('lang') or '').strip()
    if not value:
        raise TransientExtractionFailure('empty lang attribute')
    return value


def handle_from_href(href: str) -> str:
    """handle of a profile link like /jane, '' for any other link"""
    if not href:
        return ''
    segments = [s for s in urlparse(href).path.split('/') if s]
    if len(segments) != 1 or segments[0].lower() in RESERVED_PATHS:
        return ''
    return segments[0]


def read_author(el: Tag) -> Tuple[str, str]:
    if el.name == 'a':
        handle = handle_from_href(el.get('href') or '')
        if not handle:
            raise TransientExtractionFailure(f'not a profile link: {el.get("href")!r}')
    else:
        handles = (handle_from_href(a.get('href') or '') for a in el.select('a[href]'))
        handle = next((h for h in handles if h), '')
    display_name = el.get_text().split('@')[0].strip()
    return handle, display_name


def read_permalink(el: Tag) -> str:
    """absolute /<handle>/status/<id> url, with photo or analytics suffixes cut"""
    href = el.get('href') or ''
    match = _STATUS_PATH.match(urlparse(href).path)
    if match is None:
        raise TransientExtractionFailure(f'not a status link: {href!r}')
    return urljoin(SITE_URL, match.group(0))


@dataclass(frozen=True)
class Matcher:
    selector: str
    read: Callable[[Tag], Any]


class FieldCascade:
    """A prioritized matcher list for one field of a record."""

    def __init__(self, name: str, matchers: Sequence[Matcher], default: Any = None):
        self.name = name
        self.matchers = tuple(matchers)
        self.default = default

    def first(self, node: Tag) -> Any:
        """Value of the first matcher that hits and reads cleanly.

        Raises NoMatchFound when every matcher misses or fails to read.
        """
        for matcher in self.matchers:
            el = node.select_one(matcher.selector)
            if el is None:
                continue
            try:
                return matcher.read(el)
            except Exception as e:
                log.warning(f"field '{self.name}': matcher {matcher.selector!r} failed: {e}")
        raise NoMatchFound(self.name)

    def resolve(self, node: Tag) -> Any:
        try:
            return self.first(node)
        except NoMatchFound:
            return self.default


def _cascade(name: str, selectors: Sequence[str], read: Callable[[Tag], Any], default: Any) -> FieldCascade:
    return FieldCascade(name, [Matcher(s, read) for s in selectors], default)


TEXT = _cascade(
    'text',
    ('[data-testid="tweetText"]', '[lang]', 'div[dir="auto"]', 'span'),
    read_text, '',
)
AUTHOR = _cascade(
    'author',
    ('[data-testid="User-Name"]', '[data-testid="User-Names"]', 'a[href*="/"]'),
    read_author, ('', ''),
)
TIMESTAMP = _cascade('timestamp', ('time[datetime]',), read_datetime, None)
PERMALINK = _cascade('url', ('a[href*="/status/"]:has(time)', 'a[href*="/status/"]'), read_permalink, None)
LANG = _cascade('lang', ('[data-testid="tweetText"][lang]', '[lang]'), read_lang, '')
VERIFIED = _cascade(
    'verified',
    ('[data-testid="icon-verified"]', 'svg[aria-label="Verified account"]'),
    _present, False,
)
LIKES = _cascade('likes', ('[data-testid="like"]', '[data-testid="unlike"]'), read_counter, 0)
RETWEETS = _cascade('retweets', ('[data-testid="retweet"]', '[data-testid="unretweet"]'), read_counter, 0)
REPLIES = _cascade('replies', ('[data-testid="reply"]',), read_counter, 0)
SOCIAL_CONTEXT = _cascade('social_context', ('[data-testid="socialContext"]',), _present, False)


def _select(tree: Tag, pattern: str) -> List[Tag]:
    try:
        return tree.select(pattern)
    except Exception as e:
        log.warning(f"selector {pattern!r} failed: {e}")
        return []


def locate_all(tree: Optional[Tag], patterns: Sequence[str]) -> List[Tag]:
    """matches of the first pattern that finds anything, in document order"""
    if tree is None:
        return []
    for pattern in patterns:
        found = _select(tree, pattern)
        if found:
            return found
    return []


def locate_record_containers(tree: Optional[Tag]) -> List[Tag]:
    return locate_all(tree, CONTAINER_PATTERNS)


def has_nested_record(container: Tag) -> bool:
    return container.select_one(NESTED_RECORD_PATTERN) is not None


def has_empty_state(tree: Optional[Tag]) -> bool:
    return tree is not None and tree.select_one(EMPTY_STATE_PATTERN) is not None


def probe(tree: Optional[Tag]) -> Dict[str, int]:
    """match counts for every container pattern, for debugging markup drift"""
    if tree is None:
        return {pattern: 0 for pattern in CONTAINER_PATTERNS}
    return {pattern: len(_select(tree, pattern)) for pattern in CONTAINER_PATTERNS}
