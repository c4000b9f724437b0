import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple

MEDIA_IMAGE = 'image'
MEDIA_VIDEO = 'video'

_NON_WORD = re.compile(r'\W+')
_BASE36 = '0123456789abcdefghijklmnopqrstuvwxyz'
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# characters of body text that take part in the fingerprint
FINGERPRINT_TEXT_CHARS = 20


@dataclass(frozen=True)
class Author:
    handle: str = ''
    display_name: str = ''
    verified: bool = False


@dataclass(frozen=True)
class Engagement:
    likes: int = 0
    retweets: int = 0
    replies: int = 0


@dataclass(frozen=True)
class MediaItem:
    url: str
    kind: str = MEDIA_IMAGE


@dataclass(frozen=True)
class Entities:
    hashtags: Tuple[str, ...] = ()
    mentions: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Flags:
    is_retweet: bool = False
    is_reply: bool = False
    lang: str = ''


@dataclass(frozen=True)
class ContentRecord:
    """one harvested post"""
    id: str
    text: str
    author: Author = field(default_factory=Author)
    created_at: str = ''
    engagement: Engagement = field(default_factory=Engagement)
    media: Tuple[MediaItem, ...] = ()
    entities: Entities = field(default_factory=Entities)
    flags: Flags = field(default_factory=Flags)
    url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'url': self.url,
            'text': self.text,
            'author': {
                'handle': self.author.handle,
                'displayName': self.author.display_name,
                'verified': self.author.verified,
            },
            'createdAt': self.created_at,
            'engagement': {
                'likes': self.engagement.likes,
                'retweets': self.engagement.retweets,
                'replies': self.engagement.replies,
            },
            'media': [{'url': m.url, 'kind': m.kind} for m in self.media],
            'entities': {
                'hashtags': list(self.entities.hashtags),
                'mentions': list(self.entities.mentions),
            },
            'flags': {
                'isRetweet': self.flags.is_retweet,
                'isReply': self.flags.is_reply,
                'lang': self.flags.lang,
            },
        }


@dataclass(frozen=True)
class FilterCriteria:
    """The slice of the feed a caller wants.

    Built once per invocation and never mutated. Dates are ``YYYY-MM-DD``
    strings because they go into the search query verbatim.
    """
    author: Optional[str] = None
    search: Optional[str] = None
    hashtag: Optional[str] = None
    lang: Optional[str] = None
    since: Optional[str] = None
    until: Optional[str] = None
    include_replies: bool = False
    include_retweets: bool = False
    verified_only: bool = False
    min_likes: int = 0
    limit: int = 10
    bookmarks: bool = False

    def __post_init__(self) -> None:
        if self.limit <= 0:
            raise ValueError('limit must be a positive integer')
        if self.min_likes < 0:
            raise ValueError('min_likes must be non-negative')

    @property
    def handle(self) -> str:
        return (self.author or '').strip().lstrip('@')


@dataclass(frozen=True)
class NavigationTarget:
    kind: str
    url: str
    query: Optional[str] = None


def utc_now_iso() -> str:
    """capture time in the same shape the page uses for <time datetime>"""
    now = datetime.now(timezone.utc)
    return now.strftime('%Y-%m-%dT%H:%M:%S.') + f'{now.microsecond // 1000:03d}Z'


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 string or a bare date into an aware UTC datetime.

    Returns None when the value is empty or unparseable.
    """
    if not value:
        return None
    text = value.strip()
    if text.endswith('Z') or text.endswith('z'):
        text = text[:-1] + '+00:00'
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _base36(number: int) -> str:
    if number == 0:
        return '0'
    sign = '-' if number < 0 else ''
    number = abs(number)
    digits = []
    while number:
        number, rem = divmod(number, 36)
        digits.append(_BASE36[rem])
    return sign + ''.join(reversed(digits))


def time_hash(timestamp: Optional[str]) -> str:
    parsed = parse_timestamp(timestamp)
    if parsed is None:
        return '0'
    return _base36((parsed - _EPOCH) // timedelta(milliseconds=1))


def text_hash(text: str) -> str:
    return _NON_WORD.sub('', text[:FINGERPRINT_TEXT_CHARS]).lower()


def fingerprint(handle: str, timestamp: Optional[str], text: str) -> str:
    """Deterministic record id built from what the page shows.

    ``timestamp`` must be the one read from markup, never the capture time,
    otherwise the same post gets a new id on every pass.
    """
    return f'{handle}_{time_hash(timestamp)}_{text_hash(text)}'
