import logging
import re
from typing import List, Optional
from urllib.parse import urlparse

from bs4 import Tag

from . import locator
from .models import (
    MEDIA_IMAGE,
    MEDIA_VIDEO,
    Author,
    ContentRecord,
    Engagement,
    Entities,
    Flags,
    MediaItem,
    fingerprint,
    utc_now_iso,
)

log = logging.getLogger(__name__)

MEDIA_HOSTS = ('pbs.twimg.com', 'video.twimg.com')
VIDEO_HOST = 'video.twimg.com'
EXCLUDED_MEDIA_PATHS = ('profile_images', 'profile_banners')

hashtag_pattern = re.compile(r'#(\w+)')
mention_pattern = re.compile(r'@(\w+)')


def extract_hashtags(text: str) -> List[str]:
    return hashtag_pattern.findall(text or '')


def extract_mentions(text: str) -> List[str]:
    return mention_pattern.findall(text or '')


def _media_item(el: Tag) -> Optional[MediaItem]:
    src = el.get('src') or ''
    if not src:
        return None
    parsed = urlparse(src)
    host = parsed.netloc.lower()
    if host not in MEDIA_HOSTS:
        return None
    if any(part in parsed.path for part in EXCLUDED_MEDIA_PATHS):
        return None
    if el.name == 'img':
        return MediaItem(src, MEDIA_IMAGE)
    # <video> and <source> only count when served from the video CDN
    if host != VIDEO_HOST:
        return None
    return MediaItem(src, MEDIA_VIDEO)


def extract_media(container: Tag) -> List[MediaItem]:
    media = []
    for el in container.select(locator.MEDIA_PATTERN):
        item = _media_item(el)
        if item is not None:
            media.append(item)
    return media


def _step(name, func, default):
    """run one extraction step; a failure costs the field, not the record"""
    try:
        return func()
    except Exception as e:
        log.warning(f"could not extract {name}: {e}")
        return default


def extract(container: Tag, captured_at: Optional[str] = None) -> Optional[ContentRecord]:
    """Turn one record container into a ContentRecord.

    Returns None for containers without body text, which are promoted
    slots and placeholders rather than posts.
    """
    text = _step('text', lambda: locator.TEXT.resolve(container).strip(), '')
    if not text:
        return None

    handle, display_name = _step('author', lambda: locator.AUTHOR.resolve(container), ('', ''))
    source_time = _step('timestamp', lambda: locator.TIMESTAMP.resolve(container), None)
    url = _step('url', lambda: locator.PERMALINK.resolve(container), None)
    verified = _step('verified', lambda: locator.VERIFIED.resolve(container), False)

    engagement = Engagement(
        likes=_step('likes', lambda: locator.LIKES.resolve(container), 0),
        retweets=_step('retweets', lambda: locator.RETWEETS.resolve(container), 0),
        replies=_step('replies', lambda: locator.REPLIES.resolve(container), 0),
    )
    flags = Flags(
        is_retweet=_step('retweet flag', lambda: locator.SOCIAL_CONTEXT.resolve(container), False),
        is_reply=_step('reply flag', lambda: locator.has_nested_record(container), False),
        lang=_step('lang', lambda: locator.LANG.resolve(container), ''),
    )
    media = _step('media', lambda: extract_media(container), [])
    entities = Entities(
        hashtags=tuple(extract_hashtags(text)),
        mentions=tuple(extract_mentions(text)),
    )

    return ContentRecord(
        id=fingerprint(handle, source_time, text),
        text=text,
        author=Author(handle=handle, display_name=display_name, verified=bool(verified)),
        created_at=source_time or captured_at or utc_now_iso(),
        engagement=engagement,
        media=tuple(media),
        entities=entities,
        flags=flags,
        url=url,
    )


def extract_records(tree: Optional[Tag], captured_at: Optional[str] = None) -> List[ContentRecord]:
    """locate and extract every record in one snapshot, in document order"""
    captured_at = captured_at or utc_now_iso()
    records = []
    for index, container in enumerate(locator.locate_record_containers(tree)):
        try:
            record = extract(container, captured_at)
        except Exception as e:
            log.warning(f"error extracting container {index}: {e}")
            continue
        if record is not None:
            records.append(record)
    return records
