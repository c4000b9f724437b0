from datetime import datetime
from typing import Iterable, List, Optional

from .models import ContentRecord, FilterCriteria, parse_timestamp


class PostFilter:
    """Re-checks criteria the rendered feed may not have honored.

    The search query already asks for most of these, but timelines and
    bookmarks ignore them and search results are not exact, so every harvested
    record passes through here before it reaches the caller.
    """

    def __init__(self, criteria: FilterCriteria):
        self.criteria = criteria
        # bare dates mean midnight UTC, same as the search operators
        self.since: Optional[datetime] = parse_timestamp(criteria.since)
        self.until: Optional[datetime] = parse_timestamp(criteria.until)

    def matches(self, record: ContentRecord) -> bool:
        """check if a record satisfies every criterion"""
        criteria = self.criteria

        if record.flags.is_reply and not criteria.include_replies:
            return False
        if record.flags.is_retweet and not criteria.include_retweets:
            return False
        if criteria.verified_only and not record.author.verified:
            return False
        if record.engagement.likes < criteria.min_likes:
            return False

        created = parse_timestamp(record.created_at)
        # unknown time -> benefit of the doubt
        if created is None:
            return True
        if self.since is not None and created < self.since:
            return False
        if self.until is not None and created > self.until:
            return False

        return True

    def apply(self, records: Iterable[ContentRecord]) -> List[ContentRecord]:
        return [record for record in records if self.matches(record)]


def apply_filters(records: Iterable[ContentRecord], criteria: FilterCriteria) -> List[ContentRecord]:
    return PostFilter(criteria).apply(records)
