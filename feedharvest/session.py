import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import aiofiles

from .errors import AuthExpired, AuthMissing
from .models import parse_timestamp

log = logging.getLogger(__name__)

DEFAULT_AUTH_FILE = './twitter-auth.json'
DEFAULT_MAX_AGE_DAYS = 7


@dataclass(frozen=True)
class AuthBundle:
    """cookies and user agent captured from a logged-in browser"""
    cookies: List[Dict[str, Any]] = field(default_factory=list)
    user_agent: str = ''
    login_time: str = ''

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AuthBundle':
        return cls(
            cookies=list(data.get('cookies') or []),
            user_agent=data.get('userAgent') or '',
            login_time=data.get('loginTime') or '',
        )


class SessionStore:
    """File-backed credential bundle written by a separate login step.

    The harvester only reads it, checks its age and applies it to a page.
    """

    def __init__(self, auth_file: Union[str, Path] = DEFAULT_AUTH_FILE,
                 max_age_days: int = DEFAULT_MAX_AGE_DAYS):
        self.auth_file = Path(auth_file)
        self.max_age = timedelta(days=max_age_days)

    async def load(self) -> AuthBundle:
        if not self.auth_file.exists():
            raise AuthMissing(f'no saved session at {self.auth_file}; log in first')
        try:
            async with aiofiles.open(self.auth_file, 'r', encoding='utf-8') as f:
                data = json.loads(await f.read())
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise AuthMissing(f'could not read saved session {self.auth_file}: {e}') from e
        if not isinstance(data, dict):
            raise AuthMissing(f'saved session {self.auth_file} is not a JSON object')
        return AuthBundle.from_dict(data)

    def age(self, bundle: AuthBundle, now: Optional[datetime] = None) -> Optional[timedelta]:
        login_time = parse_timestamp(bundle.login_time)
        if login_time is None:
            return None
        now = now or datetime.now(timezone.utc)
        return now - login_time

    def is_valid(self, bundle: AuthBundle, now: Optional[datetime] = None) -> bool:
        age = self.age(bundle, now)
        return age is not None and age < self.max_age

    async def require(self, now: Optional[datetime] = None) -> AuthBundle:
        """load the bundle and refuse it if it is too old to trust"""
        bundle = await self.load()
        if not self.is_valid(bundle, now):
            raise AuthExpired(
                f'saved session from {bundle.login_time or "an unknown time"} is older than '
                f'{self.max_age.days} days; log in again'
            )
        log.debug(f"loaded session with {len(bundle.cookies)} cookies")
        return bundle

    async def apply(self, page, bundle: AuthBundle) -> None:
        await page.apply_credentials(bundle)

    def clear(self) -> bool:
        """delete the saved session; False if there was nothing to delete"""
        try:
            self.auth_file.unlink()
        except FileNotFoundError:
            return False
        log.info(f"removed saved session {self.auth_file}")
        return True
