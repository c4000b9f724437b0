import logging
import os
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from dotenv import find_dotenv, load_dotenv


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == 'true'


@dataclass(frozen=True)
class Config:
    # session
    auth_file: Path = Path('./twitter-auth.json')
    session_max_age_days: int = 7

    # target
    base_url: str = 'https://x.com'
    search_mode: str = 'live'

    # browser settings
    headless: bool = True
    use_firefox: bool = True

    # timing (ms)
    navigation_timeout: int = 15000
    selector_timeout: int = 5000
    initial_wait: int = 3000
    scroll_pause: int = 1000

    # paths
    log_dir: Path = Path('./logs')

    @classmethod
    def from_env(cls, **overrides) -> 'Config':
        """read settings from the environment (and a .env file if present)"""
        load_dotenv(find_dotenv(usecwd=True))
        values = dict(
            auth_file=Path(os.getenv('TWITTER_AUTH_FILE', './twitter-auth.json')),
            session_max_age_days=int(os.getenv('SESSION_MAX_AGE_DAYS', '7')),
            base_url=os.getenv('TWITTER_BASE_URL', 'https://x.com'),
            search_mode=os.getenv('SEARCH_MODE', 'live'),
            headless=_flag('HEADLESS', 'True'),
            use_firefox=_flag('USE_FIREFOX', 'True'),
            navigation_timeout=int(os.getenv('TIMEOUT', '15000')),
            selector_timeout=int(os.getenv('SELECTOR_TIMEOUT', '5000')),
            initial_wait=int(os.getenv('INITIAL_WAIT', '3000')),
            scroll_pause=int(os.getenv('SCROLL_PAUSE', '1000')),
            log_dir=Path(os.getenv('LOG_DIR', './logs')),
        )
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


def setup_logging(config: Config, debug: bool = False) -> Path:
    """log to a timestamped file under log_dir and to stderr"""
    config.log_dir.mkdir(parents=True, exist_ok=True)
    log_file = config.log_dir / f'harvest_{datetime.now():%Y%m%d_%H%M%S}.log'
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler(),
        ],
    )
    return log_file
