import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from .config import Config, setup_logging
from .errors import HarvestError
from .models import FilterCriteria
from .scraper import Harvester
from .session import SessionStore


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='feedharvest', description='Twitter post scraper without API')
    parser.add_argument('--auth-file', help='path of the saved session (twitter-auth.json)')
    parser.add_argument('--debug', action='store_true', help='show debug information')

    subparsers = parser.add_subparsers(dest='command', required=True)

    get = subparsers.add_parser('get', help='get posts as JSON')
    get.add_argument('--from', dest='author', help='posts from a specific user')
    get.add_argument('--search', help='posts containing a keyword')
    get.add_argument('--hashtag', help='posts with a specific hashtag')
    get.add_argument('--lang', help='posts in a specific language')
    get.add_argument('--since', help='posts since date (YYYY-MM-DD)')
    get.add_argument('--until', help='posts until date (YYYY-MM-DD)')
    get.add_argument('--limit', type=int, default=10, help='number of posts')
    get.add_argument('--bookmark', action='store_true', help='get bookmarked posts')
    get.add_argument('--replies', action='store_true', help='include replies')
    get.add_argument('--retweets', action='store_true', help='include retweets')
    get.add_argument('--verified', action='store_true', help='only verified users')
    get.add_argument('--min-likes', type=int, default=0, help='minimum like count')
    get.add_argument('--show-browser', action='store_true', help='show the browser window')

    subparsers.add_parser('status', help='check whether the saved session is usable')
    subparsers.add_parser('logout', help='delete the saved session')

    return parser


def criteria_from_args(args: argparse.Namespace) -> FilterCriteria:
    return FilterCriteria(
        author=args.author,
        search=args.search,
        hashtag=args.hashtag,
        lang=args.lang,
        since=args.since,
        until=args.until,
        include_replies=args.replies,
        include_retweets=args.retweets,
        verified_only=args.verified,
        min_likes=args.min_likes,
        limit=args.limit,
        bookmarks=args.bookmark,
    )


async def cmd_get(config: Config, args: argparse.Namespace) -> int:
    try:
        criteria = criteria_from_args(args)
    except ValueError as e:
        logging.error(f"invalid options: {e}")
        return 2

    harvester = Harvester(config)
    try:
        records = await harvester.harvest(criteria)
    except HarvestError as e:
        logging.error(f"failed to get posts: {e}")
        return 1

    print(json.dumps([r.to_dict() for r in records], indent=2, ensure_ascii=False))
    return 0


async def cmd_status(config: Config) -> int:
    store = SessionStore(config.auth_file, config.session_max_age_days)
    try:
        await store.require()
    except HarvestError as e:
        logging.error(str(e))
        return 1
    logging.info(f"session at {config.auth_file} is valid")
    return 0


def cmd_logout(config: Config) -> int:
    store = SessionStore(config.auth_file, config.session_max_age_days)
    if not store.clear():
        logging.info(f"no saved session at {config.auth_file}")
    return 0


async def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    config = Config.from_env(
        auth_file=Path(args.auth_file) if args.auth_file else None,
        headless=False if getattr(args, 'show_browser', False) else None,
    )
    setup_logging(config, debug=args.debug)

    if args.command == 'get':
        return await cmd_get(config, args)
    if args.command == 'status':
        return await cmd_status(config)
    return cmd_logout(config)


def run() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == '__main__':
    run()
