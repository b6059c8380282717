"""
Command-Line Interface for TuneScout Recs
=========================================

Usage:
    python -m tunescout_recs.cli recommend <user_id> [options]
    python -m tunescout_recs.cli timeline <user_id> [options]
    python -m tunescout_recs.cli liked <user_id> <dimension> <category_id> [options]

Common options:
    --snapshot      JSON snapshot with tracks, swipes and preferences
                    (default: $TUNESCOUT_SNAPSHOT or snapshot.json)
    --format        Output format: json or simple (default: json)
    --output, -o    Output file path (default: stdout)
    --verbose, -v   Debug logging on stderr

Examples:
    python -m tunescout_recs.cli recommend 7 -n 20 --seed 42
    python -m tunescout_recs.cli recommend 0 --session-swipes session.json
    python -m tunescout_recs.cli timeline 7 --top 10 --period month
    python -m tunescout_recs.cli liked 7 genre 3 --from 2024-01-01 --to 2024-03-31
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

from .config import DIMENSIONS, NUM_RECOMMENDATIONS, PERIODS, RANDOM_SEED, SNAPSHOT_PATH
from .logging_config import setup_logging, stop_logging
from .models import LikedTrack, TimelineResult
from .providers import InMemoryStore, SnapshotError
from .recommender import RecommendationOutput, RecommendationService
from .timeline import InvalidWindowError, TimelineAggregator, resolve_window
from .utils import parse_date

logger = logging.getLogger(__name__)


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI."""
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        '--snapshot',
        type=str,
        default=SNAPSHOT_PATH,
        help=f'JSON snapshot to read (default: {SNAPSHOT_PATH})'
    )
    common.add_argument(
        '--format',
        type=str,
        choices=['json', 'simple'],
        default='json',
        help='Output format (default: json)'
    )
    common.add_argument(
        '-o', '--output',
        type=str,
        default=None,
        help='Output file path (default: print to stdout)'
    )
    common.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable debug logging'
    )

    parser = argparse.ArgumentParser(
        prog='tunescout_recs',
        description='TuneScout Recs - swipe-driven recommendations and taste timelines',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Environment Variables:
  TUNESCOUT_SNAPSHOT  Default snapshot path
  TUNESCOUT_SEED      Default random seed for reproducible rankings
        """
    )
    subparsers = parser.add_subparsers(dest='command', required=True)

    rec = subparsers.add_parser('recommend', parents=[common], help='Rank unseen tracks for a user')
    rec.add_argument('user_id', type=int, help='User id (0 for an anonymous visitor)')
    rec.add_argument(
        '-n', '--num',
        type=int,
        default=NUM_RECOMMENDATIONS,
        help=f'Number of tracks to return (default: {NUM_RECOMMENDATIONS})'
    )
    rec.add_argument(
        '--session-swipes',
        type=str,
        default=None,
        help='JSON file with not-yet-persisted swipes for this session'
    )
    rec.add_argument(
        '--seed',
        type=int,
        default=int(RANDOM_SEED) if RANDOM_SEED else None,
        help='Random seed (default: $TUNESCOUT_SEED or fresh entropy)'
    )

    tl = subparsers.add_parser('timeline', parents=[common], help="Summarize a user's liked tracks")
    tl.add_argument('user_id', type=int, help='User id')
    tl.add_argument('--top', type=int, default=None, help='Entries per category (default: 5)')
    _add_window_arguments(tl)

    liked = subparsers.add_parser('liked', parents=[common], help='List liked tracks in one category')
    liked.add_argument('user_id', type=int, help='User id')
    liked.add_argument('dimension', choices=DIMENSIONS, help='Category dimension')
    liked.add_argument('category_id', type=int, help='Category id')
    _add_window_arguments(liked)

    return parser


def _add_window_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument('--period', choices=PERIODS, default='all', help='Named period (default: all)')
    parser.add_argument('--from', dest='from_date', type=str, default=None, help='First day (YYYY-MM-DD)')
    parser.add_argument('--to', dest='to_date', type=str, default=None, help='Last day (YYYY-MM-DD)')


def format_recommendations(result: RecommendationOutput, fmt: str) -> str:
    """Format recommendation output based on requested format."""
    if fmt == 'simple':
        lines = [
            f"Recommendations for user {result.user_id}",
            f"   Mode: {result.mode}{' (catalog fallback)' if result.fallback else ''}",
            f"   Swipes considered: {result.swipe_count}",
            "-" * 50,
        ]
        for i, track in enumerate(result.tracks, 1):
            flag = " [E]" if track.is_explicit else ""
            lines.append(f"{i:3}. {track.name} - {track.artist}{flag}  (id {track.id})")
        return '\n'.join(lines)

    return result.to_json(indent=2)


def format_timeline(result: TimelineResult, fmt: str) -> str:
    """Format a timeline based on requested format."""
    if fmt == 'simple':
        lines = []
        for title, items in (
            ("Top genres", result.top_genres),
            ("Top moods", result.top_moods),
            ("Top languages", result.top_languages),
        ):
            lines.append(title)
            if not items:
                lines.append("   (none)")
            for i, item in enumerate(items, 1):
                lines.append(f"{i:3}. {item.name} ({item.count})")
            lines.append("")
        return '\n'.join(lines).rstrip()

    return json.dumps(result.to_dict(), indent=2)


def format_liked(tracks: List[LikedTrack], fmt: str) -> str:
    if fmt == 'simple':
        return '\n'.join(
            f"{lt.liked_at:%Y-%m-%d %H:%M}  {lt.track.name} - {lt.track.artist}"
            for lt in tracks
        )
    return json.dumps([lt.to_dict() for lt in tracks], indent=2)


def _window_from_args(args: argparse.Namespace):
    """Resolve the requested window, falling back to all time when invalid."""
    try:
        return resolve_window(args.period, parse_date(args.from_date), parse_date(args.to_date))
    except InvalidWindowError as e:
        logger.warning("Invalid timeline window (%s); showing all time instead", e)
        return resolve_window("all")


def _load_session_swipes(path: Optional[str]) -> list:
    if not path:
        return []
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise SnapshotError(f"Session swipes in {path} must be a JSON list")
    return data


def run(args: argparse.Namespace) -> str:
    """Execute a parsed command and return the formatted output."""
    store = InMemoryStore.from_json(args.snapshot)

    if args.command == 'recommend':
        service = RecommendationService(store, store, store)
        user_id = args.user_id or None
        result = service.recommend_for_user(
            user_id,
            session_swipes=_load_session_swipes(args.session_swipes),
            max_results=args.num,
            rng=args.seed,
        )
        return format_recommendations(result, args.format)

    aggregator = TimelineAggregator(store, store, store)
    window = _window_from_args(args)

    if args.command == 'timeline':
        result = aggregator.get_timeline(
            args.user_id, args.top, window.from_date, window.to_date
        )
        return format_timeline(result, args.format)

    tracks = aggregator.liked_tracks(
        args.user_id, args.dimension, args.category_id, window.from_date, window.to_date
    )
    return format_liked(tracks, args.format)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    setup_logging(debug=args.verbose)
    try:
        output = run(args)

        if args.output:
            with open(args.output, 'w', encoding='utf-8') as f:
                f.write(output)
            print(f"Output saved to: {args.output}")
        else:
            print(output)

        return 0

    except Exception as e:
        print(f"Error: {str(e)}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 1
    finally:
        stop_logging()


if __name__ == '__main__':
    sys.exit(main())
