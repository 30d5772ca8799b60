"""
Command-line interface for the pogo feed pipeline.

Usage:
    pogo-feed build                    # Rebuild the feed once
    pogo-feed build --output-json      # JSON output for CI integration
    pogo-feed watch                    # Rebuild on every change until interrupted
    pogo-feed watch --fallback-interval 300   # Also rebuild after 5 idle minutes
    pogo-feed watch --no-initial-build        # Wait for the first change
    pogo-feed settings                 # Show the resolved service settings
"""

import argparse
import json
import logging
import sys
from functools import partial

from pogo_feed.config import get_settings
from pogo_feed.errors import WatchSetupFailed

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _settings_from_args(args):
    return get_settings(
        episodes_dir=args.episodes_dir,
        config_file=args.config_file,
        rss_output=args.rss_output,
        json_output=args.json_output,
        log_level=args.log_level,
    )


def cmd_build(args, settings):
    """Rebuild the feed once."""
    from pogo_feed.feed.pipeline import run_rebuild

    settings.ensure_directories()

    result = run_rebuild(settings)

    # JSON output mode (for CI/automation)
    if args.output_json:
        print(result.to_json())
        sys.exit(0 if result.success else 1)

    # Human-readable output
    if not result.success:
        for err in result.errors:
            print(f"ERROR: {err}")
        sys.exit(1)

    print(f"Rebuilt '{result.feed_title}' with {result.episode_count} episode(s)")
    print(f"  RSS:  {result.rss_path}")
    print(f"  JSON: {result.json_path}")


def cmd_watch(args, settings):
    """Watch the episode directory and configuration file, rebuilding on change."""
    from pogo_feed.feed.pipeline import run_rebuild
    from pogo_feed.triggers.fs_watcher import FeedWatcher, run_watch

    fallback_interval = settings.fallback_interval
    if args.fallback_interval is not None:
        fallback_interval = args.fallback_interval
    rebuild_on_start = settings.rebuild_on_start and not args.no_initial_build
    settings.ensure_directories()

    watcher = FeedWatcher(settings.episodes_dir, settings.config_file)
    try:
        watcher.start()
    except WatchSetupFailed as e:
        print(f"ERROR: {e}")
        sys.exit(1)

    try:
        run_watch(
            watcher,
            partial(run_rebuild, settings),
            fallback_interval=fallback_interval,
            rebuild_on_start=rebuild_on_start,
        )
    except KeyboardInterrupt:
        print("\nStopping watcher.")
    finally:
        watcher.close()


def cmd_settings(args, settings):
    """Print the resolved service settings."""
    print(json.dumps(settings.model_dump(mode="json"), indent=2))


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="pogo-feed",
        description="Keep a podcast's RSS and JSON feeds in sync with its episode directory",
    )
    parser.add_argument("--episodes-dir", default=None, help="Episode directory to scan")
    parser.add_argument("--config-file", default=None, help="Podcast configuration JSON file")
    parser.add_argument("--rss-output", default=None, help="Where to publish the RSS document")
    parser.add_argument("--json-output", default=None, help="Where to publish the JSON document")
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # build
    sub_build = subparsers.add_parser("build", help="Rebuild the feed once")
    sub_build.add_argument(
        "--output-json",
        action="store_true",
        default=False,
        help="Output result as JSON (for CI/automation)",
    )
    sub_build.set_defaults(func=cmd_build)

    # watch
    sub_watch = subparsers.add_parser(
        "watch",
        help="Rebuild the feed whenever episodes or configuration change",
    )
    sub_watch.add_argument(
        "--fallback-interval",
        type=float,
        default=None,
        help="Also rebuild after this many seconds without changes (0 disables)",
    )
    sub_watch.add_argument(
        "--no-initial-build",
        action="store_true",
        default=False,
        help="Do not rebuild before waiting for the first change",
    )
    sub_watch.set_defaults(func=cmd_watch)

    # settings
    sub_settings = subparsers.add_parser("settings", help="Show the resolved service settings")
    sub_settings.set_defaults(func=cmd_settings)

    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        sys.exit(0)

    settings = _settings_from_args(args)
    logging.basicConfig(level=settings.log_level.upper(), format=LOG_FORMAT)

    args.func(args, settings)


if __name__ == "__main__":
    main()
