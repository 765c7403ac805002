#!/usr/bin/env python3
"""
todo-integrator - sync Obsidian daily-note tasks with Microsoft To Do.
"""

import argparse
import logging
import sys

from todo_integrator.core.config import load_config, save_config, get_default_config_path, get_log_dir
from todo_integrator.core.paths import PathManager
from todo_integrator.commands import SyncCommand, MetadataCommand


LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def configure_logging(level_name: str, verbose: bool = False, log_to_file: bool = False) -> None:
    """Configure root logging from the config level, forcing DEBUG when verbose."""
    level = logging.DEBUG if verbose else getattr(logging, level_name.upper(), logging.INFO)
    handlers = [logging.StreamHandler()]
    if log_to_file:
        handlers.append(logging.FileHandler(get_log_dir() / PathManager.LOG_FILE, encoding='utf-8'))
    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers, force=True)


def main(argv=None):
    """Main entry point for todo-integrator."""
    parser = argparse.ArgumentParser(
        description="Sync tasks between Obsidian daily notes and Microsoft To Do",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  todo-integrator sync                      # Run one full sync cycle
  todo-integrator sync --list-name Work     # Sync against another To Do list
  todo-integrator metadata list             # Show identity records
  todo-integrator metadata cleanup --days 30
        """
    )

    parser.add_argument(
        '--config',
        help=f'Path to configuration file (default: {get_default_config_path()})',
        default=None
    )

    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Verbose output'
    )

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    # Sync command
    sync_parser = subparsers.add_parser('sync', help='Run a full sync cycle')
    sync_parser.add_argument(
        '--list-name',
        help='Microsoft To Do list to sync with (created if missing)'
    )
    sync_parser.add_argument(
        '--strict',
        action='store_true',
        help='Exit with an error when any phase reported errors'
    )

    # Metadata command
    metadata_parser = subparsers.add_parser('metadata', help='Inspect or maintain the identity store')
    metadata_parser.add_argument(
        'action',
        choices=['list', 'cleanup', 'clear'],
        help='What to do with the stored records'
    )
    metadata_parser.add_argument(
        '--date',
        help='Only list records for this date (YYYY-MM-DD)'
    )
    metadata_parser.add_argument(
        '--days',
        type=int,
        help='Age threshold for cleanup (default: stale_metadata_days from config)'
    )

    args = parser.parse_args(argv)

    # Show help if no command specified
    if not args.command:
        parser.print_help()
        return 1

    config = load_config(args.config)
    configure_logging(config.log_level, verbose=args.verbose, log_to_file=config.log_to_file)

    if args.verbose:
        print(f"Using config: {args.config or get_default_config_path()}")

    try:
        if args.command == 'sync':
            cmd = SyncCommand(config, verbose=args.verbose)
            success = cmd.run(list_name=args.list_name, strict=args.strict)
            if cmd.config_changed:
                save_config(config, args.config)

        elif args.command == 'metadata':
            cmd = MetadataCommand(config, verbose=args.verbose)
            success = cmd.run(action=args.action, date=args.date, days=args.days)

        else:
            print(f"Unknown command '{args.command}'.")
            return 1

        return 0 if success else 1

    except KeyboardInterrupt:
        print("\nOperation cancelled by user.")
        return 130
    except Exception as e:
        print(f"Error: {e}")
        if not args.verbose:
            print("Re-run with --verbose for more detail.")
        else:
            import traceback
            traceback.print_exc()
        return 1


if __name__ == '__main__':
    sys.exit(main())
