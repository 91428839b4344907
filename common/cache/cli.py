import argparse
import sys
from loguru import logger

from .config import load_cache_config
from .manager import CacheManager


def setup_logging(level: str):
    """Setup logging configuration"""
    logger.remove()
    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        level=level.upper()
    )


def _load_manager(args):
    config = load_cache_config(args.config)
    setup_logging(args.log_level or config.log_level)
    return CacheManager(config)


def _shared_store_manager(args):
    """Load a manager whose store other processes can see, or None"""
    try:
        manager = _load_manager(args)
    except Exception as e:
        logger.error(f"Failed to load configuration: {e}")
        return None

    if manager.config.driver == "array":
        logger.warning("The array driver keeps entries in-process only; nothing to change from the CLI")
        return None
    return manager


def cmd_flush(args):
    """Flush the whole store, or only the entries under the given tags"""
    manager = _shared_store_manager(args)
    if manager is None:
        return 1

    try:
        store = manager.store()
        if args.tags:
            store.tags(args.tags).flush()
        else:
            store.flush()
    except Exception as e:
        logger.error(f"Failed to flush cache: {e}")
        return 1

    if args.tags:
        print(f"Flushed tags: {', '.join(args.tags)}")
    else:
        print("Cache flushed")
    return 0


def cmd_forget(args):
    """Remove a single key"""
    manager = _shared_store_manager(args)
    if manager is None:
        return 1

    try:
        forgotten = manager.store().forget(args.key)
    except Exception as e:
        logger.error(f"Failed to forget {args.key}: {e}")
        return 1

    if forgotten:
        print(f"Forgot {args.key}")
    else:
        print(f"No entry for {args.key}")
    return 0


def cmd_info(args):
    """Show cache configuration"""
    try:
        manager = _load_manager(args)
    except Exception as e:
        print(f"Error loading configuration: {e}")
        return 1

    config = manager.config
    print("=== Cache Info ===")
    print(f"Driver: {config.driver}")
    print(f"Prefix: {config.prefix or '(none)'}")
    print(f"Key hash: {config.key_generator.hash_algorithm}")
    if config.driver == "mysql":
        print(f"MySQL: {config.mysql.host}:{config.mysql.port}/{config.mysql.database}.{config.mysql.table_name}")
    return 0


def main(argv=None):
    """Main CLI entry point"""
    parser = argparse.ArgumentParser(
        description="Query cache administration"
    )
    parser.add_argument('--log-level', help='Override log level (DEBUG, INFO, WARNING, ERROR)')

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    flush_parser = subparsers.add_parser('flush', help='Flush cached query results')
    flush_parser.add_argument('config', help='Path to cache configuration YAML file')
    flush_parser.add_argument('--tags', nargs='+', help='Only flush entries stored under these tags')
    flush_parser.set_defaults(func=cmd_flush)

    forget_parser = subparsers.add_parser('forget', help='Remove a single cache key')
    forget_parser.add_argument('config', help='Path to cache configuration YAML file')
    forget_parser.add_argument('key', help='Cache key to remove')
    forget_parser.set_defaults(func=cmd_forget)

    info_parser = subparsers.add_parser('info', help='Show cache configuration')
    info_parser.add_argument('config', help='Path to cache configuration YAML file')
    info_parser.set_defaults(func=cmd_info)

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    return args.func(args)


if __name__ == '__main__':
    sys.exit(main())
