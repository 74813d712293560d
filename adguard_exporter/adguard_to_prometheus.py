#!/usr/bin/env python3
"""
Poll AdGuard Home statistics and expose them as Prometheus metrics.
"""

import sys
import os
import argparse

# Handle both relative imports (when used as module) and absolute imports (when run as script)
try:
    from .server import serve
    from .utils import resolve_config
except ImportError:
    # If relative imports fail, we're running as a script - add parent directory to path
    sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
    from adguard_exporter.server import serve
    from adguard_exporter.utils import resolve_config


def build_arg_parser() -> argparse.ArgumentParser:
    # Defaults are None so environment variables can fill unset options
    parser = argparse.ArgumentParser(
        description='Expose AdGuard Home statistics as Prometheus metrics',
        allow_abbrev=False,
    )
    parser.add_argument(
        '-endpoint', '--endpoint',
        help='AdGuard Home endpoint as host:port (env: ADGUARD_ENDPOINT)'
    )
    parser.add_argument(
        '-username', '--username',
        help='Username (env: ADGUARD_USERNAME)'
    )
    parser.add_argument(
        '-password', '--password',
        help='Password (env: ADGUARD_PASSWORD)'
    )
    parser.add_argument(
        '-address', '--address',
        help='Address on which to expose metrics (env: ADGUARD_ADDRESS, default: :8000)'
    )
    parser.add_argument(
        '-path', '--path',
        help='Metrics path (env: ADGUARD_PATH, default: /metrics)'
    )
    parser.add_argument(
        '-timeout', '--timeout',
        help='Seconds AdGuard Home gets to send its whole answer on each scrape, 0 waits forever (env: ADGUARD_TIMEOUT, default: 10)'
    )
    parser.add_argument(
        '--verbose',
        action='store_const',
        const=True,
        default=None,
        help='Print every collected sample to stdout (env: ADGUARD_VERBOSE)'
    )
    return parser


def main(argv=None):
    args = build_arg_parser().parse_args(argv)

    try:
        config = resolve_config(args, os.environ)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if not config.endpoint:
        print("Warning: no AdGuard Home endpoint configured, every scrape will report adguardhome_up 0", file=sys.stderr)

    try:
        serve(config)
    except OSError as e:
        print(f"Error: could not serve on {config.address}: {e}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        print("Shutting down")


if __name__ == '__main__':
    main()
