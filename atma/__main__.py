"""atma: a scriptable colour palette editor with undo/redo.

Usage: atma [--palette PATH] <subcommand> [options]

The active palette lives in a session file (default .atma-palette in the
current directory, or ATMA_PALETTE / --palette). Each invocation loads it,
runs one subcommand and writes it back, history included, so `atma undo`
works across runs.

Subcommands are auto-discovered from atma/subcommands/.
Run `atma help <subcommand>` for full docs.

Environment variables / .env loading:
  OS environment variables are always used first.
  If a variable is not set, atma looks for a .env file starting from the
  current directory and walking up, stopping at the nearest .git boundary.
  Only ATMA_* keys are read from it. Use --env-file to point at one
  explicitly.
"""

import argparse
import logging
import os
import sys

from atma import __version__, registry
from atma.core import persist
from atma.core.config import Config, load_env
from atma.core.errors import AtmaError
from atma.core.interpreter import Engine

logger = logging.getLogger('atma')

LOG_FORMAT = 'atma: %(levelname)s: %(message)s'


def _build_parser() -> argparse.ArgumentParser:
    subcommands = registry.all_subcommands()

    epilog = (
        'Examples:\n'
        '  atma new\n'
        "  atma exec -c 'insert #ff6600 name=accent' -c 'insert teal'\n"
        '  atma exec build.atma\n'
        '  atma list --json\n'
        '  atma undo 2\n'
        '  atma export palette.png --swatch 64\n'
        '  atma help exec\n'
        '\n'
        'Settings (set in .env or environment):\n'
        '  ATMA_PALETTE       session file (default .atma-palette)\n'
        '  ATMA_LOG_LEVEL     DEBUG, INFO, WARNING, ERROR\n'
        '  ATMA_GRID_COLUMNS  swatches per grid row (default 8)\n'
        '  ATMA_SWATCH_SIZE   PNG swatch edge in pixels (default 32)\n'
    )
    parser = argparse.ArgumentParser(
        prog='atma',
        description='Scriptable colour palette editor with undo/redo.',
        epilog=epilog,
        formatter_class=argparse.RawTextHelpFormatter,
    )
    parser.add_argument('--version', action='version', version=f'atma {__version__}')
    parser.add_argument(
        '--env-file',
        metavar='PATH',
        default=None,
        help='Path to .env file (default: walk up from cwd to .git boundary)',
    )
    parser.add_argument('-p', '--palette', metavar='PATH', default=None, help='Session file (overrides ATMA_PALETTE)')
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument('-v', '--verbose', action='store_true', help='Log progress (DEBUG)')
    verbosity.add_argument('-q', '--quiet', action='store_true', help='Only log errors')
    sub = parser.add_subparsers(dest='subcommand', help='Subcommand to run')

    for name, subcommand in sorted(subcommands.items()):
        p = sub.add_parser(name, help=_short_help(name))
        subcommand.add_arguments(p)

    help_parser = sub.add_parser('help', help='Print full docs for a subcommand')
    help_parser.add_argument('command', nargs='?', help='Subcommand name')

    return parser


def _short_help(name: str) -> str:
    doc = (registry.module_for(name).__doc__ or '').strip()
    return doc.splitlines()[0] if doc else registry.get(name).help


def _print_help(command: str | None) -> int:
    """Print the full module docstring for a subcommand."""
    subcommands = registry.all_subcommands()

    if command is None:
        print('Available subcommands:\n')
        for name in sorted(subcommands):
            print(f'  {name:<8} {_short_help(name)}')
        print('\nRun: atma help <subcommand> for full docs.')
        return 0

    if command not in subcommands:
        print(f'Unknown subcommand: {command}', file=sys.stderr)
        print(f'Available: {", ".join(sorted(subcommands))}', file=sys.stderr)
        return 1

    doc = (registry.module_for(command).__doc__ or '').strip()
    print(doc or f'(No docs for {command!r})')
    return 0


def _setup_logging(args: argparse.Namespace, config: Config) -> None:
    if args.verbose:
        level = logging.DEBUG
    elif args.quiet:
        level = logging.ERROR
    else:
        level = logging.getLevelName(config.log_level)
        if not isinstance(level, int):
            level = logging.WARNING
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr)
    logging.getLogger('atma').setLevel(level)


def _open_session(path: str, config: Config, needs_session: bool) -> Engine:
    """An Engine on the saved session, or on an empty palette if there is none yet."""
    if needs_session and os.path.exists(path):
        store, history = persist.load_session(path)
        logger.debug('session %s: %d cell(s), undo %d, redo %d', path, len(store), history.undo_depth, history.redo_depth)
        return Engine(store, history, config)
    return Engine(config=config)


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    # Load .env before reading config; OS env vars always win
    env_path = load_env(env_file=args.env_file)
    try:
        config = Config.from_env()
    except ValueError as exc:
        print(f'atma: {exc}', file=sys.stderr)
        return 1
    _setup_logging(args, config)
    if env_path:
        logger.info('loaded %s', env_path)

    if not args.subcommand:
        parser.print_help()
        return 1

    if args.subcommand == 'help':
        return _print_help(args.command)

    subcommand = registry.get(args.subcommand)
    session_path = args.palette or config.palette_path
    try:
        engine = _open_session(session_path, config, subcommand.needs_session)
        code = subcommand.execute(engine, args)
        if subcommand.writes_session:
            persist.save_session(engine.store, engine.history, session_path)
    except AtmaError as exc:
        print(f'atma: {exc}', file=sys.stderr)
        return 1
    return code


if __name__ == '__main__':
    sys.exit(main())
