"""Helpers shared by subcommand modules."""

import argparse
import sys

from atma.core import commands as cmd
from atma.core.errors import HistoryError
from atma.core.interpreter import ScriptResult
from atma.core.script_parser import parse_line
from atma.core.validator import validate


def parse_selector(text: str | None) -> cmd.Selector | None:
    """Parse a selector given on the command line, using script syntax."""
    if text is None:
        return None
    node = parse_line(f'list {text}')
    command = validate(node)
    return command.selector


def positive_int(raw: str) -> int:
    try:
        value = int(raw)
    except ValueError:
        raise argparse.ArgumentTypeError(f'expected a positive integer, got {raw!r}') from None
    if value < 1:
        raise argparse.ArgumentTypeError(f'expected a positive integer, got {value}')
    return value


def print_warnings(warnings: list[HistoryError]) -> None:
    for warning in warnings:
        print(f'atma: warning: {warning}', file=sys.stderr)


def report(result: ScriptResult, source: str) -> int:
    """Print warnings and the error (if any) of a script run. Returns the exit code."""
    print_warnings(result.warnings)
    if result.error is None:
        return 0
    sep = ':' if result.error.location else ': '
    print(f'{source}{sep}{result.error}', file=sys.stderr)
    if result.committed:
        print(f'atma: {result.committed} command(s) before the error were applied', file=sys.stderr)
    return 1
