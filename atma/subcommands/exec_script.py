"""Run a palette script against the active palette.

Scripts hold one command per line; `#` starts a comment and a trailing
backslash continues a command onto the next line. Both the word form and
the call form are accepted:

    insert #ff6600 name=accent
    insert(hsl(200, 60%, 50%), name=sky)
    group warm 0..2
    set @warm color #cc3300
    set @warm:0, accent color #ffaa00
    move accent 0
    save "../palettes/brand.json"
    undo

Bare words start with a letter, so quote paths that begin with `.`, `/`,
`~` or a digit. Selectors can be joined with commas (`0, 3..5, accent`)
and `@group:i` picks a cell by its place in a group.

Execution stops at the first failing line. Lines before it stay applied
(and undoable); the error is reported as `script:line:column: kind: message`
and the exit code is 1.

Pass `-` as the script path to read from stdin, or `-c TEXT` to run a
script given inline; repeat -c for more lines.

Example:
    atma exec build.atma
    atma exec -c 'insert red' -c 'insert blue'
"""

import sys

from atma.core.types import Subcommand
from atma.subcommands._common import report

subcommand = Subcommand(
    name='exec',
    help='Run a palette script (file, - for stdin, or -c TEXT).',
    writes_session=True,
)


@subcommand.arguments
def arguments(parser):
    parser.add_argument('script', nargs='?', help='Script file, or - for stdin')
    parser.add_argument(
        '-c',
        '--command',
        dest='lines',
        action='append',
        metavar='TEXT',
        help='Script line to run instead of a file (repeatable)',
    )


@subcommand.run
def run(engine, args):
    if args.lines:
        return report(engine.run_script('\n'.join(args.lines)), '<command>')
    if args.script is None:
        print('atma exec: give a script path, - for stdin, or -c TEXT', file=sys.stderr)
        return 1
    if args.script == '-':
        return report(engine.run_bytes(sys.stdin.buffer.read()), '<stdin>')
    return report(engine.run_file(args.script), args.script)
