"""Lark-based parser for atma palette scripts.

One command per logical line. A logical line is a physical line plus any
following lines joined by a trailing backslash; a backslash at the end of
a comment is just comment text. `#` starts a comment that runs to the end
of the line, except where an argument is expected and the `#` is directly
followed by hex digits: that is a hex colour literal.

Two surface forms are accepted and produce the same CommandNode:

    insert #FF0000 name=accent position=0
    insert(#FF0000, name=accent, position=0)

Argument literals:

    #f00 #ff0000 #ff000080           hex colour
    rgb(255, 0, 0) hsl(0, 100%, 50%) functional colour
    3                                integer
    0..4                             inclusive range
    @warm                            group reference
    @warm:1 @warm:0..2               cells by their place in a group
    *                                every cell
    "dark red" 'x'                   quoted string
    red accent out.png               bare word
    0, 3..5, accent                  selection list (word form)
    [0, 3..5, accent]                selection list (either form)

Bare words start with a letter or underscore, so paths such as
../out.json, /tmp/p.png or 2024.json must be quoted.

Lines are parsed independently, so a malformed line never affects how
another line parses. The parser knows nothing about which commands exist
or how many arguments they take: that is the validator's job.
"""

import codecs
import logging
import re
from collections.abc import Iterator

from lark import Lark, Token, Transformer
from lark.exceptions import UnexpectedCharacters, UnexpectedEOF, UnexpectedInput, UnexpectedToken

from atma.core import commands as cmd
from atma.core.errors import ScriptSyntaxError

logger = logging.getLogger(__name__)

GRAMMAR = r"""
start: command?

command: NAME "(" _arglist? ")"   -> call_form
       | NAME word_arg*           -> word_form

_arglist: arg ("," arg)* ","?

?arg: NAME "=" value              -> keyword
    | value

?word_arg: NAME "=" word_value    -> keyword
         | word_value

?word_value: value
           | value ("," value)+   -> selection

value: HEX_COLOR                  -> hex_color
     | FUNC_COLOR                 -> func_color
     | INT _DOTDOT INT            -> range_lit
     | INT                        -> int_lit
     | "@" NAME ":" INT _DOTDOT INT -> group_range
     | "@" NAME ":" INT           -> group_index
     | "@" NAME                   -> group_ref
     | "[" value ("," value)* ","? "]" -> selection
     | STAR                       -> all_cells
     | STRING                     -> string_lit
     | NAME                       -> word

HEX_COLOR.3: /#[0-9A-Fa-f]+\b/
FUNC_COLOR.3: /(?i:rgba?|hsl|hsv|hsb)\([^()\n]*\)/
NAME: /[A-Za-z_][A-Za-z0-9_\-.\/]*/
INT: /\d+/
STAR: "*"
_DOTDOT: ".."
STRING: /"(?:[^"\\\n]|\\.)*"/ | /'(?:[^'\\\n]|\\.)*'/
COMMENT: /#[^\n]*/
CONTINUATION: /\\[ \t]*\r?\n/

%import common.WS_INLINE
%ignore WS_INLINE
%ignore COMMENT
%ignore CONTINUATION
"""

_PARSER = Lark(GRAMMAR, start='start', parser='lalr')

_FRIENDLY = {
    'NAME': 'a name',
    'INT': 'an integer',
    'HEX_COLOR': 'a colour',
    'FUNC_COLOR': 'a colour',
    'STRING': 'a string',
    'STAR': "'*'",
    'LPAR': "'('",
    'RPAR': "')'",
    'COMMA': "','",
    'EQUAL': "'='",
    'AT': "'@'",
    'COLON': "':'",
    'LSQB': "'['",
    'RSQB': "']'",
    '_DOTDOT': "'..'",
    '$END': 'end of line',
}

_ESCAPE = re.compile(r'\\(.)')
_HEX_LITERAL = re.compile(r'#[0-9A-Fa-f]+\b')


class _NodeBuilder(Transformer):
    """Turn a lark tree for one logical line into a CommandNode."""

    def __init__(self, first_line: int, source: str):
        super().__init__()
        self._first_line = first_line
        self._source = source

    def _line(self, tok: Token) -> int:
        return self._first_line + tok.line - 1

    def _arg(self, kind: str, value, tok: Token) -> cmd.Arg:
        return cmd.Arg(kind=kind, value=value, line=self._line(tok), column=tok.column)

    def start(self, items):
        return items[0] if items else None

    def call_form(self, items):
        return self._command(items)

    def word_form(self, items):
        return self._command(items)

    def _command(self, items) -> cmd.CommandNode:
        name, *args = items
        return cmd.CommandNode(
            name=str(name).lower(),
            args=tuple(args),
            line=self._line(name),
            column=name.column,
            source=self._source,
        )

    def keyword(self, items):
        name, arg = items
        return cmd.Arg(kind=arg.kind, value=arg.value, line=self._line(name), column=name.column, keyword=str(name))

    def hex_color(self, items):
        return self._arg(cmd.HEX_COLOR, str(items[0]), items[0])

    def func_color(self, items):
        return self._arg(cmd.FUNC_COLOR, str(items[0]), items[0])

    def range_lit(self, items):
        lo, hi = items
        return self._arg(cmd.RANGE, (int(lo), int(hi)), lo)

    def int_lit(self, items):
        return self._arg(cmd.INT, int(items[0]), items[0])

    def group_ref(self, items):
        return self._arg(cmd.GROUP_REF, str(items[0]), items[0])

    def group_index(self, items):
        name, index = items
        return self._arg(cmd.GROUP_INDEX, (str(name), int(index), int(index)), name)

    def group_range(self, items):
        name, lo, hi = items
        return self._arg(cmd.GROUP_INDEX, (str(name), int(lo), int(hi)), name)

    def selection(self, items):
        first = items[0]
        return cmd.Arg(kind=cmd.SELECTION, value=tuple(items), line=first.line, column=first.column)

    def all_cells(self, items):
        return self._arg(cmd.ALL, None, items[0])

    def string_lit(self, items):
        tok = items[0]
        return self._arg(cmd.STRING, _ESCAPE.sub(r'\1', str(tok)[1:-1]), tok)

    def word(self, items):
        return self._arg(cmd.WORD, str(items[0]), items[0])


def _syntax_error(exc: UnexpectedInput, first_line: int, text: str) -> ScriptSyntaxError:
    line = getattr(exc, 'line', -1)
    column = getattr(exc, 'column', -1)
    if line is None or line < 1:
        # End of input: point just past the last character
        tail = text.split('\n')
        line, column = len(tail), len(tail[-1]) + 1

    if isinstance(exc, UnexpectedCharacters) and exc.char in '\r\n':
        message = 'line break inside a command (a backslash in a comment does not continue a line)'
    elif isinstance(exc, UnexpectedCharacters):
        message = f'unexpected character {exc.char!r}'
    elif isinstance(exc, UnexpectedToken):
        expected = sorted({_FRIENDLY.get(t, t) for t in exc.expected})
        found = 'end of line' if exc.token.type == '$END' else repr(str(exc.token))
        message = f'unexpected {found}'
        if expected:
            message += f', expected {" or ".join(expected)}'
    elif isinstance(exc, UnexpectedEOF):
        message = 'unexpected end of line'
    else:
        message = str(exc).strip().splitlines()[0]
    return ScriptSyntaxError(message, line=first_line + line - 1, column=column)


def parse_line(text: str, line: int = 1) -> cmd.CommandNode | None:
    """Parse one logical line. Returns None for blank or comment-only lines.

    `line` is the source line number the text starts on; it offsets every
    reported location.
    """
    text = text.rstrip('\r\n')
    try:
        tree = _PARSER.parse(text)
    except UnexpectedInput as exc:
        raise _syntax_error(exc, line, text) from exc
    return _NodeBuilder(line, text.strip()).transform(tree)


def _comment_start(line: str) -> int | None:
    """Index of the `#` opening a comment on a physical line, if any.

    Mirrors the lexer: quoted strings are skipped and a `#` that begins a
    hex literal is not a comment.
    """
    quote = None
    i = 0
    while i < len(line):
        ch = line[i]
        if quote is not None:
            if ch == '\\':
                i += 1
            elif ch == quote:
                quote = None
        elif ch in '"\'':
            quote = ch
        elif ch == '#':
            hex_lit = _HEX_LITERAL.match(line, i)
            if hex_lit is None:
                return i
            i = hex_lit.end()
            continue
        i += 1
    return None


def _continues(line: str) -> bool:
    """True when a physical line ends in a continuation backslash.

    A backslash at the end of a comment is part of the comment.
    """
    code = line.rstrip('\r\n').rstrip(' \t')
    return code.endswith('\\') and _comment_start(code) is None


def _logical_lines(text: str) -> Iterator[tuple[int, str]]:
    """Yield (first line number, text) per logical line."""
    lines = text.splitlines(keepends=True)
    i = 0
    while i < len(lines):
        start = i
        chunk = lines[i]
        while lines[i].endswith('\n') and _continues(lines[i]) and i + 1 < len(lines):
            i += 1
            chunk += lines[i]
        yield start + 1, chunk
        i += 1


def iter_script(text: str) -> Iterator[cmd.CommandNode]:
    """Lazily parse a script, one CommandNode per non-empty logical line.

    A malformed line raises ScriptSyntaxError only when iteration reaches
    it, so a caller executing as it goes keeps the effects of earlier lines.
    """
    if text.startswith('\ufeff'):
        text = text[1:]
    for first_line, chunk in _logical_lines(text):
        node = parse_line(chunk, first_line)
        if node is not None:
            logger.debug('parsed %s at %d:%d', node.name, node.line, node.column)
            yield node


def parse_script(text: str) -> list[cmd.CommandNode]:
    """Parse a whole script. Raises on the first malformed line."""
    return list(iter_script(text))


def decode_script(data: bytes) -> str:
    """Decode script bytes as UTF-8, dropping a leading byte order mark.

    An undecodable byte raises ScriptSyntaxError at the line and column
    where it sits.
    """
    if data.startswith(codecs.BOM_UTF8):
        data = data[len(codecs.BOM_UTF8) :]
    try:
        return data.decode('utf-8')
    except UnicodeDecodeError as exc:
        line_start = data.rfind(b'\n', 0, exc.start) + 1
        line = data.count(b'\n', 0, exc.start) + 1
        column = len(data[line_start : exc.start].decode('utf-8', errors='replace')) + 1
        raise ScriptSyntaxError(
            f'invalid UTF-8 byte 0x{data[exc.start]:02x}', line=line, column=column
        ) from exc


def read_script(path: str) -> str:
    with open(path, 'rb') as f:
        return decode_script(f.read())


def parse_script_file(path: str) -> list[cmd.CommandNode]:
    """Parse a script file from disk."""
    return parse_script(read_script(path))
