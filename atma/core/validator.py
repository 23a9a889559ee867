"""Static checks that turn a parsed CommandNode into a typed Command.

Pure and stateless: nothing here looks at a palette. Checks argument
arity, keyword names, literal types, ranges, attribute names, and colour
literals (through atma.core.colors). Failures raise ValidationError at the
offending argument, or at the command word when an argument is missing.
"""

from dataclasses import dataclass

from atma.core import commands as cmd
from atma.core.colors import parse_color
from atma.core.errors import ValidationError

# Parameter types
COLOR = 'color'
NAME = 'name'
GROUP_NAME = 'group name'
COUNT = 'count'
POSITION = 'position'
SELECTOR = 'selector'
ATTRIBUTE = 'attribute'
PATH = 'path'
VALUE = 'value'  # typed later, from the attribute it belongs to


@dataclass(frozen=True)
class Param:
    name: str
    type: str
    required: bool = True


SIGNATURES: dict[str, tuple[Param, ...]] = {
    'new': (),
    'insert': (Param('color', COLOR), Param('name', NAME, False), Param('position', POSITION, False)),
    'delete': (Param('selector', SELECTOR),),
    'move': (Param('selector', SELECTOR), Param('position', POSITION)),
    'rename': (Param('selector', SELECTOR), Param('name', NAME)),
    'set': (Param('selector', SELECTOR), Param('attribute', ATTRIBUTE), Param('value', VALUE)),
    'group': (Param('name', GROUP_NAME), Param('selector', SELECTOR)),
    'ungroup': (Param('name', GROUP_NAME), Param('selector', SELECTOR, False)),
    'undo': (Param('count', COUNT, False),),
    'redo': (Param('count', COUNT, False),),
    'save': (Param('path', PATH),),
    'load': (Param('path', PATH),),
    'list': (Param('selector', SELECTOR, False),),
    'grid': (Param('selector', SELECTOR, False),),
    'export': (Param('path', PATH), Param('selector', SELECTOR, False)),
}

_BUILDERS = {
    'new': cmd.New,
    'insert': cmd.Insert,
    'delete': cmd.Delete,
    'move': cmd.Move,
    'rename': cmd.Rename,
    'set': cmd.Set,
    'group': cmd.Group,
    'ungroup': cmd.Ungroup,
    'undo': cmd.Undo,
    'redo': cmd.Redo,
    'save': cmd.Save,
    'load': cmd.Load,
    'list': cmd.List,
    'grid': cmd.Grid,
    'export': cmd.Export,
}

_KIND_NAMES = {
    cmd.HEX_COLOR: 'a colour',
    cmd.FUNC_COLOR: 'a colour',
    cmd.INT: 'an integer',
    cmd.RANGE: 'a range',
    cmd.GROUP_REF: 'a group reference',
    cmd.GROUP_INDEX: 'a group index',
    cmd.SELECTION: 'a selection list',
    cmd.ALL: "'*'",
    cmd.STRING: 'a string',
    cmd.WORD: 'a word',
}

_TEXT_KINDS = (cmd.WORD, cmd.STRING)


def _fail(message: str, arg: cmd.Arg) -> ValidationError:
    return ValidationError(message, line=arg.line, column=arg.column)


def _wrong_kind(param: Param, arg: cmd.Arg) -> ValidationError:
    return _fail(f'{param.name}: expected {param.type}, got {_KIND_NAMES.get(arg.kind, arg.kind)}', arg)


def _bind(node: cmd.CommandNode, signature: tuple[Param, ...]) -> dict[str, cmd.Arg]:
    bound: dict[str, cmd.Arg] = {}
    params = {p.name: p for p in signature}

    positional = node.positional
    if len(positional) > len(signature):
        extra = positional[len(signature)]
        raise _fail(f'{node.name} takes at most {len(signature)} argument(s), got {len(positional)}', extra)
    for param, arg in zip(signature, positional):
        bound[param.name] = arg

    for arg in node.keywords:
        if arg.keyword not in params:
            raise _fail(f'{node.name} has no argument named {arg.keyword!r}', arg)
        if arg.keyword in bound:
            raise _fail(f'argument {arg.keyword!r} given more than once', arg)
        bound[arg.keyword] = arg

    for param in signature:
        if param.required and param.name not in bound:
            raise ValidationError(f'{node.name}: missing argument {param.name!r}', line=node.line, column=node.column)
    return bound


def _coerce_color(param: Param, arg: cmd.Arg):
    if arg.kind not in (cmd.HEX_COLOR, cmd.FUNC_COLOR, *_TEXT_KINDS):
        raise _wrong_kind(param, arg)
    try:
        return parse_color(arg.value)
    except ValueError:
        raise _fail(f'invalid colour {arg.value!r}', arg) from None


def _coerce_text(param: Param, arg: cmd.Arg, allow_group_ref: bool = False) -> str:
    kinds = _TEXT_KINDS + ((cmd.GROUP_REF,) if allow_group_ref else ())
    if arg.kind not in kinds:
        raise _wrong_kind(param, arg)
    value = arg.value.strip()
    if not value:
        raise _fail(f'{param.name}: must not be empty', arg)
    return value


def _coerce_selector(param: Param, arg: cmd.Arg) -> cmd.Selector:
    if arg.kind == cmd.INT:
        return cmd.IndexSelector(arg.value)
    if arg.kind in _TEXT_KINDS:
        return cmd.NameSelector(arg.value)
    if arg.kind == cmd.RANGE:
        start, end = arg.value
        if start > end:
            raise _fail(f'invalid range {start}..{end}: start is after end', arg)
        return cmd.RangeSelector(start, end)
    if arg.kind == cmd.GROUP_REF:
        return cmd.GroupSelector(arg.value)
    if arg.kind == cmd.GROUP_INDEX:
        group, start, end = arg.value
        if start > end:
            raise _fail(f'invalid range @{group}:{start}..{end}: start is after end', arg)
        return cmd.GroupIndexSelector(group, start, end)
    if arg.kind == cmd.ALL:
        return cmd.AllSelector()
    if arg.kind == cmd.SELECTION:
        parts = []
        for item in arg.value:
            if item.kind == cmd.SELECTION:
                raise _fail('selection lists cannot be nested', item)
            parts.append(_coerce_selector(param, item))
        if len(parts) == 1:
            return parts[0]
        return cmd.SelectionList(tuple(parts))
    raise _wrong_kind(param, arg)


def _coerce(param: Param, arg: cmd.Arg):
    if param.type == COLOR:
        return _coerce_color(param, arg)
    if param.type == NAME:
        return _coerce_text(param, arg)
    if param.type == GROUP_NAME:
        return _coerce_text(param, arg, allow_group_ref=True)
    if param.type == PATH:
        return _coerce_text(param, arg)
    if param.type in (COUNT, POSITION):
        if arg.kind != cmd.INT:
            raise _wrong_kind(param, arg)
        return arg.value
    if param.type == SELECTOR:
        return _coerce_selector(param, arg)
    if param.type == ATTRIBUTE:
        if arg.kind != cmd.WORD or arg.value.lower() not in cmd.ATTRIBUTES:
            raise _fail(f'unknown attribute {arg.value!r} (expected one of: {", ".join(cmd.ATTRIBUTES)})', arg)
        return arg.value.lower()
    raise AssertionError(f'unhandled parameter type {param.type!r}')


def validate(node: cmd.CommandNode) -> cmd.Command:
    """Check a CommandNode and build the typed Command it describes."""
    signature = SIGNATURES.get(node.name)
    if signature is None:
        raise ValidationError(f'unknown command {node.name!r}', line=node.line, column=node.column)

    bound = _bind(node, signature)
    values = {}
    for param in signature:
        arg = bound.get(param.name)
        if arg is None:
            continue
        if param.type == VALUE:
            # set: the attribute decides what the value must be
            attr_type = COLOR if values['attribute'] == cmd.COLOR_ATTRIBUTE else NAME
            values[param.name] = _coerce(Param(param.name, attr_type), arg)
        else:
            values[param.name] = _coerce(param, arg)
    return _BUILDERS[node.name](**values)
