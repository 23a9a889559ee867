"""Subcommand registry.

Every public module in atma/subcommands/ defines one `subcommand` object.
discover() imports them once and indexes them by the name typed on the
command line, which need not match the module name: `exec` lives in
exec_script.py so the module does not shadow the builtin.

pkgutil sees nothing inside a frozen binary, so SUBCOMMAND_MODULES is the
list used there. Keep it in step with atma/subcommands/__init__.py.
"""

import importlib
import pkgutil
from types import ModuleType

from atma.core.types import Subcommand

PACKAGE = 'atma.subcommands'

SUBCOMMAND_MODULES = (
    'exec_script',
    'export',
    'grid',
    'list',
    'load',
    'new',
    'redo',
    'save',
    'undo',
)

_by_name: dict[str, Subcommand] = {}
_defined_in: dict[str, ModuleType] = {}


def _module_names() -> list[str]:
    package = importlib.import_module(PACKAGE)
    names = sorted(info.name for info in pkgutil.iter_modules(package.__path__) if not info.name.startswith('_'))
    return names or list(SUBCOMMAND_MODULES)


def _register(module: ModuleType) -> None:
    sub = getattr(module, 'subcommand', None)
    if not isinstance(sub, Subcommand):
        return
    if sub.name in _by_name and _by_name[sub.name] is not sub:
        raise RuntimeError(
            f'subcommand {sub.name!r} is defined twice: {_defined_in[sub.name].__name__} and {module.__name__}'
        )
    _by_name[sub.name] = sub
    _defined_in[sub.name] = module


def discover() -> dict[str, Subcommand]:
    """Import every subcommand module once. Returns name -> Subcommand."""
    if not _by_name:
        for modname in _module_names():
            _register(importlib.import_module(f'{PACKAGE}.{modname}'))
    return _by_name


def get(name: str) -> Subcommand:
    subcommands = discover()
    try:
        return subcommands[name]
    except KeyError:
        raise KeyError(f'unknown subcommand {name!r} (available: {", ".join(sorted(subcommands))})') from None


def module_for(name: str) -> ModuleType:
    """The module defining subcommand `name`; its docstring is the help text."""
    get(name)
    return _defined_in[name]


def all_subcommands() -> dict[str, Subcommand]:
    return discover()
