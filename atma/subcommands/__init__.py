"""Auto-discovery of subcommand modules.

Every .py file in this package that defines a `subcommand` object is
auto-registered by atma.registry.discover(). Modules starting with an
underscore are helpers and are skipped.

The explicit imports below ensure PyInstaller includes these modules in a
frozen binary, where pkgutil.iter_modules cannot find them.
"""

# PyInstaller hidden imports, keep in sync with the subcommand modules
import atma.subcommands.exec_script as _exec_script  # noqa: F401
import atma.subcommands.export as _export  # noqa: F401
import atma.subcommands.grid as _grid  # noqa: F401
import atma.subcommands.list as _list  # noqa: F401
import atma.subcommands.load as _load  # noqa: F401
import atma.subcommands.new as _new  # noqa: F401
import atma.subcommands.redo as _redo  # noqa: F401
import atma.subcommands.save as _save  # noqa: F401
import atma.subcommands.undo as _undo  # noqa: F401
