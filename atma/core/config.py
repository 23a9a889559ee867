"""Configuration for atma, read from ATMA_* environment variables.

Load order (first wins):
  1. Existing OS environment variables, which are never overwritten.
  2. .env file at --env-file path (if explicitly provided).
  3. .env file walking up from cwd, stopping at .git (file or dir).

Only ATMA_* keys are taken from a .env file; anything else in it is left
alone so a project .env shared with other tools cannot leak into atma.

  ATMA_PALETTE        session file path              (default .atma-palette)
  ATMA_LOG_LEVEL      DEBUG, INFO, WARNING, ERROR    (default WARNING)
  ATMA_GRID_COLUMNS   swatches per grid row          (default 8)
  ATMA_SWATCH_SIZE    PNG export swatch edge, px     (default 32)
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

PREFIX = 'ATMA_'
DEFAULT_PALETTE_PATH = '.atma-palette'


@dataclass(frozen=True)
class Config:
    palette_path: str = DEFAULT_PALETTE_PATH
    log_level: str = 'WARNING'
    grid_columns: int = 8
    swatch_size: int = 32

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> 'Config':
        env = os.environ if environ is None else environ
        return cls(
            palette_path=env.get('ATMA_PALETTE') or DEFAULT_PALETTE_PATH,
            log_level=(env.get('ATMA_LOG_LEVEL') or 'WARNING').upper(),
            grid_columns=_positive_int(env, 'ATMA_GRID_COLUMNS', 8),
            swatch_size=_positive_int(env, 'ATMA_SWATCH_SIZE', 32),
        )


def _positive_int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f'{key} must be an integer, got {raw!r}') from None
    if value < 1:
        raise ValueError(f'{key} must be at least 1, got {value}')
    return value


def _find_dotenv(start: Path) -> Path | None:
    """Walk up from start, return first .env found, stop at .git boundary."""
    current = start.resolve()
    while True:
        candidate = current / '.env'
        if candidate.is_file():
            return candidate
        if (current / '.git').exists():
            return None
        if current.parent == current:
            return None
        current = current.parent


def _parse_dotenv(path: Path) -> dict[str, str]:
    """Parse ATMA_* entries. Handles KEY=value, KEY="value" and `export KEY=value`."""
    result: dict[str, str] = {}
    for line in path.read_text(encoding='utf-8').splitlines():
        line = line.strip()
        if not line or line.startswith('#') or '=' not in line:
            continue
        key, _, raw_value = line.partition('=')
        key = key.strip().removeprefix('export ').strip()
        if key.startswith(PREFIX):
            result[key] = raw_value.strip().strip('"').strip("'")
    return result


def load_env(env_file: str | None = None) -> Path | None:
    """Copy ATMA_* keys from a .env file into os.environ where not already set.

    Returns the path that was loaded, or None if no .env was found/used.
    """
    if env_file:
        path = Path(env_file)
        if not path.is_file():
            return None
    else:
        path = _find_dotenv(Path.cwd())
        if path is None:
            return None

    for key, value in _parse_dotenv(path).items():
        os.environ.setdefault(key, value)
    return path
