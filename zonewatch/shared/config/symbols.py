"""
Symbol list resolution.

Explicit list > stored list > hard-coded default.
"""
import json
import logging
from pathlib import Path
from typing import Iterable, List, Optional, Union

from zonewatch.shared.config.defaults import DEFAULT_SYMBOLS

logger = logging.getLogger(__name__)

DEFAULT_SYMBOLS_FILE = Path.home() / ".zonewatch" / "symbols.json"


def normalize_symbol(symbol: str) -> str:
    """'btc/usdt' -> 'BTCUSDT', 'sol' -> 'SOLUSDT'."""
    cleaned = symbol.strip().upper().replace('/', '').replace('-', '')
    if not cleaned:
        raise ValueError("Symbol cannot be empty")
    if not cleaned.endswith('USDT'):
        cleaned += 'USDT'
    return cleaned


def load_stored_symbols(path: Union[str, Path, None] = None) -> Optional[List[str]]:
    """
    Read the stored symbol list.

    Returns None when the file is absent, unreadable, or not a non-empty JSON
    list of strings, so the caller falls back to the defaults.
    """
    path = Path(path) if path else DEFAULT_SYMBOLS_FILE
    if not path.exists():
        return None
    try:
        data = json.loads(path.read_text())
    except (OSError, ValueError) as e:
        logger.warning("Ignoring unreadable symbols file %s: %s", path, e)
        return None
    if not isinstance(data, list) or not data or not all(isinstance(s, str) for s in data):
        logger.warning("Ignoring symbols file %s: expected a non-empty list of strings", path)
        return None
    return [normalize_symbol(s) for s in data]


def save_symbols(symbols: Iterable[str], path: Union[str, Path, None] = None) -> Path:
    path = Path(path) if path else DEFAULT_SYMBOLS_FILE
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps([normalize_symbol(s) for s in symbols], indent=2))
    return path


def resolve_symbols(
    explicit: Optional[Iterable[str]] = None,
    stored_path: Union[str, Path, None] = None,
) -> List[str]:
    """Resolve the symbols to analyse, de-duplicated in first-seen order."""
    if explicit:
        candidates = [normalize_symbol(s) for s in explicit if s and s.strip()]
        if candidates:
            return list(dict.fromkeys(candidates))
    stored = load_stored_symbols(stored_path)
    if stored:
        return list(dict.fromkeys(stored))
    return list(DEFAULT_SYMBOLS)
