"""Selectors for ProductBoard's UI, kept as data.

ProductBoard's markup (including build-generated class names) changes without
notice, so the selectors live in ``selectors.json`` and can be overridden via
``LINKER_SELECTORS_PATH`` without touching workflow code.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

logger = logging.getLogger(__name__)

DEFAULT_SELECTORS_PATH = Path(__file__).resolve().parents[1] / "selectors.json"

SelectorValue = Union[str, List[str]]


def _escape(value: str) -> str:
    return str(value).replace("\\", "\\\\").replace('"', '\\"')


def render_selector(template: str, **values: Any) -> str:
    """Substitute ``{name}`` placeholders, escaping double quotes in values."""
    rendered = template
    for key, value in values.items():
        rendered = rendered.replace("{" + key + "}", _escape(value))
    return rendered


class SelectorCatalog:
    def __init__(self, entries: Dict[str, SelectorValue]) -> None:
        self._entries = dict(entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def keys(self) -> List[str]:
        return sorted(self._entries)

    def one(self, key: str, **values: Any) -> str:
        entry = self._entries[key]
        if isinstance(entry, list):
            if not entry:
                raise KeyError(f"Selector list '{key}' is empty")
            entry = entry[0]
        return render_selector(entry, **values)

    def many(self, key: str, **values: Any) -> List[str]:
        entry = self._entries[key]
        items = entry if isinstance(entry, list) else [entry]
        return [render_selector(item, **values) for item in items]


def _read_json(path: Path) -> Dict[str, SelectorValue]:
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a JSON object, got {type(data).__name__}")
    return data


def load_selector_catalog(override_path: Optional[Path] = None) -> SelectorCatalog:
    """Load the packaged defaults, then apply ``override_path`` key by key."""
    entries = _read_json(DEFAULT_SELECTORS_PATH)
    if override_path is not None:
        overrides = _read_json(Path(override_path))
        logger.info(f"[Selectors] Applying {len(overrides)} override(s) from {override_path}")
        entries.update(overrides)
    return SelectorCatalog(entries)


__all__ = ["DEFAULT_SELECTORS_PATH", "SelectorCatalog", "load_selector_catalog", "render_selector"]
