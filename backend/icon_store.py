"""
icon_store.py
-------------
Resolves icon names to SVG files in the icons directory.

Naming convention on disk:
- <name>.svg          (shared by both themes)
- <name>-Light.svg    (light variant, preferred for theme=Light)
- <name>-Dark.svg     (dark variant, preferred for theme=Dark)

Loaded markup is kept in an IconCache for the lifetime of the process.
The icons directory is treated as read-only; entries are never invalidated.
"""

from __future__ import annotations
import logging
import re
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

DISPLAY_SIZE = 256

THEME_SUFFIX_RE = re.compile(r'(-(?:Light|Dark))?\.svg$', re.IGNORECASE)
SVG_OPEN_TAG_RE = re.compile(r'<svg(?=[\s/>])')


class Theme(str, Enum):
    LIGHT = "Light"
    DARK = "Dark"

    @classmethod
    def parse(cls, value: Optional[str]) -> "Theme":
        """Case-insensitive lookup; raises ValueError for anything but light/dark."""
        normalized = (value or "").capitalize()
        return cls(normalized)


class IconCache:
    """Unbounded in-memory store of loaded icon markup keyed by (name, theme)."""

    def __init__(self) -> None:
        self._data: Dict[Tuple[str, str], str] = {}

    def get(self, key: Tuple[str, str]) -> Optional[str]:
        return self._data.get(key)

    def put(self, key: Tuple[str, str], value: str) -> None:
        self._data[key] = value

    def __contains__(self, key: Tuple[str, str]) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)


def set_display_size(svg: str, size: int = DISPLAY_SIZE) -> str:
    """Insert width/height right after the root <svg tag name, keeping every other attribute."""
    return SVG_OPEN_TAG_RE.sub(f'<svg width="{size}" height="{size}"', svg, count=1)


def _is_plain_name(name: str) -> bool:
    return bool(name) and "/" not in name and "\\" not in name and ".." not in name


class IconResolver:
    def __init__(self, icons_dir: Path, cache: Optional[IconCache] = None):
        self.icons_dir = Path(icons_dir)
        self.cache = cache if cache is not None else IconCache()

    def list_available(self) -> List[str]:
        """Base names of every icon in the directory, lowercased, deduplicated and sorted."""
        try:
            files = [p.name for p in self.icons_dir.iterdir()]
        except OSError as e:
            logging.error(f"Error reading icons directory {self.icons_dir}: {e}")
            return []

        icons = set()
        for filename in files:
            if filename.endswith('.svg'):
                icons.add(THEME_SUFFIX_RE.sub('', filename).lower())
        return sorted(icons)

    def _candidates(self, name: str, theme: Theme) -> List[Path]:
        return [
            self.icons_dir / f"{name}-{theme.value}.svg",
            self.icons_dir / f"{name}.svg",
        ]

    def resolve(self, icon_name: str, theme: "Theme | str" = Theme.LIGHT) -> Optional[str]:
        """
        Return the icon markup for (icon_name, theme), or None when no file matches.
        The themed file wins over the plain one. Read errors count as a miss.
        """
        if not isinstance(theme, Theme):
            theme = Theme.parse(theme)
        name = icon_name.lower()
        key = (name, theme.value)

        cached = self.cache.get(key)
        if cached is not None:
            return cached

        if not _is_plain_name(name):
            return None

        try:
            path = next((p for p in self._candidates(name, theme) if p.is_file()), None)
            if path is None:
                return None
            svg = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logging.error(f"Error loading icon {icon_name}: {e}")
            return None

        svg = set_display_size(svg)
        self.cache.put(key, svg)
        logger.debug("[icons] cached %s (%s) from %s", name, theme.value, path.name)
        return svg
