"""Icon and category display lookup.

Categories and wallets store an icon *name*.  The registry maps those names
to a renderer; any name it does not know resolves to the neutral
``CircleDot`` entry instead of failing, so records created with icons from
newer versions (or typos in a backup) still display.
"""

from __future__ import annotations

from typing import Callable, Dict, Iterable, Optional, Tuple, Union

from .config import FALLBACK_CATEGORY_NAME, FALLBACK_COLOR, FALLBACK_ICON
from .models import Category

Renderer = Callable[[], str]

ICON_GLYPHS: Dict[str, str] = {
    'Briefcase': '💼',
    'Laptop': '💻',
    'TrendingUp': '📈',
    'TrendingDown': '📉',
    'Plus': '➕',
    'Utensils': '🍴',
    'Car': '🚗',
    'Home': '🏠',
    'Heart': '❤️',
    'GraduationCap': '🎓',
    'Gamepad2': '🎮',
    'ShoppingBag': '🛍️',
    'Receipt': '🧾',
    'MoreHorizontal': '⋯',
    'LineChart': '📊',
    'BarChart3': '📊',
    'PieChart': '🥧',
    'Bitcoin': '₿',
    'Lock': '🔒',
    'Building': '🏢',
    'CircleDot': '⊙',
    'Wallet': '👛',
    'CreditCard': '💳',
    'Banknote': '💵',
    'PiggyBank': '🐷',
    'DollarSign': '💲',
    'Target': '🎯',
    'Calendar': '📅',
    'AlertTriangle': '⚠️',
    'Check': '✔️',
    'Coffee': '☕',
    'Plane': '✈️',
    'Gift': '🎁',
    'Phone': '📱',
    'Wifi': '📶',
    'Tv': '📺',
    'Music': '🎵',
    'Book': '📖',
    'Dumbbell': '🏋️',
    'Pill': '💊',
    'Scissors': '✂️',
    'Sparkles': '✨',
    'Globe': '🌐',
    'Radio': '📻',
    'Megaphone': '📣',
    'Cpu': '🖥️',
}


def _glyph(text: str) -> Renderer:
    return lambda: text


class IconRegistry:
    """Mapping from icon name to renderer with a guaranteed default."""

    def __init__(self, glyphs: Optional[Dict[str, str]] = None, default_key: str = FALLBACK_ICON):
        self._renderers: Dict[str, Renderer] = {
            key: _glyph(text) for key, text in (glyphs or ICON_GLYPHS).items()
        }
        if default_key not in self._renderers:
            self._renderers[default_key] = _glyph(ICON_GLYPHS.get(default_key, '•'))
        self.default_key = default_key

    def __contains__(self, key: object) -> bool:
        return key in self._renderers

    def register(self, key: str, renderer: Union[str, Renderer]) -> None:
        """Add or replace an entry; plain strings are wrapped as glyphs."""
        self._renderers[key] = _glyph(renderer) if isinstance(renderer, str) else renderer

    def resolve(self, key: Optional[str]) -> Renderer:
        return self._renderers.get(key or '', self._renderers[self.default_key])

    def render(self, key: Optional[str]) -> str:
        return self.resolve(key)()


default_registry = IconRegistry()


def render_icon(key: Optional[str]) -> str:
    return default_registry.render(key)


def category_display(categories: Iterable[Category], category_id: str) -> Tuple[str, str, str]:
    """Return ``(name, icon, color)`` for a category id.

    Dangling ids (the category was deleted, or came from another backup)
    get the neutral "Outros" entry.
    """
    for category in categories:
        if category.id == category_id:
            return category.name, category.icon, category.color
    return FALLBACK_CATEGORY_NAME, FALLBACK_ICON, FALLBACK_COLOR
