# app/core/preferences.py

import enum


class ThemeMode(str, enum.Enum):
    LIGHT = "light"
    DARK = "dark"
    SYSTEM = "system"   # follow the client OS


class ViewMode(str, enum.Enum):
    EXCEL = "excel"     # spreadsheet table (default)
    GRID = "grid"       # cards
    LIST = "list"


DEFAULT_THEME = ThemeMode.SYSTEM
DEFAULT_VIEW_MODE = ViewMode.EXCEL
