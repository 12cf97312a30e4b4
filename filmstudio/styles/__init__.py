"""Film looks and the colour filters they carry."""

from filmstudio.styles.catalog import DEFAULT_STYLE_ID, FILM_STYLES, FilmStyle, get_style
from filmstudio.styles.filters import IDENTITY, ColorFilter, FilterFunction, parse_filter

__all__ = [
    "DEFAULT_STYLE_ID",
    "FILM_STYLES",
    "FilmStyle",
    "get_style",
    "IDENTITY",
    "ColorFilter",
    "FilterFunction",
    "parse_filter",
]
