"""Named film looks selectable by the caller."""

from dataclasses import dataclass
from typing import List

from filmstudio.styles.filters import ColorFilter, parse_filter


@dataclass(frozen=True)
class FilmStyle:
    """A film treatment. Effect amounts range from 0 to 100."""

    id: str
    name: str
    description: str
    filter: str = ''
    grain: float = 0.0
    vignette: float = 0.0
    light_leak_opacity: float = 0.0
    color_shift: str = ''
    dust_opacity: float = 0.0

    def __post_init__(self) -> None:
        for attr in ('grain', 'vignette', 'light_leak_opacity', 'dust_opacity'):
            value = getattr(self, attr)
            if not 0 <= value <= 100:
                raise ValueError(f"{attr} must be within 0-100, got {value}")

    @property
    def filter_expression(self) -> str:
        return f"{self.filter} {self.color_shift}".strip()

    def color_filter(self) -> ColorFilter:
        return parse_filter(self.filter_expression)


FILM_STYLES: List[FilmStyle] = [
    FilmStyle(
        id='classic',
        name='Classic 35mm',
        description='Warm consumer film with soft grain',
        filter='sepia(15%) saturate(90%) contrast(105%)',
        grain=20,
        vignette=30,
        dust_opacity=10,
    ),
    FilmStyle(
        id='portra',
        name='Portrait 400',
        description='Gentle skin tones and lifted shadows',
        filter='saturate(110%) brightness(104%) contrast(95%)',
        grain=12,
        vignette=15,
        light_leak_opacity=10,
        color_shift='hue-rotate(-5deg)',
    ),
    FilmStyle(
        id='tri-x',
        name='Tri-X B&W',
        description='Punchy black and white with heavy grain',
        filter='grayscale(100%) contrast(120%)',
        grain=35,
        vignette=40,
        dust_opacity=15,
    ),
    FilmStyle(
        id='expired',
        name='Expired Roll',
        description='Faded colours, light leaks and dust',
        filter='sepia(30%) saturate(80%) contrast(90%)',
        grain=30,
        vignette=35,
        light_leak_opacity=35,
        color_shift='hue-rotate(10deg)',
        dust_opacity=25,
    ),
    FilmStyle(
        id='cinestill',
        name='Cinema 800',
        description='Cool night film with a warm halation leak',
        filter='saturate(115%) contrast(108%)',
        grain=18,
        vignette=20,
        light_leak_opacity=25,
        color_shift='hue-rotate(-10deg)',
    ),
    FilmStyle(
        id='clean',
        name='Clean Scan',
        description='No treatment, photos as captured',
    ),
]

DEFAULT_STYLE_ID = 'classic'


def get_style(style_id: str) -> FilmStyle:
    """Look up a film style by id."""
    for style in FILM_STYLES:
        if style.id == style_id:
            return style
    known = ', '.join(s.id for s in FILM_STYLES)
    raise KeyError(f"Unknown film style {style_id!r} (available: {known})")
