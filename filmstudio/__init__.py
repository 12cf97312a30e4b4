"""Film Studio: fill film strip templates with photos and export them."""

__version__ = "0.1.0"
