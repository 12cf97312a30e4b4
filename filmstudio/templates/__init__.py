"""Film strip templates: built-in synthetic layouts and uploaded images."""

from filmstudio.templates.synthesizer import STYLES, TemplateLayout, synthesize_template
from filmstudio.templates.catalog import (
    BUILTIN_TEMPLATES,
    DEFAULT_CANVAS_SIZES,
    ImageTemplate,
    SyntheticTemplate,
    get_builtin_template,
)

__all__ = [
    "STYLES",
    "TemplateLayout",
    "synthesize_template",
    "BUILTIN_TEMPLATES",
    "DEFAULT_CANVAS_SIZES",
    "ImageTemplate",
    "SyntheticTemplate",
    "get_builtin_template",
]
