"""Tests for filter expressions and the film style catalog."""

import math

import numpy as np
import pytest

from filmstudio.styles.catalog import DEFAULT_STYLE_ID, FILM_STYLES, FilmStyle, get_style
from filmstudio.styles.filters import IDENTITY, ColorFilter, FilterFunction, parse_filter


def solid(rgb, alpha=1.0, size=4):
    """Float RGBA block of a single colour."""
    image = np.zeros((size, size, 4), dtype=np.float32)
    image[:, :, :3] = rgb
    image[:, :, 3] = alpha
    return image


class TestParseFilter:
    """Tests for parse_filter."""

    @pytest.mark.parametrize("expression", ['', '   ', 'none', 'NONE', None])
    def test_identity(self, expression):
        """Test empty expressions compile to the identity filter."""
        assert parse_filter(expression) is IDENTITY
        assert parse_filter(expression).is_identity

    def test_percent_and_ratio(self):
        """Test percentages and plain numbers mean the same ratio."""
        assert parse_filter('sepia(50%)').functions == (FilterFunction('sepia', 0.5),)
        assert parse_filter('sepia(0.5)').functions == (FilterFunction('sepia', 0.5),)

    def test_function_order_kept(self):
        """Test functions run in the written order."""
        compiled = parse_filter('contrast(120%) grayscale(1)  brightness(0.9)')
        assert [f.name for f in compiled.functions] == ['contrast', 'grayscale', 'brightness']

    @pytest.mark.parametrize("expression,radians", [
        ('hue-rotate(90deg)', math.pi / 2),
        ('hue-rotate(90)', math.pi / 2),
        ('hue-rotate(0.5turn)', math.pi),
        ('hue-rotate(200grad)', math.pi),
        ('hue-rotate(-1rad)', -1.0),
    ])
    def test_hue_units(self, expression, radians):
        """Test hue-rotate angle units."""
        assert parse_filter(expression).functions[0].amount == pytest.approx(radians)

    def test_clamped_functions(self):
        """Test grayscale/sepia/invert/opacity amounts cap at 1."""
        assert parse_filter('grayscale(200%)').functions[0].amount == 1.0
        assert parse_filter('saturate(200%)').functions[0].amount == 2.0

    @pytest.mark.parametrize("expression", [
        'blur(2px)',
        'drop-shadow(3)',
        'sepia(-10%)',
        'sepia(20%) garbage',
        'sepia(20deg)',
        'hue-rotate(10%)',
    ])
    def test_invalid(self, expression):
        """Test unsupported or malformed expressions are rejected."""
        with pytest.raises(ValueError):
            parse_filter(expression)


class TestColorFilter:
    """Tests for applying compiled filters."""

    def test_identity_returns_copy(self):
        """Test the identity filter never hands back its input."""
        image = solid((0.2, 0.4, 0.6))
        out = IDENTITY.apply(image)
        assert out is not image
        np.testing.assert_array_equal(out, image)

    def test_grayscale_red(self):
        """Test full grayscale maps red to its luminance."""
        out = parse_filter('grayscale(100%)').apply(solid((1.0, 0.0, 0.0)))
        np.testing.assert_allclose(out[0, 0, :3], [0.2126, 0.2126, 0.2126], atol=1e-5)

    def test_brightness(self):
        """Test brightness scales channels."""
        out = parse_filter('brightness(50%)').apply(solid((0.8, 0.4, 0.2)))
        np.testing.assert_allclose(out[0, 0, :3], [0.4, 0.2, 0.1], atol=1e-6)

    def test_invert(self):
        """Test full inversion."""
        out = parse_filter('invert(1)').apply(solid((0.8, 0.4, 0.2)))
        np.testing.assert_allclose(out[0, 0, :3], [0.2, 0.6, 0.8], atol=1e-6)

    def test_contrast_keeps_mid_gray(self):
        """Test contrast pivots around 0.5."""
        out = parse_filter('contrast(180%)').apply(solid((0.5, 0.5, 0.5)))
        np.testing.assert_allclose(out[0, 0, :3], [0.5, 0.5, 0.5], atol=1e-6)

    def test_opacity_touches_alpha_only(self):
        """Test opacity halves alpha and leaves colour alone."""
        out = parse_filter('opacity(50%)').apply(solid((0.3, 0.3, 0.3)))
        np.testing.assert_allclose(out[0, 0], [0.3, 0.3, 0.3, 0.5], atol=1e-6)

    def test_neutral_matrices(self):
        """Test saturate(1) and hue-rotate(0) leave colours unchanged."""
        image = solid((0.9, 0.2, 0.5))
        out = parse_filter('saturate(100%) hue-rotate(0deg)').apply(image)
        np.testing.assert_allclose(out, image, atol=1e-5)

    def test_results_clamped(self):
        """Test channel values stay inside [0, 1]."""
        out = parse_filter('brightness(300%)').apply(solid((0.9, 0.5, 0.1)))
        assert out.max() <= 1.0
        assert out.min() >= 0.0

    def test_input_not_modified(self):
        """Test applying a filter does not write into the input."""
        image = solid((0.9, 0.2, 0.5))
        original = image.copy()
        parse_filter('sepia(1) opacity(0.2)').apply(image)
        np.testing.assert_array_equal(image, original)

    def test_empty_filter_is_identity(self):
        """Test a ColorFilter without functions."""
        assert ColorFilter().is_identity


class TestFilmStyles:
    """Tests for the style catalog."""

    def test_ids_unique(self):
        """Test style ids are unique."""
        ids = [s.id for s in FILM_STYLES]
        assert len(ids) == len(set(ids))
        assert DEFAULT_STYLE_ID in ids

    @pytest.mark.parametrize("style", FILM_STYLES, ids=lambda s: s.id)
    def test_filters_compile(self, style):
        """Test every built-in style carries a valid filter expression."""
        style.color_filter()

    def test_clean_style_is_neutral(self):
        """Test the clean style applies no treatment."""
        clean = get_style('clean')
        assert clean.color_filter().is_identity
        assert clean.grain == clean.vignette == clean.light_leak_opacity == clean.dust_opacity == 0

    def test_filter_expression_joins_color_shift(self):
        """Test the colour shift runs after the base filter."""
        style = FilmStyle(id='x', name='X', description='', filter='sepia(10%)', color_shift='hue-rotate(5deg)')
        assert style.filter_expression == 'sepia(10%) hue-rotate(5deg)'
        assert [f.name for f in style.color_filter().functions] == ['sepia', 'hue-rotate']

    def test_amount_range(self):
        """Test effect amounts must lie within 0-100."""
        with pytest.raises(ValueError):
            FilmStyle(id='x', name='X', description='', grain=150)

    def test_unknown_style(self):
        """Test looking up an unknown style."""
        with pytest.raises(KeyError):
            get_style('velvia')


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
