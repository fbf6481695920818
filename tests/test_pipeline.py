"""End-to-end tests for panel, base and combined STL generation."""
import numpy as np
import pytest

from lithophane import (BaseSettings, Dimensions, GenerationSettings, ImageDecodeError, InvalidSettingsError, ShapeType,
                        base_settings_for, generate_base_stl, generate_combined_stl, generate_lithophane_geometry,
                        generate_lithophane_stl, grid_size, resolution_params, stl_filename, triangle_count)
from lithophane.stl import read_binary_stl

from conftest import png_bytes


class TestResolution:

    @pytest.mark.parametrize('name,step', [('low', 2.0), ('medium', 1.0), ('high', 0.5), ('ultra', 0.25)])
    def test_steps(self, name, step):
        assert resolution_params(name)[0] == step

    def test_unknown(self):
        with pytest.raises(InvalidSettingsError):
            resolution_params('extreme')

    def test_grid_size(self, panel, low_settings):
        assert grid_size(panel, low_settings) == (25, 25)
        assert grid_size(Dimensions(51.9, 3.0), low_settings) == (25, 1)


class TestWhitePanel:

    def test_depth_and_count(self, white_image, panel, low_settings):
        result = generate_lithophane_geometry(png_bytes(white_image), panel, low_settings, 'flat_square')
        assert (result.grid_width, result.grid_height) == (25, 25)
        assert np.allclose(result.depth_map, 1.0)
        assert len(result.triangles) == 2 * 24 * 24 + 2

    def test_stl_structure(self, white_image, panel, low_settings):
        buf = generate_lithophane_stl(png_bytes(white_image), panel, low_settings, 'flat_square')
        n = triangle_count(buf)
        assert n == 2 * 24 * 24 + 2
        assert len(buf) == 84 + 50 * n

    def test_deterministic(self, gradient_image, panel):
        settings = GenerationSettings(1.0, 3.0, 'medium', border=2, smoothing=40)
        data = png_bytes(gradient_image)
        a = generate_lithophane_stl(data, panel, settings, 'cloud')
        b = generate_lithophane_stl(data, panel, settings, 'cloud')
        assert a == b

    def test_border_adds_triangles(self, white_image, panel, low_settings):
        data = png_bytes(white_image)
        plain = triangle_count(generate_lithophane_stl(data, panel, low_settings, 'flat_square'))
        framed_settings = GenerationSettings(1.0, 3.0, 'low', border=5)
        framed = triangle_count(generate_lithophane_stl(data, panel, framed_settings, 'flat_square'))
        assert framed > plain


class TestShapes:

    @pytest.mark.parametrize('shape', list(ShapeType))
    def test_every_shape_builds(self, gradient_raster, shape):
        settings = GenerationSettings(0.8, 3.0, 'low', border=1.5, smoothing=20)
        buf = generate_lithophane_stl(gradient_raster, Dimensions(40, 30), settings, shape)
        normals, vertices = read_binary_stl(buf)
        assert np.isfinite(vertices).all()
        lengths = np.linalg.norm(normals, axis=1)
        assert np.all(np.isclose(lengths, 1.0, atol=1e-5) | (lengths == 0))

    def test_unknown_shape_matches_flat(self, gradient_raster, low_settings):
        a = generate_lithophane_stl(gradient_raster, Dimensions(30, 20), low_settings, 'flat_square')
        b = generate_lithophane_stl(gradient_raster, Dimensions(30, 20), low_settings, 'no_such_lamp')
        assert a == b

    def test_cylinder_wraps(self, gradient_raster, low_settings):
        result = generate_lithophane_geometry(gradient_raster, Dimensions(62.8, 20), low_settings, 'cylinder_medium')
        v = result.triangles.vertices[:-2].reshape(-1, 3)
        radius = np.hypot(v[:, 0], v[:, 2])
        r0 = 62.8 / (2 * np.pi)
        assert radius.min() >= r0 + 1.0 - 1e-9
        assert radius.max() <= r0 + 3.0 + 1e-9


class TestCombined:

    def test_panel_plus_base(self, gradient_image, panel):
        settings = GenerationSettings(0.6, 3.5, 'low', border=2, smoothing=20)
        data = png_bytes(gradient_image)
        panel_stl = generate_lithophane_stl(data, panel, settings, 'heart')
        base_stl = generate_base_stl(panel, base_settings_for(panel, settings))
        combined = generate_combined_stl(data, panel, settings, 'heart')
        assert triangle_count(combined) == triangle_count(panel_stl) + triangle_count(base_stl)
        n = triangle_count(panel_stl)
        assert combined[84:84 + 50 * n] == panel_stl[84:]
        assert combined[84 + 50 * n:] == base_stl[84:]


class TestValidation:

    @pytest.mark.parametrize('settings', [
        GenerationSettings(3.0, 3.0, 'low'),
        GenerationSettings(4.0, 3.0, 'low'),
        GenerationSettings(-1.0, 3.0, 'low'),
        GenerationSettings(1.0, 3.0, 'huge'),
        GenerationSettings(1.0, 3.0, 'low', border=-1),
        GenerationSettings(1.0, 3.0, 'low', smoothing=150),
        GenerationSettings(1.0, 3.0, 'low', curve=-5),
        GenerationSettings(1.0, float('nan'), 'low'),
        GenerationSettings(float('nan'), 3.0, 'low'),
        GenerationSettings(1.0, float('inf'), 'low'),
        GenerationSettings(1.0, 3.0, 'low', border=float('nan')),
        GenerationSettings(1.0, 3.0, 'low', smoothing=float('nan')),
    ])
    def test_bad_settings(self, white_image, panel, settings):
        with pytest.raises(InvalidSettingsError):
            generate_lithophane_stl(png_bytes(white_image), panel, settings, 'flat_square')

    @pytest.mark.parametrize('dims', [Dimensions(0, 50), Dimensions(50, -1), Dimensions(3, 50),
                                      Dimensions(float('inf'), 50), Dimensions(50, float('nan'))])
    def test_bad_dimensions(self, white_image, low_settings, dims):
        with pytest.raises(InvalidSettingsError):
            generate_lithophane_stl(png_bytes(white_image), dims, low_settings, 'flat_square')

    def test_non_finite_rejected_by_validate(self):
        with pytest.raises(InvalidSettingsError):
            GenerationSettings(1.0, float('nan'), 'low').validate()
        with pytest.raises(InvalidSettingsError):
            Dimensions(float('inf'), 50).validate()
        with pytest.raises(InvalidSettingsError):
            BaseSettings(float('inf'), 18, 28, 10, 4, 16).validate()

    def test_settings_checked_before_decoding(self, panel):
        with pytest.raises(InvalidSettingsError):
            generate_lithophane_stl(b'garbage', panel, GenerationSettings(3.0, 1.0, 'low'), 'flat_square')

    def test_decode_failure_surfaces(self, panel, low_settings):
        with pytest.raises(ImageDecodeError):
            generate_combined_stl(b'garbage', panel, low_settings, 'flat_square')


class TestFilename:

    def test_panel(self):
        assert stl_filename('heart', Dimensions(100, 80)) == 'lithophane_heart_100x80mm.stl'

    def test_with_base_and_order(self):
        name = stl_filename(ShapeType.CYLINDER_SMALL, Dimensions(120.5, 90), True, 'a1/b2')
        assert name == 'lithophane_order_a1-b2_cylinder_small_120.5x90mm_with_base.stl'


class TestSettingsJson:

    def test_defaults(self):
        s = GenerationSettings.from_json({})
        assert s == GenerationSettings()
        assert (s.min_thickness, s.max_thickness, s.resolution, s.border, s.smoothing) == (0.6, 3.5, 'high', 2.0, 20.0)

    def test_camel_case(self):
        s = GenerationSettings.from_json({'minThickness': 1, 'maxThickness': '4', 'resolution': 'ultra',
                                          'border': 0, 'curve': 50, 'negative': True, 'smoothing': 0})
        assert s.max_thickness == 4.0 and s.negative and s.curve_fraction == 0.5 and s.step_size == 0.25

    @pytest.mark.parametrize('payload', [{'minThickness': 'thick'}, {'negative': 'yes'}, {'border': None},
                                         {'smoothing': float('nan')}, {'maxThickness': True}])
    def test_rejects(self, payload):
        with pytest.raises(InvalidSettingsError):
            GenerationSettings.from_json(payload)

    def test_dimensions(self):
        assert Dimensions.from_json({'width': '50', 'height': 20}) == Dimensions(50.0, 20.0)
        with pytest.raises(InvalidSettingsError):
            Dimensions.from_json({'width': 50})
        with pytest.raises(InvalidSettingsError):
            Dimensions.from_json([50, 20])
