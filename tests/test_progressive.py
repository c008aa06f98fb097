"""Unit tests for the progressive renderer.

Tests cover:
- Construction, validation and settings
- Sample accumulation across calls
- Batched rendering with callbacks and the progress generator
- Reset and resize
- Image access (float, gamma, uint8) and saving
"""

import numpy as np
import pytest


class TestProgressiveRendererInit:
    def test_init(self, default_camera):
        from pathtracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(32, 16, max_depth=5, seed=3)
        assert renderer.width == 32
        assert renderer.height == 16
        assert renderer.max_depth == 5
        assert renderer.seed == 3
        assert renderer.sample_count == 0

    def test_invalid_dimensions(self):
        from pathtracer.core.progressive import ProgressiveRenderer

        with pytest.raises(ValueError):
            ProgressiveRenderer(0, 16)

    def test_negative_depth(self):
        from pathtracer.core.progressive import ProgressiveRenderer

        with pytest.raises(ValueError):
            ProgressiveRenderer(8, 8, max_depth=-1)

    def test_from_settings(self):
        from pathtracer.core.progressive import ProgressiveRenderer
        from pathtracer.core.settings import RenderSettings

        settings = RenderSettings(width=20, height=10, max_depth=7, seed=9)
        renderer = ProgressiveRenderer.from_settings(settings)
        assert (renderer.width, renderer.height) == (20, 10)
        assert renderer.max_depth == 7
        assert renderer.seed == 9

    def test_repr(self):
        from pathtracer.core.progressive import ProgressiveRenderer

        text = repr(ProgressiveRenderer(8, 4, seed=2))
        assert "width=8" in text
        assert "seed=2" in text


class TestProgressiveRendering:
    def test_samples_accumulate(self, default_camera):
        from pathtracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(8, 8, max_depth=4)
        renderer.render(3)
        assert renderer.sample_count == 3
        renderer.render(2)
        assert renderer.sample_count == 5

    def test_callback_receives_progress(self, default_camera):
        from pathtracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(8, 8, max_depth=4)
        calls = []
        renderer.render(7, batch_size=3, callback=lambda c, t: calls.append((c, t)))
        assert calls == [(3, 7), (6, 7), (7, 7)]

    def test_progressive_generator(self, default_camera):
        from pathtracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(8, 8, max_depth=4)
        renderer.render(2)
        progress = list(renderer.render_progressive(4, batch_size=2))
        assert progress == [(4, 6), (6, 6)]

    def test_zero_samples_is_noop(self, default_camera):
        from pathtracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(8, 8)
        calls = []
        renderer.render(0, callback=lambda c, t: calls.append((c, t)))
        assert calls == []
        assert renderer.sample_count == 0

    def test_invalid_batch_size(self, default_camera):
        from pathtracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(8, 8)
        with pytest.raises(ValueError):
            renderer.render(4, batch_size=0)

    def test_batch_size_does_not_change_image(self):
        from pathtracer.camera.thin_lens import setup_camera
        from pathtracer.core.progressive import ProgressiveRenderer
        from pathtracer.scene.presets import create_material_showcase_scene

        _, camera = create_material_showcase_scene(aspect_ratio=2.0)
        setup_camera(camera)

        renderer = ProgressiveRenderer(16, 8, max_depth=6, seed=11)
        renderer.render(6, batch_size=6)
        single = renderer.get_image_numpy()

        renderer.reset()
        renderer.render(6, batch_size=2)
        batched = renderer.get_image_numpy()

        np.testing.assert_allclose(single, batched, atol=1e-6)

    def test_reset(self, default_camera):
        from pathtracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(8, 8)
        renderer.render(2)
        renderer.reset()
        assert renderer.sample_count == 0
        assert renderer.get_image_numpy().max() == 0.0

    def test_resize(self, default_camera):
        from pathtracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(8, 8)
        renderer.render(1)
        renderer.resize(12, 6)
        assert (renderer.width, renderer.height) == (12, 6)
        assert renderer.sample_count == 0
        renderer.render(1)
        assert renderer.get_image_numpy().shape == (6, 12, 3)


class TestImageAccess:
    def test_gamma_brightens(self, default_camera):
        from pathtracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(8, 8)
        renderer.render(1)
        linear = renderer.get_image_numpy()
        encoded = renderer.get_image_numpy(gamma=2.0)
        np.testing.assert_allclose(encoded, np.sqrt(linear), atol=1e-6)

    def test_uint8(self, default_camera):
        from pathtracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(10, 5)
        renderer.render(1)
        pixels = renderer.get_image_uint8()
        assert pixels.dtype == np.uint8
        assert pixels.shape == (5, 10, 3)
        # Sky blue channel is 1.0 everywhere
        assert (pixels[:, :, 2] == 255).all()

    def test_get_image_returns_field(self, default_camera):
        from pathtracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(4, 4)
        assert renderer.get_image().shape[0] >= 4

    def test_save_ppm(self, default_camera, tmp_path):
        from pathtracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(6, 4)
        renderer.render(1)
        path = tmp_path / "out.ppm"
        renderer.save_image(path)
        data = path.read_bytes()
        assert data.startswith(b"P6 6 4 255 ")
        assert len(data) == len(b"P6 6 4 255 ") + 6 * 4 * 3
