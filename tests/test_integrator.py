"""Unit tests for the path tracing integrator.

Tests cover:
- Render target setup and validation
- Sky gradient for escaping rays
- Depth limits (max_depth 0 gives black)
- Energy: a white diffuse world never exceeds the sky
- Sample sanitizing (NaN, inf and negative values)
- Material dispatch for all material types
- Reproducibility from the seed, independent of batching
- Image readout orientation and clamping
"""

import math

import numpy as np
import pytest
import taichi as ti


class TestRenderTarget:
    """Tests for render target setup."""

    def test_setup_and_dimensions(self):
        from pathtracer.core.integrator import get_image_dimensions, setup_render_target

        setup_render_target(64, 32)
        assert get_image_dimensions() == (64, 32)

    @pytest.mark.parametrize("size", [(0, 10), (10, 0), (4096, 10), (10, 4096)])
    def test_invalid_dimensions_rejected(self, size):
        from pathtracer.core.integrator import setup_render_target

        with pytest.raises(ValueError):
            setup_render_target(*size)

    def test_negative_sample_count_rejected(self, default_camera):
        from pathtracer.core.integrator import render_image, setup_render_target

        setup_render_target(4, 4)
        with pytest.raises(ValueError):
            render_image(num_samples=-1)
        with pytest.raises(ValueError):
            render_image(num_samples=1, max_depth=-1)

    def test_clear_resets_samples(self, default_camera):
        from pathtracer.core.integrator import (
            clear_render_target,
            get_total_samples,
            render_image,
            setup_render_target,
        )

        setup_render_target(4, 4)
        render_image(num_samples=3)
        assert get_total_samples() == 3
        clear_render_target()
        assert get_total_samples() == 0


class TestSky:
    """Tests for rays that escape the scene."""

    def test_sky_color_endpoints(self):
        from pathtracer.core.integrator import sky_color
        from pathtracer.core.ray import vec3

        result = ti.Vector.field(3, dtype=ti.f32, shape=3)

        @ti.kernel
        def test_kernel():
            result[0] = sky_color(vec3(0.0, -1.0, 0.0))
            result[1] = sky_color(vec3(0.0, 5.0, 0.0))
            result[2] = sky_color(vec3(1.0, 0.0, 0.0))

        test_kernel()
        colors = result.to_numpy()
        np.testing.assert_allclose(colors[0], [1.0, 1.0, 1.0], atol=1e-6)
        np.testing.assert_allclose(colors[1], [0.5, 0.7, 1.0], atol=1e-6)
        np.testing.assert_allclose(colors[2], [0.75, 0.85, 1.0], atol=1e-6)

    def test_empty_scene_renders_sky(self, default_camera):
        """With nothing to hit, the center pixel shows the horizon color."""
        from pathtracer.core.integrator import render_sample, setup_render_target

        setup_render_target(9, 9)
        color = render_sample(4, 4, sample_index=0, max_depth=5, seed=1)
        # Center ray looks along -z with small jitter: y close to 0
        assert color[2] == pytest.approx(1.0, abs=1e-6)
        assert 0.7 < color[0] < 0.8
        assert color[0] < color[1] < color[2]


    def test_empty_scene_pixels_match_their_sky(self, default_camera):
        """2x2, 1 spp, depth 1: each pixel is the sky seen by its own jittered ray."""
        from pathtracer.camera.thin_lens import get_ray_jittered
        from pathtracer.core.integrator import (
            get_image,
            pixel_stream,
            render_image,
            setup_render_target,
            sky_color,
        )

        seed = 11
        setup_render_target(2, 2)
        render_image(num_samples=1, max_depth=1, seed=seed)
        rendered = get_image().to_numpy()[:2, :2, :]

        expected = ti.Vector.field(3, dtype=ti.f32, shape=(2, 2))

        @ti.kernel
        def expected_kernel(seed: ti.u32):
            for i, j in ti.ndrange(2, 2):
                state = pixel_stream(seed, i, j, 2, 0)
                ray, state = get_ray_jittered(i, j, 2, 2, state)
                expected[i, j] = sky_color(ray.direction)

        expected_kernel(seed)
        assert np.allclose(rendered, expected.to_numpy(), atol=1e-6)
        # Pixels differ because their rays differ
        assert not np.allclose(rendered[0, 0], rendered[1, 1])


class TestDepth:
    """Tests for depth limiting."""

    def test_depth_zero_is_black(self, default_camera):
        from pathtracer.core.integrator import render_sample, setup_render_target

        setup_render_target(4, 4)
        assert render_sample(2, 2, max_depth=0) == (0.0, 0.0, 0.0)

    def test_enclosed_camera_exhausts_depth(self, default_camera):
        """A perfect white mirror around the camera never lets a path escape."""
        from pathtracer.core.integrator import render_sample, setup_render_target
        from pathtracer.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_metal_sphere((0.0, 0.0, 0.0), 10.0, albedo=(1.0, 1.0, 1.0), fuzz=0.0)

        setup_render_target(4, 4)
        for k in range(4):
            assert render_sample(1, 2, sample_index=k, max_depth=8) == (0.0, 0.0, 0.0)

    def test_absorption_gives_black(self, default_camera):
        """A black diffuse sphere filling the view returns black."""
        from pathtracer.core.integrator import render_sample, setup_render_target
        from pathtracer.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_lambertian_sphere((0.0, 0.0, -3.0), 2.5, albedo=(0.0, 0.0, 0.0))

        setup_render_target(4, 4)
        assert render_sample(2, 2, max_depth=10) == (0.0, 0.0, 0.0)


class TestEnergy:
    def test_white_diffuse_bounded_by_sky(self, default_camera):
        """Albedo 1 can never brighten the sky; every pixel stays <= 1."""
        from pathtracer.core.integrator import (
            get_normalized_image_numpy,
            render_image,
            setup_render_target,
        )
        from pathtracer.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_lambertian_sphere((0.0, -100.5, -1.0), 100.0, albedo=(1.0, 1.0, 1.0))
        scene.add_lambertian_sphere((0.0, 0.0, -1.0), 0.5, albedo=(1.0, 1.0, 1.0))

        setup_render_target(8, 8)
        render_image(num_samples=4, max_depth=10, seed=3)
        image = get_normalized_image_numpy()
        assert image.max() <= 1.0
        assert image.min() >= 0.0
        assert image.max() > 0.0

    def test_diffuse_attenuates_sky(self, default_camera):
        """One bounce off a half-grey sphere halves the sky it then sees."""
        from pathtracer.core.integrator import render_sample, setup_render_target
        from pathtracer.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_lambertian_sphere((0.0, 0.0, -2.0), 0.5, albedo=(0.5, 0.5, 0.5))

        setup_render_target(9, 9)
        samples = np.array(
            [render_sample(4, 4, sample_index=k, seed=2) for k in range(32)]
        )
        # The sky is fully blue everywhere; red and green never exceed it
        np.testing.assert_allclose(samples[:, 2], 0.5, atol=1e-5)
        assert samples.max() <= 0.5 + 1e-5


class TestSanitize:
    def test_sanitize_sample(self):
        from pathtracer.core.integrator import sanitize_sample
        from pathtracer.core.ray import vec3

        result = ti.Vector.field(3, dtype=ti.f32, shape=2)

        @ti.kernel
        def test_kernel(nan: ti.f32, inf: ti.f32):
            result[0] = sanitize_sample(vec3(nan, inf, -0.5))
            result[1] = sanitize_sample(vec3(0.25, 0.5, 2.0))

        test_kernel(math.nan, math.inf)
        colors = result.to_numpy()
        assert tuple(colors[0]) == (0.0, 0.0, 0.0)
        np.testing.assert_allclose(colors[1], [0.25, 0.5, 2.0], atol=1e-6)


class TestMaterialDispatch:
    """Tests for scatter_material dispatch."""

    def test_dispatch_by_type(self):
        from pathtracer.core.integrator import scatter_material
        from pathtracer.core.ray import vec3
        from pathtracer.core.rng import seed_stream
        from pathtracer.geometry.sphere import Face
        from pathtracer.scene.manager import SceneManager

        scene = SceneManager()
        diffuse = scene.add_lambertian_material((0.2, 0.3, 0.4))
        metal = scene.add_metal_material((0.9, 0.8, 0.7), fuzz=0.0)
        glass = scene.add_dielectric_material(1.5)

        attenuation = ti.Vector.field(3, dtype=ti.f32, shape=4)
        direction = ti.Vector.field(3, dtype=ti.f32, shape=4)
        scattered = ti.field(dtype=ti.i32, shape=4)

        @ti.kernel
        def test_kernel(diffuse: ti.i32, metal: ti.i32, glass: ti.i32):
            normal = vec3(0.0, 1.0, 0.0)
            incident = vec3(0.0, -1.0, 0.0)
            ids = ti.Vector([diffuse, metal, glass, 99])
            for k in ti.static(range(4)):
                state = seed_stream(ti.u32(0), ti.u32(k), ti.u32(0))
                d, att, did, state = scatter_material(
                    ids[k], incident, normal, int(Face.OUTSIDE), state
                )
                attenuation[k] = att
                direction[k] = d
                scattered[k] = did

        test_kernel(diffuse, metal, glass)
        att = attenuation.to_numpy()
        dirs = direction.to_numpy()
        did = scattered.to_numpy()

        np.testing.assert_allclose(att[0], [0.2, 0.3, 0.4], atol=1e-6)
        assert did[0] == 1
        np.testing.assert_allclose(att[1], [0.9, 0.8, 0.7], atol=1e-6)
        np.testing.assert_allclose(dirs[1], [0.0, 1.0, 0.0], atol=1e-5)
        assert did[1] == 1
        np.testing.assert_allclose(att[2], [1.0, 1.0, 1.0], atol=1e-6)
        assert did[2] == 1
        # Unknown material IDs absorb
        assert did[3] == 0


class TestDeterminism:
    """Tests for reproducible rendering."""

    def _showcase(self):
        from pathtracer.camera.thin_lens import setup_camera
        from pathtracer.core.integrator import setup_render_target
        from pathtracer.scene.presets import create_material_showcase_scene

        _, camera = create_material_showcase_scene(aspect_ratio=2.0)
        setup_camera(camera)
        setup_render_target(16, 8)

    def test_same_seed_same_image(self):
        from pathtracer.core.integrator import (
            clear_render_target,
            get_normalized_image_numpy,
            render_image,
        )

        self._showcase()
        render_image(num_samples=2, max_depth=8, seed=42)
        first = get_normalized_image_numpy()

        clear_render_target()
        render_image(num_samples=2, max_depth=8, seed=42)
        second = get_normalized_image_numpy()

        assert np.array_equal(first, second)

    def test_different_seed_different_image(self):
        from pathtracer.core.integrator import (
            clear_render_target,
            get_normalized_image_numpy,
            render_image,
        )

        self._showcase()
        render_image(num_samples=2, max_depth=8, seed=1)
        first = get_normalized_image_numpy()

        clear_render_target()
        render_image(num_samples=2, max_depth=8, seed=2)
        second = get_normalized_image_numpy()

        assert not np.array_equal(first, second)

    def test_batching_does_not_change_result(self):
        from pathtracer.core.integrator import (
            clear_render_target,
            get_normalized_image_numpy,
            render_image,
        )

        self._showcase()
        render_image(num_samples=4, max_depth=8, seed=7)
        single = get_normalized_image_numpy()

        clear_render_target()
        for _ in range(4):
            render_image(num_samples=1, max_depth=8, seed=7)
        batched = get_normalized_image_numpy()

        np.testing.assert_allclose(single, batched, atol=1e-6)

    def test_render_sample_reproduces_accumulated_sample(self):
        """A single-sample render equals render_sample with sample_index 0."""
        from pathtracer.core.integrator import get_image, render_image, render_sample

        self._showcase()
        render_image(num_samples=1, max_depth=8, seed=5)
        buffer = get_image()
        for i, j in [(0, 0), (7, 4), (15, 7)]:
            expected = render_sample(i, j, sample_index=0, max_depth=8, seed=5)
            accumulated = tuple(float(c) for c in buffer[i, j])
            assert accumulated == pytest.approx(expected, abs=1e-5)


class TestImageReadout:
    def test_shape_and_dtype(self, default_camera):
        from pathtracer.core.integrator import (
            get_normalized_image_numpy,
            render_image,
            setup_render_target,
        )

        setup_render_target(12, 5)
        render_image(num_samples=1)
        image = get_normalized_image_numpy()
        assert image.shape == (5, 12, 3)
        assert image.dtype == np.float32

    def test_top_row_first(self, default_camera):
        """The sky is bluer at the top, so row 0 has less red than the last row."""
        from pathtracer.core.integrator import (
            get_normalized_image_numpy,
            render_image,
            setup_render_target,
        )

        setup_render_target(4, 8)
        render_image(num_samples=2, seed=1)
        image = get_normalized_image_numpy()
        assert image[0, :, 0].mean() < image[-1, :, 0].mean()

    def test_readout_before_setup_raises(self):
        from pathtracer.core import integrator

        integrator._render_target_initialized[None] = 0
        try:
            with pytest.raises(RuntimeError):
                integrator.get_normalized_image_numpy()
            with pytest.raises(RuntimeError):
                integrator.render_image(1)
        finally:
            integrator._render_target_initialized[None] = 1
