"""Unit tests for the scene manager.

Tests cover:
- Unified material IDs across material types
- GPU-side material type lookup
- Adding spheres with and without new materials
- Validation of material IDs
- Serialization to and from configs and dicts
"""

import pytest
import taichi as ti


class TestMaterials:
    def test_ids_are_unified_across_types(self):
        from pathtracer.scene.manager import MaterialType, SceneManager

        scene = SceneManager()
        a = scene.add_lambertian_material((0.5, 0.5, 0.5))
        b = scene.add_metal_material((0.8, 0.8, 0.8), fuzz=0.1)
        c = scene.add_dielectric_material(1.5)
        d = scene.add_lambertian_material((0.1, 0.2, 0.3))

        assert (a, b, c, d) == (0, 1, 2, 3)
        assert scene.get_material_count() == 4
        assert scene.get_material_type_python(b) == MaterialType.METAL
        assert scene.get_material_info(d).type_index == 1
        assert scene.get_material_info(99) is None
        assert scene.get_material_type_python(-1) is None

    def test_gpu_lookup(self):
        from pathtracer.scene.manager import (
            MaterialType,
            SceneManager,
            get_material_type,
            get_material_type_index,
        )

        scene = SceneManager()
        scene.add_dielectric_material(1.5)
        scene.add_metal_material((0.5, 0.5, 0.5))
        scene.add_metal_material((0.6, 0.6, 0.6))

        types = ti.field(dtype=ti.i32, shape=4)
        indices = ti.field(dtype=ti.i32, shape=4)

        @ti.kernel
        def test_kernel():
            for i in range(4):
                types[i] = get_material_type(i)
                indices[i] = get_material_type_index(i)

        test_kernel()
        assert types[0] == MaterialType.DIELECTRIC
        assert types[2] == MaterialType.METAL
        assert indices[2] == 1
        # Out of range IDs report -1
        assert types[3] == -1
        assert indices[3] == -1

    def test_validation_propagates(self):
        from pathtracer.scene.manager import SceneManager

        scene = SceneManager()
        with pytest.raises(ValueError):
            scene.add_lambertian_material((1.5, 0.0, 0.0))
        with pytest.raises(ValueError):
            scene.add_metal_material((0.5, 0.5, 0.5), fuzz=2.0)
        with pytest.raises(ValueError):
            scene.add_dielectric_material(0.0)
        assert scene.get_material_count() == 0

    def test_new_manager_clears_scene(self):
        from pathtracer.scene.manager import SceneManager

        first = SceneManager()
        first.add_lambertian_sphere((0, 0, -1), 0.5, (0.5, 0.5, 0.5))
        second = SceneManager()
        assert second.get_sphere_count() == 0
        assert second.get_material_count() == 0


class TestSpheres:
    def test_add_sphere_with_material(self):
        from pathtracer.scene.manager import SceneManager

        scene = SceneManager()
        mat = scene.add_lambertian_material((0.5, 0.5, 0.5))
        idx = scene.add_sphere((0.0, 0.0, -1.0), 0.5, mat)
        assert idx == 0
        assert scene.get_sphere_count() == 1
        assert scene.spheres[0].center == (0.0, 0.0, -1.0)

    def test_invalid_material_id(self):
        from pathtracer.scene.manager import SceneManager

        scene = SceneManager()
        with pytest.raises(ValueError):
            scene.add_sphere((0, 0, 0), 1.0, 0)
        scene.add_lambertian_material((0.5, 0.5, 0.5))
        with pytest.raises(ValueError):
            scene.add_sphere((0, 0, 0), 1.0, 1)

    def test_zero_radius_rejected(self):
        from pathtracer.scene.manager import SceneManager

        scene = SceneManager()
        mat = scene.add_lambertian_material((0.5, 0.5, 0.5))
        with pytest.raises(ValueError):
            scene.add_sphere((0, 0, 0), 0.0, mat)

    def test_convenience_methods(self):
        from pathtracer.scene.manager import MaterialType, SceneManager

        scene = SceneManager()
        s0, m0 = scene.add_lambertian_sphere((0, -100.5, -1), 100.0, (0.8, 0.8, 0.0))
        s1, m1 = scene.add_metal_sphere((1, 0, -1), 0.5, (0.8, 0.6, 0.2), fuzz=0.3)
        s2, m2 = scene.add_dielectric_sphere((-1, 0, -1), -0.45, 1.5)

        assert (s0, s1, s2) == (0, 1, 2)
        assert scene.get_material_type_python(m1) == MaterialType.METAL
        assert scene.get_material_type_python(m2) == MaterialType.DIELECTRIC
        assert scene.spheres[2].radius == -0.45

    def test_clear(self):
        from pathtracer.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_lambertian_sphere((0, 0, -1), 0.5, (0.5, 0.5, 0.5))
        scene.clear()
        assert scene.get_sphere_count() == 0
        assert scene.get_material_count() == 0
        assert scene.materials == []

    def test_capacity(self):
        from pathtracer.scene.intersection import MAX_SPHERES
        from pathtracer.scene.manager import MAX_MATERIALS, SceneManager

        assert SceneManager.get_max_spheres() == MAX_SPHERES
        assert SceneManager.get_max_materials() == MAX_MATERIALS


class TestSerialization:
    def _build(self):
        from pathtracer.scene.manager import SceneManager

        scene = SceneManager()
        ground = scene.add_lambertian_material((0.8, 0.8, 0.0))
        gold = scene.add_metal_material((0.8, 0.6, 0.2), fuzz=0.25)
        glass = scene.add_dielectric_material(1.5)
        scene.add_sphere((0.0, -100.5, -1.0), 100.0, ground)
        scene.add_sphere((1.0, 0.0, -1.0), 0.5, gold)
        scene.add_sphere((-1.0, 0.0, -1.0), -0.45, glass)
        return scene

    def test_to_dict(self):
        data = self._build().to_dict()
        assert data["materials"][0] == {"type": "lambertian", "albedo": [0.8, 0.8, 0.0]}
        assert data["materials"][1]["fuzz"] == 0.25
        assert data["materials"][2] == {"type": "dielectric", "refractive_index": 1.5}
        assert data["spheres"][2] == {
            "center": [-1.0, 0.0, -1.0],
            "radius": -0.45,
            "material_id": 2,
        }

    def test_dict_round_trip(self):
        from pathtracer.scene.manager import SceneManager

        data = self._build().to_dict()
        restored = SceneManager()
        restored.from_dict(data)
        assert restored.get_sphere_count() == 3
        assert restored.get_material_count() == 3
        assert restored.to_dict() == data

    def test_config_round_trip(self):
        from pathtracer.scene.manager import SceneManager

        config = self._build().to_config()
        restored = SceneManager()
        restored.from_config(config)
        assert restored.to_config() == config

    def test_unknown_material_type(self):
        from pathtracer.scene.manager import SceneManager

        scene = SceneManager()
        with pytest.raises(ValueError):
            scene.from_dict({"materials": [{"type": "phong"}], "spheres": []})

    def test_missing_radius(self):
        from pathtracer.scene.manager import SceneManager

        scene = SceneManager()
        with pytest.raises(ValueError):
            scene.from_dict(
                {
                    "materials": [{"type": "lambertian", "albedo": [0.5, 0.5, 0.5]}],
                    "spheres": [{"center": [0, 0, 0], "material_id": 0}],
                }
            )

    def test_bad_vector_length(self):
        from pathtracer.scene.manager import SceneManager

        scene = SceneManager()
        with pytest.raises(ValueError):
            scene.from_dict({"materials": [{"type": "lambertian", "albedo": [0.5, 0.5]}]})
