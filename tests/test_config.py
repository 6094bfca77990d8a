"""Tests for render settings and JSON scene files."""

import json
import logging

import pytest


class TestRenderSettings:
    """Tests for RenderSettings."""

    def test_defaults(self):
        """Test the default render settings."""
        from pathtracer.config import RenderSettings

        settings = RenderSettings()
        assert settings.image_width == 400
        assert settings.image_height == 225
        assert settings.samples_per_pixel == 100
        assert settings.max_depth == 50
        assert settings.seed == 0
        settings.validate()

    def test_height_truncates(self):
        """Test that the height is the truncated width / aspect ratio."""
        from pathtracer.config import RenderSettings

        assert RenderSettings(image_width=1200, aspect_ratio=3.0 / 2.0).image_height == 800
        assert RenderSettings(image_width=100, aspect_ratio=3.0).image_height == 33

    @pytest.mark.parametrize(
        "kwargs,match",
        [
            ({"samples_per_pixel": 0}, "samples_per_pixel"),
            ({"max_depth": 0}, "max_depth"),
            ({"aspect_ratio": 0.0}, "aspect_ratio"),
            ({"aspect_ratio": -1.0}, "aspect_ratio"),
            ({"image_width": 1}, "at least 2x2"),
            ({"image_width": 10, "aspect_ratio": 8.0}, "at least 2x2"),
            ({"image_width": 4096}, "exceed"),
            ({"image_width": 100, "aspect_ratio": 0.01}, "exceed"),
        ],
    )
    def test_validate(self, kwargs, match):
        """Test that invalid settings are rejected."""
        from pathtracer.config import RenderSettings

        with pytest.raises(ValueError, match=match):
            RenderSettings(**kwargs).validate()


class TestSettingsFromDict:
    """Tests for settings_from_dict."""

    def test_partial_dict_keeps_defaults(self):
        """Test that missing keys keep their defaults."""
        from pathtracer.config import settings_from_dict

        settings = settings_from_dict({"image_width": 200, "seed": "7"})
        assert settings.image_width == 200
        assert settings.seed == 7
        assert settings.samples_per_pixel == 100

    def test_unknown_key_warns(self, caplog):
        """Test that unknown keys are ignored with a warning."""
        from pathtracer.config import settings_from_dict

        with caplog.at_level(logging.WARNING, logger="pathtracer.config"):
            settings = settings_from_dict({"exposure": 2.0})
        assert settings.image_width == 400
        assert any("exposure" in message for message in caplog.messages)

    def test_bad_value(self):
        """Test that unparseable values are rejected."""
        from pathtracer.config import settings_from_dict

        with pytest.raises(ValueError, match="render.max_depth"):
            settings_from_dict({"max_depth": "deep"})


class TestCameraDict:
    """Tests for camera_from_dict and camera_to_dict."""

    def test_defaults(self):
        """Test the default camera."""
        from pathtracer.config import camera_from_dict

        camera = camera_from_dict({}, aspect_ratio=2.0)
        assert camera.lookfrom == (0.0, 0.0, 0.0)
        assert camera.lookat == (0.0, 0.0, -1.0)
        assert camera.vup == (0.0, 1.0, 0.0)
        assert camera.vfov == 90.0
        assert camera.aspect_ratio == 2.0
        assert camera.aperture == 0.0
        assert camera.focus_dist == 1.0

    def test_round_trip(self):
        """Test that exported cameras load back unchanged."""
        from pathtracer.camera.thin_lens import Camera
        from pathtracer.config import camera_from_dict, camera_to_dict

        camera = Camera(
            lookfrom=(13.0, 2.0, 3.0),
            lookat=(0.0, 0.0, 0.0),
            vup=(0.0, 1.0, 0.0),
            vfov=20.0,
            aspect_ratio=1.5,
            aperture=0.1,
            focus_dist=10.0,
        )
        data = camera_to_dict(camera)
        assert "aspect_ratio" not in data
        assert data["lookfrom"] == [13.0, 2.0, 3.0]
        assert camera_from_dict(data, aspect_ratio=1.5) == camera

    def test_bad_vector(self):
        """Test that malformed vectors are rejected."""
        from pathtracer.config import camera_from_dict

        with pytest.raises(ValueError, match="lookfrom"):
            camera_from_dict({"lookfrom": [1.0, 2.0]}, aspect_ratio=1.0)
        with pytest.raises(ValueError):
            camera_from_dict({"vfov": "wide"}, aspect_ratio=1.0)


class TestSceneFile:
    """Tests for loading and saving JSON scene files."""

    def test_save_and_load(self, tmp_path):
        """Test that a saved scene file reproduces the scene."""
        from pathtracer.config import RenderSettings, load_scene_file, save_scene_file
        from pathtracer.scene.manager import MaterialType, SceneManager
        from pathtracer.scene.presets import create_material_showcase_scene

        scene, camera = create_material_showcase_scene(aspect_ratio=2.0)
        settings = RenderSettings(image_width=64, aspect_ratio=2.0, samples_per_pixel=8, seed=5)
        path = tmp_path / "scene.json"
        save_scene_file(path, scene, camera, settings)

        data = json.loads(path.read_text())
        assert set(data) == {"render", "camera", "materials", "spheres"}

        loaded = SceneManager()
        loaded_camera, loaded_settings = load_scene_file(path, loaded)

        assert loaded_settings == settings
        assert loaded_camera == camera
        assert loaded.get_sphere_count() == 5
        assert loaded.get_material_count() == 4
        assert loaded.get_material_type_python(2) == MaterialType.DIELECTRIC
        assert loaded.spheres[3].radius == pytest.approx(-0.45)

    def test_minimal_file(self, tmp_path):
        """Test that missing sections fall back to defaults."""
        from pathtracer.config import load_scene_file
        from pathtracer.scene.manager import SceneManager

        path = tmp_path / "scene.json"
        path.write_text(
            json.dumps(
                {
                    "materials": [{"type": "lambertian", "albedo": [0.5, 0.5, 0.5]}],
                    "spheres": [{"center": [0, 0, -1], "radius": 0.5, "material_id": 0}],
                }
            )
        )

        scene = SceneManager()
        camera, settings = load_scene_file(path, scene)
        assert settings.image_width == 400
        assert camera.aspect_ratio == settings.aspect_ratio
        assert scene.get_sphere_count() == 1

    def test_malformed_json(self, tmp_path):
        """Test that invalid JSON raises ValueError."""
        from pathtracer.config import load_scene_file
        from pathtracer.scene.manager import SceneManager

        path = tmp_path / "scene.json"
        path.write_text("{not json")

        with pytest.raises(ValueError, match="not valid JSON"):
            load_scene_file(path, SceneManager())

    def test_not_an_object(self, tmp_path):
        """Test that a top-level array is rejected."""
        from pathtracer.config import load_scene_file
        from pathtracer.scene.manager import SceneManager

        path = tmp_path / "scene.json"
        path.write_text("[1, 2, 3]")

        with pytest.raises(ValueError, match="JSON object"):
            load_scene_file(path, SceneManager())

    def test_unknown_material_type(self, tmp_path):
        """Test that unknown material types are rejected."""
        from pathtracer.config import load_scene_file
        from pathtracer.scene.manager import SceneManager

        path = tmp_path / "scene.json"
        path.write_text(json.dumps({"materials": [{"type": "emissive"}]}))

        with pytest.raises(ValueError, match="Unknown material type"):
            load_scene_file(path, SceneManager())

    def test_missing_file(self, tmp_path):
        """Test that a missing file raises OSError."""
        from pathtracer.config import load_scene_file
        from pathtracer.scene.manager import SceneManager

        with pytest.raises(OSError):
            load_scene_file(tmp_path / "missing.json", SceneManager())


class TestMalformedSceneFile:
    """Tests for scene files with sections or entries of the wrong shape."""

    @pytest.mark.parametrize(
        "data,match",
        [
            ({"materials": [{"type": "metal", "fuzz": None}]}, r"materials\[0\].*fuzz"),
            ({"materials": [{"type": "dielectric", "ir": [1.5]}]}, r"materials\[0\].*ir"),
            ({"materials": ["lambertian"]}, r"materials\[0\] must be an object"),
            ({"materials": {"type": "lambertian"}}, "materials must be a list"),
            (
                {"materials": [{"type": "lambertian"}], "spheres": [[0, 0, 0]]},
                r"spheres\[0\] must be an object",
            ),
            (
                {"materials": [{"type": "lambertian"}], "spheres": [{"radius": None}]},
                r"spheres\[0\].*radius",
            ),
            (
                {"materials": [{"type": "lambertian"}], "spheres": [{"material_id": "0"}]},
                r"spheres\[0\].*material_id",
            ),
            ({"spheres": "none"}, "spheres must be a list"),
            ({"render": [400]}, "render section"),
            ({"render": {"image_width": None}}, "render.image_width"),
            ({"camera": "default"}, "camera section"),
            ({"camera": {"vfov": None}}, "camera"),
        ],
    )
    def test_rejected_with_value_error(self, tmp_path, data, match):
        """Test that wrongly shaped sections raise ValueError, never TypeError."""
        from pathtracer.config import load_scene_file
        from pathtracer.scene.manager import SceneManager

        path = tmp_path / "scene.json"
        path.write_text(json.dumps(data))

        with pytest.raises(ValueError, match=match):
            load_scene_file(path, SceneManager())

    def test_failed_load_leaves_scene_empty(self, tmp_path):
        """Test that a bad entry late in the file does not leave a partial scene."""
        from pathtracer.config import load_scene_file
        from pathtracer.scene.presets import create_basic_scene

        scene, _ = create_basic_scene()
        assert scene.get_sphere_count() == 2

        path = tmp_path / "scene.json"
        path.write_text(
            json.dumps(
                {
                    "materials": [{"type": "lambertian", "albedo": [0.5, 0.5, 0.5]}],
                    "spheres": [
                        {"center": [0, 0, -1], "radius": 0.5, "material_id": 0},
                        {"center": [0, 0, -2], "radius": 0.5, "material_id": 4},
                    ],
                }
            )
        )

        with pytest.raises(ValueError, match=r"spheres\[1\].*material_id"):
            load_scene_file(path, scene)

        assert scene.get_sphere_count() == 0
        assert scene.get_material_count() == 0
        assert scene.spheres == []
        assert scene.materials == []

    def test_failed_section_check_leaves_scene_empty(self, tmp_path):
        """Test that a rejected render section also clears the target scene."""
        from pathtracer.config import load_scene_file
        from pathtracer.scene.presets import create_basic_scene

        scene, _ = create_basic_scene()
        path = tmp_path / "scene.json"
        path.write_text(json.dumps({"render": "fast"}))

        with pytest.raises(ValueError):
            load_scene_file(path, scene)

        assert scene.get_sphere_count() == 0
        assert scene.get_material_count() == 0
