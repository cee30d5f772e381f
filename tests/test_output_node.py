"""
Tests for Output Node.

Tests cover:
- Output node configuration
- Tag replacement ({STEM}, {EXT})
- Path validation and base directory restriction
- File saving and overwrite protection
- Executor function
"""

import tempfile
import unittest
from pathlib import Path

from CA_Libs.ImageEditingLib.cartoon_filter import stylize
from CA_Libs.NodesLib.output_node import (
    OutputNodeConfig,
    OutputNodeHandler,
    create_output_node,
    execute_output_node,
    extension_for_format,
)

from image_factories import make_noise


class TestOutputNodeConfig(unittest.TestCase):
    """Test OutputNodeConfig dataclass."""

    def test_defaults(self):
        config = OutputNodeConfig()

        self.assertEqual(config.output_path, "cartoon_{STEM}.{EXT}")
        self.assertTrue(config.create_directories)
        self.assertFalse(config.overwrite)
        self.assertIsNone(config.base_directory)

    def test_from_dict_ignores_unknown(self):
        config = OutputNodeConfig.from_dict({"id": "o", "output_path": "a.png", "bogus": 1})
        self.assertEqual(config.output_path, "a.png")

    def test_extension_for_format(self):
        self.assertEqual(extension_for_format("PNG"), "png")
        self.assertEqual(extension_for_format("tiff"), "tif")
        self.assertEqual(extension_for_format("WEBP"), "webp")


class TestOutputNodeHandler(unittest.TestCase):
    """Test filename resolution and saving."""

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.temp_path = Path(self.temp_dir.name).resolve()
        self.result = stylize(make_noise(12, 8))

    def tearDown(self):
        self.temp_dir.cleanup()

    def test_tag_substitution(self):
        config = OutputNodeConfig(output_path=str(self.temp_path / "toon_{STEM}.{EXT}"), stem="ada")
        path = OutputNodeHandler(config).resolve_filename("PNG")
        self.assertEqual(path, self.temp_path / "toon_ada.png")

    def test_save_writes_encoded_bytes(self):
        config = OutputNodeConfig(output_path=str(self.temp_path / "out" / "{STEM}.{EXT}"))
        path = OutputNodeHandler(config).save(self.result)

        self.assertEqual(path, self.temp_path / "out" / "avatar.png")
        self.assertEqual(path.read_bytes(), self.result.encoded)

    def test_refuses_overwrite(self):
        config = OutputNodeConfig(output_path=str(self.temp_path / "a.png"))
        handler = OutputNodeHandler(config)
        handler.save(self.result)

        with self.assertRaises(ValueError):
            handler.save(self.result)

    def test_overwrite_allowed(self):
        config = OutputNodeConfig(output_path=str(self.temp_path / "a.png"), overwrite=True)
        handler = OutputNodeHandler(config)
        handler.save(self.result)
        handler.save(self.result)

    def test_no_directory_creation(self):
        config = OutputNodeConfig(
            output_path=str(self.temp_path / "missing" / "a.png"),
            create_directories=False,
        )
        with self.assertRaises(OSError):
            OutputNodeHandler(config).save(self.result)

    def test_rejects_parent_references(self):
        config = OutputNodeConfig(output_path="../escape.png")
        with self.assertRaises(ValueError):
            OutputNodeHandler(config).resolve_filename("PNG")

    def test_relative_path_resolves_inside_base(self):
        config = OutputNodeConfig(output_path="avatars/a.png", base_directory=str(self.temp_path))
        path = OutputNodeHandler(config).resolve_filename("PNG")
        self.assertEqual(path, self.temp_path / "avatars" / "a.png")

    def test_absolute_path_outside_base_rejected(self):
        with tempfile.TemporaryDirectory() as other:
            config = OutputNodeConfig(
                output_path=str(Path(other) / "a.png"),
                base_directory=str(self.temp_path),
            )
            with self.assertRaises(ValueError):
                OutputNodeHandler(config).resolve_filename("PNG")

    def test_relative_base_directory_rejected(self):
        with self.assertRaises(ValueError):
            OutputNodeHandler(OutputNodeConfig(base_directory="relative/dir"))


class TestOutputExecutor(unittest.TestCase):
    """Test execute_output_node."""

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.temp_path = Path(self.temp_dir.name).resolve()

    def tearDown(self):
        self.temp_dir.cleanup()

    def test_executes(self):
        result = stylize(make_noise(6, 6))
        node = create_output_node("out", str(self.temp_path / "{STEM}.{EXT}"), stem="lincoln")

        path = execute_output_node(node, [result])

        self.assertEqual(path.name, "lincoln.png")
        self.assertTrue(path.exists())

    def test_requires_input(self):
        with self.assertRaises(ValueError):
            execute_output_node(create_output_node("out", "a.png"), [])

    def test_rejects_non_stylized_input(self):
        with self.assertRaises(TypeError):
            execute_output_node(create_output_node("out", "a.png"), [make_noise(2, 2)])
