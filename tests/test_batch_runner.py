"""
Tests for avatar chain execution and batch conversion.

Tests cover:
- Chain construction
- Sequential chain execution and error wrapping
- Batch conversion with and without threading
- Failure recording and fail-fast mode
"""

import tempfile
import unittest
from pathlib import Path

from PIL import Image

from CA_Libs.errors import InvalidOptions, NodeExecutionError
from CA_Libs.ImageEditingLib.cartoon_filter import CartoonFilterOptions, stylize
from CA_Libs.PipelineLib.batch_runner import (
    BatchItemResult,
    build_avatar_chain,
    cartoonize_batch,
    execute_chain,
)
from CA_Libs.PipelineLib.node_executors import NodeExecutorRegistry


class TestBuildAvatarChain(unittest.TestCase):
    """Test build_avatar_chain."""

    def test_chain_shape(self):
        chain = build_avatar_chain("in/portrait.jpg", "out", CartoonFilterOptions(levels=4))

        self.assertEqual([n["type"] for n in chain], ["Image Import", "Cartoonize", "Output"])
        self.assertEqual([n["id"] for n in chain],
                         ["portrait-import", "portrait-cartoonize", "portrait-output"])
        self.assertEqual(chain[0]["file_path"], str(Path("in/portrait.jpg")))
        self.assertEqual(chain[1]["levels"], 4)
        self.assertEqual(chain[2]["output_path"], str(Path("out") / "cartoon_{STEM}.{EXT}"))
        self.assertEqual(chain[2]["stem"], "portrait")
        self.assertFalse(chain[2]["overwrite"])

    def test_default_options(self):
        chain = build_avatar_chain("a.png", "out")
        self.assertEqual(chain[1]["levels"], 8)
        self.assertEqual(chain[1]["max_dimension"], 512)


class TestExecuteChain(unittest.TestCase):
    """Test execute_chain with a private registry."""

    def setUp(self):
        self.registry = NodeExecutorRegistry()
        self.registry.register("Source", lambda node, inputs: node["value"])
        self.registry.register("Double", lambda node, inputs: inputs[0] * 2)

    def test_feeds_results_forward(self):
        nodes = [
            {"id": "s", "type": "Source", "value": 3},
            {"id": "d1", "type": "Double"},
            {"id": "d2", "type": "Double"},
        ]
        self.assertEqual(execute_chain(nodes, self.registry), [3, 6, 12])

    def test_source_gets_no_inputs(self):
        seen = []
        self.registry.register("Recorder", lambda node, inputs: seen.append(list(inputs)))

        execute_chain([{"id": "r", "type": "Recorder"}], self.registry)

        self.assertEqual(seen, [[]])

    def test_wraps_executor_errors(self):
        def fail(node, inputs):
            raise ValueError("boom")

        self.registry.register("Fail", fail)

        with self.assertRaises(NodeExecutionError) as ctx:
            execute_chain([{"id": "s", "type": "Source", "value": 1},
                           {"id": "bad", "type": "Fail"}], self.registry)

        self.assertEqual(ctx.exception.node_id, "bad")
        self.assertIn("boom", str(ctx.exception))
        self.assertIsInstance(ctx.exception.__cause__, ValueError)

    def test_unknown_type(self):
        with self.assertRaises(KeyError):
            execute_chain([{"id": "x", "type": "Missing"}], self.registry)


class TestCartoonizeBatch(unittest.TestCase):
    """Test cartoonize_batch end to end."""

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.temp_path = Path(self.temp_dir.name)
        self.output_dir = self.temp_path / "avatars"

        self.inputs = []
        for name, color in (("alice", (200, 40, 40)), ("bob", (40, 200, 40)), ("carol", (40, 40, 200))):
            path = self.temp_path / f"{name}.png"
            Image.new("RGB", (24, 16), color).save(path)
            self.inputs.append(path)

    def tearDown(self):
        self.temp_dir.cleanup()

    def test_sequential(self):
        results = cartoonize_batch(self.inputs, self.output_dir, use_threading=False)

        self.assertEqual([r.input_path for r in results], self.inputs)
        for result in results:
            self.assertTrue(result.ok)
            self.assertEqual(result.output_path.name, f"cartoon_{result.input_path.stem}.png")
            self.assertTrue(result.output_path.exists())

    def test_threaded_matches_sequential(self):
        threaded = cartoonize_batch(self.inputs, self.temp_path / "t", max_workers=3)
        sequential = cartoonize_batch(self.inputs, self.temp_path / "s", use_threading=False)

        self.assertEqual([r.input_path for r in threaded], self.inputs)
        for a, b in zip(threaded, sequential):
            self.assertEqual(a.output_path.read_bytes(), b.output_path.read_bytes())

    def test_output_matches_stylize(self):
        results = cartoonize_batch(self.inputs[:1], self.output_dir, {"levels": 4})
        expected = stylize(self.inputs[0], CartoonFilterOptions(levels=4))
        self.assertEqual(results[0].output_path.read_bytes(), expected.encoded)

    def test_failures_recorded(self):
        missing = self.temp_path / "ghost.png"
        inputs = [self.inputs[0], missing, self.inputs[1]]

        results = cartoonize_batch(inputs, self.output_dir, max_workers=2)

        self.assertEqual([r.ok for r in results], [True, False, True])
        self.assertEqual(results[1].input_path, missing)
        self.assertIsNone(results[1].output_path)
        self.assertIn("ghost-import", results[1].error)

    def test_fail_fast(self):
        with self.assertRaises(NodeExecutionError):
            cartoonize_batch([self.temp_path / "ghost.png"], self.output_dir, fail_fast=True)

    def test_fail_fast_threaded_stops_later_files(self):
        inputs = [self.temp_path / "ghost.png"]
        for i in range(6):
            path = self.temp_path / f"extra{i}.png"
            Image.new("RGB", (8, 8), (i * 40, 0, 0)).save(path)
            inputs.append(path)

        with self.assertRaises(NodeExecutionError):
            cartoonize_batch(inputs, self.output_dir, max_workers=1, fail_fast=True)

        written = list(self.output_dir.glob("*")) if self.output_dir.exists() else []
        self.assertEqual(written, [])

    def test_threaded_window_converts_every_file(self):
        results = cartoonize_batch(self.inputs, self.output_dir, max_workers=2)
        self.assertEqual([r.input_path for r in results], self.inputs)
        self.assertTrue(all(r.ok for r in results))

    def test_existing_output_not_overwritten(self):
        cartoonize_batch(self.inputs[:1], self.output_dir)
        results = cartoonize_batch(self.inputs[:1], self.output_dir)
        self.assertFalse(results[0].ok)

        results = cartoonize_batch(self.inputs[:1], self.output_dir, overwrite=True)
        self.assertTrue(results[0].ok)

    def test_invalid_options_raise_before_work(self):
        with self.assertRaises(InvalidOptions):
            cartoonize_batch(self.inputs, self.output_dir, {"levels": 0})
        self.assertFalse(self.output_dir.exists())

    def test_empty_batch(self):
        self.assertEqual(cartoonize_batch([], self.output_dir), [])


class TestBatchItemResult(unittest.TestCase):

    def test_ok(self):
        self.assertTrue(BatchItemResult(Path("a.png"), Path("b.png")).ok)
        self.assertFalse(BatchItemResult(Path("a.png"), error="bad").ok)
