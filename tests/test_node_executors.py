"""
Tests for Node Executors Registry.

Tests cover:
- Registry creation and basic operations
- Executor registration and lookup
- Error handling
- Singleton pattern and default executors
"""

import unittest

from CA_Libs.NodesLib.cartoonize_node import execute_cartoonize_node
from CA_Libs.PipelineLib.node_executors import (
    NodeExecutorRegistry,
    get_default_registry,
    register_default_executors,
)


def dummy_executor(node, inputs):
    return "dummy result"


class TestNodeExecutorRegistry(unittest.TestCase):
    """Test NodeExecutorRegistry basic functionality."""

    def setUp(self):
        """Create a fresh registry for each test."""
        self.registry = NodeExecutorRegistry()

    def test_registry_creation(self):
        self.assertEqual(self.registry.list_node_types(), [])

    def test_register_executor(self):
        self.registry.register("DummyNode", dummy_executor)

        self.assertIs(self.registry.get_executor("DummyNode"), dummy_executor)
        self.assertIs(self.registry.get_executor("  DummyNode  "), dummy_executor)
        self.assertEqual(self.registry.list_node_types(), ["DummyNode"])

    def test_register_strips_node_type(self):
        self.registry.register("  Padded ", dummy_executor)
        self.assertEqual(self.registry.list_node_types(), ["Padded"])

    def test_register_empty_node_type_raises_error(self):
        with self.assertRaises(ValueError):
            self.registry.register("   ", dummy_executor)

    def test_register_non_callable_raises_error(self):
        with self.assertRaises(ValueError):
            self.registry.register("Bad", "not callable")

    def test_register_duplicate_raises_error(self):
        self.registry.register("Dup", dummy_executor)
        with self.assertRaises(RuntimeError):
            self.registry.register("Dup", dummy_executor)

    def test_get_executor_unknown_raises_key_error(self):
        self.registry.register("Known", dummy_executor)
        with self.assertRaises(KeyError) as ctx:
            self.registry.get_executor("Unknown")
        self.assertIn("Known", str(ctx.exception))

    def test_list_is_sorted(self):
        for name in ("b", "c", "a"):
            self.registry.register(name, dummy_executor)
        self.assertEqual(self.registry.list_node_types(), ["a", "b", "c"])


class TestDefaultRegistry(unittest.TestCase):
    """Test the global registry and built-in executors."""

    def test_singleton(self):
        self.assertIs(get_default_registry(), get_default_registry())

    def test_default_node_types(self):
        registry = get_default_registry()
        self.assertEqual(registry.list_node_types(), ["Cartoonize", "Image Import", "Output"])

    def test_register_into_fresh_registry(self):
        registry = NodeExecutorRegistry()
        with self.assertLogs("CA_Libs.PipelineLib.node_executors", level="INFO"):
            register_default_executors(registry)

        self.assertEqual(len(registry.list_node_types()), 3)
        self.assertIs(registry.get_executor("Cartoonize"), execute_cartoonize_node)

    def test_defaults_cannot_be_registered_twice(self):
        registry = NodeExecutorRegistry()
        register_default_executors(registry)
        with self.assertRaises(RuntimeError):
            register_default_executors(registry)
