import dataclasses
import io
import logging
import unittest

from ..config import DEFAULT_CONFIG, TriangulationConfig, resolve_config
from ..geometry_core import EPSILON, MIN_VOLUME
from ..logging_utils import configure_logging, get_logger


class TestTriangulationConfig(unittest.TestCase):

    def test_defaults(self):
        self.assertEqual(DEFAULT_CONFIG.epsilon, EPSILON)
        self.assertEqual(DEFAULT_CONFIG.min_volume, MIN_VOLUME)
        self.assertTrue(DEFAULT_CONFIG.normalize)
        self.assertIs(resolve_config(None), DEFAULT_CONFIG)

    def test_is_frozen(self):
        with self.assertRaises(dataclasses.FrozenInstanceError):
            DEFAULT_CONFIG.epsilon = 1.0

    def test_with_overrides(self):
        config = DEFAULT_CONFIG.with_overrides(normalize=False, super_margin=10.0)
        self.assertFalse(config.normalize)
        self.assertEqual(config.super_margin, 10.0)
        self.assertTrue(DEFAULT_CONFIG.normalize, "Overrides must not touch the original.")
        self.assertIs(resolve_config(config), config)

    def test_unknown_override_raises(self):
        with self.assertRaises(TypeError):
            TriangulationConfig().with_overrides(margin=1.0)


class TestLogging(unittest.TestCase):

    def tearDown(self):
        root = logging.getLogger('delaunay_mesh')
        for handler in list(root.handlers):
            if isinstance(handler, logging.StreamHandler):
                root.removeHandler(handler)
        root.setLevel(logging.NOTSET)
        root.propagate = True

    def test_get_logger_namespacing(self):
        self.assertEqual(get_logger('delaunay_mesh.delaunay_2d').name, 'delaunay_mesh.delaunay_2d')
        self.assertEqual(get_logger('tools').name, 'delaunay_mesh.tools')
        self.assertEqual(get_logger('tools').level, logging.NOTSET)
        self.assertEqual(get_logger('tools', 'debug').level, logging.DEBUG)

    def test_configure_logging_installs_one_handler(self):
        stream = io.StringIO()
        root = configure_logging('DEBUG', stream=stream)
        configure_logging('WARNING', stream=stream)
        streams = [h for h in root.handlers if isinstance(h, logging.StreamHandler)]
        self.assertEqual(len(streams), 1)
        self.assertEqual(root.level, logging.WARNING)

        get_logger('tools').warning("hull has %d vertices", 4)
        self.assertIn("WARNING delaunay_mesh.tools: hull has 4 vertices", stream.getvalue())


if __name__ == '__main__':
    unittest.main(argv=['first-arg-is-ignored'], exit=False)
