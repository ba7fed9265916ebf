"""
Unit tests for logging configuration and the execution profiler.
"""

import unittest
import os
import tempfile
import shutil
import sys
import json
import logging
import time
import io
from contextlib import redirect_stdout
from unittest import mock

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from tensorlab import config
from tensorlab.observability import configure_logging, ExecutionProfiler, get_profiler
from tensorlab.factories import random


class TestObservability(unittest.TestCase):
    """Test cases for observability utilities."""

    def setUp(self):
        self.test_dir = tempfile.mkdtemp()

    def tearDown(self):
        logger = logging.getLogger('tensorlab')
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()
        logger.setLevel(logging.NOTSET)
        logger.propagate = True

        profiler = get_profiler()
        profiler.disable()
        profiler.reset()

        if os.path.exists(self.test_dir):
            shutil.rmtree(self.test_dir)

    def test_logging_configuration_writes_kernel_messages(self):
        """Debug messages from the matmul engine reach the configured log file."""
        log_file = os.path.join(self.test_dir, "test.log")
        logger = configure_logging(level="DEBUG", log_file=log_file)

        self.assertEqual(logger.name, 'tensorlab')
        self.assertFalse(logger.propagate)

        a = random((4, 3), seed=0)
        b = random((3, 2), seed=1)
        a.matmul_parallel(b, num_workers=2)
        for handler in logger.handlers:
            handler.flush()

        with open(log_file) as f:
            contents = f.read()
        self.assertIn("strategy 'parallel'", contents)
        self.assertIn("row ranges", contents)

    def test_reconfiguring_does_not_duplicate_handlers(self):
        configure_logging(level="INFO")
        logger = configure_logging(level="WARNING")
        self.assertEqual(len(logger.handlers), 1)
        self.assertEqual(logger.level, logging.WARNING)

    def test_execution_profiler_context_manager(self):
        profiler = ExecutionProfiler()

        with profiler.profile("matmul.accumulate", dims=(4, 3, 2)):
            pass
        with profiler.profile("matmul.parallel"):
            pass

        self.assertEqual(len(profiler.runs), 2)
        self.assertEqual(profiler.runs[0].name, "matmul.accumulate")
        self.assertEqual(profiler.runs[0].metadata, {'dims': (4, 3, 2)})
        self.assertEqual(profiler.runs[0].flops, 48)
        self.assertIsNone(profiler.runs[1].flops)
        self.assertGreaterEqual(profiler.runs[1].duration, 0.0)

    def test_disabled_profiler_records_nothing(self):
        profiler = ExecutionProfiler(enabled=False)
        with profiler.profile("ignored"):
            pass
        self.assertEqual(profiler.runs, [])

    def test_profiler_summary_and_json(self):
        profiler = ExecutionProfiler()
        for dims, workers in [((8, 8, 8), 2), ((8, 8, 8), 4), ((2, 3, 4), 2)]:
            with profiler.profile("matmul.parallel", dims=dims, workers=workers):
                time.sleep(0.001)

        summary = profiler.get_summary()["matmul.parallel"]
        self.assertEqual(summary["count"], 3)
        self.assertLessEqual(summary["min"], summary["max"])
        self.assertEqual(summary["dims"], [(2, 3, 4), (8, 8, 8)])
        self.assertEqual(summary["workers"], [2, 4])
        self.assertGreater(summary["gflops"], 0.0)

        output = os.path.join(self.test_dir, "profile.json")
        profiler.save_json(output)
        with open(output) as f:
            data = json.load(f)
        self.assertEqual(len(data["runs"]), 3)
        self.assertEqual(data["runs"][0]["metadata"]["dims"], [8, 8, 8])
        self.assertEqual(data["runs"][0]["flops"], 1024)
        self.assertIn("matmul.parallel", data["summary"])

        profiler.reset()
        self.assertEqual(profiler.get_summary(), {})

    def test_print_summary_reports_sizes_and_workers(self):
        profiler = ExecutionProfiler()
        with profiler.profile("matmul.parallel", dims=(4, 3, 2), workers=2):
            pass
        with profiler.profile("matmul.accumulate", dims=(4, 3, 2)):
            pass

        buffer = io.StringIO()
        with redirect_stdout(buffer):
            profiler.print_summary()
        output = buffer.getvalue()

        self.assertIn("MATMUL PROFILE SUMMARY", output)
        self.assertIn("4x3x2 / 2", output)
        self.assertRegex(output, r"matmul\.accumulate .* 4x3x2\n")

    def test_global_profiler_records_matmul_dispatch(self):
        """The engine reports each dispatch to the global profiler when enabled."""
        profiler = get_profiler()
        profiler.reset()
        profiler.enable()

        a = random((3, 3), seed=2)
        a.matmul(a)
        a.matmul(a, strategy="inner_product")
        a.matmul_parallel(a, num_workers=2)

        names = [run.name for run in profiler.runs]
        self.assertEqual(names, ["matmul.accumulate", "matmul.inner_product", "matmul.parallel"])
        self.assertEqual([run.metadata["dims"] for run in profiler.runs], [(3, 3, 3)] * 3)
        self.assertNotIn("workers", profiler.runs[0].metadata)
        self.assertEqual(profiler.runs[2].metadata["workers"], 2)

    def test_global_profiler_follows_config_switch(self):
        profiler = get_profiler()
        profiler.reset()
        a = random((2, 2), seed=3)

        a.matmul(a)
        self.assertEqual(profiler.runs, [])

        with mock.patch.object(config, "PROFILE_KERNELS", True):
            a.matmul(a)
        a.matmul(a)
        self.assertEqual([run.name for run in profiler.runs], ["matmul.accumulate"])

    def test_reset_returns_to_config_switch(self):
        profiler = get_profiler()
        profiler.enable()
        profiler.reset()
        self.assertFalse(profiler.enabled)
        with mock.patch.object(config, "PROFILE_KERNELS", True):
            self.assertTrue(profiler.enabled)


if __name__ == '__main__':
    unittest.main()
