import logging
import unittest

from gradetrack.config.logging_config import HANDLER_NAME, configure_logging


class ConfigureLoggingTests(unittest.TestCase):
    def test_repeat_calls_keep_one_handler(self):
        self.addCleanup(configure_logging)
        configure_logging("info")
        logger = configure_logging("debug")

        named = [handler for handler in logger.handlers if handler.get_name() == HANDLER_NAME]
        self.assertEqual(len(named), 1)
        self.assertIsInstance(named[0], logging.StreamHandler)
        self.assertEqual(logger.level, logging.DEBUG)
        self.assertFalse(logger.propagate)


if __name__ == "__main__":
    unittest.main()
