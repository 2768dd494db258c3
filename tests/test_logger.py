import logging
import os
import tempfile
import unittest
from unittest.mock import patch

import dbcase  # noqa: F401  (puts src/ on sys.path)

from utils import logger


class LoggerTestCase(unittest.TestCase):
    def test_modules_share_the_storefront_handler(self):
        log = logger.get_logger("cart.store")
        self.assertEqual(log.name, "storefront.cart.store")
        self.assertFalse(log.handlers)
        self.assertTrue(logging.getLogger(logger.ROOT_LOGGER).handlers)

    def test_formatter_strips_root_prefix(self):
        record = logging.LogRecord("storefront.db.crud", logging.INFO, "", 0, "hi", None, None)
        line = logger.CenteredFormatter("[%(component)s] %(message)s").format(record)
        self.assertTrue(line.startswith("["))
        self.assertIn("db.crud", line)
        self.assertNotIn("storefront", line)

    def test_log_file_is_closed_at_exit(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "logs", "client.log")
            with patch.dict(os.environ, {"STOREFRONT_LOG_FILE": path}), patch.object(
                logger.atexit, "register"
            ) as register:
                console = logger._file_console()
            console.print("hello")
            register.assert_called_once_with(console.file.close)

            close = register.call_args.args[0]
            close()
            self.assertTrue(console.file.closed)
            with open(path, encoding="utf-8") as f:
                self.assertIn("hello", f.read())

    def test_no_log_file_means_default_console(self):
        with patch.dict(os.environ, {}, clear=False):
            os.environ.pop("STOREFRONT_LOG_FILE", None)
            self.assertIsNone(logger._file_console())


if __name__ == "__main__":
    unittest.main()
