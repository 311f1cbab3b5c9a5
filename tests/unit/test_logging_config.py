"""logging_config モジュールのテスト"""

import json
import logging
import sys
from unittest.mock import patch

from ewarrants.logging_config import CloudLoggingFormatter, setup_logging


def _record(message="expiry run", level=logging.INFO, exc_info=None, **extra):
    record = logging.LogRecord(
        name="ewarrants.services.reminders",
        level=level,
        pathname="",
        lineno=0,
        msg=message,
        args=(),
        exc_info=exc_info,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestCloudLoggingFormatter:
    def test_severity_and_message(self):
        parsed = json.loads(CloudLoggingFormatter().format(_record(level=logging.WARNING)))

        assert parsed["severity"] == "WARNING"
        assert parsed["message"] == "expiry run"
        assert parsed["logger"] == "ewarrants.services.reminders"
        assert "timestamp" in parsed

    def test_extra_fields_are_top_level(self):
        parsed = json.loads(CloudLoggingFormatter().format(_record(uid="user-a", sent=3)))

        assert parsed["uid"] == "user-a"
        assert parsed["sent"] == 3

    def test_exception_included(self):
        try:
            raise RuntimeError("SendGrid down")
        except RuntimeError:
            record = _record(level=logging.ERROR, exc_info=sys.exc_info())

        parsed = json.loads(CloudLoggingFormatter().format(record))

        assert "SendGrid down" in parsed["exception"]

    def test_non_ascii_kept(self):
        output = CloudLoggingFormatter().format(_record("保証期限のお知らせ"))
        assert "保証期限のお知らせ" in output

    def test_unserializable_extra_uses_str(self):
        parsed = json.loads(CloudLoggingFormatter().format(_record(when=object())))
        assert parsed["when"].startswith("<object")


class TestSetupLogging:
    def test_json_formatter_on_cloud_run(self):
        with patch.dict("os.environ", {"K_SERVICE": "ewarrants-api"}):
            setup_logging()
        handlers = logging.getLogger().handlers
        assert len(handlers) == 1
        assert isinstance(handlers[0].formatter, CloudLoggingFormatter)

    def test_text_formatter_locally(self):
        with patch.dict("os.environ", {"LOG_LEVEL": "DEBUG"}, clear=True):
            setup_logging()
        root = logging.getLogger()
        assert not isinstance(root.handlers[0].formatter, CloudLoggingFormatter)
        assert root.level == logging.DEBUG
