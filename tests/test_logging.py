"""Tests for the logging bootstrap and the CLI entry point."""

import ipaddress
import json
import logging
import sys
from unittest.mock import patch

from pythonjsonlogger.json import JsonFormatter
from uvicorn.logging import DefaultFormatter

from clientip.__main__ import cli_entry, parse_args
from clientip.configs.system import LoggingConfig
from clientip.infra.logging import (
    RequestContextFilter,
    bind_client_ip,
    build_formatter,
    current_client_ip,
    setup_logging,
)


class TestLogging:
    def test_json_formatter(self):
        assert isinstance(build_formatter(LoggingConfig(json_output=True)), JsonFormatter)

    def test_dev_formatter(self):
        formatter = build_formatter(LoggingConfig(json_output=False))
        assert isinstance(formatter, DefaultFormatter)

    def test_filter_outside_request(self):
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", (), None)
        assert RequestContextFilter().filter(record)
        assert record.client_ip == ""
        assert record.trace_id == ""
        assert record.span_id == ""

    def test_filter_stamps_bound_client_ip(self):
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", (), None)
        with bind_client_ip(ipaddress.ip_address("203.0.113.7")):
            RequestContextFilter().filter(record)
        assert record.client_ip == "203.0.113.7"

    def test_bind_undetermined_and_reset(self):
        with bind_client_ip(None):
            assert current_client_ip() == "-"
            with bind_client_ip(ipaddress.ip_address("::1")):
                assert current_client_ip() == "::1"
            assert current_client_ip() == "-"
        assert current_client_ip() == ""

    def test_json_output_carries_client_ip(self):
        formatter = build_formatter(LoggingConfig(json_output=True))
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "hello", (), None)
        with bind_client_ip(ipaddress.ip_address("198.51.100.4")):
            RequestContextFilter().filter(record)
        payload = json.loads(formatter.format(record))
        assert payload["client_ip"] == "198.51.100.4"
        assert payload["message"] == "hello"

    def test_setup_logging_sets_level(self):
        root = logging.getLogger()
        saved = (root.level, root.handlers[:])
        try:
            setup_logging(LoggingConfig(level="warning", json_output=False))
            assert root.level == logging.WARNING
            assert len(root.handlers) == 1
            assert logging.getLogger("uvicorn").propagate is False
        finally:
            root.setLevel(saved[0])
            root.handlers = saved[1]


class TestCLI:
    def test_parse_args_defaults(self):
        with patch.object(sys, "argv", ["clientip"]):
            args = parse_args()
        assert args.host == "0.0.0.0"
        assert args.port == 8080

    def test_cli_entry_runs_factory(self):
        with patch.object(sys, "argv", ["clientip", "--port", "9000"]), patch(
            "clientip.__main__.uvicorn.run"
        ) as run:
            cli_entry()
        run.assert_called_once_with(
            "clientip.app:get_app",
            factory=True,
            host="0.0.0.0",
            port=9000,
            log_config=None,
        )
