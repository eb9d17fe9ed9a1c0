#!/usr/bin/env python
# -*- coding: utf-8 -*-

import io
import logging
import os
import pytest
import sys

from thenable.common import path as thenable_path
from thenable.common.log import (_get_file_handler, ColoredFormatter, Context,
                                 reset, set_debug_mode, set_logs_level)

"""### TEST CASES ###
    _get_file_handler() in the log directory

    ColoredFormatter._colorize
    ColoredFormatter.format, record not modified

    Context with a stream
    Context with a log file
    Context, handlers removed at exit

    set_debug_mode true
    set_debug_mode false

    set_logs_level with names, numbers, invalid values
"""

colorFormater = ColoredFormatter()


@pytest.fixture(autouse=True)
def restore_levels(request):
    """Restore the log levels modified by the tests."""
    names = ['thenable', 'thenable.test']
    levels = dict((name, logging.getLogger(name).level) for name in names)
    root_level = logging.getLogger().level

    def _restore():
        for name, level in levels.items():
            logging.getLogger(name).setLevel(level)
        logging.getLogger().setLevel(root_level)

    request.addfinalizer(_restore)


@pytest.fixture
def log_dir(tmpdir, monkeypatch):
    monkeypatch.setattr(thenable_path, 'get_log_dir', lambda: str(tmpdir))
    return str(tmpdir)


class TestLogFormating(object):

    def test_get_file_handler(self, log_dir):
        handler = _get_file_handler('test.log')
        try:
            assert handler.baseFilename == os.path.join(log_dir, 'test.log')
        finally:
            handler.close()

    def test_colorize(self):
        for color in ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'NAME', 'DATE'):
            assert colorFormater._colorize("plop", color) == \
                ColoredFormatter._colors[color] + "plop" + \
                ColoredFormatter._colors['RESET']

    def test_colorize_unknown_color(self):
        assert colorFormater._colorize("plop", "FOO") == \
            "plop" + ColoredFormatter._colors['RESET']

    def test_format_keeps_record(self):
        record = logging.LogRecord('thenable.test', logging.WARNING, __file__,
                                   1, 'message %s', ('arg',), None)
        formatter = ColoredFormatter(
            fmt='%(levelname)s %(name)s - %(message)s')
        result = formatter.format(record)

        assert ColoredFormatter._colors['WARNING'] + 'WARNING' in result
        assert ColoredFormatter._colors['NAME'] + 'thenable.test' in result
        assert 'message arg' in result
        assert record.name == 'thenable.test'
        assert record.levelname == 'WARNING'

    def test_format_exception(self):
        try:
            raise ValueError('bad value')
        except ValueError:
            record = logging.LogRecord('thenable.test', logging.ERROR,
                                       __file__, 1, 'failure', None,
                                       sys.exc_info())

        result = colorFormater.format(record)
        assert ColoredFormatter._colors['EXCEPTION_NAME'] + 'ValueError' \
            in result
        assert 'bad value' in result


class TestContext(object):

    def test_context_with_stream(self):
        stream = io.StringIO()
        root_logger = logging.getLogger()
        nb_handlers = len(root_logger.handlers)

        with Context(stream=stream):
            assert len(root_logger.handlers) == nb_handlers + 1
            logging.getLogger('thenable.test').debug('debug message')
            logging.getLogger('other').info('info message')
            logging.getLogger('other').debug('hidden message')

        assert len(root_logger.handlers) == nb_handlers
        output = stream.getvalue()
        assert 'debug message' in output
        assert 'info message' in output
        assert 'hidden message' not in output
        assert 'thenable.test' in output

    def test_context_with_file(self, log_dir):
        with Context(filename='test.log', stream=io.StringIO()):
            logging.getLogger('thenable.test').warning('written in file')

        with open(os.path.join(log_dir, 'test.log')) as log_file:
            assert 'written in file' in log_file.read()


class TestLevels(object):

    def test_set_debug_mode(self):
        set_debug_mode(True)
        assert logging.getLogger('thenable').level == logging.DEBUG
        assert logging.getLogger().level == logging.INFO

    def test_unset_debug_mode(self):
        set_debug_mode(False)
        assert logging.getLogger('thenable').level == logging.INFO
        assert logging.getLogger().level == logging.WARNING

    def test_set_logs_level(self):
        set_logs_level({'thenable': 'warning', 'thenable.test': 'debug'})
        assert logging.getLogger('thenable').level == logging.WARNING
        assert logging.getLogger('thenable.test').level == logging.DEBUG

    def test_set_logs_level_with_number(self):
        set_logs_level({'thenable.test': 40})
        assert logging.getLogger('thenable.test').level == logging.ERROR

        set_logs_level({'thenable.test': '10'})
        assert logging.getLogger('thenable.test').level == logging.DEBUG

    def test_set_invalid_logs_level(self, caplog):
        logging.getLogger('thenable.test').setLevel(logging.INFO)
        with caplog.at_level(logging.WARNING):
            set_logs_level({'thenable.test': 'plop'})
        assert logging.getLogger('thenable.test').level == logging.INFO
        assert 'Invalid log level' in caplog.text


def test_reset():
    root_logger = logging.getLogger()
    handlers = root_logger.handlers[:]
    handler = logging.NullHandler()
    root_logger.addHandler(handler)
    try:
        reset()
        assert root_logger.handlers == []
    finally:
        for h in handlers:
            root_logger.addHandler(h)
