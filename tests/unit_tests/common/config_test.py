#!/usr/bin/env python
# -*- coding: utf-8 -*-

import logging
import pytest
from os.path import exists

from thenable.common import config
from thenable.common.config import load, set, get, _config_parser

"""### TEST CASES ###
    ## load
    config file exist
    config file does not exist

    ##get
    key does not exist
    get a default value
    get a bool value
    get a bool with invalid value
    get a dict
    get a dict with invalid value
    get a not typed value

    ##set
    set a not existing key
    set a None value
    set a dict value
    set without existing file
"""


@pytest.fixture(autouse=True)
def config_file(request, tmpdir, monkeypatch):
    """Use a temporary config file, and an empty config."""
    config_path = str(tmpdir.join('thenable.ini'))
    monkeypatch.setattr(config, '_get_config_file_path', lambda: config_path)

    def _reset_parser():
        _config_parser.remove_section('config')
        _config_parser.add_section('config')

    _reset_parser()
    request.addfinalizer(_reset_parser)
    return config_path


class TestConfigLoad(object):

    def test_load_without_existing_file(self, config_file, caplog):
        assert not exists(config_file)

        with caplog.at_level(logging.WARNING):
            load()
        assert 'Unable to load config file' in caplog.text

    def test_load_with_existing_file(self, config_file, caplog):
        with open(config_file, 'w') as f:
            f.write('[config]\nscheduler = queue\n')

        with caplog.at_level(logging.WARNING):
            load()
        assert caplog.text == ''
        assert get('scheduler') == 'queue'

    def test_load_file_written_by_set(self, config_file):
        set('debug_mode', True)
        assert exists(config_file)

        _config_parser.remove_section('config')
        _config_parser.add_section('config')
        assert get('debug_mode') is False

        load()
        assert get('debug_mode') is True


class TestConfigGet(object):

    def test_key_does_not_exist(self):
        with pytest.raises(KeyError):
            get('plop')

    def test_default_values(self):
        assert get('scheduler') == 'thread'
        assert get('debug_mode') is False
        assert get('log_levels') == {}

    def test_get_a_bool_value(self):
        set('debug_mode', True)
        value = get('debug_mode')
        assert type(value) is bool and value

        set('debug_mode', 'False')
        value = get('debug_mode')
        assert type(value) is bool and not value

    def test_get_a_bool_with_invalid_value(self, caplog):
        _config_parser.set('config', 'debug_mode', 'plop')
        with caplog.at_level(logging.WARNING):
            value = get('debug_mode')
        assert value is False
        assert 'Invalid value' in caplog.text

    def test_get_a_dict_value(self):
        _config_parser.set('config', 'log_levels', 'aa=bb;cc = dd')
        value = get('log_levels')
        assert value == {'aa': 'bb', 'cc': 'dd'}

    def test_get_a_dict_with_invalid_value(self, caplog):
        _config_parser.set('config', 'log_levels', 'plop;toto=tata')
        with caplog.at_level(logging.WARNING):
            value = get('log_levels')
        assert value == {'toto': 'tata'}
        assert 'Unable to parse pair' in caplog.text

    def test_get_a_string_value(self):
        set('scheduler', 'queue')
        assert get('scheduler') == 'queue'


class TestConfigSet(object):

    def test_set_not_existing_key(self):
        with pytest.raises(KeyError):
            set('plop', 42)

    def test_set_none_value(self):
        set('scheduler', 'queue')
        set('scheduler', None)
        assert get('scheduler') == 'thread'

    def test_set_dict_value(self):
        set('log_levels', {'thenable': 'info', 'thenable.promise': 'debug'})
        assert get('log_levels') == {'thenable': 'info',
                                     'thenable.promise': 'debug'}

    def test_set_without_existing_file(self, config_file):
        assert not exists(config_file)
        set('scheduler', 'queue')
        assert exists(config_file)
        with open(config_file) as f:
            assert 'scheduler = queue' in f.read()
