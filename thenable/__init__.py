# -*- coding: utf-8 -*-

from .__version__ import __version__  # noqa

import logging

from .common import config
from .common import log
from .promise import (AggregateError, ChainingCycleError, Deferred, Promise,
                      TimeoutError, is_thenable, set_default_scheduler,
                      wrap_promise)

__all__ = ['configure', 'AggregateError', 'ChainingCycleError', 'Deferred',
           'Promise', 'TimeoutError', 'is_thenable', 'wrap_promise']


def configure():
    """Load the config file and apply it.

    Log levels are set according to the `debug_mode` and `log_levels`
    entries. The default scheduler is dropped, so the next promise created
    without explicit scheduler will use the one set in the `scheduler` entry.
    """
    config.load()
    log.set_debug_mode(config.get('debug_mode'))
    log.set_logs_level(config.get('log_levels'))

    previous = set_default_scheduler(None)
    if previous is not None and hasattr(previous, 'shutdown'):
        previous.shutdown(wait=False)
    logging.getLogger(__name__).debug('thenable configured.')
