# -*- coding: utf-8 -*-

from .decorators import wrap_promise
from .deferred import Deferred
from .errors import AggregateError, ChainingCycleError, TimeoutError
from .promise import Promise
from .scheduler import (AsyncioScheduler, QueueScheduler, Scheduler,
                        ThreadScheduler, create_scheduler,
                        get_default_scheduler, set_default_scheduler)
from .util import is_thenable

__all__ = ['is_thenable', 'AggregateError', 'ChainingCycleError', 'Deferred',
           'Promise', 'TimeoutError', 'wrap_promise', 'AsyncioScheduler',
           'QueueScheduler', 'Scheduler', 'ThreadScheduler',
           'create_scheduler', 'get_default_scheduler',
           'set_default_scheduler']
