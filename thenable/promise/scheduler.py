# -*- coding: utf-8 -*-

"""Schedulers used by the promises to run their callbacks.

A promise never calls a callback directly: it gives it to a scheduler, who
will run it later. The only requirement is the method
``enqueue(callback)``: the callback is executed later (never before
``enqueue()`` returns), and callbacks are executed in the order they have been
enqueued.

Any object with such a method can be used as a scheduler.
"""

from collections import deque
from concurrent.futures import ThreadPoolExecutor
import logging
from threading import Lock

from ..common import config

_logger = logging.getLogger(__name__)


def _run_callback(callback):
    try:
        callback()
    except Exception:
        _logger.exception("Scheduled callback raise an exception!")


class Scheduler(object):
    """Base class of the schedulers."""

    def enqueue(self, callback):
        """Register a callback to execute later.

        Args:
            callback (callable): function without argument.
        """
        raise NotImplementedError()


class QueueScheduler(Scheduler):
    """Scheduler who stores the callbacks until `run()` is called.

    Nothing is executed in background: the owner decides when the callbacks
    are executed. It's useful for tests, or to integrate the promises in an
    existing single-threaded main loop.
    """

    def __init__(self):
        self._queue = deque()
        self._lock = Lock()
        self._running = False

    def enqueue(self, callback):
        with self._lock:
            self._queue.append(callback)

    def run(self, limit=None):
        """Execute the queued callbacks, in order.

        Callbacks enqueued during the run are executed too, until the queue is
        empty.
        Calling `run()` from a callback has no effect: the callbacks are never
        executed reentrantly.

        Args:
            limit (int, optional): maximum number of callbacks to execute.
        Returns:
            int: number of callbacks executed.
        """
        with self._lock:
            if self._running:
                return 0
            self._running = True

        nb_executed = 0
        try:
            while limit is None or nb_executed < limit:
                with self._lock:
                    if not self._queue:
                        break
                    callback = self._queue.popleft()
                _run_callback(callback)
                nb_executed += 1
        finally:
            with self._lock:
                self._running = False
        return nb_executed

    def __len__(self):
        with self._lock:
            return len(self._queue)


class ThreadScheduler(Scheduler):
    """Execute the callbacks in a dedicated thread.

    A single worker is used, so the callbacks are executed one at a time, in
    the order they have been enqueued.
    The thread is started at the first callback.
    """

    def __init__(self, name='thenable'):
        """
        Args:
            name (str): prefix of the worker thread's name.
        """
        self._name = name
        self._executor = None
        self._lock = Lock()

    def enqueue(self, callback):
        with self._lock:
            if self._executor is None:
                _logger.debug('Start scheduler thread "%s"', self._name)
                self._executor = ThreadPoolExecutor(
                    max_workers=1, thread_name_prefix=self._name)
            self._executor.submit(_run_callback, callback)

    def shutdown(self, wait=True):
        """Stop the worker thread.

        Callbacks already enqueued are executed before the thread stops. The
        scheduler can be used again after: a new thread will be started.

        Args:
            wait (boolean): if True, returns only when the thread is joined.
        """
        with self._lock:
            executor = self._executor
            self._executor = None
        if executor:
            _logger.debug('Stop scheduler thread "%s"', self._name)
            executor.shutdown(wait=wait)


class AsyncioScheduler(Scheduler):
    """Execute the callbacks in an asyncio event loop.

    Callbacks can be enqueued from any thread.
    """

    def __init__(self, loop):
        """
        Args:
            loop (asyncio.AbstractEventLoop): the loop running the callbacks.
        """
        self._loop = loop

    def enqueue(self, callback):
        self._loop.call_soon_threadsafe(_run_callback, callback)


_schedulers = {
    'thread': ThreadScheduler,
    'queue': QueueScheduler
}

_default_scheduler = None
_default_lock = Lock()


def create_scheduler(name):
    """Create a new scheduler from its configuration name.

    Args:
        name (str): 'thread' or 'queue'
    Returns:
        Scheduler: new instance.
    Raises:
        ValueError: if the name is not a known scheduler.
    """
    if name not in _schedulers:
        raise ValueError('Unknown scheduler "%s"' % name)
    return _schedulers[name]()


def get_default_scheduler():
    """Returns the scheduler used by the promises created without one.

    The first call creates the scheduler defined in the config.
    """
    global _default_scheduler

    with _default_lock:
        if _default_scheduler is None:
            name = config.get('scheduler')
            try:
                _default_scheduler = create_scheduler(name)
            except ValueError:
                _logger.warning('Invalid scheduler "%s" in config. The thread '
                                'scheduler will be used.', name)
                _default_scheduler = ThreadScheduler()
            _logger.debug('Default scheduler: %r', _default_scheduler)
        return _default_scheduler


def set_default_scheduler(scheduler):
    """Replace the default scheduler.

    Args:
        scheduler (Scheduler): new default scheduler. If None, a new one will
            be created from the config at the next use.
    Returns:
        Scheduler: the previous default scheduler (can be None).
    """
    global _default_scheduler

    with _default_lock:
        previous = _default_scheduler
        _default_scheduler = scheduler
    return previous
