# -*- coding: utf-8 -*-

import logging
from functools import partial
from threading import Condition, Lock

from .errors import AggregateError, ChainingCycleError, TimeoutError
from .scheduler import get_default_scheduler
from .util import is_thenable

_logger = logging.getLogger(__name__)

# Values of these exact types are never thenable.
_PLAIN_TYPES = (type(None), bool, int, float, complex, str, bytes)


def _noop(fulfill, reject):
    pass


def _handler_name(handler):
    if handler is None:
        return 'None'
    return getattr(handler, '__name__', '???')


class _Continuation(object):
    """Callbacks registered by `then()`, and the promise they will settle.

    Only one of the two callbacks is executed, depending of the state of the
    parent promise. A missing callback transmits the parent's outcome as is.
    """

    __slots__ = ('on_fulfilled', 'on_rejected', 'child')

    def __init__(self, on_fulfilled, on_rejected, child):
        self.on_fulfilled = on_fulfilled
        self.on_rejected = on_rejected
        self.child = child

    def run(self, state, outcome):
        if state == Promise.FULFILLED:
            handler = self.on_fulfilled
        else:
            handler = self.on_rejected

        if handler is None:
            if state == Promise.FULFILLED:
                self.child._resolve_with(outcome)
            else:
                self.child._reject(outcome)
            return

        try:
            result = handler(outcome)
        except Exception as error:
            self.child._reject(error)
        else:
            self.child._resolve_with(result)


class _Adoption(object):
    """Single-use callbacks given to a thenable adopted by a promise.

    Only the first call of either `fulfill()` or `reject()` has an effect; all
    subsequent calls are ignored.
    A value received while the thenable's `then()` is still running is not
    resolved recursively: it's returned by `call()`, so the caller can unwrap
    it in a loop.
    """

    def __init__(self, promise):
        self._promise = promise
        self._lock = Lock()
        self._used = False
        self._in_then = True
        self._has_next = False
        self._next_value = None

    def _use(self):
        with self._lock:
            if self._used:
                return False
            self._used = True
            return True

    def fulfill(self, value):
        with self._lock:
            if self._used:
                return
            self._used = True
            if self._in_then:
                self._has_next = True
                self._next_value = value
                return
        self._promise._resolve_with(value)

    def reject(self, reason):
        if self._use():
            self._promise._reject(reason)

    def call(self, then):
        """Call the `then` method of the thenable with our callbacks.

        Args:
            then (callable): the thenable's `then` method.
        Returns:
            tuple: (has_next, value). If `has_next` is True, the thenable has
                been fulfilled with `value` during the call, and `value` must
                be resolved in turn.
        """
        try:
            then(self.fulfill, self.reject)
        except Exception as error:
            if self._use():
                self._promise._reject(error)

        with self._lock:
            self._in_then = False
            return self._has_next, self._next_value


class Promise(object):
    """It represents an operation expected to be completed in the future.

    A Promise is used for asynchronous computation. It contains a value not yet
    known when the Promise is created. It allows to set callbacks who will be
    called as soon as the result is known. It's a "promise" of a future value.

    A promise is settled only once: either fulfilled with a value, or rejected
    with a reason. Callbacks are never executed directly; they're always
    given to the promise's scheduler.

    Any object with a callable `then(on_fulfilled, on_rejected)` method (a
    "thenable") returned by a callback is adopted: the chained promise takes
    its state once it's settled. It allows to mix promises of different
    libraries.

    All calls to the methods are thread-safe.
    """

    PENDING = 'pending'
    FULFILLED = 'fulfilled'
    REJECTED = 'rejected'

    # Number of links of the chain displayed by repr().
    _PRINTED_LINKS = 10

    def __init__(self, executor, scheduler=None, _name=None, _previous=None):
        """Constructor of the Promise.

        Generate the two callbacks for the executor, then call the `executor`.
        It means the executor will be fully executed before the the constructor
        returns.
        If the executor raises an exception, it's caught and the Promise is
        rejected with this exception (unless the executor has already settled
        the Promise).

        Args:
            executor (callable): Takes 2 callable arguments:
                The first one, `fulfill()` should be called when the Promise
                is fulfilled (ie the tasks is done) and must accept the
                result's value as its only argument.
                The second, `reject()`, should be called when an error
                occurs. Its argument is the reason, usually an instance of
                `Exception`.
                Only the first call to one of these callbacks is taken into
                account.
            scheduler (Scheduler, optional): scheduler executing the callbacks
                of this promise and of the promises chained to it. By
                default, the default scheduler is used.
            _name (str): if set, name used when converted to text.
        """

        self._state = self.PENDING
        self._outcome = None
        self._condition = Condition()
        if scheduler is None:
            scheduler = get_default_scheduler()
        self._scheduler = scheduler
        self._name = _name or getattr(executor, '__name__', '???')
        self._previous = _previous
        # Text of the previous links, kept once the parent is released.
        self._history = ()

        self._waiters = []

        try:
            executor(self._fulfill, self._reject)
        except Exception as error:
            self._reject(error)

    @property
    def state(self):
        """str: one of PENDING, FULFILLED or REJECTED."""
        with self._condition:
            return self._state

    @property
    def scheduler(self):
        return self._scheduler

    def is_pending(self):
        return self.state == self.PENDING

    def is_fulfilled(self):
        return self.state == self.FULFILLED

    def is_rejected(self):
        return self.state == self.REJECTED

    def _fulfill(self, value):
        self._settle(self.FULFILLED, value)

    def _reject(self, reason):
        self._settle(self.REJECTED, reason)

    def _settle(self, state, outcome):
        previous = self._previous
        history = previous._links() if previous is not None else ()

        with self._condition:
            if self._state != self.PENDING:
                _logger.debug('Promise %r already settled. New %s outcome '
                              'will be ignored: %r', self, state, outcome)
                return
            if state == self.REJECTED and \
                    not isinstance(outcome, BaseException):
                _logger.debug('Promise %r rejected with non-exception value:'
                              ' %r', self, outcome)
            self._state = state
            self._outcome = outcome
            # The parent is settled too: its text is frozen.
            self._previous = None
            self._history = tuple(history)

            self._condition.notify_all()

            waiters = self._waiters
            # Free the references
            self._waiters = None

            # Dispatched with the lock held: a callback added from another
            # thread can't be scheduled before them.
            for waiter in waiters:
                self._dispatch(waiter)

    def _dispatch(self, waiter):
        self._scheduler.enqueue(partial(waiter.run, self._state,
                                        self._outcome))

    def _resolve_with(self, outcome):
        """Settle the promise using a value returned by a callback.

        - If the value is the promise itself, it's rejected with a
          ChainingCycleError.
        - If the value is a thenable, the promise will follow its state.
        - Otherwise, the promise is fulfilled with the value.

        Args:
            outcome: the value to resolve.
        """
        while True:
            if outcome is self:
                self._reject(ChainingCycleError(
                    'Chaining cycle detected for promise %r' % self))
                return

            if type(outcome) in _PLAIN_TYPES:
                self._fulfill(outcome)
                return

            try:
                then = getattr(outcome, 'then')
            except AttributeError:
                then = None
            except Exception as error:
                self._reject(error)
                return

            if not callable(then):
                self._fulfill(outcome)
                return

            has_next, outcome = _Adoption(self).call(then)
            if not has_next:
                return

    def result(self, timeout=None):
        """Wait for the result and returns it as soon as it's available.

        Args:
            timeout (int, optional): if set, maximum time to wait the promise
                to be fulfilled. By default, it can wait indefinitely.
        Returns:
            *: value encapsulated, defined by the operation.
        Raises:
            TimeoutError: if the promise is not settled within the delay.
            TypeError: if the promise is rejected with a non-exception value.
            *: If the promise is rejected, the rejection cause is raised.
        """
        with self._condition:
            self._wait(timeout)
            if self._state == self.REJECTED:
                if isinstance(self._outcome, BaseException):
                    raise self._outcome
                raise TypeError('Promise rejected with non-exception value: '
                                '%r' % (self._outcome,))
            return self._outcome

    def exception(self, timeout=None):
        """Wait for the promise rejection and returns it's error.

        Args:
            timeout (int, optional): if set, maximum time to wait the promise
                to be rejected. By default, it can wait indefinitely.
        Returns:
            *: the reason of the rejection of the Promise.
            None: if the promise is fulfilled.
        Raises:
            TimeoutError: if the promise is not settled within the delay.
        """
        with self._condition:
            self._wait(timeout)
            if self._state == self.REJECTED:
                return self._outcome
            return None

    def _wait(self, timeout):
        if not self._condition.wait_for(
                lambda: self._state != self.PENDING, timeout):
            raise TimeoutError()

    def then(self, on_fulfilled=None, on_rejected=None):
        """Create a new promise from callbacks called when this one is settled.

        If the promise is fulfilled, the `on_fulfilled` callback will be
        called. Otherwise (the promise has been rejected), the `on_rejected`
        callback is called.
        The callbacks are never called before `then()` returns, even if the
        promise is already settled: they are executed by the scheduler.

        In any case, the callback will define the state of the returned
        Promise. If the callback raises an exception, the new Promise is
        rejected. The callback can returns:
        - A value: the new promise will be fulfilled with this value.
        - Another Promise, or any object with a `then` method: when fulfilled
            or rejected, will transfer its status (state and result/error) to
            the Promise returned by this method.

        If a callback is not defined (or is not callable), the state of the
        "self promise" is transferred at the new promise (the state and the
        value/error).

        Args:
            on_fulfilled (callable, optional):  This callback will receive the
                result of the original promise as argument.
            on_rejected (callable, optional): This callback will receive the
                reason of the original promise's rejection as argument.
        Returns:
            Promise<*>: new promise depending of self.
        """
        if not callable(on_fulfilled):
            on_fulfilled = None
        if not callable(on_rejected):
            on_rejected = None

        if not on_rejected:
            name = _handler_name(on_fulfilled)
        else:
            name = '<%s, %s>' % (_handler_name(on_fulfilled),
                                 _handler_name(on_rejected))
        return self._chain(on_fulfilled, on_rejected, name)

    def _chain(self, on_fulfilled, on_rejected, name):
        child = self.__class__(_noop, scheduler=self._scheduler, _name=name,
                               _previous=self)
        waiter = _Continuation(on_fulfilled, on_rejected, child)

        with self._condition:
            if self._state == self.PENDING:
                self._waiters.append(waiter)
            else:
                self._dispatch(waiter)
        return child

    def catch(self, on_rejected):
        """Create a new promise with a callback called when an error occurs.

        Alias of `self.then(None, on_rejected)`

        Args:
            on_rejected (callable): Will be called with the rejection reason if
                `self` is rejected.
        returns:
            Promise<*>: new Promise chained to `self`. If `self` is fulfilled,
                the promised value will be the same as `self`. Otherwise, the
                value returned by the `on_rejected()` callback.
        """
        return self.then(None, on_rejected)

    def finally_(self, on_finally):
        """Create a new promise with a callback called in any case.

        `on_finally()` is called without argument when `self` is settled,
        either fulfilled or rejected. The value it returns is ignored, and the
        new promise is settled like `self`.
        The exceptions are the following:
        - If `on_finally()` raises an exception, the new promise is rejected
          with it.
        - If `on_finally()` returns a thenable, the new promise waits for it.
          If it's rejected, the new promise is rejected for the same reason.

        Args:
            on_finally (callable): function called without argument.
        Returns:
            Promise<*>: new Promise chained to `self`.
        """
        if not callable(on_finally):
            return self.then()

        cls = self.__class__
        scheduler = self._scheduler

        def _call_finally():
            result = on_finally()
            if is_thenable(result):
                return cls.resolve(result, scheduler)
            return None

        def pass_value(value):
            waiting = _call_finally()
            if waiting is None:
                return value
            return waiting.then(lambda _: value)

        def pass_reason(reason):
            waiting = _call_finally()
            if waiting is None:
                return cls.reject(reason, scheduler)
            return waiting.then(lambda _: cls.reject(reason, scheduler))

        name = 'FINALLY %s' % _handler_name(on_finally)
        return self._chain(pass_value, pass_reason, name)

    def safeguard(self):
        """Catch all errors and log them with the most details possible.

        This method is aimed to protect the program from uncaught rejected
        Promise. If no error handler has been set (via then() or catch()), the
        default behavior is to do nothing, and thus, errors are silently
        ignored.
        Calling `safeguard()` after all chains are set will catch these errors,
        and log them as ERROR with the maximum of details possible.
        """
        def guard(reason):
            if isinstance(reason, BaseException):
                _logger.error('[SAFEGUARD] %s', self,
                              exc_info=(type(reason), reason,
                                        reason.__traceback__))
            else:
                _logger.error('[SAFEGUARD] %s rejected with %r', self, reason)

        self._chain(None, guard, 'SAFEGUARD')

    def __repr__(self):
        return 'Promise(%s)' % ' -> '.join(self._links())

    def _links(self):
        """Describe the last links of the chain, from the oldest to `self`.

        Only the `_PRINTED_LINKS` last links are kept; older ones are
        replaced by '...'.

        Returns:
            list of str: one 'name STATE' text by link.
        """
        links = []
        promise = self
        while promise is not None and len(links) <= self._PRINTED_LINKS:
            with promise._condition:
                state = promise._state
                previous = promise._previous
                history = promise._history

            if state == self.REJECTED:
                state = 'R'
            elif state == self.FULFILLED:
                state = 'F'
            else:
                state = 'P'
            links.append('%s %s' % (promise._name, state))

            if previous is None:
                links.extend(reversed(history))
            promise = previous

        links.reverse()
        if len(links) > self._PRINTED_LINKS:
            links = ['...'] + links[-self._PRINTED_LINKS:]
        return links

    @classmethod
    def resolve(cls, value, scheduler=None):
        """Create a promise who resolves the selected value.

        Args:
            value: result of the promise. If it's a Promise, it's returned as
                is. If it's another thenable, the new Promise will follow its
                state.
            scheduler (Scheduler, optional): scheduler of the new promise.
        Returns:
            Promise: new Promise fulfilled with the value passed in parameter,
                or following the thenable.
        """
        if isinstance(value, cls):
            return value
        promise = cls(_noop, scheduler=scheduler, _name='RESOLVE')
        promise._resolve_with(value)
        return promise

    @classmethod
    def reject(cls, reason, scheduler=None):
        """Create a Promise rejected for the reason specified.

        The reason is never adopted, even if it's a thenable.

        Args:
            reason: Exception set to the Promise
            scheduler (Scheduler, optional): scheduler of the new promise.
        Returns:
            Promise: new Promise already rejected.
        """
        return cls(lambda ok, error: error(reason), scheduler=scheduler,
                   _name='REJECT')

    @classmethod
    def all(cls, items, scheduler=None):
        """Create a Promise who wait a list of promises to be all fulfilled.

        The resulting Promise resolve when all of the promises in the list are
        resolved, and returns a list of all the resulting values, keeping the
        order of the promise list.
        If a promise is rejected, then the resulting promise is rejected with
        the same reason, and all results from other promises are ignored.

        Args:
            items (iterable): promises, thenables or direct values.
            scheduler (Scheduler, optional): scheduler of the new promise.
        Returns:
            Promise<list>: resulting promise, fulfilled when all promises are
                fulfilled, or rejected when one of the promises has been
                rejected.
        """
        promises = [cls.resolve(item, scheduler) for item in items]
        if not promises:
            return cls.resolve([], scheduler)

        lock = Lock()
        remaining_tasks = [len(promises)]
        results = [None] * len(promises)

        def executor(resolve, reject):
            def resolve_one_promise(index, value):
                with lock:
                    results[index] = value
                    remaining_tasks[0] -= 1
                    if remaining_tasks[0] != 0:
                        return
                resolve(results)

            for index, p in enumerate(promises):
                p.then(partial(resolve_one_promise, index), reject)

        return cls(executor, scheduler=scheduler, _name='ALL')

    @classmethod
    def all_settled(cls, items, scheduler=None):
        """Create a Promise who wait a list of promises to be all settled.

        The resulting Promise is never rejected. It's fulfilled with a list of
        dicts describing the outcome of each promise, in the same order:
        `{'status': 'fulfilled', 'value': value}` or
        `{'status': 'rejected', 'reason': reason}`.

        Args:
            items (iterable): promises, thenables or direct values.
            scheduler (Scheduler, optional): scheduler of the new promise.
        Returns:
            Promise<list>: resulting promise.
        """
        promises = [cls.resolve(item, scheduler) for item in items]
        if not promises:
            return cls.resolve([], scheduler)

        lock = Lock()
        remaining_tasks = [len(promises)]
        results = [None] * len(promises)

        def executor(resolve, reject):
            def settle_one_promise(index, descriptor):
                with lock:
                    results[index] = descriptor
                    remaining_tasks[0] -= 1
                    if remaining_tasks[0] != 0:
                        return
                resolve(results)

            def on_fulfilled(index, value):
                settle_one_promise(index, {'status': cls.FULFILLED,
                                           'value': value})

            def on_rejected(index, reason):
                settle_one_promise(index, {'status': cls.REJECTED,
                                           'reason': reason})

            for index, p in enumerate(promises):
                p.then(partial(on_fulfilled, index),
                       partial(on_rejected, index))

        return cls(executor, scheduler=scheduler, _name='ALL_SETTLED')

    @classmethod
    def race(cls, items, scheduler=None):
        """Resolve or reject with the fastest Promise.

        The resulting Promise will be settled as soon as the one of the
        promises is settled. Result value or rejection reason of the finished
        promise are transmitted.
        All other Promise result's will be ignored.

        Args:
            items (iterable): promises, thenables or direct values.
            scheduler (Scheduler, optional): scheduler of the new promise.
        Returns:
            Promise: a promise. If the list is empty, it will never be
                settled.
        """
        promises = [cls.resolve(item, scheduler) for item in items]

        def executor(resolve, reject):
            for p in promises:
                p.then(resolve, reject)

        return cls(executor, scheduler=scheduler, _name='RACE')

    @classmethod
    def any(cls, items, scheduler=None):
        """Resolve with the first fulfilled Promise.

        Rejections are ignored, unless all promises are rejected: the
        resulting promise is then rejected with an AggregateError containing
        all the reasons, in the order of the promise list.

        Args:
            items (iterable): promises, thenables or direct values.
            scheduler (Scheduler, optional): scheduler of the new promise.
        Returns:
            Promise: a promise. If the list is empty, it's already rejected.
        """
        promises = [cls.resolve(item, scheduler) for item in items]
        if not promises:
            return cls.reject(AggregateError([]), scheduler)

        lock = Lock()
        remaining_tasks = [len(promises)]
        errors = [None] * len(promises)

        def executor(resolve, reject):
            def reject_one_promise(index, reason):
                with lock:
                    errors[index] = reason
                    remaining_tasks[0] -= 1
                    if remaining_tasks[0] != 0:
                        return
                reject(AggregateError(errors))

            for index, p in enumerate(promises):
                p.then(resolve, partial(reject_one_promise, index))

        return cls(executor, scheduler=scheduler, _name='ANY')
