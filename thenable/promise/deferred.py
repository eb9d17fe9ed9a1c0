# -*- coding: utf-8 -*-

from .promise import Promise


class Deferred(object):
    """

    A Deferred is the "creator" side of an async task, whereas a Promise
    represents the asynchronous value from the "consumer" side.

    Attributes:
        promise (Promise): the Promise associated to the Deferred.
        resolve (function): fulfill the promise with the value passed as
            argument. The value is not adopted, even if it's a thenable.
        reject (function): reject the promise with the reason passed as
            argument.
    """

    def __init__(self, scheduler=None, _name=None):
        self.promise = Promise(self._executor, scheduler=scheduler,
                               _name=_name or 'DEFERRED')

    def _executor(self, resolve, reject):
        self.resolve = resolve
        self.reject = reject
