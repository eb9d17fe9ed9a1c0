# -*- coding: utf-8 -*-


class TimeoutError(Exception):
    """An operation could not be executed within the time allowed."""
    pass


class ChainingCycleError(TypeError):
    """A promise has been resolved with itself.

    Waiting for itself, the promise could never be settled. It's rejected with
    this error instead.
    """
    pass


class AggregateError(Exception):
    """Several errors wrapped in a single one.

    Used by `Promise.any()` when all the promises have been rejected.

    Attributes:
        errors (list): rejection reasons, in the order of the input promises.
    """

    def __init__(self, errors, message='All promises were rejected'):
        Exception.__init__(self, message)
        self.errors = list(errors)

    def __str__(self):
        return '%s (%d errors)' % (self.args[0], len(self.errors))
