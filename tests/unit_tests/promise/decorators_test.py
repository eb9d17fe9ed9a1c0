# -*- coding: utf-8 -*-

import pytest
from types import SimpleNamespace

from thenable.promise import Promise, is_thenable, wrap_promise


class TestDecorator(object):

    def test_wrap_sync_function(self):
        @wrap_promise
        def f(x):
            return x * 3

        p = f(30)
        assert isinstance(p, Promise)
        assert p.result(0.001) == 90
        assert f.__name__ == 'f'

    def test_wrap_function_returning_promise(self):
        inner = Promise.resolve(40)

        @wrap_promise
        def f(x):
            return inner

        p = f(30)
        assert p is inner
        assert p.result(0.001) == 40

    def test_wrap_function_returning_thenable(self):
        @wrap_promise
        def f(x):
            return SimpleNamespace(then=lambda res, rej: res(x + 1))

        p = f(30)
        assert isinstance(p, Promise)
        assert p.result(0.001) == 31

    def test_wrap_function_with_exception(self):
        class MyException(Exception):
            pass

        @wrap_promise
        def f(x):
            raise MyException()

        p = f(30)
        assert isinstance(p, Promise)
        with pytest.raises(MyException):
            p.result(0.001)


class TestIsThenable(object):

    def test_promise_is_thenable(self):
        assert is_thenable(Promise.resolve(1))

    def test_object_with_then_method(self):
        assert is_thenable(SimpleNamespace(then=lambda res, rej: None))

    def test_non_callable_then(self):
        assert not is_thenable(SimpleNamespace(then=3))

    def test_plain_values(self):
        for value in (None, 3, 'str', [], {}):
            assert not is_thenable(value)
