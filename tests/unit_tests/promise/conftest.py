# -*- coding: utf-8 -*-

import pytest

from thenable.promise import QueueScheduler


@pytest.fixture
def scheduler():
    """Scheduler running the callbacks only when `scheduler.run()` is called.

    Returns:
        QueueScheduler
    """
    return QueueScheduler()
