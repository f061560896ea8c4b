import pytest
from pytest_mock import MockerFixture

from audio_annote.tasks import TaskQueue


def test_submit_defers_until_drain() -> None:
    queue = TaskQueue()
    ran = []

    task = queue.submit(ran.append, "a")
    assert ran == []
    assert queue.pending() == 1

    assert queue.run_pending() == 1
    assert ran == ["a"]
    assert task.done
    assert queue.pending() == 0


def test_cancel_by_key() -> None:
    queue = TaskQueue()
    ran = []
    queue.submit(ran.append, 1, key="r1")
    queue.submit(ran.append, 2, key="r2")
    queue.submit(ran.append, 3, key="r1")

    assert queue.cancel("r1") == 2
    assert queue.cancel("r1") == 0
    assert queue.pending() == 1

    queue.run_pending()
    assert ran == [2]


def test_work_queued_during_drain_waits_for_next_drain() -> None:
    queue = TaskQueue()
    ran = []

    def first() -> None:
        ran.append("first")
        queue.submit(ran.append, "second")

    queue.submit(first)
    assert queue.run_pending() == 1
    assert ran == ["first"]
    assert queue.run_pending() == 1
    assert ran == ["first", "second"]


def test_wake_called_once_while_idle(mocker: MockerFixture) -> None:
    wake = mocker.stub()
    queue = TaskQueue(wake=wake)

    queue.submit(lambda: None)
    queue.submit(lambda: None)
    wake.assert_called_once_with()

    queue.run_pending()
    queue.submit(lambda: None)
    assert wake.call_count == 2


def test_failing_task_keeps_rest_of_batch() -> None:
    queue = TaskQueue()
    ran = []

    def boom() -> None:
        raise RuntimeError("boom")

    queue.submit(ran.append, 1)
    queue.submit(boom)
    queue.submit(ran.append, 3)

    with pytest.raises(RuntimeError):
        queue.run_pending()
    assert ran == [1]
    assert queue.pending() == 1

    queue.run_pending()
    assert ran == [1, 3]
