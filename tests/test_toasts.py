from tycoon.toasts import ToastQueue


def test_toasts_show_one_at_a_time_with_a_gap():
    queue = ToastQueue(hold_seconds=5.0)
    queue.push("a", "b")

    assert queue.update(0.0) == "a"
    assert queue.pending == 1
    assert queue.update(4.9) == "a"
    assert queue.update(5.0) is None
    assert queue.current is None
    assert queue.update(5.1) == "b"
    assert queue.update(10.0) == "b"
    assert queue.update(10.1) is None
    assert queue.update(20.0) is None


def test_toast_pushed_while_showing_waits():
    queue = ToastQueue(hold_seconds=1.0)
    queue.push("first")
    queue.update(0.0)
    queue.push("second")

    assert queue.update(0.5) == "first"
    assert queue.update(1.0) is None
    assert queue.update(1.0) == "second"
