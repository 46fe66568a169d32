from bench_psu.telemetry import ChangeNotifier


def test_emit_reaches_subscribers_in_order():
    notifier = ChangeNotifier()
    seen = []
    notifier.subscribe(lambda v: seen.append(("a", v)))
    notifier.subscribe(lambda v: seen.append(("b", v)))
    notifier.emit(1.5)
    assert seen == [("a", 1.5), ("b", 1.5)]


def test_unsubscribe():
    notifier = ChangeNotifier()
    seen = []
    unsubscribe = notifier.subscribe(seen.append)
    notifier.emit(1.0)
    unsubscribe()
    unsubscribe()
    notifier.emit(2.0)
    assert seen == [1.0]
    assert len(notifier) == 0


def test_failing_subscriber_does_not_block_others(caplog):
    notifier = ChangeNotifier()
    seen = []

    def broken(value):
        raise ValueError("boom")

    notifier.subscribe(broken)
    notifier.subscribe(seen.append)
    notifier.emit(0.75)
    assert seen == [0.75]
    assert "failed" in caplog.text
