from prefstore.observers import ObserverRegistry


def test_notify_in_registration_order():
    reg = ObserverRegistry()
    calls = []
    reg.subscribe(lambda: calls.append("first"))
    reg.subscribe(lambda: calls.append("second"))
    reg.notify()
    assert calls == ["first", "second"]


def test_subscribe_is_idempotent_and_unsubscribe_tolerant():
    reg = ObserverRegistry()
    calls = []

    def obs():
        calls.append(1)

    reg.subscribe(obs)
    reg.subscribe(obs)
    assert len(reg) == 1
    reg.notify()
    assert calls == [1]

    reg.unsubscribe(obs)
    reg.unsubscribe(obs)
    reg.unsubscribe(lambda: None)
    reg.notify()
    assert calls == [1]


def test_unsubscribe_handle():
    reg = ObserverRegistry()
    calls = []
    off = reg.subscribe(lambda: calls.append(1))
    off()
    reg.notify()
    assert calls == []


def test_failing_observer_does_not_stop_others(caplog):
    reg = ObserverRegistry("test observer")
    calls = []

    def broken():
        raise RuntimeError("boom")

    reg.subscribe(broken)
    reg.subscribe(lambda: calls.append("after"))
    reg.notify()
    assert calls == ["after"]
    assert "test observer" in caplog.text


def test_payload_is_passed_through():
    reg = ObserverRegistry()
    seen = []
    reg.subscribe(seen.append)
    reg.notify("err")
    assert seen == ["err"]
