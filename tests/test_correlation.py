from dialogbridge.core import IdGenerator, PendingRegistry, Response


def test_ids_start_at_zero_and_increase():
    ids = IdGenerator()
    assert [ids.next_id(), ids.next_id(), next(ids)] == [0, 1, 2]
    assert IdGenerator(start=10).next_id() == 10


def test_independent_generators_do_not_share_state():
    a, b = IdGenerator(), IdGenerator()
    a.next_id()
    assert b.next_id() == 0


def test_resolve_consumes_handler_once():
    registry = PendingRegistry()
    seen = []
    registry.register(0, seen.append)
    assert 0 in registry and len(registry) == 1
    assert registry.resolve(0, Response(True, [6])) is True
    assert seen == [Response(True, [6])]
    assert 0 not in registry


def test_unknown_id_warns(log_records):
    assert PendingRegistry().resolve(99, Response(True)) is False
    assert any("id=99" in m for m in log_records.messages("WARNING"))


def test_handler_fault_is_logged_not_raised(log_records):
    registry = PendingRegistry()

    def broken(_response):
        raise RuntimeError("handler broke")

    registry.register(1, broken)
    assert registry.resolve(1, Response(False)) is True
    assert any("handler broke" in m for m in log_records.messages("ERROR"))
    assert len(registry) == 0


def test_discard():
    registry = PendingRegistry()
    registry.register(4, print)
    assert registry.discard(4) is print
    assert registry.discard(4) is None
