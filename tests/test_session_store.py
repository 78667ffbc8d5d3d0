from conftest import build_test
from api.services.session_store import InMemorySessionStore, LiveSession


class FakeTime:
    def __init__(self) -> None:
        self.value = 1000.0

    def __call__(self) -> float:
        return self.value


def test_entries_expire_after_ttl() -> None:
    now = FakeTime()
    store = InMemorySessionStore(ttl_seconds=60, now=now)
    store.put("t1", LiveSession(test=build_test()))

    now.value += 59
    assert store.get("t1") is not None
    now.value += 1
    assert store.get("t1") is None
    assert len(store) == 0


def test_put_refreshes_ttl() -> None:
    now = FakeTime()
    store = InMemorySessionStore(ttl_seconds=60, now=now)
    live = LiveSession(test=build_test())
    store.put("t1", live)
    now.value += 50
    store.put("t1", live)
    now.value += 50
    assert store.get("t1") is live


def test_evict_expired_and_delete() -> None:
    now = FakeTime()
    store = InMemorySessionStore(ttl_seconds=10, now=now)
    store.put("old", LiveSession(test=build_test(test_id="old")))
    now.value += 5
    store.put("new", LiveSession(test=build_test(test_id="new")))
    now.value += 6

    assert store.evict_expired() == 1
    assert store.get("new") is not None
    assert store.delete("new")
    assert not store.delete("new")
