import threading
import time

from fastapi.testclient import TestClient

from db import CONNECTED, DISCONNECTED
from main import create_app


def wait_until(cond, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if cond():
            return True
        time.sleep(0.01)
    return cond()


def fake_ping(store, failing):
    """Replace store.ping: the calls numbered in `failing` (1-based) report the store down."""
    calls = []

    def ping():
        calls.append(time.monotonic())
        if len(calls) in failing:
            store.state = DISCONNECTED
            return False
        store.state = CONNECTED
        return True

    store.ping = ping
    return calls


def track_schema(store):
    done = threading.Event()
    real = store.ensure_schema

    def ensure_schema():
        created = real()
        done.set()
        return created

    store.ensure_schema = ensure_schema
    return done


def test_startup_recovers_and_creates_schema(store):
    calls = fake_ping(store, failing={1, 2})
    schema_done = track_schema(store)
    app = create_app(store=store, retry_delay=0.01, ping_interval=0)

    with TestClient(app) as c:
        assert schema_done.wait(5)
        assert store.state == CONNECTED
        assert len(calls) == 3
        assert c.get("/health").json()["database"] == "connected"
        assert c.get("/check-key/c1").json() == {"found": False}


def test_watchdog_reconnects_after_loss(store):
    calls = fake_ping(store, failing={2, 3})
    app = create_app(store=store, retry_delay=0.01, ping_interval=0.02)

    with TestClient(app) as c:
        assert wait_until(lambda: len(calls) >= 4 and store.state == CONNECTED and not store.reconnecting)
        assert c.get("/leaderboard/c1").json() == {"found": False}


def test_only_one_reconnect_loop_at_a_time(store):
    fake_ping(store, failing=set(range(1, 10_000)))
    real_connect = store.connect_with_retry
    lock = threading.Lock()
    active = [0]
    peak = [0]
    loops = [0]

    def connect_with_retry(delay, attempts=None):
        with lock:
            active[0] += 1
            loops[0] += 1
            peak[0] = max(peak[0], active[0])
        try:
            return real_connect(delay, attempts)
        finally:
            with lock:
                active[0] -= 1

    store.connect_with_retry = connect_with_retry
    app = create_app(store=store, retry_delay=0.05, ping_interval=0.01)

    with TestClient(app) as c:
        time.sleep(0.3)
        assert c.get("/health").json()["database"] != "connected"

    assert loops[0] == 1
    assert peak[0] == 1
