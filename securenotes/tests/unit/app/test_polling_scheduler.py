from __future__ import annotations

from unittest.mock import MagicMock

from securenotes.app.polling_scheduler import PollingScheduler
from securenotes.tests.unit.helpers import make_scheduler


def test_rescheduling_a_key_replaces_its_timer() -> None:
    loop, scheduler = make_scheduler()
    fired = []

    scheduler.schedule("tx:a", 1000, lambda: fired.append("first"))
    scheduler.schedule("tx:a", 500, lambda: fired.append("second"))
    loop.advance(2000)

    assert fired == ["second"]
    assert scheduler.pending_keys == ()


def test_callback_may_reschedule_its_own_key() -> None:
    loop, scheduler = make_scheduler()
    ticks = []

    def tick() -> None:
        ticks.append(loop.now)
        if len(ticks) < 3:
            scheduler.schedule("accounts", 100, tick)

    scheduler.schedule("accounts", 100, tick)
    loop.advance(1000)

    assert ticks == [100, 200, 300]
    assert scheduler.handle_for("accounts") is None


def test_cancel_all_stops_every_key() -> None:
    loop, scheduler = make_scheduler()
    fired = []
    for key in ("tx:a", "refresh:a", "accounts"):
        scheduler.schedule(key, 10, lambda key=key: fired.append(key))

    assert set(scheduler.pending_keys) == {"tx:a", "refresh:a", "accounts"}
    scheduler.cancel_all()
    loop.advance(100)

    assert fired == []
    assert loop.pending == []


def test_host_cancel_failure_is_tolerated() -> None:
    after = MagicMock(return_value="token-1")
    after_cancel = MagicMock(side_effect=RuntimeError("invalid command name"))
    scheduler = PollingScheduler(after, after_cancel)

    scheduler.schedule("tx:a", 0, lambda: None)
    scheduler.cancel("tx:a")

    assert after.call_args.args[0] == 1
    after_cancel.assert_called_once_with("token-1")
    assert scheduler.pending_keys == ()
