"""Tests for activity reminder scheduling."""

from __future__ import annotations

import asyncio
import time
from datetime import UTC, datetime, timedelta

import pytest

from socialme.models import ActivityParticipation, Notification, NotificationDispatch
from socialme.services.scheduler import (
    T_MINUS_65MIN,
    T_START,
    DispatchState,
    NotificationScheduler,
    NotificationSchedulerWorker,
)

START = datetime(2025, 1, 1, 10, 0, tzinfo=UTC)


def at(hour: int, minute: int, second: int = 0) -> datetime:
    return datetime(2025, 1, 1, hour, minute, second, tzinfo=UTC)


@pytest.fixture()
def scheduler(session_factory, sink) -> NotificationScheduler:
    return NotificationScheduler(session_factory, sink, tolerance=timedelta(seconds=60))


@pytest.fixture()
def morning_run(running_club, bob, carol, make_activity):
    return make_activity(running_club.url, "alice", START, participants=("bob", "carol"))


def _reminders(db_session, tipo: str) -> list[Notification]:
    return list(db_session.query(Notification).filter_by(tipo=tipo).all())


def test_reminder_fires_once_inside_the_band(scheduler, sink, morning_run, db_session) -> None:
    early = scheduler.run_tick(at(8, 54))
    on_time = scheduler.run_tick(at(8, 55))
    late = scheduler.run_tick(at(8, 56))

    assert early.dispatched == 0
    assert on_time.dispatched == 2
    assert late.dispatched == 0
    assert late.already_dispatched == 2

    reminders = _reminders(db_session, T_MINUS_65MIN.tipo)
    assert sorted(n.usuario_destino for n in reminders) == ["bob", "carol"]
    assert all(n.entidad_id == morning_run.id for n in reminders)
    assert all(n.titulo == "Recordatorio: Morning run" for n in reminders)
    assert sorted(sink.recipients) == ["bob", "carol"]


def test_irregular_ticks_dispatch_each_threshold_exactly_once(
    scheduler, sink, morning_run, db_session
) -> None:
    steps = [17, 59, 3, 41, 60, 29]
    now = at(8, 50)
    i = 0
    while now < at(10, 5):
        scheduler.run_tick(now)
        now += timedelta(seconds=steps[i % len(steps)])
        i += 1

    for threshold in (T_MINUS_65MIN, T_START):
        recipients = sorted(n.usuario_destino for n in _reminders(db_session, threshold.tipo))
        assert recipients == ["bob", "carol"]
    assert len(sink.delivered) == 4


def test_a_single_skipped_tick_is_absorbed(scheduler, morning_run, db_session) -> None:
    scheduler.run_tick(at(8, 54))
    # The 08:55 tick never ran.
    result = scheduler.run_tick(at(8, 56))

    assert result.dispatched == 2
    assert len(_reminders(db_session, T_MINUS_65MIN.tipo)) == 2


def _join(db_session, activity, username: str, joined_at: datetime) -> None:
    db_session.add(
        ActivityParticipation(
            username=username,
            actividad_id=activity.id,
            nombre_actividad=activity.nombre,
            joined_at=joined_at,
        )
    )
    db_session.commit()


def test_late_joiner_skips_thresholds_that_already_fired(
    scheduler, running_club, bob, carol, make_activity, db_session
) -> None:
    activity = make_activity(running_club.url, "alice", START, participants=("bob",))

    first = scheduler.run_tick(at(8, 55))
    _join(db_session, activity, "carol", at(8, 55, 20))
    reminder = scheduler.run_tick(at(8, 55, 50))
    starting = scheduler.run_tick(at(10, 0))

    assert first.dispatched == 1
    assert reminder.dispatched == 0
    assert reminder.late_joiners == 1
    assert starting.dispatched == 2
    assert [n.usuario_destino for n in _reminders(db_session, T_MINUS_65MIN.tipo)] == ["bob"]
    assert scheduler.dispatch_state(activity.id, "carol", T_MINUS_65MIN) is DispatchState.PENDING
    assert scheduler.dispatch_state(activity.id, "carol", T_START) is DispatchState.DISPATCHED


def test_join_inside_the_band_before_the_first_dispatch_is_notified(
    scheduler, running_club, bob, carol, make_activity, db_session
) -> None:
    activity = make_activity(running_club.url, "alice", START, participants=("bob",))
    _join(db_session, activity, "carol", at(8, 55, 10))

    result = scheduler.run_tick(at(8, 55, 30))

    assert result.dispatched == 2
    assert result.late_joiners == 0
    assert scheduler.dispatch_state(activity.id, "carol", T_MINUS_65MIN) is DispatchState.DISPATCHED


def test_join_after_an_early_dispatch_is_late(
    scheduler, running_club, bob, carol, make_activity, db_session
) -> None:
    activity = make_activity(running_club.url, "alice", START, participants=("bob",))

    # 08:54:30 already sees the 08:55 trigger inside the band.
    assert scheduler.run_tick(at(8, 54, 30)).dispatched == 1
    _join(db_session, activity, "carol", at(8, 54, 50))
    result = scheduler.run_tick(at(8, 55, 30))

    assert result.dispatched == 0
    assert result.late_joiners == 1
    assert scheduler.dispatch_state(activity.id, "carol", T_MINUS_65MIN) is DispatchState.PENDING


def test_small_reschedule_does_not_repeat_a_sent_reminder(
    scheduler, morning_run, db_session
) -> None:
    scheduler.run_tick(at(8, 55))
    morning_run.fecha_inicio = START + timedelta(minutes=1)
    db_session.commit()

    result = scheduler.run_tick(at(8, 56))

    assert result.dispatched == 0
    assert result.already_dispatched == 2
    assert sorted(n.usuario_destino for n in _reminders(db_session, T_MINUS_65MIN.tipo)) == [
        "bob",
        "carol",
    ]


def test_moving_an_activity_to_another_day_fires_its_reminders_again(
    scheduler, morning_run, db_session
) -> None:
    scheduler.run_tick(at(8, 55))
    morning_run.fecha_inicio = START + timedelta(days=1)
    db_session.commit()

    assert scheduler.dispatch_state(morning_run.id, "bob", T_MINUS_65MIN) is DispatchState.DISPATCHED
    result = scheduler.run_tick(at(8, 55) + timedelta(days=1))

    assert result.dispatched == 2
    assert len(_reminders(db_session, T_MINUS_65MIN.tipo)) == 4
    assert db_session.query(NotificationDispatch).filter_by(threshold=T_MINUS_65MIN.tag).count() == 4


def test_overlapping_tick_is_skipped(scheduler, morning_run, db_session) -> None:
    assert scheduler._tick_lock.acquire(blocking=False)
    try:
        assert scheduler.run_tick(at(8, 55)) is None
    finally:
        scheduler._tick_lock.release()

    assert _reminders(db_session, T_MINUS_65MIN.tipo) == []
    assert scheduler.run_tick(at(8, 55)).dispatched == 2


def test_delivery_failure_keeps_the_stored_notification(
    scheduler, sink, morning_run, db_session
) -> None:
    sink.fail = True

    result = scheduler.run_tick(at(8, 55))
    retry = scheduler.run_tick(at(8, 55, 30))

    assert result.dispatched == 2
    assert result.delivery_failures == 2
    assert retry.dispatched == 0
    assert len(_reminders(db_session, T_MINUS_65MIN.tipo)) == 2
    assert sink.delivered == []


def test_dispatch_state_tracks_each_recipient(scheduler, morning_run, db_session) -> None:
    assert scheduler.dispatch_state(morning_run.id, "bob", T_START) is DispatchState.PENDING

    scheduler.run_tick(at(10, 0, 20))

    assert scheduler.dispatch_state(morning_run.id, "bob", "T_START", db=db_session) is DispatchState.DISPATCHED
    assert scheduler.dispatch_state(morning_run.id, "bob", T_MINUS_65MIN) is DispatchState.PENDING


def test_is_due_band_is_half_open(scheduler) -> None:
    assert not scheduler.is_due(T_START, START, START - timedelta(seconds=60))
    assert scheduler.is_due(T_START, START, START - timedelta(seconds=59))
    assert scheduler.is_due(T_START, START, START + timedelta(seconds=60))
    assert not scheduler.is_due(T_START, START, START + timedelta(seconds=61))


def test_activities_outside_the_window_are_not_scanned(scheduler, morning_run) -> None:
    assert scheduler.run_tick(at(7, 0)).activities_scanned == 0
    assert scheduler.run_tick(at(9, 30)).activities_scanned == 1


class CountingScheduler:
    def __init__(self, delay: float = 0.0) -> None:
        self.delay = delay
        self.calls: list[datetime] = []

    def run_tick(self, now: datetime) -> None:
        self.calls.append(now)
        if self.delay:
            time.sleep(self.delay)


@pytest.mark.asyncio
async def test_worker_ticks_until_stopped() -> None:
    scheduler = CountingScheduler()
    worker = NotificationSchedulerWorker(scheduler, interval=0.01, enabled=True)

    await worker.start()
    await asyncio.sleep(0.1)
    await worker.stop()

    assert worker.running is False
    assert worker.ticks >= 2
    assert len(scheduler.calls) == worker.ticks


@pytest.mark.asyncio
async def test_worker_drops_slots_missed_by_a_slow_tick() -> None:
    scheduler = CountingScheduler(delay=0.05)
    worker = NotificationSchedulerWorker(scheduler, interval=0.01, enabled=True)

    await worker.start()
    await asyncio.sleep(0.12)
    await worker.stop()

    assert worker.missed_slots > 0
    assert len(scheduler.calls) == worker.ticks


@pytest.mark.asyncio
async def test_disabled_worker_does_not_start() -> None:
    worker = NotificationSchedulerWorker(CountingScheduler(), interval=0.01, enabled=False)

    await worker.start()

    assert worker.running is False
    await worker.stop()


class FailingOnceScheduler(CountingScheduler):
    def run_tick(self, now: datetime) -> None:
        super().run_tick(now)
        if len(self.calls) == 1:
            raise ValueError("bad row")


@pytest.mark.asyncio
async def test_worker_survives_a_tick_that_raises(caplog) -> None:
    scheduler = FailingOnceScheduler()
    worker = NotificationSchedulerWorker(scheduler, interval=0.01, enabled=True)

    with caplog.at_level("ERROR", logger="socialme.services.scheduler"):
        await worker.start()
        await asyncio.sleep(0.1)
        assert worker.running is True
        await worker.stop()

    assert len(scheduler.calls) >= 2
    assert worker.ticks == len(scheduler.calls) - 1
    assert "bad row" in caplog.text
