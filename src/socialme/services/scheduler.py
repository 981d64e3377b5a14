"""Activity reminder scheduling.

Every tick scans the activities starting soon and, for each reminder
threshold whose trigger instant falls inside the tolerance band around
``now``, notifies the activity's participants. A dispatch record keyed by
(activity, recipient, threshold, trigger instant) is written in the same commit
as the notification, so a threshold is dispatched at most once per recipient no
matter how many ticks see it inside the band. Participants who join after a
threshold first fired for the activity do not receive it.
"""
from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from socialme.core.settings import settings
from socialme.db.session import SessionLocal
from socialme.db.time import as_utc, utcnow
from socialme.models import Activity, ActivityParticipation, Notification, NotificationDispatch
from socialme.services.notifications import deliver_quietly
from socialme.services.sinks import NotificationSink, get_notification_sink

__all__ = [
    "ReminderThreshold",
    "T_MINUS_65MIN",
    "T_START",
    "THRESHOLDS",
    "DispatchState",
    "TickResult",
    "NotificationScheduler",
    "NotificationSchedulerWorker",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReminderThreshold:
    """A reminder fired ``offset`` before an activity starts."""

    tag: str
    offset: timedelta
    tipo: str
    title: str
    message: str

    def trigger_for(self, start: datetime) -> datetime:
        return as_utc(start) - self.offset

    def render(self, activity_name: str) -> tuple[str, str]:
        return self.title.format(name=activity_name), self.message.format(name=activity_name)


T_MINUS_65MIN = ReminderThreshold(
    tag="T_MINUS_65MIN",
    offset=timedelta(minutes=65),
    tipo="ACTIVIDAD_PROXIMA",
    title="Recordatorio: {name}",
    message='¡Tu actividad "{name}" comenzará en 1 hora y 5 minutos!',
)
T_START = ReminderThreshold(
    tag="T_START",
    offset=timedelta(0),
    tipo="ACTIVIDAD_INICIANDO",
    title="¡{name} está comenzando!",
    message='Tu actividad "{name}" está comenzando ahora.',
)
THRESHOLDS: tuple[ReminderThreshold, ...] = (T_MINUS_65MIN, T_START)


class DispatchState(Enum):
    """Whether a threshold has been sent to a recipient."""

    PENDING = "pending"
    DISPATCHED = "dispatched"


@dataclass
class TickResult:
    """Counters for one scheduler tick."""

    now: datetime
    activities_scanned: int = 0
    dispatched: int = 0
    already_dispatched: int = 0
    late_joiners: int = 0
    delivery_failures: int = 0


class NotificationScheduler:
    """Scans upcoming activities and dispatches their reminders."""

    def __init__(
        self,
        session_factory: Callable[[], Session] | None = None,
        sink: NotificationSink | None = None,
        *,
        thresholds: Sequence[ReminderThreshold] = THRESHOLDS,
        tolerance: timedelta | None = None,
    ) -> None:
        """Initialize the scheduler.

        Args:
            session_factory: Callable returning a new session per tick. Defaults
                to the application's ``SessionLocal``.
            sink: Live delivery channel; defaults to the configured sink.
            thresholds: Reminder thresholds to evaluate.
            tolerance: Half-width of the trigger band. Defaults to one
                scheduler period so one skipped tick is absorbed.
        """
        self._session_factory = session_factory or SessionLocal
        self.sink = sink or get_notification_sink()
        self.thresholds = tuple(thresholds)
        self.tolerance = tolerance or timedelta(seconds=settings.scheduler_tolerance)
        self._tick_lock = threading.Lock()

    @property
    def max_offset(self) -> timedelta:
        return max((t.offset for t in self.thresholds), default=timedelta(0))

    def is_due(self, threshold: ReminderThreshold, start: datetime, now: datetime) -> bool:
        """Return True if the trigger instant lies in ``[now - tol, now + tol)``."""
        trigger = threshold.trigger_for(start)
        return now - self.tolerance <= trigger < now + self.tolerance

    def run_tick(self, now: datetime | None = None) -> TickResult | None:
        """Run one scan; return None if another tick is still running."""
        now = as_utc(now or utcnow())
        if not self._tick_lock.acquire(blocking=False):
            logger.warning("Skipping reminder tick at %s: previous tick still running", now)
            return None
        try:
            with self._session_factory() as db:
                return self._tick(db, now)
        finally:
            self._tick_lock.release()

    def _tick(self, db: Session, now: datetime) -> TickResult:
        result = TickResult(now=now)
        window_start = now - self.tolerance
        window_end = now + self.max_offset + self.tolerance
        activities = db.scalars(
            select(Activity)
            .where(Activity.fecha_inicio >= window_start, Activity.fecha_inicio < window_end)
            .order_by(Activity.fecha_inicio)
        ).all()
        result.activities_scanned = len(activities)

        for activity in activities:
            for threshold in self.thresholds:
                if self.is_due(threshold, activity.fecha_inicio, now):
                    self._dispatch_threshold(db, activity, threshold, now, result)

        if result.dispatched:
            logger.info(
                "Reminder tick at %s dispatched %d notification(s) for %d activities",
                now, result.dispatched, result.activities_scanned,
            )
        return result

    def _dispatch_threshold(
        self,
        db: Session,
        activity: Activity,
        threshold: ReminderThreshold,
        now: datetime,
        result: TickResult,
    ) -> None:
        trigger = threshold.trigger_for(activity.fecha_inicio)
        records = self._covering_records(db, activity.id, threshold.tag, trigger)
        notified = {record.usuario_destino for record in records}
        # Lateness is measured against the first dispatch of this trigger.
        first_dispatch = min((as_utc(r.dispatched_at) for r in records), default=None)
        participants = db.scalars(
            select(ActivityParticipation).where(ActivityParticipation.actividad_id == activity.id)
        ).all()

        for participant in participants:
            if participant.username in notified:
                result.already_dispatched += 1
                continue
            if first_dispatch is not None and as_utc(participant.joined_at) > first_dispatch:
                result.late_joiners += 1
                continue

            title, message = threshold.render(activity.nombre)
            notification = Notification(
                tipo=threshold.tipo,
                titulo=title,
                mensaje=message,
                usuario_destino=participant.username,
                entidad_id=activity.id,
                entidad_nombre=activity.nombre,
                created_at=now,
            )
            record = NotificationDispatch(
                actividad_id=activity.id,
                usuario_destino=participant.username,
                threshold=threshold.tag,
                trigger_at=trigger,
                dispatched_at=now,
            )
            db.add_all([record, notification])
            try:
                db.commit()
            except IntegrityError:
                # A concurrent dispatcher got there first.
                db.rollback()
                result.already_dispatched += 1
                continue

            result.dispatched += 1
            if first_dispatch is None:
                first_dispatch = now
            if not deliver_quietly(self.sink, notification):
                result.delivery_failures += 1

    def covers(self, record: NotificationDispatch, trigger: datetime) -> bool:
        """Return True if ``record`` already answers the threshold firing at ``trigger``.

        A start time moved by less than one band width is the same reminder;
        a larger move is a new one. The old record stays in place either way.
        """
        return abs(as_utc(record.trigger_at) - trigger) < 2 * self.tolerance

    def _covering_records(
        self,
        db: Session,
        activity_id: str,
        tag: str,
        trigger: datetime,
    ) -> list[NotificationDispatch]:
        query = select(NotificationDispatch).where(
            NotificationDispatch.actividad_id == activity_id,
            NotificationDispatch.threshold == tag,
        )
        return [record for record in db.scalars(query).all() if self.covers(record, trigger)]

    @staticmethod
    def _record_exists(db: Session, activity_id: str, username: str, tag: str) -> bool:
        query = select(NotificationDispatch.actividad_id).where(
            NotificationDispatch.actividad_id == activity_id,
            NotificationDispatch.usuario_destino == username,
            NotificationDispatch.threshold == tag,
        )
        return db.scalars(query.limit(1)).first() is not None

    def dispatch_state(
        self,
        activity_id: str,
        username: str,
        threshold: ReminderThreshold | str,
        db: Session | None = None,
    ) -> DispatchState:
        """Return whether ``threshold`` was ever dispatched to ``username``.

        DISPATCHED is terminal: rescheduling the activity never reverts it.
        """
        tag = threshold.tag if isinstance(threshold, ReminderThreshold) else threshold
        if db is not None:
            found = self._record_exists(db, activity_id, username, tag)
        else:
            with self._session_factory() as session:
                found = self._record_exists(session, activity_id, username, tag)
        return DispatchState.DISPATCHED if found else DispatchState.PENDING


class NotificationSchedulerWorker:
    """Runs :meth:`NotificationScheduler.run_tick` at a fixed rate in the background.

    Slots missed because a tick overran are dropped, not queued.
    """

    def __init__(
        self,
        scheduler: NotificationScheduler | None = None,
        interval: float | None = None,
        *,
        enabled: bool | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.scheduler = scheduler or NotificationScheduler()
        self.interval = max(0.01, float(interval or settings.scheduler_interval_seconds))
        self.enabled = settings.scheduler_enabled if enabled is None else enabled
        self._clock = clock
        self._task: asyncio.Task[None] | None = None
        self._stopping = asyncio.Event()
        self.ticks = 0
        self.missed_slots = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Start the background loop."""
        if not self.enabled:
            logger.info("Reminder scheduler disabled")
            return

        if self._task is None or self._task.done():
            self._stopping.clear()
            self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Stop the background loop and wait for the current tick."""
        if self._task is None:
            return

        self._stopping.set()
        await self._task
        self._task = None

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        next_slot = loop.time()

        while not self._stopping.is_set():
            try:
                await asyncio.to_thread(self.scheduler.run_tick, self._clock())
                self.ticks += 1
            except SQLAlchemyError as e:
                logger.error("Reminder tick failed with database error: %s", e, exc_info=True)
            except (OSError, ConnectionError, TimeoutError) as e:
                logger.warning("Reminder tick failed with network error: %s", e)
            except (ValueError, TypeError, KeyError, AttributeError) as e:
                logger.error("Reminder tick failed with data error: %s", e, exc_info=True)

            next_slot += self.interval
            current = loop.time()
            if next_slot < current:
                missed = int((current - next_slot) // self.interval) + 1
                self.missed_slots += missed
                next_slot += missed * self.interval
                logger.warning("Reminder tick overran; skipping %d slot(s)", missed)

            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=next_slot - loop.time())
            except TimeoutError:
                continue
