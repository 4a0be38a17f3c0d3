"""Caller-side state: the single current configuration and the "now" refresh task.

The engine keeps no state. A Session owns one immutable ObserverContext,
replaces it on every change and recomputes the scene.
"""

import dataclasses
import logging
import threading
from collections.abc import Callable
from datetime import date, datetime

from pytz import timezone

from solarsim.compute import (
    MINUTES_PER_DAY,
    InputError,
    compute_scene,
    resolve_context,
)
from solarsim.config import Settings
from solarsim.ephemeris import SunPositionProvider
from solarsim.models import (
    ObserverContext,
    PanelOrientation,
    QueryInput,
    SceneData,
)

_LOGGER = logging.getLogger(__name__)


class NowTicker:
    """Repeating task that calls `callback` every `interval` seconds until cancelled."""

    def __init__(self, interval: float, callback: Callable[[], None]) -> None:
        self.interval = interval
        self._callback = callback
        self._timer: threading.Timer | None = None
        self._lock = threading.Lock()
        self._cancelled = False

    @property
    def running(self) -> bool:
        return self._timer is not None and not self._cancelled

    def start(self) -> None:
        with self._lock:
            self._cancelled = False
            self._schedule()

    def cancel(self) -> None:
        with self._lock:
            self._cancelled = True
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def _schedule(self) -> None:
        self._timer = threading.Timer(self.interval, self._fire)
        self._timer.daemon = True
        self._timer.start()

    def _fire(self) -> None:
        with self._lock:
            if self._cancelled:
                return
        try:
            self._callback()
        except Exception:
            _LOGGER.exception("Refresh failed; retrying in %s s", self.interval)
        with self._lock:
            if not self._cancelled:
                self._schedule()


class Session:
    """Holds the current configuration and recomputes the scene on each change.

    While `follow_now` is on, a NowTicker moves the time to the current
    instant every `Settings.refresh_seconds`. Setting the time manually
    stops it for good. Changes from the ticker thread and from the caller
    are serialized; a refresh that loses the race to `set_time` is dropped.
    """

    def __init__(
        self,
        context: ObserverContext,
        provider: SunPositionProvider | None = None,
        settings: Settings | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.settings = settings or Settings.from_env()
        self._provider = provider
        self._clock = clock or (lambda: datetime.now(timezone(context.tz_name)))
        self._lock = threading.RLock()
        self._context = context
        self._scene: SceneData | None = None
        self._listeners: list[Callable[[SceneData], None]] = []
        self._ticker = NowTicker(self.settings.refresh_seconds, self._refresh_from_ticker)

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        provider: SunPositionProvider | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> "Session":
        """Start at the configured default location, panel and today's date at noon."""
        settings = settings or Settings.from_env()
        context = resolve_context(
            QueryInput(
                latitude=settings.latitude,
                longitude=settings.longitude,
                date=date.today().isoformat(),
                time_minutes=12 * 60,
                panel_heading_deg=settings.panel_heading_deg,
                panel_tilt_deg=settings.panel_tilt_deg,
            )
        )
        return cls(context, provider=provider, settings=settings, clock=clock)

    @property
    def context(self) -> ObserverContext:
        return self._context

    @property
    def scene(self) -> SceneData:
        with self._lock:
            if self._scene is None:
                self._scene = compute_scene(
                    self._context, self._provider, radius=self.settings.scene_radius
                )
            return self._scene

    @property
    def follows_now(self) -> bool:
        return self._ticker.running

    def subscribe(self, listener: Callable[[SceneData], None]) -> None:
        self._listeners.append(listener)

    def follow_now(self) -> None:
        """Jump to the current instant and keep following it."""
        self.refresh_now()
        self._ticker.start()

    def stop(self) -> None:
        self._ticker.cancel()

    def refresh_now(self) -> None:
        instant = self._clock()
        with self._lock:
            self._move_to(instant)

    def set_location(self, latitude: float, longitude: float) -> None:
        with self._lock:
            query = dataclasses.replace(
                self._query(), latitude=latitude, longitude=longitude, tz_name=None
            )
            self._apply(query)
        _LOGGER.info("Location changed to %.4f, %.4f", latitude, longitude)

    def set_date(self, value: str) -> None:
        with self._lock:
            self._apply(dataclasses.replace(self._query(), date=value))

    def set_time(self, minutes: int) -> None:
        """Manual time override. Cancels the "now" refresh task."""
        with self._lock:
            self._ticker.cancel()
            self._apply(dataclasses.replace(self._query(), time_minutes=minutes))

    def set_panel(self, heading_deg: float, tilt_deg: float) -> None:
        with self._lock:
            self._replace(
                panel=PanelOrientation(heading_deg=heading_deg, tilt_deg=tilt_deg)
            )

    def _refresh_from_ticker(self) -> None:
        # The clock may block; only the context swap holds the lock
        instant = self._clock()
        with self._lock:
            if not self._ticker.running:
                _LOGGER.debug("Dropping refresh to %s after manual time", instant)
                return
            self._move_to(instant)

    def _move_to(self, instant: datetime) -> None:
        now = instant.astimezone(timezone(self._context.tz_name))
        _LOGGER.info("Refreshing to current time %s", now.isoformat())
        self._replace(day=now.date(), local_dt=now)

    def _query(self) -> QueryInput:
        ctx = self._context
        if ctx.local_dt.date() > ctx.day:
            minutes = MINUTES_PER_DAY
        else:
            minutes = ctx.local_dt.hour * 60 + ctx.local_dt.minute
        return QueryInput(
            latitude=ctx.location.latitude,
            longitude=ctx.location.longitude,
            date=ctx.day.isoformat(),
            time_minutes=minutes,
            panel_heading_deg=ctx.panel.heading_deg,
            panel_tilt_deg=ctx.panel.tilt_deg,
            tz_name=ctx.tz_name,
        )

    def _apply(self, query: QueryInput) -> None:
        try:
            context = resolve_context(query)
        except InputError:
            _LOGGER.warning("Rejected configuration change: %s", query)
            raise
        self._set(context)

    def _replace(self, **changes) -> None:
        self._set(dataclasses.replace(self._context, **changes))

    def _set(self, context: ObserverContext) -> None:
        with self._lock:
            self._context = context
            self._scene = None
            if self._listeners:
                scene = self.scene
                for listener in self._listeners:
                    listener(scene)
