from typing import Callable


class TimerHandle:
    """Cancellation flag shared between the scheduler and the sleeping task."""

    def __init__(self, label: str = ''):
        self.label = label
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True


class BackgroundScheduler:
    """One-shot timers run as Socket.IO background tasks.

    - Each call gets its own TimerHandle; cancel() before expiry drops the fire
    - The callback runs inside an app context so it can log and emit
    - TIMER_HEARTBEAT_SEC > 0 logs remaining time while sleeping
    """

    def __init__(self, app, socketio):
        self.app = app
        self.socketio = socketio

    def call_later(self, delay: float, callback: Callable[[], object], label: str = '') -> TimerHandle:
        handle = TimerHandle(label)
        self.app.logger.info(f"[timer-set] {label} duration={delay}s")
        self.socketio.start_background_task(self._worker, handle, delay, callback)
        return handle

    def _worker(self, handle: TimerHandle, delay: float, callback: Callable[[], object]) -> None:
        hb = float(self.app.config.get('TIMER_HEARTBEAT_SEC', 0) or 0)
        if hb > 0:
            slept = 0.0
            while slept < delay and not handle.cancelled:
                step = min(hb, delay - slept)
                self.socketio.sleep(step)
                slept += step
                self.app.logger.info(f"[timer-heartbeat] {handle.label} remaining={max(0.0, delay - slept)}s")
        else:
            self.socketio.sleep(delay)

        if handle.cancelled:
            self.app.logger.info(f"[timer-abort] {handle.label} cancelled")
            return
        handle.fired = True
        self.app.logger.info(f"[timer-fire] {handle.label}")
        with self.app.app_context():
            callback()
