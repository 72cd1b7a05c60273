"""
Redraw loop that keeps widgets up to date.

One failing tick is logged and counted; the next tick runs regardless.
"""

import asyncio
import logging
import time
from typing import Any, Dict, List, Sequence

from .display_controller import DisplayController
from .widgets import Widget

logger = logging.getLogger(__name__)


class RedrawLoop:
    """
    Periodically redraws a set of widgets.

    Ticks run strictly one after another: a tick starts only after every
    draw_widget call of the previous tick has finished writing, so frames for
    different widgets never interleave on the wire. A failing tick is logged
    and counted; the loop carries on with the next one.
    """

    def __init__(
        self,
        controller: DisplayController,
        widgets: Sequence[Widget],
        interval: float = 1.0,
    ):
        if interval <= 0:
            raise ValueError("interval must be > 0")

        self.controller = controller
        self.widgets: List[Widget] = list(widgets)
        self.interval = interval
        self._running = False

        self._stats = {
            "ticks": 0,
            "failures": 0,
            "frames_sent": 0,
        }

    @property
    def running(self) -> bool:
        return self._running

    async def run_once(self) -> bool:
        """
        Draw every widget once.

        Returns:
            bool: True if all widgets were drawn without error
        """
        self._stats["ticks"] += 1
        ok = True
        for widget in self.widgets:
            try:
                if await self.controller.draw_widget(widget):
                    self._stats["frames_sent"] += 1
            except asyncio.CancelledError:
                raise
            except Exception as e:
                ok = False
                self._stats["failures"] += 1
                logger.error(f"Error updating {widget!r}: {e}")
        return ok

    async def run(self) -> None:
        """Redraw at the configured interval until stop() or cancellation."""
        if self._running:
            logger.warning("Redraw loop already running")
            return

        self._running = True
        logger.info(
            f"Starting redraw loop: {len(self.widgets)} widgets every {self.interval}s"
        )

        try:
            while self._running:
                started = time.monotonic()
                await self.run_once()

                # sleep for the remainder of the interval
                elapsed = time.monotonic() - started
                await asyncio.sleep(max(0.0, self.interval - elapsed))

        except asyncio.CancelledError:
            logger.info("Redraw loop cancelled")
            raise
        finally:
            self._running = False
            logger.info("Redraw loop stopped")

    def stop(self) -> None:
        """Ask the loop to exit after the current tick."""
        self._running = False
        logger.info("Stopping redraw loop")

    def get_stats(self) -> Dict[str, Any]:
        return self._stats.copy()
