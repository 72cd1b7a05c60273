#!/usr/bin/env python3
"""
Turing Smart Screen - Application Entry Point

Opens the panel, applies orientation/brightness, sends the background once
and then redraws the clock widget until interrupted.
"""

import argparse
import asyncio
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from .config import ScreenConfig, default_config, load_from_toml
from .display_controller import DisplayController
from .protocol_config import Orientation
from .redraw_loop import RedrawLoop
from .serial_port import TransportError
from .widgets import ClockWidget, Widget

logger = logging.getLogger(__name__)


def build_widgets(config: ScreenConfig) -> List[Widget]:
    widgets: List[Widget] = []
    if config.clock is not None:
        clock = config.clock
        widgets.append(
            ClockWidget(
                clock.x,
                clock.y,
                clock.width,
                clock.height,
                font_path=clock.font_path,
                font_size=clock.font_size,
                time_format=clock.time_format,
            )
        )
    return widgets


async def initialize_screen(controller: DisplayController, config: ScreenConfig) -> None:
    """Bring the panel into a known state and send the background."""
    await controller.set_orientation(Orientation.PORTRAIT)
    await controller.set_brightness(config.brightness)
    await controller.clear()
    await controller.set_orientation(config.orientation, config.width, config.height)

    if config.background_path:
        logger.info("Setting background...")
        await controller.set_background(config.background_path)


async def run(config: ScreenConfig, ticks: Optional[int] = None) -> None:
    """
    Run the screen until cancelled, or for a fixed number of ticks.

    Args:
        config: Screen configuration
        ticks: Stop after this many redraws (None runs forever)
    """
    controller = DisplayController(
        serial_config=config.serial,
        background_size=config.background_size,
    )
    loop = RedrawLoop(controller, build_widgets(config), config.refresh_interval)

    logger.info(f"Opening screen on {config.serial.port}...")
    async with controller:
        await initialize_screen(controller, config)

        if ticks is None:
            await loop.run()
        else:
            for _ in range(ticks):
                await loop.run_once()
                await asyncio.sleep(config.refresh_interval)

    logger.info(f"Redraw stats: {loop.get_stats()}")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Turing smart screen driver")
    parser.add_argument("--config", help="Path to configuration file")
    parser.add_argument("--port", help="Serial port (overrides config)")
    parser.add_argument("--background", help="Background image (overrides config)")
    parser.add_argument(
        "--mock", action="store_true", help="Use a mock serial port (no hardware)"
    )
    parser.add_argument(
        "--ticks", type=int, help="Stop after this many redraws (default: run forever)"
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )
    return parser.parse_args(argv)


def load_config(args: argparse.Namespace) -> ScreenConfig:
    config = load_from_toml(Path(args.config)) if args.config else default_config()

    serial = config.serial
    if args.port:
        serial = replace(serial, port=args.port)
    if args.mock:
        serial = replace(serial, mock=True)
    config = replace(config, serial=serial)

    if args.background:
        config = replace(config, background_path=args.background)
    return config


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        config = load_config(args)
        asyncio.run(run(config, ticks=args.ticks))
    except KeyboardInterrupt:
        logger.info("Stopped by user")
    except (TransportError, FileNotFoundError, ValueError) as e:
        logger.error(f"Error: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
