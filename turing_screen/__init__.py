"""
Turing smart screen driver package.

This package provides:
- Command framing for the panel's write-only serial protocol
- RGB565 conversion of Pillow images
- Background/widget compositing for partial redraws
- A redraw loop that keeps one widget failure from stopping the rest
"""

__version__ = "1.0.0"
