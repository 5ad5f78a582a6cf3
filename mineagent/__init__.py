"""mineagent — tick-driven companion tasks and automated mine construction."""

__version__ = "1.0.0"
