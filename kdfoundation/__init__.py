"""Signals, events, an object tree, a select()-based event loop, timers and an application object."""

__version__ = "0.1.0"