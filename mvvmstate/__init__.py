"""Latched reactive state, view models, a task pool and UI hooks on asyncio."""

__version__ = "0.1.0"