"""Screen-reading farming bot: kill, loot, repeat."""

__version__ = "0.1.0"
