"""Input scripts and the backends that play them."""

from .backends import DryRunInputBackend, InputBackend, KeyBindings, Win32InputBackend
from .script import MovementPlayer

__all__ = ["DryRunInputBackend", "InputBackend", "KeyBindings", "MovementPlayer", "Win32InputBackend"]
