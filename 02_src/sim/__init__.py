"""Scripted traffic for a running bot."""

from .sim import ISim, Sim

__all__ = ["ISim", "Sim"]
