"""Syntax harness: attribute range verification and isolated process scripts."""

__version__ = "0.1.0"
