"""Launcher adapters."""
