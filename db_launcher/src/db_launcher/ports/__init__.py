"""Launcher ports."""
