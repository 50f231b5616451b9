"""Inbound adapters - command-line entry points."""

from db_launcher.adapters.inbound.cli import launch_main, image_main

__all__ = ["launch_main", "image_main"]
