"""Launcher domain layer."""
