"""Filesystem and input helpers."""
