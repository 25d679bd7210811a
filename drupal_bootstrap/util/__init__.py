"""Filesystem and process helpers."""
