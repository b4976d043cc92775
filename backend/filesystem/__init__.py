"""Filesystem inventory."""
