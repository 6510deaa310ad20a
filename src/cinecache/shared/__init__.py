"""Shared constants, errors and logging helpers for cinecache."""
