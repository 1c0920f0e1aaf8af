"""Helpers for locating source files."""
