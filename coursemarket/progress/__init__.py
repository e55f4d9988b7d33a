"""Lecture progress tracking per (user, course)."""
