"""Gradebook - persistence layer for users, exercises and graded submissions."""

__version__ = "0.1.0"
