"""daylist - personal task tracker with today/backlog views and ordered groups."""

__version__ = "0.1.0"
