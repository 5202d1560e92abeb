"""
FILE: daylist/core/__init__.py
PURPOSE: Domain core: models, ordering, views, recurrence, persistence, coordinator
"""
