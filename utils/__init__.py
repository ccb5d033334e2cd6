# utils/__init__.py
"""
Utils Package for the Training & QMS Dashboard

Persistence of imported records, import templates, dashboard statistics,
reminder emails and route decorators.
"""
