# blueprints/__init__.py
"""
Flask blueprints: spreadsheet import, dashboard data and reminder emails
"""
