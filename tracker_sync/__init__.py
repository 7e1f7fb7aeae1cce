"""
tracker-sync: espejo incremental de tableros GitHub Projects hacia Postgres.
"""

__version__ = "0.1.0"
