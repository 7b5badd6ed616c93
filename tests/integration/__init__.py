"""Integration tests for the /files HTTP API.

Runs real requests through the app with its lifespan, a temporary SQLite
database, and in-process generated PDFs.
"""
