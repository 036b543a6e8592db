"""
Seed data package.

Responsibilities:
- Load bundled restaurant and user CSV files with pandas.
- Normalize them into the canonical Restaurant and User records.
- Insert them into the in-memory store at startup or on demand.
"""
