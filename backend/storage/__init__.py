"""
Persistence collaborator.

Responsibilities:
- Hold users, restaurants, matches, reviews, favorites and discussions.
- Provide atomic read-modify-write helpers for counters and match status.
"""
