"""
User-to-user matching.

Responsibilities:
- Score compatibility between two user profiles.
- Rank a candidate pool of users for one requester.
- Create match proposals and track each side's accept/decline decision.
"""
