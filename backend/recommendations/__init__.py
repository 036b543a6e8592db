"""
Restaurant recommendation engine.

Responsibilities:
- Score each restaurant against one user's dining preferences.
- Explain each recommendation with human-readable reasons.
- Rank active restaurants for a user, optionally skipping favorites.
- Find restaurants similar to a reference restaurant.
"""
