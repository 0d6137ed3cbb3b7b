"""
Candidate aggregation and personalisation.

Responsibilities:
- Turn a geographic query into a canonical, de-duplicated, cached candidate list.
- Filter candidates against hard price constraints.
- Rank candidates for a user from favorites, interaction history and variety jitter.
- Mine recurring (day, meal) patterns from the user's past selections.
"""
