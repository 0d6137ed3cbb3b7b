"""
Group decision rooms.

Responsibilities:
- Snapshot aggregated candidates for a shareable room slug.
- Admit anonymous participants through per-room session tokens.
- Record one verdict per participant and place, last swipe wins.
- Evaluate veto / unanimous / majority consensus and close the room once.
"""
