"""
Ruleguard - Verification and repair engine for mini-game rule scripts.

A rule script describes a short touch game as objects, counters and
trigger/action rules. The engine never runs the game; instead it provides:
- Feature and parameter validation against a capability table
- Semantic consistency checks (references, trivial outcomes, conflicts)
- A forward symbolic simulation proving the success state is reachable
- Repair: direct fixes, scoped rewrites, or a regeneration brief
"""

__version__ = "0.1.0"
