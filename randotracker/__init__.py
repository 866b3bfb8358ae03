"""
Randotracker - Randomizer State Tracker

A reactive rules engine for tracking game randomizer progress.
The tracker loads a game-logic description and provides:
- Boolean facts (items held, regions reached, bosses defeated)
- Rules that derive further facts from the ones already known
- Incremental re-evaluation and change notification as facts change
- Entity wrappers (items, regions, locations, dungeons) for display layers
"""

__version__ = "0.1.0"
