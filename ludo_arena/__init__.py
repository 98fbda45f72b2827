"""
Ludo Arena - Authoritative multiplayer Ludo engine.

The engine is the single source of truth for a four-color dice race game
played on a shared circular track. It provides:
- Board geometry and position model
- Dice with anti-spam and six-weighting rules
- Legal move generation and capture resolution
- Turn rotation, ranking and game completion
- Bot strategies for computer-controlled seats
- A real-time session orchestrator (timers, timeouts, bot takeover)
"""

__version__ = "0.1.0"
