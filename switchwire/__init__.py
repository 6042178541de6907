"""switchwire - interaction handling core for chat bots.

Ephemeral component handlers with expiry and ownership, button
pagination and a middleware pipeline around commands.
"""

__version__ = "0.3.0"
