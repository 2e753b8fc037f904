"""
LunaBot - a Twitch chat bot.
"""

__version__ = "0.1.0"
__logo__ = "🌙"
