"""CLI module for LunaBot."""
