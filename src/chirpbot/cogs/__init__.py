"""
Cogs package for the chirp bot.

Contains command groups:
- chirp: !chirp, escalation status and the stream-end watcher
- arrivals: Personal arrival sounds
- responders: Configured text commands
- tattoy: Terminal emote effects
- alerts: Raid sound and welcome

Every cog is loaded by the bot at startup.
"""
