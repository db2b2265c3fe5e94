"""Microsoft Teams channel for the bot event bus."""
