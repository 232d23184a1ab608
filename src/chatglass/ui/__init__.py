"""Interactive operator console for exercising the moderation engine."""
