"""Plain data types: message payloads, users and moderation records."""
