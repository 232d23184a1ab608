"""
Chatglass - chat message moderation

Chatglass models chat message payloads and a per-user moderation state machine
that filters outgoing text for offensive or evasive content, escalating from
warnings to reports to a mute.

Core Components:

- **Message Model**: `MessageSent` / `RetrieveMessages` payloads, decoded by
  shape without a type field
- **Moderation Engine**: `GlassModeration`, which censors text through an
  injected classifier and escalates the caller's `ModerationRecord`
- **Lexical Classifier**: word-list classification that detects leetspeak,
  split letters and self-censoring
- **Interactive Console**: drive a single user's record by hand

Usage:
    from chatglass.main import main
    main()  # Starts the moderation console
"""
