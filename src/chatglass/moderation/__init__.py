"""
Moderation engine for Chatglass.

- **glass_moderation.py**: `GlassModeration`, the warn/report/mute state
  machine applied to a caller-owned `ModerationRecord`.

- **classification.py**: The `Classifier` protocol, `ContentType` flags, the
  fixed censor settings and the default `LexicalClassifier`.

- **moderation_errors.py**: `UserMuted`, `InappropriateContent` and
  `ClassificationFailed`.
"""
