"""
Configuration management for Chatglass.

- **app_configuration.py**: YAML configuration loader (``config/app_config.yml``)
  read under a shared file lock. Falls back to defaults on missing or
  malformed files.

- **moderation_settings.py**: Typed accessors for the ``moderation`` section:
  escalation thresholds and lexicon extensions.
"""
