"""
Utility functions and helpers for Chatglass.

- **logger.py**: Centralized logging configuration with colored console output,
  a rotating per-session log file, and an uncaught-exception hook. Uses
  prompt_toolkit so log lines do not break the interactive console prompt.
"""
