"""Configuration package.

Import from ``repomap.config.settings`` directly where needed so that the
environment is only read when settings are actually used.
"""

__all__: list[str] = []
