"""Platform directory resolution using platformdirs."""

from __future__ import annotations

from pathlib import Path

from platformdirs import user_config_dir, user_log_dir

APP_NAME = "dotsettings"


class PlatformPathProvider:
    """Resolve per-user directories for an application name."""

    def __init__(self, app_name: str = APP_NAME, app_author: str | bool = False) -> None:
        self._app_name = app_name
        self._app_author = app_author

    def resolve_app_config_dir(self) -> Path:
        """Return the user config directory, e.g. ``~/.config/<app_name>`` on Linux."""
        return Path(user_config_dir(appname=self._app_name, appauthor=self._app_author))

    def resolve_app_log_dir(self) -> Path:
        """Return the user log directory for the application."""
        return Path(user_log_dir(appname=self._app_name, appauthor=self._app_author))
