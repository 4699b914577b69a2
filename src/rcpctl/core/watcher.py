"""Follow the configuration file and reload it when it changes on disk.

Backs ``rcpctl config watch``, which reports every edit as it lands.
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Callable, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from rcpctl.core.config import load_config, resolve_config_path
from rcpctl.core.document import ConfigDocument
from rcpctl.errors import ConfigError
from rcpctl.utils.logging import get_logger


class ConfigFileHandler(FileSystemEventHandler):
    """Watches the config file's directory and debounces changes to it."""

    def __init__(self, config_path: Path, reload_callback: Callable[[], None], debounce_seconds: float = 0.5) -> None:
        super().__init__()
        self._config_path = config_path
        self._reload_callback = reload_callback
        self._debounce_seconds = debounce_seconds
        self._debounce_timer: Optional[threading.Timer] = None
        self._lock = threading.Lock()

    def _is_config_event(self, event: FileSystemEvent) -> bool:
        if event.is_directory:
            return False
        # Atomic saves show up as a move of the temp file onto the config path
        paths = [event.src_path, getattr(event, "dest_path", "")]
        return any(p and Path(p).name == self._config_path.name for p in paths)

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.event_type not in ("created", "modified", "moved"):
            return
        if not self._is_config_event(event):
            return

        # Debounce rapid saves (editors often write multiple times)
        with self._lock:
            if self._debounce_timer:
                self._debounce_timer.cancel()
            self._debounce_timer = threading.Timer(self._debounce_seconds, self._reload_callback)
            self._debounce_timer.daemon = True
            self._debounce_timer.start()

    def cancel(self) -> None:
        with self._lock:
            if self._debounce_timer:
                self._debounce_timer.cancel()
                self._debounce_timer = None


class ConfigWatcher:
    """
    Keeps an up-to-date ConfigDocument while the config file is edited.

    A file that fails to parse is reported and ignored; the last good
    document stays current.

    Example:
        watcher = ConfigWatcher(on_change=show_changes)
        watcher.start()
        ...
        watcher.stop()
    """

    def __init__(
        self,
        config_path: Optional[Path] = None,
        on_change: Optional[Callable[[ConfigDocument, ConfigDocument], None]] = None,
        on_error: Optional[Callable[[ConfigError], None]] = None,
        debounce_seconds: float = 0.5,
    ) -> None:
        self._config_path = resolve_config_path(config_path)
        self._on_change = on_change
        self._on_error = on_error
        self._document = load_config(self._config_path)
        self._handler = ConfigFileHandler(self._config_path, self.reload, debounce_seconds)
        self._observer: Optional[Observer] = None
        self._reload_lock = threading.Lock()
        self._logger = get_logger("rcpctl.watcher")

    @property
    def config_path(self) -> Path:
        return self._config_path

    @property
    def document(self) -> ConfigDocument:
        return self._document

    def start(self) -> None:
        """Start watching the config file's directory."""
        if self._observer is not None:
            return
        self._config_path.parent.mkdir(parents=True, exist_ok=True)
        self._observer = Observer()
        self._observer.schedule(self._handler, str(self._config_path.parent), recursive=False)
        self._observer.start()
        self._logger.debug(f"Watching config file: {self._config_path}")

    def stop(self) -> None:
        self._handler.cancel()
        if self._observer is None:
            return
        self._observer.stop()
        self._observer.join()
        self._observer = None

    def reload(self) -> Optional[ConfigDocument]:
        """
        Re-read the config file.

        ``on_change`` receives the previous and the new document; ``on_error``
        receives the error when the file no longer loads.

        Returns:
            The new document, or None if the file could not be loaded.
        """
        with self._reload_lock:
            self._logger.info("Config file changed, reloading...")
            try:
                document = load_config(self._config_path)
            except ConfigError as e:
                if self._on_error:
                    self._on_error(e)
                else:
                    self._logger.error(f"Failed to reload config, keeping previous settings: {e.message}")
                return None

            if document == self._document:
                self._logger.debug("Config unchanged")
                return document

            previous = self._document
            self._document = document
            self._logger.info("Config reloaded successfully")

        if self._on_change:
            self._on_change(previous, document)
        return document
