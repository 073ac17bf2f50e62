import os
import tomllib
from pathlib import Path

CONFIG_ENV = 'CMPDIR_CONFIG'
DEFAULT_CONFIG_FILE = 'cmpdir.toml'

# Settings key constants
SETTING_CHUNK_SIZE = 'scan.chunk_size'
SETTING_JOBS = 'scan.jobs'
SETTING_PROGRESS_INTERVAL = 'progress.interval'
SETTING_SLOW_FILE_THRESHOLD = 'progress.slow_file_threshold'
SETTING_LOG_PATH = 'logging.path'
SETTING_LOG_LEVEL = 'logging.level'


class Settings:
    """Settings manager for cmpdir configuration.

    Provides a read-only key-value interface over a TOML file. This class is agnostic to the
    schema and usage of settings; it loads the file and gives access to the raw data
    structure, and consumers interpret and validate the values they read.

    Example:
        settings = Settings.locate(args.config)
        chunk_size = settings.get(SETTING_CHUNK_SIZE, CHUNK_SIZE)
    """

    def __init__(self, settings_file: Path | None = None):
        """Initialize settings from a TOML file.

        Args:
            settings_file: File to load; None gives empty settings, where every get() call
                           returns its default

        Raises:
            FileNotFoundError: settings_file does not exist
            ValueError: settings_file is not valid TOML
        """
        self._settings_file = settings_file
        self._settings = {}

        if settings_file is not None:
            with open(settings_file, 'rb') as f:
                try:
                    self._settings = tomllib.load(f)
                except tomllib.TOMLDecodeError as e:
                    raise ValueError(f"Invalid settings file {settings_file}: {e}") from e

    @classmethod
    def locate(cls, explicit_path: str | None = None) -> 'Settings':
        """Load settings from the explicit path, else CMPDIR_CONFIG, else ./cmpdir.toml.

        Only the default file may be absent; an explicitly named file must exist.
        """
        if explicit_path:
            return cls(Path(explicit_path))

        env_path = os.environ.get(CONFIG_ENV)
        if env_path:
            return cls(Path(env_path))

        default_path = Path(DEFAULT_CONFIG_FILE)
        if default_path.is_file():
            return cls(default_path)
        return cls()

    @property
    def settings_file(self) -> Path | None:
        return self._settings_file

    def get(self, key: str, default=None):
        """Get a setting value by key with optional default.

        Supports both simple keys and dot notation for accessing nested keys (e.g.
        'scan.jobs' accesses settings['scan']['jobs']). Returns the default value if the key
        path does not exist or if any intermediate value is not a table.

        Examples:
            >>> settings.get(SETTING_JOBS, 0)
            4
            >>> settings.get('nonexistent.key', 'fallback')
            'fallback'
        """
        keys = key.split('.')
        value = self._settings

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value
