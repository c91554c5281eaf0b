from pathlib import Path

try:
    import tomllib
except ModuleNotFoundError:
    import tomli as tomllib  # pyright: ignore[reportMissingImports]


# Settings key constants
SETTING_OUTPUT_DIRECTORY = 'output.directory'
SETTING_LOGGING_PATH = 'logging.path'


class CaseSettings:
    """Settings manager for case configuration.

    Provides a read-only key-value interface to the settings in .hitsave/settings.toml.
    Missing files behave like an empty document, so every get() falls back to its
    default. Interpretation of the values is left to the callers.

    Example:
        settings = CaseSettings(case_path)
        out_dir = settings.get(SETTING_OUTPUT_DIRECTORY)
    """

    def __init__(self, case_path: Path):
        self._case_path = case_path
        self._settings = {}

        settings_file = case_path / '.hitsave' / 'settings.toml'
        if settings_file.exists():
            with open(settings_file, 'rb') as f:
                self._settings = tomllib.load(f)

    def get(self, key: str, default=None):
        """Get a setting value by dotted key path.

        'output.directory' reads settings['output']['directory']. The default is returned
        if any component is missing or an intermediate value is not a table.
        """
        keys = key.split('.')
        value = self._settings

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value
