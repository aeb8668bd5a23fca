"""
Configuration Manager for the file service.

Handles environment file loading, port configuration, file serving defaults
and configuration validation.
"""

import os
from pathlib import Path
from typing import Dict, Any, List, Optional


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""
    pass


class ConfigManager:
    """
    Central configuration management for the file service.

    Provides:
    - Environment file loading with precedence
    - Port configuration from environment variables
    - File serving defaults (validators, disposition, charset, chunk size)
    - Configuration validation
    """

    DEFAULT_PORT = 8001
    DEFAULT_FILES_ROOT = "/app/data"
    DEFAULT_CHUNK_SIZE = 65536

    # Boolean settings and their defaults
    BOOLEAN_SETTINGS = {
        'FILES_USE_ETAG': True,
        'FILES_USE_LAST_MODIFIED': True,
        'FILES_CONTENT_DISPOSITION': True,
        'FILES_PREFER_UTF8': False,
    }

    TRUE_VALUES = ('true', '1', 'yes', 'on')
    FALSE_VALUES = ('false', '0', 'no', 'off')

    def __init__(self, config_dir: Optional[str] = None):
        """
        Initialize ConfigManager.

        Args:
            config_dir: Directory containing environment files

        Raises:
            ConfigValidationError: If a configured value is invalid
        """
        self.config_dir = Path(config_dir) if config_dir else Path.cwd()

        # Initialize internal state
        self._env_vars = {}

        # Load configuration
        self._load_env_files()
        self._validate()

    def _load_env_files(self):
        """Load environment files with precedence: .env.prod > .env.staging > .env.dev > .env"""
        env = os.getenv('ENV', 'dev')

        # Define file precedence (load in order, higher precedence files override lower)
        env_files = ['.env']
        if env in ['dev', 'staging', 'prod']:
            env_files.append('.env.dev')
        if env in ['staging', 'prod']:
            env_files.append('.env.staging')
        if env == 'prod':
            env_files.append('.env.prod')

        # Load files in order (higher precedence files will override)
        for env_file in env_files:
            env_path = self.config_dir / env_file
            if env_path.exists():
                self._load_env_file(env_path)

    def _load_env_file(self, env_path: Path):
        """Load a single environment file into our internal env_vars dict."""
        try:
            with open(env_path, 'r') as f:
                for line in f:
                    line = line.strip()
                    if line and not line.startswith('#') and '=' in line:
                        key, value = line.split('=', 1)
                        # Store in our internal dict (later files override earlier)
                        self._env_vars[key.strip()] = value.strip()
        except OSError as e:
            raise ConfigValidationError(f"Unable to read environment file {env_path}: {e}")

    def _validate(self):
        """Validate every typed setting once so errors surface at start-up."""
        self.get_port()
        self._get_positive_int('FILES_CHUNK_SIZE', self.DEFAULT_CHUNK_SIZE)
        for name in self.BOOLEAN_SETTINGS:
            self._get_bool(name)

    def get_setting(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """Get a raw setting; os.environ takes precedence over env files."""
        value = os.getenv(key)
        if value is None:
            value = self._env_vars.get(key)
        if value is None:
            return default
        return value

    def _get_bool(self, key: str) -> bool:
        raw = self.get_setting(key)
        if raw is None or raw.strip() == '':
            return self.BOOLEAN_SETTINGS[key]

        value = raw.strip().lower()
        if value in self.TRUE_VALUES:
            return True
        if value in self.FALSE_VALUES:
            return False
        raise ConfigValidationError(f"Invalid {key}: '{raw}' - expected true or false")

    def _get_positive_int(self, key: str, default: int) -> int:
        raw = self.get_setting(key)
        if raw is None or raw.strip() == '':
            return default
        try:
            value = int(raw)
        except ValueError:
            raise ConfigValidationError(f"Invalid {key}: '{raw}' - must be a number")
        if value <= 0:
            raise ConfigValidationError(f"Invalid {key}: '{raw}' - must be positive")
        return value

    def get_port(self) -> int:
        """Get the configured port for the file service."""
        port = self._get_positive_int('FILES_PORT', self.DEFAULT_PORT)
        if not (1 <= port <= 65535):
            raise ConfigValidationError(
                f"Invalid FILES_PORT: '{port}' - port must be between 1 and 65535"
            )
        return port

    @property
    def files_root(self) -> str:
        """Directory that buckets are served from."""
        return self.get_setting('FILES_ROOT', self.DEFAULT_FILES_ROOT)

    @property
    def chunk_size(self) -> int:
        """Read size for streamed file bodies."""
        return self._get_positive_int('FILES_CHUNK_SIZE', self.DEFAULT_CHUNK_SIZE)

    @property
    def use_etag(self) -> bool:
        return self._get_bool('FILES_USE_ETAG')

    @property
    def use_last_modified(self) -> bool:
        return self._get_bool('FILES_USE_LAST_MODIFIED')

    @property
    def content_disposition_enabled(self) -> bool:
        return self._get_bool('FILES_CONTENT_DISPOSITION')

    @property
    def prefer_utf8(self) -> bool:
        return self._get_bool('FILES_PREFER_UTF8')

    @property
    def log_level(self) -> str:
        return self.get_setting('LOG_LEVEL', 'INFO').upper()

    @property
    def allowed_cors(self) -> List[str]:
        raw = self.get_setting('ALLOWED_CORS')
        if not raw:
            return ["*"]
        return [origin.strip() for origin in raw.split(',') if origin.strip()]

    @property
    def environment(self) -> str:
        return os.getenv('ENV', 'dev')

    def negotiation_defaults(self) -> Dict[str, bool]:
        """Boolean serving flags to apply to every NamedFile."""
        return {
            'use_etag': self.use_etag,
            'use_last_modified': self.use_last_modified,
            'content_disposition_enabled': self.content_disposition_enabled,
            'prefer_utf8': self.prefer_utf8,
        }

    def get_configuration(self) -> Dict[str, Any]:
        """Get file service configuration."""
        return {
            'port': self.get_port(),
            'files_root': self.files_root,
            'chunk_size': self.chunk_size,
            'environment': self.environment,
            **self.negotiation_defaults(),
        }

    def generate_env_template(self) -> str:
        """Generate environment template with all file service settings."""
        template_lines = [
            f"FILES_PORT={self.DEFAULT_PORT}",
            f"FILES_ROOT={self.DEFAULT_FILES_ROOT}",
            f"FILES_CHUNK_SIZE={self.DEFAULT_CHUNK_SIZE}",
        ]
        for name, default in self.BOOLEAN_SETTINGS.items():
            template_lines.append(f"{name}={'true' if default else 'false'}")
        return '\n'.join(template_lines)
