"""Global configuration data structures and loading.

Provides immutable global config data loaded from ~/.patchstack/config.toml
(or the file named by the PATCHSTACK_CONFIG environment variable). A missing
file means all defaults apply.
"""

import os
import tomllib
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import tomlkit

DEFAULT_NAME_LENGTH_LIMIT = 30
DEFAULT_TRANSACTION_ATTEMPTS = 3
DEFAULT_STACK_REF_PREFIX = "refs/stacks/"


@dataclass(frozen=True)
class GlobalConfig:
    """Immutable global configuration data.

    Loaded once at CLI entry point and stored in PatchstackContext.
    All fields are read-only after construction.
    """

    name_length_limit: int = DEFAULT_NAME_LENGTH_LIMIT
    lowercase_names: bool = True
    transaction_attempts: int = DEFAULT_TRANSACTION_ATTEMPTS
    stack_ref_prefix: str = DEFAULT_STACK_REF_PREFIX


CONFIG_KEYS = ("name_length_limit", "lowercase_names", "transaction_attempts", "stack_ref_prefix")


def _require_positive_int(data: dict[str, Any], key: str, default: int, source: Path) -> int:
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValueError(f"'{key}' in {source} must be a positive integer, got {value!r}")
    return value


def parse_global_config(data: dict[str, Any], source: Path) -> GlobalConfig:
    """Build a GlobalConfig from parsed TOML data.

    Raises:
        ValueError: If a known key holds a value of the wrong type
    """
    lowercase = data.get("lowercase_names", True)
    if not isinstance(lowercase, bool):
        raise ValueError(f"'lowercase_names' in {source} must be true or false, got {lowercase!r}")

    prefix = data.get("stack_ref_prefix", DEFAULT_STACK_REF_PREFIX)
    if not isinstance(prefix, str) or not prefix.startswith("refs/") or not prefix.endswith("/"):
        raise ValueError(
            f"'stack_ref_prefix' in {source} must look like 'refs/<namespace>/', got {prefix!r}"
        )

    return GlobalConfig(
        name_length_limit=_require_positive_int(
            data, "name_length_limit", DEFAULT_NAME_LENGTH_LIMIT, source
        ),
        lowercase_names=lowercase,
        transaction_attempts=_require_positive_int(
            data, "transaction_attempts", DEFAULT_TRANSACTION_ATTEMPTS, source
        ),
        stack_ref_prefix=prefix,
    )


def update_config_field(config: GlobalConfig, key: str, raw_value: str) -> GlobalConfig:
    """Return a copy of config with one field set from its string form.

    Raises:
        KeyError: If key is not a known config key
        ValueError: If raw_value cannot be converted for the key
    """
    if key not in CONFIG_KEYS:
        raise KeyError(key)

    value: Any
    if key == "lowercase_names":
        if raw_value.lower() not in ("true", "false"):
            raise ValueError(f"Invalid boolean value for {key}: {raw_value}")
        value = raw_value.lower() == "true"
    elif key == "stack_ref_prefix":
        value = raw_value
    else:
        if not raw_value.isdigit():
            raise ValueError(f"Invalid integer value for {key}: {raw_value}")
        value = int(raw_value)

    data = {name: getattr(config, name) for name in CONFIG_KEYS}
    data[key] = value
    return parse_global_config(data, Path(f"config key '{key}'"))


class GlobalConfigOps(ABC):
    """Abstract interface for global config operations.

    Provides dependency injection for global config access, enabling
    in-memory implementations for tests without touching filesystem.
    """

    @abstractmethod
    def exists(self) -> bool:
        """Check if global config exists."""
        ...

    @abstractmethod
    def load(self) -> GlobalConfig:
        """Load global config, falling back to defaults when absent.

        Raises:
            ValueError: If config is malformed
        """
        ...

    @abstractmethod
    def save(self, config: GlobalConfig) -> None:
        """Save global config."""
        ...

    @abstractmethod
    def path(self) -> Path:
        """Get the path to the global config file (for error messages and debugging)."""
        ...


class FilesystemGlobalConfigOps(GlobalConfigOps):
    """Production implementation that reads/writes ~/.patchstack/config.toml."""

    def exists(self) -> bool:
        return self.path().exists()

    def load(self) -> GlobalConfig:
        config_path = self.path()
        if not config_path.exists():
            return GlobalConfig()

        try:
            data = tomllib.loads(config_path.read_text(encoding="utf-8"))
        except tomllib.TOMLDecodeError as e:
            raise ValueError(f"{config_path} is not valid TOML: {e}") from e
        return parse_global_config(data, config_path)

    def save(self, config: GlobalConfig) -> None:
        """Save global config, preserving comments and unknown keys already in the file."""
        config_path = self.path()
        config_path.parent.mkdir(parents=True, exist_ok=True)

        if config_path.exists():
            doc = tomlkit.parse(config_path.read_text(encoding="utf-8"))
        else:
            doc = tomlkit.document()
            doc.add(tomlkit.comment("Global patchstack configuration"))

        for key in CONFIG_KEYS:
            doc[key] = getattr(config, key)

        config_path.write_text(tomlkit.dumps(doc), encoding="utf-8")

    def path(self) -> Path:
        override = os.environ.get("PATCHSTACK_CONFIG")
        if override:
            return Path(override).expanduser()
        return Path.home() / ".patchstack" / "config.toml"


class InMemoryGlobalConfigOps(GlobalConfigOps):
    """Test implementation that stores config in memory without touching filesystem."""

    def __init__(self, config: GlobalConfig | None = None) -> None:
        """Initialize in-memory config ops.

        Args:
            config: Initial config state (None = config doesn't exist)
        """
        self._config = config

    def exists(self) -> bool:
        return self._config is not None

    def load(self) -> GlobalConfig:
        if self._config is None:
            return GlobalConfig()
        return self._config

    def save(self, config: GlobalConfig) -> None:
        self._config = config

    def path(self) -> Path:
        return Path("/test/config.toml")
