"""Layered configuration resolver with environment, .env and YAML support.

Priority (highest to lowest), first non-empty value wins:

1. Process environment variables
2. ``.env`` file (developer override, optional per load)
3. Defaults file (``resources/application.yaml``)
"""

import os
import re
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, NamedTuple, Optional, Tuple, Union, overload

import yaml
from dotenv import dotenv_values
from loguru import logger

from skyrimgrade.core.exceptions import ResourceLoadError
from skyrimgrade.utils.masking import mask_sensitive

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[2] / "resources" / "application.yaml"
DEFAULT_ENV_FILE = Path(".env")

_TRUE_VALUES = frozenset({"true", "1", "yes", "on"})
_FALSE_VALUES = frozenset({"false", "0", "no", "off"})
# Plain decimal integers only: no underscores, no non-ASCII digits
_INT_PATTERN = re.compile(r"[+-]?[0-9]+")


class ConfigSource(NamedTuple):
    """A named lookup answering "value for key, or absent"."""

    name: str
    # True: consulted with the environment-style key, False: with the dotted property key
    uses_env_key: bool
    lookup: Callable[[str], Optional[str]]


def environment_source() -> ConfigSource:
    """Source backed by the live process environment."""
    return ConfigSource("system env", True, os.environ.get)


def dotenv_source(env_file: Union[str, Path] = DEFAULT_ENV_FILE) -> ConfigSource:
    """
    Source backed by a ``.env`` file.

    The file is parsed once; ``os.environ`` is left untouched.

    Args:
        env_file: Path to the ``.env`` file

    Returns:
        Source returning values from the file (empty when the file is missing)
    """
    env_path = Path(env_file)
    values: Dict[str, Optional[str]] = {}
    if env_path.is_file():
        values = dotenv_values(env_path)
    if values:
        logger.info(f".env file loaded with {len(values)} entries")
    else:
        logger.debug(".env file not found or empty")
    return ConfigSource(".env", True, values.get)


def properties_source(values: Dict[str, str]) -> ConfigSource:
    """Source backed by an already loaded mapping of dotted keys."""
    return ConfigSource("property", False, values.get)


def _to_str(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def flatten_mapping(data: Dict[Any, Any], prefix: str = "") -> Dict[str, str]:
    """
    Flatten nested mappings into dotted keys.

    Example:
        >>> flatten_mapping({"db": {"pool": {"size": 10}}})
        {'db.pool.size': '10'}

    Args:
        data: Parsed YAML mapping
        prefix: Key prefix for recursion

    Returns:
        Flat dictionary of string values; ``None`` leaves are dropped
    """
    flat: Dict[str, str] = {}
    for key, value in data.items():
        full_key = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, dict):
            flat.update(flatten_mapping(value, full_key))
        elif value is not None:
            flat[full_key] = _to_str(value)
    return flat


def load_defaults(config_path: Union[str, Path] = DEFAULT_CONFIG_PATH) -> Dict[str, str]:
    """
    Load the defaults file.

    Args:
        config_path: Path to the YAML defaults file

    Returns:
        Flat mapping of dotted keys to string values. Empty if the file is missing.

    Raises:
        ResourceLoadError: If the file exists but cannot be read or parsed
    """
    config_file = Path(config_path)
    if not config_file.exists():
        logger.warning(f"Properties file not found: {config_file}")
        return {}

    try:
        with open(config_file, "r", encoding="utf-8") as f:
            data: Any = yaml.safe_load(f)
    except OSError as e:
        logger.error(f"Failed to load properties file: {config_file}: {e}")
        raise ResourceLoadError(str(config_file), str(e)) from e
    except yaml.YAMLError as e:
        logger.error(f"Malformed properties file: {config_file}: {e}")
        raise ResourceLoadError(str(config_file), "invalid YAML") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ResourceLoadError(str(config_file), "top level must be a mapping")

    logger.info(f"Loaded configuration from: {config_file}")
    return flatten_mapping(data)


class ConfigResolver:
    """Resolves settings by walking an ordered chain of sources."""

    def __init__(
        self,
        config_path: Union[str, Path] = DEFAULT_CONFIG_PATH,
        load_dotenv: bool = True,
        env_file: Union[str, Path] = DEFAULT_ENV_FILE,
        sources: Optional[Iterable[ConfigSource]] = None,
    ):
        """
        Initialize the resolver.

        Args:
            config_path: Defaults file, read once here
            load_dotenv: Whether the ``.env`` override layer takes part in this load
            env_file: Location of the ``.env`` file
            sources: Explicit source chain; replaces the default chain when given

        Raises:
            ResourceLoadError: If the defaults file exists but is unreadable
        """
        self._properties = load_defaults(config_path)

        if sources is not None:
            self._sources: Tuple[ConfigSource, ...] = tuple(sources)
        else:
            chain = [environment_source()]
            if load_dotenv:
                chain.append(dotenv_source(env_file))
            else:
                logger.debug(".env loading disabled")
            chain.append(properties_source(self._properties))
            self._sources = tuple(chain)

    @property
    def sources(self) -> Tuple[ConfigSource, ...]:
        """Active sources, highest priority first."""
        return self._sources

    @overload
    def get(self, env_key: str, property_key: str) -> Optional[str]: ...

    @overload
    def get(self, env_key: str, property_key: str, default: str) -> str: ...

    def get(self, env_key: str, property_key: str, default: Optional[str] = None) -> Optional[str]:
        """
        Get a configuration value honouring source priority.

        Args:
            env_key: Environment variable name (e.g. "DB_URL")
            property_key: Defaults-file key (e.g. "db.url")
            default: Returned when no source has a non-empty value

        Returns:
            The first non-empty value, else ``default``
        """
        value = self._lookup(env_key, property_key)
        if value is not None:
            return value

        if default is None:
            logger.warning(f"Configuration not found: env={env_key}, property={property_key}")
        else:
            logger.debug(f"Configuration not found, using default: env={env_key}, property={property_key}")
        return default

    def _lookup(self, env_key: str, property_key: str) -> Optional[str]:
        for source in self._sources:
            key = env_key if source.uses_env_key else property_key
            value = source.lookup(key)
            if value:
                logger.debug(
                    f"Using {source.name}: {key} = "
                    f"{mask_sensitive(env_key, mask_sensitive(property_key, value))}"
                )
                return value
        return None

    def get_int(self, env_key: str, property_key: str, default: int) -> int:
        """Get an integer value; malformed input yields ``default``."""
        value = self._lookup(env_key, property_key)
        if value is None:
            return default
        normalized = value.strip()
        if _INT_PATTERN.fullmatch(normalized):
            return int(normalized)
        logger.error(
            f"Invalid integer value for {env_key}/{property_key}: "
            f"{mask_sensitive(env_key, mask_sensitive(property_key, value))}"
        )
        return default

    def get_bool(self, env_key: str, property_key: str, default: bool) -> bool:
        """Get a boolean value; anything outside true/false/1/0/yes/no/on/off yields ``default``."""
        value = self._lookup(env_key, property_key)
        if value is None:
            return default
        normalized = value.strip().lower()
        if normalized in _TRUE_VALUES:
            return True
        if normalized in _FALSE_VALUES:
            return False
        logger.error(
            f"Invalid boolean value for {env_key}/{property_key}: "
            f"{mask_sensitive(env_key, mask_sensitive(property_key, value))}"
        )
        return default

    def get_property(self, key: str) -> Optional[str]:
        """Get a value straight from the defaults file, ignoring the environment."""
        return self._properties.get(key)
