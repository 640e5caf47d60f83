"""
dlnode Settings Loader

Builds NodeSettings from three layers, lowest to highest precedence:

    1. built-in defaults        (dlnode.config.defaults)
    2. the TOML settings file
    3. environment variables    <PREFIX>_<BLOCK>_<FIELD>

Layers are merged field by field into one raw mapping; typing and validation
run once on the merged result so every defect is reported in a single run.

Environment variable mapping (prefix DLNODE):
    [network] protocol_port  → DLNODE_NETWORK_PROTOCOL_PORT
    [bootstrap] retry_delay  → DLNODE_BOOTSTRAP_RETRY_DELAY
    ...

The peer category table and the bootstrap list only come from the file or
the defaults; environment variables naming them are ignored.
"""

from __future__ import annotations

import copy
import dataclasses
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

from dotenv import dotenv_values

try:
    import tomllib as tomli  # Python 3.11+
except ImportError:
    import tomli  # type: ignore[no-redef]

from ..constants import NODE_CONFIG_PATH, NODE_ENV_PREFIX
from ..exceptions import ConfigurationError, SettingsError
from ..logger import get_logger
from .defaults import DEFAULT_SETTINGS
from .fields import spec_of
from .sections import BLOCKS, NodeSettings

logger = get_logger(__name__)

DEFAULT_LAYER = "default"
FILE_LAYER = "file"
ENV_LAYER = "env"


class SettingsBuilder:
    """
    Accumulates layers into a raw mapping, remembering which layer set each field.

    Collections (tables and lists held by one field) are replaced whole by a
    later layer, never merged entry by entry.
    """

    def __init__(self) -> None:
        self.raw: Dict[str, Any] = {}
        self.sources: Dict[str, str] = {}

    def apply(self, layer: Mapping[str, Any], source: str) -> "SettingsBuilder":
        for block, values in layer.items():
            if block not in BLOCKS:
                logger.warning("Ignoring unknown settings section [%s] from %s", block, source)
                continue
            if not isinstance(values, Mapping):
                self.raw[block] = copy.deepcopy(values)
                self.sources[block] = source
                continue
            target = self.raw.get(block)
            if target is None:
                target = self.raw[block] = {}
                self.sources[block] = source
            elif not isinstance(target, dict):
                # A malformed block stays as set so parsing reports its layer
                logger.warning("Ignoring %s overrides for [%s]: the %s layer did not set it as a table",
                               source, block, self.sources.get(block, ""))
                continue
            for name, value in values.items():
                target[name] = copy.deepcopy(value)
                self.sources[f"{block}.{name}"] = source
        return self

    def build(self) -> NodeSettings:
        return NodeSettings.from_dict(self.raw, self.sources)


# ---------------------------------------------------------------------------
# Layers
# ---------------------------------------------------------------------------

def read_settings_file(file_path: str) -> Dict[str, Any]:
    """
    Read and decode the TOML settings file.

    Raises:
        ConfigurationError: if the file is missing, unreadable or not valid TOML
    """
    path = Path(file_path)
    try:
        with open(path, "rb") as f:
            data = tomli.load(f)
    except FileNotFoundError as e:
        raise ConfigurationError(f"Settings file not found: {file_path}") from e
    except OSError as e:
        raise ConfigurationError(f"Cannot read settings file {file_path}: {e}") from e
    except tomli.TOMLDecodeError as e:
        raise ConfigurationError(f"Invalid TOML in {file_path}: {e}") from e

    logger.info("Loaded settings file %s", path)
    return data


def _env_keys(prefix: str) -> Dict[str, Tuple[str, str, bool]]:
    """Variable name -> (block, field, is_collection) for every block field."""
    keys = {}
    for block, block_cls in BLOCKS.items():
        for f in dataclasses.fields(block_cls):
            name = f"{prefix}_{block}_{f.name}".upper()
            keys[name] = (block, f.name, spec_of(f).is_collection)
    return keys


def environment_layer(prefix: str, environ: Mapping[str, str]) -> Dict[str, Dict[str, str]]:
    """
    Extract scalar overrides for *prefix* from *environ*.

    Values stay strings; the field kinds coerce them.
    """
    prefix = prefix.upper().rstrip("_")
    keys = _env_keys(prefix)
    layer: Dict[str, Dict[str, str]] = {}

    for name in sorted(environ):
        if not name.upper().startswith(prefix + "_"):
            continue
        target = keys.get(name.upper())
        if target is None:
            if name.upper() != f"{prefix}_CONFIG":
                logger.debug("Ignoring unrecognised variable %s", name)
            continue
        block, field_name, is_collection = target
        if is_collection:
            logger.warning("%s cannot be set from the environment; set %s.%s in the settings file",
                           name, block, field_name)
            continue
        layer.setdefault(block, {})[field_name] = environ[name]
        logger.debug("Environment override %s applied to %s.%s", name, block, field_name)

    return layer


def process_environment() -> Dict[str, str]:
    """.env values overlaid by the real process environment. Neither is modified."""
    env = {k: v for k, v in dotenv_values(".env").items() if v is not None}
    env.update(os.environ)
    return env


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------

def load(
    defaults: Mapping[str, Any],
    file_path: str,
    env_prefix: str,
    environ: Optional[Mapping[str, str]] = None,
) -> NodeSettings:
    """
    Merge defaults, the settings file and the environment into NodeSettings.

    Args:
        defaults: Baseline mapping in the settings file layout.
        file_path: Path to the TOML settings file.
        env_prefix: Namespace of the override variables (e.g. ``DLNODE``).
        environ: Variables to read; defaults to ``.env`` plus ``os.environ``.

    Returns:
        The validated settings

    Raises:
        ConfigurationError: if the file cannot be read
        SettingsError: listing every field defect found
    """
    if environ is None:
        environ = process_environment()

    builder = SettingsBuilder()
    builder.apply(defaults, DEFAULT_LAYER)
    builder.apply(read_settings_file(file_path), FILE_LAYER)
    builder.apply(environment_layer(env_prefix, environ), ENV_LAYER)

    try:
        return builder.build()
    except SettingsError as e:
        logger.error("Settings rejected with %d error(s)", len(e.errors))
        raise


def load_settings(path: Optional[str] = None, env_prefix: Optional[str] = None) -> NodeSettings:
    """
    Load node settings with the built-in defaults.

    Resolution order for the file:
        1. Explicit *path* argument
        2. <PREFIX>_CONFIG environment variable
        3. NODE_CONFIG_PATH (``config/config.toml`` unless set in .env)
    """
    prefix = env_prefix or str(NODE_ENV_PREFIX)
    environ = process_environment()
    if path is None:
        path = environ.get(f"{prefix}_CONFIG", str(NODE_CONFIG_PATH))

    return load(DEFAULT_SETTINGS, path, prefix, environ)
