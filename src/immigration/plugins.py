"""
Store Plugin Discovery and Loading

Resolves a store identifier to a MigrationStore subclass. Third-party
packages can ship stores without any change to immigration by exposing
them through an entry point.

Resolution order for load_store(name):
1. Built-in stores ('fs', 'memory')
2. Entry points in the 'immigration.stores' group
3. A 'package.module:ClassName' import path

Usage:
    store_cls = load_store('fs')
    store = store_cls.create(Path.cwd())

    # setup.py of a third-party package
    entry_points={"immigration.stores": ["redis = my_pkg.store:RedisStore"]}
"""

import importlib
import logging
from typing import Any, List, Optional, Type

from importlib.metadata import entry_points, EntryPoint

from .errors import PluginLoadError, PluginValidationError
from .stores import BUILTIN_STORES, MigrationStore

logger = logging.getLogger(__name__)

STORE_GROUP = "immigration.stores"

SUPPORTED_INTERFACE_VERSIONS = ["1.0"]


def discover_stores() -> List[EntryPoint]:
    """
    Discover store plugins installed via entry points.

    Returns:
        Entry points in the 'immigration.stores' group (possibly empty)
    """
    eps = list(entry_points().select(group=STORE_GROUP))
    logger.debug(f"Discovered {len(eps)} plugins in group '{STORE_GROUP}'")
    return eps


def validate_store(plugin: Any, name: Optional[str] = None) -> None:
    """
    Validate a loaded store plugin

    Checks:
    1. Plugin is a MigrationStore subclass
    2. interface_version is supported by this engine

    Raises:
        PluginValidationError: If validation fails
    """
    plugin_name = name or getattr(plugin, '__name__', str(plugin))

    if not isinstance(plugin, type) or not issubclass(plugin, MigrationStore):
        raise PluginValidationError(
            f"Store plugin '{plugin_name}' must be a subclass of MigrationStore, got {plugin!r}"
        )

    interface_version = getattr(plugin, 'interface_version', None)
    if interface_version not in SUPPORTED_INTERFACE_VERSIONS:
        raise PluginValidationError(
            f"Store plugin '{plugin_name}' has incompatible interface_version '{interface_version}'. "
            f"Supported versions: {SUPPORTED_INTERFACE_VERSIONS}"
        )


def _import_path(path: str) -> Any:
    module_name, _, attr = path.partition(':')
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise PluginLoadError(f"Unable to import store module '{module_name}': {e}", e) from e

    target: Any = module
    for part in attr.split('.'):
        try:
            target = getattr(target, part)
        except AttributeError as e:
            raise PluginLoadError(f"Module '{module_name}' has no attribute '{attr}'", e) from e
    return target


def load_store(name: str) -> Type[MigrationStore]:
    """
    Load a store class by identifier

    Args:
        name: Built-in name, entry point name, or 'module:Class' path

    Returns:
        The validated MigrationStore subclass

    Raises:
        PluginLoadError: If the store cannot be found or imported
        PluginValidationError: If the loaded object is not a usable store
    """
    if name in BUILTIN_STORES:
        return BUILTIN_STORES[name]

    for ep in discover_stores():
        if ep.name == name:
            logger.info(f"Loading store plugin '{name}' from {ep.value}")
            try:
                plugin = ep.load()
            except Exception as e:
                raise PluginLoadError(f"Failed to load store plugin '{name}': {e}", e) from e
            validate_store(plugin, name)
            return plugin

    if ':' in name:
        plugin = _import_path(name)
        validate_store(plugin, name)
        return plugin

    available = sorted(BUILTIN_STORES) + [ep.name for ep in discover_stores()]
    raise PluginLoadError(f"Store '{name}' not found. Available: {available}")
