"""
Vendor Module Loader
====================

Locates and imports the terminal's scripting module (``MetaTrader5`` by
default). The module usually lives in a separate Windows virtualenv, so the
configured site-packages directory is appended to ``sys.path`` first.
"""

import importlib
import importlib.util
import logging
import sys
from types import ModuleType
from typing import Optional

from . import config
from .errors import ModuleLoadError

logger = logging.getLogger(__name__)


def _add_site_packages(site_packages: Optional[str]) -> None:
    if site_packages and site_packages not in sys.path:
        sys.path.append(site_packages)
        logger.debug("Added %s to sys.path", site_packages)


def is_terminal_available(
    site_packages: Optional[str] = None,
    module_name: Optional[str] = None,
) -> bool:
    """Check whether the vendor module can be imported, without importing it."""
    _add_site_packages(site_packages or config.SITE_PACKAGES)
    return importlib.util.find_spec(module_name or config.TERMINAL_MODULE) is not None


def load_terminal_module(
    site_packages: Optional[str] = None,
    module_name: Optional[str] = None,
) -> ModuleType:
    """
    Import the vendor terminal module.

    Args:
        site_packages: Directory holding the module (defaults to config)
        module_name: Module to import (defaults to "MetaTrader5")

    Returns:
        The imported module

    Raises:
        ModuleLoadError: the module is not importable
    """
    module_name = module_name or config.TERMINAL_MODULE
    _add_site_packages(site_packages or config.SITE_PACKAGES)

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ModuleLoadError(
            f"Unable to find `{module_name}` module. "
            f"Install with: pip install {module_name}"
        ) from e

    logger.debug("Loaded terminal module %s", module_name)
    return module
