"""
dlnode — settings schema and loader for a distributed-ledger node.

Submodules load on first attribute access. Importing ``dlnode.config``
reads .env and sets up the package logger:

    from dlnode.config import load_settings, NodeContext
    from dlnode.exceptions import SettingsError
"""

# Lazy imports to avoid loading everything at package import
def __getattr__(name):
    """Lazy module loading."""
    if name == 'load_settings':
        from .config import load_settings
        return load_settings
    elif name == 'get_settings':
        from .config import get_settings
        return get_settings
    elif name == 'SettingsError':
        from .exceptions import SettingsError
        return SettingsError
    raise AttributeError(f"module 'dlnode' has no attribute {name!r}")

__all__ = ['load_settings', 'get_settings', 'SettingsError']
