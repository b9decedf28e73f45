"""
codeshaker - tree-shake ESTree modules down to the exports you need

    from codeshaker import shake_estree

    result = shake_estree(program_json, ["a"], filename="src/mod.js")
    result.to_estree()       # the shaken module
    result.summary_dict()    # {"deadExports": [...], "exports": ["a"], "imports": {...}}
"""


def shake_estree(*args, **kwargs):
    """Lazy import wrapper so that importing the package stays cheap."""
    from .shaker import shake_estree as _shake_estree

    return _shake_estree(*args, **kwargs)


def shake_module(*args, **kwargs):
    """Lazy import wrapper for shake_module."""
    from .shaker import shake_module as _shake_module

    return _shake_module(*args, **kwargs)


from .errors import ShakerError, UnknownExportError

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("codeshaker")
except PackageNotFoundError:
    # development checkout, not installed
    __version__ = "unknown"

__all__ = ["shake_estree", "shake_module", "ShakerError", "UnknownExportError", "__version__"]
