"""Version information for grove."""

try:
    from grove._version import __version__
except ImportError:
    # Running from a source tree without generated version metadata
    __version__ = "0.0.0+unknown"
