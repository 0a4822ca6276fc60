# webswitch/__init__.py
"""Web content package switcher: package registry, environment discovery and activation."""

__version__ = "0.1.0"
