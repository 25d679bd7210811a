"""Drupal Bootstrap - Bootstrap asset installer and stylesheet compiler.

Installs the Bootstrap framework sources into a Drupal theme through Bower and
compiles LESS/Sass sources into CSS.
"""

__version__ = "0.1.0"

# Configure logging for library use
import logging

logging.getLogger(__name__).addHandler(logging.NullHandler())

# Re-export main CLI entry point
from .cli import main

__all__ = ["main"]
