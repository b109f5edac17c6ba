"""jekyllized -- interactive Jekyll site scaffolder.

Asks a handful of questions about the site, then renders the bundled site
skeleton into the current directory, asking before it touches any existing
file, merging ``package.json`` and installing dependencies.

Quick usage::

    jekyllized                 # scaffold into the current directory
    jekyllized --dest ./blog   # scaffold somewhere else
"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
