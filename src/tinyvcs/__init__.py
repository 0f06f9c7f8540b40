"""tinyvcs - a small local version control system.

tinyvcs tracks snapshots of a file tree as content-addressed blobs and
commits, with movable branch pointers, a staging area and three-way merges.
"""

__version__ = "0.1.0"
__author__ = "tinyvcs Contributors"

__all__ = ["__version__", "__author__"]
