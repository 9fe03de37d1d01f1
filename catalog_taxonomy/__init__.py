"""Catalog taxonomy service.

Hierarchical taxonomy engine shared by the Products, Labor, Equipment and
Tools catalogs.
"""

__version__ = "0.1.0"
