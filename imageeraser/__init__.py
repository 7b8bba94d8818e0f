"""Resource types, configuration schema and defaults for a cluster image cleanup controller."""

__version__ = "1.0.0b3"

__all__ = ["config", "eraserconfig", "groupversion", "imagejob", "imagelist"]