"""lxscene: compiler and keyframe animation runtime for LXS scene documents."""

__version__ = "0.1.0"
