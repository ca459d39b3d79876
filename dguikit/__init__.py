"""Theme, palette, colour, file-drag, single-instance and translation-lookup helpers."""

__version__ = "5.6.11"

__all__ = ["areas", "color", "filedrag", "helper", "instance", "palette", "translations"]