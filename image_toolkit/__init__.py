"""
RGBA image toolkit: progressive upscaling, border flood-fill background
removal and source-attribution overlays.
"""

__version__ = "1.0.0"
