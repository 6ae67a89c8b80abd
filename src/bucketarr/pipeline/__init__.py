"""
Per-item decide -> stream -> upload pipeline.

Submodules are imported directly; this package has no import-time side
effects.
"""
