"""Implementation package of deltri.

Modules here are internal and may change; the flat ``deltri`` namespace is
the supported import surface.
"""
