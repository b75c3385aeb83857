"""Data models and utility functions.

This package contains:
- colour: Colour space conversions (sRGB, hex, CIE xy, Kelvin/Mired, gamut)
- state: LightAction/GroupState models and bridge limits
- types: TypedDict and NamedTuple definitions
- utils: Utility functions (similarity_score, describe_action, etc.)
"""
