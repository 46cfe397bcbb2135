"""
Application Layer for the Exercise Media API.

This package contains:
- ports/: Abstract interfaces the resolution engine depends on (persistent
  media cache, external media index client)
"""
