"""
suitebuild - Build coordinator for a suite of sibling JavaScript libraries.

Builds each library, keeps their shared source files in sync, produces a
combined and a minified bundle, fans built assets out to sibling demos and
stages the newest release set for the CDN.
"""

__version__ = "0.1.0"
