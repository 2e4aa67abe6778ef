"""
Oracle-Alloc: integer budget allocation against a black-box objective

Distributes a fixed number of points across a handful of variables to
maximize an expensive, opaque scoring oracle, spending as few oracle
calls as possible.
"""

__version__ = "0.1.0"
