"""
Workboard

A multi-tenant task tracker with user-defined custom fields.
"""

import importlib.metadata

__version__ = importlib.metadata.version("workboard")
