"""
Competition core API

This package provides the management API for competitions: deciding which
callers may manage a competition (based on interactive sessions as well as
OAuth tokens with scopes) and synchronizing the WCIF events of a competition.
"""

__version__ = "0.1.0"
