"""
Competition core REST API package
"""

from .api import api, create_app
