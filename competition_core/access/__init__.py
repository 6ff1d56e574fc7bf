"""
Access decisions for competitions

The ``principals`` module extracts the session and token principals of a
request, the ``engine`` module decides whether those principals may see or
manage a competition and the ``ownership`` module provides the database
backed ownership oracle that's injected into the decision engine.
"""

from .engine import KNOWN_SCOPES, MANAGE_COMPETITIONS, PUBLIC, AccessDecisionEngine, has_scope, is_disclosable
from .principals import Principals, RequestContext, SessionUser, TokenUser, resolve
