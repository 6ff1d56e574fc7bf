"""
Competition core router collecting all path operations
"""

from fastapi import APIRouter


router = APIRouter()
