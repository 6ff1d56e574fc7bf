"""
Competition core unit tests
"""

import unittest

from .test_access import AccessDecisionTests, PrincipalResolutionTests
from .test_api import AuthenticationTests, CompetitionReadTests, EventUpdateTests
from .test_cli import StandaloneCLITests
from .test_events import EventSyncTests
from .test_misc import LoggingTests, SettingsTests, TokenTests, WCIFTests
from .test_persistence import DatabaseUsabilityTests, OwnershipTests, PasswordTests, TransactorTests


TEST_CLASSES = [
    AccessDecisionTests,
    AuthenticationTests,
    CompetitionReadTests,
    DatabaseUsabilityTests,
    EventSyncTests,
    EventUpdateTests,
    LoggingTests,
    OwnershipTests,
    PasswordTests,
    PrincipalResolutionTests,
    SettingsTests,
    StandaloneCLITests,
    TokenTests,
    TransactorTests,
    WCIFTests,
]


def get_suite() -> unittest.TestSuite:
    suite = unittest.TestSuite()
    for cls in TEST_CLASSES:
        for fixture in filter(lambda f: f.startswith("test_"), dir(cls)):
            suite.addTest(cls(fixture))
    return suite
