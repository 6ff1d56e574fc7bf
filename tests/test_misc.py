"""
Competition core unit tests for helpers and other miscellaneous features
"""

import os
import json
import logging
import unittest as _unittest
from unittest import mock
from typing import Type

from jose import JWTError

from competition_core import schemas, settings as _settings
from competition_core.api import auth
from competition_core.misc import wcif
from competition_core.misc.logger import NoDebugFilter
from competition_core.persistence import models

from . import utils


misc_suite = _unittest.TestSuite()


def _tested(cls: Type):
    global misc_suite
    for fixture in filter(lambda f: f.startswith("test_"), dir(cls)):
        misc_suite.addTest(cls(fixture))
    return cls


@_tested
class WCIFTests(utils.BasePersistenceTests):
    def test_validate_events(self):
        self.assertEqual([], wcif.validate_events([]))
        self.assertEqual([], wcif.validate_events([{"id": "333"}, {"id": "444", "rounds": None}]))
        self.assertEqual([], wcif.validate_events([{
            "id": "333fm",
            "rounds": [{
                "id": "333fm-r1",
                "format": "m",
                "timeLimit": None,
                "cutoff": None,
                "advancementCondition": {"type": "percent", "level": 75},
                "scrambleSetCount": 1,
                "extensions": [{"id": "groupifier.RoundConfig", "specUrl": "https://example.org", "data": {}}]
            }],
            "competitorLimit": 40,
            "qualification": {"whenDate": "2025-01-01", "type": "ranking", "resultType": "single", "level": 200}
        }]))

        problems = wcif.validate_events([{"id": "333", "rounds": [{"id": "foo", "format": "a"}]}])
        self.assertEqual(1, len(problems))
        self.assertIsInstance(problems[0], schemas.FieldError)
        self.assertEqual("/0/rounds/0/id", problems[0].path)

        problems = wcif.validate_events([{"id": "3333333"}, {"id": 333}])
        self.assertEqual(["/0/id", "/1/id"], [p.path for p in problems])

    def test_to_wcif(self):
        self.populate(self.session)
        self.session.add(models.User(name="dave", hashed_password="foo"))
        self.session.commit()

        confirmed = self.session.get(models.Competition, utils.CONFIRMED)
        result = wcif.to_wcif(confirmed)
        self.assertEqual("1.0", result.format_version)
        self.assertEqual(utils.CONFIRMED, result.id)
        self.assertEqual("Confirmed Open 2025", result.short_name)
        self.assertEqual(
            [("alice", ["delegate"]), ("bob", ["organizer"])],
            [(p.name, p.roles) for p in result.persons]
        )
        self.assertEqual(["333"], [e.id for e in result.events])
        self.assertEqual(["333-r1"], [r.id for r in result.events[0].rounds])

        dumped = result.model_dump(by_alias=True)
        self.assertEqual({"formatVersion", "id", "name", "shortName", "persons", "events"}, set(dumped))
        self.assertEqual({"wcaUserId", "name", "roles"}, set(dumped["persons"][0]))

        open_cup = self.session.get(models.Competition, utils.OPEN)
        self.assertEqual("Open 2025", wcif.to_wcif(open_cup).short_name)
        self.assertEqual([], wcif.to_wcif(open_cup).events)

    def test_persons_with_multiple_roles(self):
        self.populate(self.session)
        alice = self.session.query(models.User).filter_by(name="alice").one()
        hidden = self.session.get(models.Competition, utils.HIDDEN)
        hidden.relations.append(models.CompetitionRelation(user_id=alice.id, role="organizer"))
        self.session.commit()

        persons = wcif.to_wcif(self.session.get(models.Competition, utils.HIDDEN)).persons
        self.assertEqual(1, len(persons))
        self.assertEqual(alice.id, persons[0].wca_user_id)
        self.assertEqual(["delegate", "organizer"], persons[0].roles)


@_tested
class TokenTests(utils.BaseTest):
    def test_access_tokens(self):
        token = auth.create_access_token(42, ["public", "manage_competitions", "public"])
        claims = auth.decode_token(token, auth.ACCESS_TOKEN_TYPE)
        self.assertEqual("42", claims["sub"])
        self.assertEqual("manage_competitions public", claims["scope"])
        with self.assertRaises(ValueError):
            auth.decode_token(token, auth.SESSION_TOKEN_TYPE)

    def test_session_tokens(self):
        token = auth.create_session_token(7, "foo")
        claims = auth.decode_token(token, auth.SESSION_TOKEN_TYPE)
        self.assertEqual("7", claims["sub"])
        self.assertEqual("foo", claims["csrf"])
        with self.assertRaises(ValueError):
            auth.decode_token(token, auth.ACCESS_TOKEN_TYPE)

    def test_invalid_tokens(self):
        with self.assertRaises(JWTError):
            auth.decode_token("foo", auth.ACCESS_TOKEN_TYPE)
        with self.assertRaises(JWTError):
            auth.decode_token(auth.create_access_token(1, ["public"], -1), auth.ACCESS_TOKEN_TYPE)

        token = auth.create_access_token(1, ["public"])
        other = self.config.server.model_copy(update={"token_secret": "another-secret-of-enough-length"})
        auth.configure(other)
        with self.assertRaises(JWTError):
            auth.decode_token(token, auth.ACCESS_TOKEN_TYPE)


@_tested
class SettingsTests(utils.BaseTest):
    def test_read_config_file(self):
        config = _settings.Settings()
        self.assertEqual(self.database_url, config.database.connection)
        self.assertEqual(self.config.server.token_secret, config.server.token_secret)
        self.assertTrue(config.server.allow_weak_insecure_password_hashes)

    def test_precedence(self):
        with mock.patch.dict(os.environ, {"SERVER__PORT": "9876", "DATABASE__CONNECTION": "sqlite:///foo.db"}):
            config = _settings.Settings()
            self.assertEqual(9876, config.server.port)
            self.assertEqual("sqlite:///foo.db", config.database.connection)
            self.assertEqual(self.config.server.token_secret, config.server.token_secret)

            config = _settings.Settings(server={"port": 1234})
            self.assertEqual(1234, config.server.port)

    def test_missing_config_file(self):
        os.remove(self.config_file)
        with mock.patch.object(_settings, "SETTINGS_EXIT_ON_ERROR", False), \
                mock.patch.object(_settings, "SETTINGS_CREATE_NONEXISTENT", True), \
                mock.patch.object(_settings, "SETTINGS_LOG_ERROR_FUNCTION", None):
            config = _settings.Settings()
        self.assertTrue(os.path.exists(self.config_file))
        self.assertEqual(8000, config.server.port)
        with open(self.config_file) as f:
            self.assertEqual(schemas.config.CoreConfig().model_dump(mode="json"), json.load(f))

    def test_missing_config_file_exits(self):
        os.remove(self.config_file)
        with mock.patch.object(_settings, "SETTINGS_CREATE_NONEXISTENT", False), \
                mock.patch.object(_settings, "SETTINGS_LOG_ERROR_FUNCTION", None):
            with self.assertRaises(SystemExit):
                _settings.Settings()
        self.assertFalse(os.path.exists(self.config_file))


@_tested
class LoggingTests(_unittest.TestCase):
    def test_no_debug_filter(self):
        f = NoDebugFilter("python_multipart")
        for name, level, expected in [
            ("python_multipart", logging.DEBUG, False),
            ("python_multipart", logging.INFO, True),
            ("python_multipart.multipart", logging.DEBUG, False),
            ("competition_core", logging.DEBUG, True),
            ("competition_core", logging.WARNING, True)
        ]:
            record = logging.LogRecord(name, level, __file__, 1, "message", None, None)
            self.assertEqual(expected, bool(f.filter(record)), (name, level))

    def test_logging_config(self):
        config = schemas.config.LoggingConfig().model_dump()
        self.assertEqual(
            "competition_core.misc.logger.NoDebugFilter",
            config["filters"]["multipart_no_debug"]["()"]
        )
        self.assertIn("default", config["root"]["handlers"])


if __name__ == "__main__":
    _unittest.main()
