"""
Helper functions to make writing unit tests for the competition core easier
"""

import os
import sys
import random
import string
import secrets
import tempfile
import unittest
import subprocess
from typing import Iterable, List, Optional

import httpx
import sqlalchemy.orm
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine as _Engine

from competition_core import schemas as _schemas, settings as _settings
from competition_core.api import auth
from competition_core.api.api import create_app
from competition_core.persistence import database, models

from . import conf


OPEN = "OpenCup2025"
HIDDEN = "HiddenCup2025"
CONFIRMED = "ConfirmedOpen2025"


def password_of(name: str) -> str:
    return f"password-of-{name}"


class BaseTest(unittest.TestCase):
    """
    A base class for unit tests which introduces simple setup and teardown of unit tests

    If a subclass needs special setup or teardown functionality, it **MUST**
    call the superclasses setup and teardown methods: the superclass setup
    method at the beginning of the subclass setup method, the superclass
    teardown method at the end of the subclass teardown method.
    """

    config_file: Optional[str] = None
    database_url: Optional[str] = None
    _database_file: Optional[str] = None

    def setUp(self) -> None:
        self.config_file = os.path.join(
            tempfile.gettempdir(),
            f"config_{os.getpid()}_{secrets.token_hex(8)}.json"
        )
        _settings.CONFIG_PATHS = [self.config_file]
        database.PRINT_SQLITE_WARNING = False

        if conf.DATABASE_URL is not None:
            self.database_url = conf.DATABASE_URL
            for k in ["COMMAND_INITIALIZE_DATABASE", "COMMAND_CLEANUP_DATABASE"]:
                if getattr(conf, k, None) is None:
                    print(
                        f"{k!r} has not been set (value: None)! This config value "
                        "is mandatory for non-default databases. Any unittest may fail. "
                        "But if you really need no script(s), set it to an empty list.",
                        file=sys.stderr
                    )
                    sys.exit(1)

            if conf.COMMAND_INITIALIZE_DATABASE:
                subprocess.run(conf.COMMAND_INITIALIZE_DATABASE)

        else:
            self._database_file = conf.DATABASE_DEFAULT_FILE_FORMAT.format(
                os.getpid(),
                "".join([random.choice(string.ascii_lowercase) for _ in range(6)])
            )

            try:
                open(self._database_file, "wb").close()
                os.remove(self._database_file)
                self.database_url = conf.DATABASE_URL_FORMAT.format(self._database_file)

            except OSError as exc:
                self.database_url = conf.DATABASE_FALLBACK_URL
                self._database_file = None
                print(
                    f"{exc}: Falling back to in-memory database. This is not recommended!",
                    file=sys.stderr
                )

        self.config = _settings.get_default_core_config(self.database_url)
        self.config.database.debug_sql = conf.SQLALCHEMY_ECHOING
        self.config.server.allow_weak_insecure_password_hashes = True
        self.config.server.token_secret = secrets.token_hex(24)
        with open(self.config_file, "w") as f:
            f.write(self.config.model_dump_json())
        auth.configure(self.config.server)

    def tearDown(self) -> None:
        if conf.DATABASE_URL is not None and conf.COMMAND_CLEANUP_DATABASE:
            subprocess.run(conf.COMMAND_CLEANUP_DATABASE)

        elif self.database_url != conf.DATABASE_FALLBACK_URL and self._database_file:
            if os.path.exists(self._database_file):
                os.remove(self._database_file)

        if self.config_file and os.path.exists(self.config_file):
            os.remove(self.config_file)

    @staticmethod
    def get_sample_users() -> List[models.User]:
        return [
            models.User(name=name, hashed_password=auth.hash_password(password_of(name)), admin=name == "admin")
            for name in ("alice", "bob", "carol", "admin")
        ]

    @staticmethod
    def get_sample_competitions() -> List[models.Competition]:
        return [
            models.Competition(id=OPEN, name="Open Cup 2025", short_name="Open 2025", visible=True),
            models.Competition(id=HIDDEN, name="Hidden Cup 2025", visible=False),
            models.Competition(id=CONFIRMED, name="Confirmed Open 2025", visible=True, confirmed=True)
        ]

    def populate(self, session: sqlalchemy.orm.Session):
        """
        Add the sample users and competitions with their relations to the database

        Alice is a delegate of all competitions, Bob is an organizer of the
        visible competitions only, Carol doesn't manage anything, while the admin
        manages everything. The confirmed competition holds the 3x3x3 Cube event.
        """

        alice, bob, carol, admin = self.get_sample_users()
        session.add_all([alice, bob, carol, admin])
        open_cup, hidden_cup, confirmed_cup = self.get_sample_competitions()
        session.add_all([open_cup, hidden_cup, confirmed_cup])
        session.flush()

        for competition in (open_cup, hidden_cup, confirmed_cup):
            competition.relations.append(models.CompetitionRelation(
                user_id=alice.id, role=_schemas.RelationRole.DELEGATE.value
            ))
        for competition in (open_cup, confirmed_cup):
            competition.relations.append(models.CompetitionRelation(
                user_id=bob.id, role=_schemas.RelationRole.ORGANIZER.value
            ))
        confirmed_cup.events.append(models.CompetitionEvent(
            event_id="333",
            rounds=[models.Round(number=1, format="a")]
        ))
        session.commit()


class BasePersistenceTests(BaseTest):
    engine: _Engine
    session: sqlalchemy.orm.Session

    def setUp(self) -> None:
        super().setUp()
        self.engine = database.make_engine(self.database_url, conf.SQLALCHEMY_ECHOING)
        self._make_session = sqlalchemy.orm.sessionmaker(autoflush=False, bind=self.engine)
        self.session = self.make_session()
        models.Base.metadata.create_all(bind=self.engine)

    def tearDown(self) -> None:
        self.session.close()
        self.engine.dispose()
        super().tearDown()

    def make_session(self) -> sqlalchemy.orm.Session:
        return self._make_session()


class BaseAPITests(BaseTest):
    """
    A base class for unit tests querying the API in-process using the ``TestClient``

    Every test gets a freshly populated database (see ``populate``) and an
    anonymous client. Use ``make_client`` for clients with their own cookies.
    """

    def setUp(self) -> None:
        super().setUp()
        self.app = create_app(_settings.Settings(), configure_logging=False)
        self._clients: List[TestClient] = []
        self.client = self.make_client()
        with database.get_new_session() as session:
            self.populate(session)

    def tearDown(self) -> None:
        for client in self._clients:
            client.close()
        database.get_engine().dispose()
        super().tearDown()

    def make_client(self) -> TestClient:
        client = TestClient(self.app)
        self._clients.append(client)
        return client

    def get_token(self, name: str, scopes: Iterable[str] = ("public",)) -> str:
        response = self.client.post(
            "/oauth/token",
            data={"username": name, "password": password_of(name), "scope": " ".join(scopes)}
        )
        self.assertEqual(200, response.status_code, response.text)
        return response.json()["access_token"]

    def get_bearer(self, name: str, scopes: Iterable[str] = ("public",)) -> dict:
        return {"Authorization": f"Bearer {self.get_token(name, scopes)}"}

    def login_session(self, client: TestClient, name: str) -> str:
        """
        Log in the client interactively, returning the CSRF token of the new session
        """

        response = client.post("/session", data={"username": name, "password": password_of(name)})
        self.assertEqual(200, response.status_code, response.text)
        self.assertIn("session", client.cookies)
        return response.json()["csrf_token"]

    def assertQuery(
            self,
            method: str,
            path: str,
            status_code: int = 200,
            client: Optional[TestClient] = None,
            r_schema: Optional[type] = None,
            **kwargs
    ) -> httpx.Response:
        """
        Do a query to the specified endpoint and return the response

        :param method: HTTP method of the request
        :param path: absolute path of the endpoint
        :param status_code: asserted status code of the response
        :param client: optional client with its own cookies (default: the anonymous client)
        :param r_schema: optional schema class the response must be valid for (errors are
            always checked to be valid ``APIError`` models carrying the same status code)
        :param kwargs: dict of any further keyword arguments, passed to ``TestClient.request``
        :return: response to the requested resource
        """

        response = (client or self.client).request(method.upper(), path, **kwargs)
        self.assertEqual(status_code, response.status_code, response.text)
        if status_code >= 400:
            error = _schemas.APIError.model_validate(response.json())
            self.assertEqual(status_code, error.status)
            self.assertEqual(path.split("?")[0], error.request)
        elif r_schema is not None:
            self.assertTrue(r_schema.model_validate(response.json()), response.json())
        return response
