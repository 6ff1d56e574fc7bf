#!/usr/bin/env python3

import os
import sys
import json
import getpass
import argparse
from typing import List, Optional
from collections import OrderedDict

import uvicorn
import alembic.config
import sqlalchemy.exc

from competition_core import schemas, settings as _settings
from competition_core.access import KNOWN_SCOPES, PUBLIC
from competition_core.api import auth
from competition_core.api.api import create_app
from competition_core.persistence import database, models


def get_parser(program: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=program)

    commands = parser.add_subparsers(
        description="Available sub-commands: init, users*, competitions*, token, run",
        dest="command",
        required=True,
        metavar="<command>",
        help="the sub-command to be executed (some have their own subcommands, too)"
    )

    parser_init = commands.add_parser(
        "init",
        description="Initialize the project by creating the config file and the database tables"
    )

    parser_users = commands.add_parser(
        "users",
        description="Manage user accounts"
    )
    user_command = parser_users.add_subparsers(
        description="Available actions: show, add",
        dest="action",
        metavar="<action>",
        required=True,
        help="action to perform for users"
    )
    parser_users_show = user_command.add_parser(
        "show",
        description="Show a list of all users"
    )
    parser_users_add = user_command.add_parser(
        "add",
        description="Add a new user with a password for the login & authentication process"
    )

    parser_competitions = commands.add_parser(
        "competitions",
        description="Manage competitions and their delegates and organizers"
    )
    competition_command = parser_competitions.add_subparsers(
        description="Available actions: show, add, relate",
        dest="action",
        metavar="<action>",
        required=True,
        help="action to perform for competitions"
    )
    parser_competitions_show = competition_command.add_parser(
        "show",
        description="Show a list of all competitions (including hidden ones)"
    )
    parser_competitions_add = competition_command.add_parser(
        "add",
        description="Add a new competition without any events"
    )
    parser_competitions_relate = competition_command.add_parser(
        "relate",
        description="Make a user a delegate or organizer of a competition"
    )

    parser_token = commands.add_parser(
        "token",
        description="Issue a new access token for a user (requires a configured token secret)"
    )

    parser_run = commands.add_parser(
        "run",
        description="Run 'uvicorn' ASGI server to serve the competition core REST API"
    )

    parser_init.add_argument(
        "--database",
        type=str,
        metavar="url",
        help="Database connection URL including scheme and auth"
    )
    parser_init.add_argument(
        "--no-migrations",
        action="store_true",
        help="Do not apply migrations, but create all tables directly (not recommended)"
    )

    for p in (parser_users_show, parser_competitions_show):
        p.add_argument(
            "--json",
            action="store_true",
            help="Print the result in JSON format instead of human-readable text"
        )
        p.add_argument(
            "--indent",
            type=int,
            metavar="n",
            help="(JSON-only) Indent the JSON response with n spaces (default: none)"
        )

    parser_users_add.add_argument(
        "--name",
        type=str,
        metavar="name",
        required=True,
        help="Unique name of the newly created user account"
    )
    parser_users_add.add_argument(
        "--password",
        type=str,
        metavar="passwd",
        help="Password for the new user account (will be asked interactively if omitted)"
    )
    parser_users_add.add_argument(
        "--admin",
        action="store_true",
        help="Allow the new user to manage every competition"
    )

    parser_competitions_add.add_argument(
        "identifier",
        metavar="ID",
        type=str,
        help="Unique ID of the new competition (e.g. 'WC2025')"
    )
    parser_competitions_add.add_argument(
        "name",
        metavar="name",
        type=str,
        help="Full name of the new competition"
    )
    parser_competitions_add.add_argument(
        "--short-name",
        type=str,
        metavar="name",
        help="Optional short name of the new competition"
    )
    parser_competitions_add.add_argument(
        "--visible",
        action="store_true",
        help="Disclose the competition to everyone (default: only to its managers)"
    )
    parser_competitions_add.add_argument(
        "--confirmed",
        action="store_true",
        help="Mark the competition as confirmed, so its set of events can't change anymore"
    )

    parser_competitions_relate.add_argument(
        "competition",
        metavar="ID",
        type=str,
        help="ID of the competition"
    )
    parser_competitions_relate.add_argument(
        "user",
        metavar="user",
        type=str,
        help="Name or ID of the user"
    )
    parser_competitions_relate.add_argument(
        "role",
        metavar="role",
        choices=tuple(r.value for r in schemas.RelationRole),
        help="Role of the user for the competition (choices: 'delegate', 'organizer')"
    )

    parser_token.add_argument(
        "user",
        metavar="user",
        type=str,
        help="Name or ID of the user"
    )
    parser_token.add_argument(
        "--scope",
        type=str,
        metavar="scope",
        action="append",
        choices=sorted(KNOWN_SCOPES),
        help=f"Scope granted to the token, may be given multiple times (default: '{PUBLIC}')"
    )

    parser_run.add_argument(
        "--host",
        type=str,
        metavar="host",
        help="Bind TCP socket to this host (overwrite config)"
    )
    parser_run.add_argument(
        "--port",
        type=int,
        metavar="port",
        help="Bind TCP socket to this port (overwrite config)"
    )
    parser_run.add_argument(
        "--config",
        type=str,
        metavar="config",
        default="config.json",
        help="Overwrite the config file (defaults to 'config.json')"
    )
    parser_run.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging"
    )
    parser_run.add_argument(
        "--debug-sql",
        action="store_true",
        help="Enable echoing of database actions (overwrites config)"
    )
    parser_run.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload"
    )
    parser_run.add_argument(
        "--workers",
        type=int,
        default=None,
        metavar="n",
        help="Number of worker processes (not valid with --reload)",
    )
    parser_run.add_argument(
        "--no-access-log",
        action="store_true",
        help="Disable access logs"
    )
    parser_run.add_argument(
        "--root-path",
        type=str,
        default="",
        metavar="p",
        help="Sub-mount the application below the given path"
    )

    return parser


def _load_settings() -> _settings.Settings:
    _settings.SETTINGS_CREATE_NONEXISTENT = False
    config = _settings.Settings()
    database.init(config.database.connection, config.database.debug_sql, create_all=False)
    return config


def _find_user(session, identifier: str) -> Optional[models.User]:
    if identifier.isdigit():
        return session.get(models.User, int(identifier))
    return session.query(models.User).filter_by(name=identifier).one_or_none()


def run_server(args: argparse.Namespace):
    _settings.CONFIG_PATHS.insert(0, args.config)
    try:
        settings = _settings.Settings()
    except ValueError:
        print("Ensure that the configuration file is valid. Please correct any errors.", file=sys.stderr)
        raise

    if args.debug:
        settings.logging.root["level"] = "DEBUG"
        for handler in settings.logging.handlers:
            settings.logging.handlers[handler]["level"] = "DEBUG"
    if args.debug_sql:
        settings.database.debug_sql = args.debug_sql

    port = args.port
    if port is None:
        port = settings.server.port
    host = args.host
    if host is None:
        host = settings.server.host

    app = create_app(settings=settings)

    uvicorn.run(
        "competition_core.api:api.app" if args.reload else app,
        port=port,
        host=host,
        reload=args.reload,
        workers=args.workers,
        log_level="debug" if args.debug else "info",
        log_config=settings.logging.model_dump(),
        access_log=not args.no_access_log,
        proxy_headers=True,
        root_path=args.root_path
    )
    return 0


def init_project(args: argparse.Namespace) -> int:
    _settings.SETTINGS_EXIT_ON_ERROR = False
    db = _settings.get_db_from_env(args.database)
    if not any(os.path.exists(path) for path in _settings.CONFIG_PATHS):
        print("No settings file found. A basic config will be created now.")
        _settings.store_configuration(_settings.get_default_core_config(db))
    else:
        print(
            "A config file has been found and will be used. If you want a fresh installation, "
            "you should remove the config file and clear the database, then run this command again."
        )

    config = _settings.Settings(**({"database": {"connection": db}} if db else {}))
    if not args.no_migrations:
        alembic.config.main(argv=["upgrade", "head"])
    database.init(config.database.connection, config.database.debug_sql, create_all=args.no_migrations)

    with database.get_new_session() as session:
        try:
            users = session.query(models.User).count()
        except sqlalchemy.exc.DatabaseError:
            print(
                "No table 'users' found in the database. Please initialize the database first. "
                "Perform the necessary database migrations using the 'alembic upgrade head' command.",
                file=sys.stderr
            )
            return 1

    if users == 0:
        print(
            "\nThere's no user account yet. Nobody can manage competitions via the API "
            "without an account. Use the 'users add' command to create the first user."
        )
    print("Done.")
    return 0


def print_table(objs: List[dict], keys: Optional[List[str]] = None):
    info = OrderedDict()
    if keys:
        for k in keys:
            info[k] = len(k)
    for obj in objs:
        for key in obj:
            if keys and key not in keys:
                continue
            if key not in info:
                info[key] = len(key)
            info[key] = max(len(str(obj.get(key))), info.get(key))
    print(" | ".join([f"{k:<{info[k]}}" for k in info]))
    print("-+-".join(["-" * info[k] for k in info]))
    for obj in objs:
        print(" | ".join([f"{obj[k]!s:<{info[k]}}" for k in info]))


def show_users(args: argparse.Namespace) -> int:
    _load_settings()
    with database.get_new_session() as session:
        users = [user.schema.model_dump() for user in session.query(models.User).order_by(models.User.id).all()]
    if args.json:
        print(json.dumps(users, indent=args.indent))
        return 0
    print_table(users, ["id", "name", "admin", "created"])
    return 0


def add_user(args: argparse.Namespace) -> int:
    if not args.name:
        print("Empty user names are not allowed.", file=sys.stderr)
        return 1

    config = _load_settings()
    auth.configure(config.server)
    with database.get_new_session() as session:
        if session.query(models.User).filter_by(name=args.name).all():
            print(
                f"A user with the given name {args.name!r} already "
                f"exists. Therefore, it can't be created. Exiting.",
                file=sys.stderr
            )
            return 1

        passwd = args.password or getpass.getpass()
        if not passwd:
            print("A password is mandatory. No new user account created!", file=sys.stderr)
            return 1
        user = models.User(name=args.name, hashed_password=auth.hash_password(passwd), admin=args.admin)
        session.add(user)
        session.commit()
        print(f"Successfully created new user {args.name!r} (ID {user.id}).")
    return 0


def handle_users(args: argparse.Namespace) -> int:
    return {
        "show": show_users,
        "add": add_user
    }[args.action](args)


def show_competitions(args: argparse.Namespace) -> int:
    def _conv(d: dict) -> dict:
        d["relations"] = len(d["relations"])
        d["events"] = " ".join(d["event_ids"])
        return d

    _load_settings()
    with database.get_new_session() as session:
        competitions = [
            c.schema.model_dump(mode="json")
            for c in session.query(models.Competition).order_by(models.Competition.id).all()
        ]
    if args.json:
        print(json.dumps(competitions, indent=args.indent))
        return 0
    print_table(
        [_conv(c) for c in competitions],
        ["id", "name", "visible", "confirmed", "relations", "events"]
    )
    return 0


def add_competition(args: argparse.Namespace) -> int:
    _load_settings()
    with database.get_new_session() as session:
        if session.get(models.Competition, args.identifier) is not None:
            print(f"A competition with ID {args.identifier!r} already exists. Exiting.", file=sys.stderr)
            return 1
        session.add(models.Competition(
            id=args.identifier,
            name=args.name,
            short_name=args.short_name,
            visible=args.visible,
            confirmed=args.confirmed
        ))
        session.commit()
    print(f"Successfully created new competition {args.identifier!r}.")
    return 0


def relate_competition(args: argparse.Namespace) -> int:
    _load_settings()
    with database.get_new_session() as session:
        competition = session.get(models.Competition, args.competition)
        if competition is None:
            print(f"There's no competition with ID {args.competition!r} in the database!", file=sys.stderr)
            return 1
        user = _find_user(session, args.user)
        if user is None:
            print(f"There's no user {args.user!r} in the database!", file=sys.stderr)
            return 1
        if any(r.user_id == user.id and r.role == args.role for r in competition.relations):
            print(f"User {user.name!r} already is {args.role} of {competition.id!r}.")
            return 0
        competition.relations.append(models.CompetitionRelation(user_id=user.id, role=args.role))
        session.commit()
        print(f"Successfully made user {user.name!r} {args.role} of competition {competition.id!r}.")
    return 0


def handle_competitions(args: argparse.Namespace) -> int:
    return {
        "show": show_competitions,
        "add": add_competition,
        "relate": relate_competition
    }[args.action](args)


def issue_token(args: argparse.Namespace) -> int:
    config = _load_settings()
    if config.server.token_secret is None:
        print(
            "No 'token_secret' has been configured in the server section. Tokens issued "
            "now would be rejected by any server process. Exiting.",
            file=sys.stderr
        )
        return 1
    auth.configure(config.server)

    with database.get_new_session() as session:
        user = _find_user(session, args.user)
        if user is None:
            print(f"There's no user {args.user!r} in the database!", file=sys.stderr)
            return 1
        print(auth.create_access_token(user.id, args.scope or [PUBLIC], config.server.token_expiration_minutes))
    return 0


if __name__ == '__main__':
    program_name = sys.argv[0] if not sys.argv[0].endswith("__main__.py") else "competition_core"
    namespace = get_parser(program_name).parse_args(sys.argv[1:])

    command_functions = {
        "run": run_server,
        "init": init_project,
        "users": handle_users,
        "competitions": handle_competitions,
        "token": issue_token
    }
    exit(command_functions[namespace.command](namespace))
