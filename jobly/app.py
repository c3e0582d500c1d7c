import argparse
import json
import sys
from pathlib import Path

from . import __version__
from .database import get_session, init_database
from .env import get_settings, load_env
from .errors import NotFoundError, ValidationError
from .logger import get_logger
from .models import Company, Job, User
from .schema import coerce_query_args

EXIT_INVALID = 2
EXIT_NOT_FOUND = 4


def _read_json(path_str: str) -> dict:
    input_path = Path(path_str)
    if not input_path.exists():
        raise SystemExit(f"Input file not found: {input_path}")
    with input_path.open("r", encoding="utf-8") as f:
        try:
            return json.load(f)
        except json.JSONDecodeError as e:
            raise ValidationError(
                f"Input file is not valid JSON: {input_path}", errors=[str(e)]
            ) from e


def _emit(payload) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False))


def _parse_id(value: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise ValidationError(f"Job id must be an integer: {value!r}") from None


def cmd_init_db(args: argparse.Namespace, db_path: Path) -> None:
    init_database(db_path)
    get_logger().info("Initialized database", path=str(db_path))
    print(f"Initialized {db_path}")


def cmd_companies(args: argparse.Namespace, session) -> None:
    model = Company(session)
    action = args.action
    if action == "list":
        filters = coerce_query_args(
            {"name": args.name, "minEmployees": args.min_employees, "maxEmployees": args.max_employees},
            int_fields=("minEmployees", "maxEmployees"),
        )
        _emit({"companies": model.find_all(filters)})
    elif action == "get":
        _emit({"company": model.get(args.handle)})
    elif action == "create":
        _emit({"company": model.create(_read_json(args.input))})
    elif action == "update":
        _emit({"company": model.update(args.handle, _read_json(args.input))})
    elif action == "remove":
        model.remove(args.handle)
        _emit({"deleted": args.handle})


def cmd_jobs(args: argparse.Namespace, session) -> None:
    model = Job(session)
    action = args.action
    if action == "list":
        filters = coerce_query_args(
            {"title": args.title, "minSalary": args.min_salary, "hasEquity": args.has_equity},
            int_fields=("minSalary",),
            bool_fields=("hasEquity",),
        )
        _emit({"jobs": model.find_all(filters)})
    elif action == "get":
        _emit({"job": model.get(_parse_id(args.id))})
    elif action == "create":
        _emit({"job": model.create(_read_json(args.input))})
    elif action == "update":
        _emit({"job": model.update(_parse_id(args.id), _read_json(args.input))})
    elif action == "remove":
        model.remove(_parse_id(args.id))
        _emit({"deleted": args.id})


def cmd_users(args: argparse.Namespace, session) -> None:
    model = User(session)
    action = args.action
    if action == "list":
        _emit({"users": model.find_all()})
    elif action == "get":
        _emit({"user": model.get(args.username)})
    elif action == "create":
        _emit({"user": model.create(_read_json(args.input))})
    elif action == "update":
        _emit({"user": model.update(args.username, _read_json(args.input))})
    elif action == "remove":
        model.remove(args.username)
        _emit({"deleted": args.username})
    elif action == "apply":
        _emit({"applied": model.apply(args.username, _parse_id(args.job_id))})


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="jobly", description="Jobly job board")
    parser.add_argument("--version", action="store_true", help="Show version")
    parser.add_argument("--db", help="Path to SQLite database (default: $JOBLY_DB_PATH or data/jobly.db)")

    subparsers = parser.add_subparsers(dest="command")

    init = subparsers.add_parser("init-db", help="Create the database tables")
    init.set_defaults(func=cmd_init_db, needs_session=False)

    comp = subparsers.add_parser("companies", help="Search and manage companies")
    comp.set_defaults(func=cmd_companies, needs_session=True)
    comp_sub = comp.add_subparsers(dest="action", required=True)
    comp_list = comp_sub.add_parser("list", help="List companies, optionally filtered")
    comp_list.add_argument("--name", help="Case-insensitive substring of the company name")
    comp_list.add_argument("--min-employees", help="Minimum number of employees")
    comp_list.add_argument("--max-employees", help="Maximum number of employees")
    comp_sub.add_parser("get", help="Show a company and its jobs").add_argument("handle")
    comp_create = comp_sub.add_parser("create", help="Create a company from a JSON file")
    comp_create.add_argument("--input", required=True, help="Path to company JSON")
    comp_update = comp_sub.add_parser("update", help="Update some company fields from a JSON file")
    comp_update.add_argument("handle")
    comp_update.add_argument("--input", required=True, help="Path to partial company JSON")
    comp_sub.add_parser("remove", help="Delete a company").add_argument("handle")

    jobs = subparsers.add_parser("jobs", help="Search and manage jobs")
    jobs.set_defaults(func=cmd_jobs, needs_session=True)
    jobs_sub = jobs.add_subparsers(dest="action", required=True)
    jobs_list = jobs_sub.add_parser("list", help="List jobs, optionally filtered")
    jobs_list.add_argument("--title", help="Case-insensitive substring of the job title")
    jobs_list.add_argument("--min-salary", help="Minimum salary")
    jobs_list.add_argument("--has-equity", help="true to only list jobs with equity")
    jobs_sub.add_parser("get", help="Show a job").add_argument("id")
    jobs_create = jobs_sub.add_parser("create", help="Create a job from a JSON file")
    jobs_create.add_argument("--input", required=True, help="Path to job JSON")
    jobs_update = jobs_sub.add_parser("update", help="Update some job fields from a JSON file")
    jobs_update.add_argument("id")
    jobs_update.add_argument("--input", required=True, help="Path to partial job JSON")
    jobs_sub.add_parser("remove", help="Delete a job").add_argument("id")

    users = subparsers.add_parser("users", help="Manage users and applications")
    users.set_defaults(func=cmd_users, needs_session=True)
    users_sub = users.add_subparsers(dest="action", required=True)
    users_sub.add_parser("list", help="List users")
    users_sub.add_parser("get", help="Show a user and their applications").add_argument("username")
    users_create = users_sub.add_parser("create", help="Create a user from a JSON file")
    users_create.add_argument("--input", required=True, help="Path to user JSON")
    users_update = users_sub.add_parser("update", help="Update some user fields from a JSON file")
    users_update.add_argument("username")
    users_update.add_argument("--input", required=True, help="Path to partial user JSON")
    users_sub.add_parser("remove", help="Delete a user").add_argument("username")
    users_apply = users_sub.add_parser("apply", help="Apply a user to a job")
    users_apply.add_argument("username")
    users_apply.add_argument("job_id")

    return parser


def main(argv=None) -> int:
    load_env()
    settings = get_settings()
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(__version__)
        return 0

    if not hasattr(args, "func"):
        parser.print_help()
        return 0

    logger = get_logger(level=settings.log_level, log_dir=settings.log_dir)
    db_path = Path(args.db) if args.db else settings.db_path

    if not args.needs_session:
        args.func(args, db_path)
        return 0

    if not db_path.exists():
        raise SystemExit(f"Database not found: {db_path}. Run 'jobly init-db' first.")

    session = get_session(db_path)
    try:
        args.func(args, session)
    except ValidationError as e:
        logger.error(f"Invalid request: {e.message}", errors=e.errors)
        print(f"Invalid: {e.message}", file=sys.stderr)
        return EXIT_INVALID
    except NotFoundError as e:
        logger.error(f"Not found: {e.message}")
        print(f"Not found: {e.message}", file=sys.stderr)
        return EXIT_NOT_FOUND
    finally:
        session.close()
        logger.log_metrics_summary()
    return 0


if __name__ == "__main__":
    sys.exit(main())
