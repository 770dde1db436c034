"""
Command-line front end for the calculation service client.

Usage (from project root):
    python -m src.calc_client.runner login alice secret
    python -m src.calc_client.runner calc "3+3"
    python -m src.calc_client.runner history --status error --page 2

Or programmatically:
    from src.calc_client.runner import main
    exit_code = main(["calc", "2*(3+4)"])

Every command returns 0 on success and 1 on a reported failure; no failure
is allowed to escape as a traceback.
"""

from __future__ import annotations

import argparse
import sys

from .auth import login, logout, register
from .config import DEFAULT_PAGE_SIZE, MAX_POLL_ATTEMPTS
from .errors import RequestError
from .executor import RequestExecutor
from .expressions import get_expression, get_expression_tasks, recalculate_expression
from .history import history_frame, list_expressions
from .polling import submit_and_track
from .session import ExpressionTextStore, SessionStore


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="calc_client", description=__doc__.splitlines()[1])
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("login", help="log in and store the session token")
    p.add_argument("username")
    p.add_argument("password")

    p = sub.add_parser("register", help="create an account")
    p.add_argument("username")
    p.add_argument("password")
    p.add_argument("password_confirm")

    sub.add_parser("logout", help="forget the stored session")

    p = sub.add_parser("calc", help="submit an expression and wait for the result")
    p.add_argument("expression")
    p.add_argument("--max-polls", type=int, default=MAX_POLL_ATTEMPTS)

    p = sub.add_parser("show", help="show one expression and its tasks")
    p.add_argument("id")

    p = sub.add_parser("recalc", help="re-run an existing expression")
    p.add_argument("id")

    p = sub.add_parser("history", help="list past expressions")
    p.add_argument("--page", type=int, default=1)
    p.add_argument("--page-size", type=int, default=DEFAULT_PAGE_SIZE)
    p.add_argument("--date-from")
    p.add_argument("--date-to")
    p.add_argument("--status")

    return parser


def _print_tasks(tasks: list[dict]) -> None:
    if not tasks:
        print("  No tasks for this expression.")
        return
    for task in tasks:
        elapsed = f"{task['execution_time']} ms" if task["execution_time"] else "-"
        result = task["result"] if task["result"] is not None else "-"
        print(
            f"  #{task['id']}  {task['arg1']} {task['operation']} {task['arg2']}"
            f" = {result}  [{task['status']}]  {elapsed}"
        )


def run_command(args: argparse.Namespace, executor: RequestExecutor, texts: ExpressionTextStore) -> None:
    """Dispatch one parsed command.  Errors propagate to :func:`main`."""
    if args.command == "login":
        login(executor, args.username, args.password)

    elif args.command == "register":
        register(executor, args.username, args.password, args.password_confirm)

    elif args.command == "logout":
        logout(executor.store)
        print("  Logged out.")

    elif args.command == "calc":
        handle = submit_and_track(
            executor,
            args.expression,
            text_store=texts,
            max_attempts=args.max_polls,
        )
        print(f"Result: {handle.result if handle.result is not None else '-'} ({handle.last_status})")

    elif args.command == "show":
        record = get_expression(executor, args.id)
        text = record["expression"] or texts.lookup(args.id) or "N/A"
        print(f"Expression {record['id']}: {text}")
        print(f"  Status: {record['status']}")
        print(f"  Result: {record['result'] if record['result'] is not None else '-'}")
        print(f"  Created: {record['created_at'] or '-'}")
        _print_tasks(get_expression_tasks(executor, args.id))

    elif args.command == "recalc":
        recalculate_expression(executor, args.id)
        print(f"  Expression {args.id} sent for recalculation.")

    elif args.command == "history":
        page = list_expressions(
            executor,
            page=args.page,
            page_size=args.page_size,
            filters={
                "date_from": args.date_from,
                "date_to": args.date_to,
                "status": args.status,
            },
        )
        df = history_frame(page["items"])
        if df.empty:
            print("  No expressions.")
        else:
            print(df.to_string(index=False))
        print(f"Page {args.page} of {page['total_pages']} ({page['total_count']} total)")


def main(
    argv: list[str] | None = None,
    executor: RequestExecutor | None = None,
    texts: ExpressionTextStore | None = None,
) -> int:
    args = _build_parser().parse_args(argv)
    if executor is None:
        executor = RequestExecutor(SessionStore())
    if texts is None:
        texts = ExpressionTextStore()

    try:
        run_command(args, executor, texts)
    except ValueError as exc:  # includes ValidationError
        print(f"ERROR: {exc}")
        return 1
    except RequestError as exc:
        print(f"ERROR [{exc.kind}]: {exc}")
        if exc.kind == RequestError.UNAUTHENTICATED:
            print("  Session ended; log in again with: login <username> <password>")
        return 1
    return 0


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    sys.exit(main())
