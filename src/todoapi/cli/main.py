"""todoapi CLI — run the server and manage your todos from the terminal.

Usage:
    todoapi serve --reload                       # Run the API with uvicorn
    todoapi init-db                              # Create tables (dev / first run)
    todoapi gen-secret                           # Print a fresh JWT signing secret
    todoapi register me@example.com -p Secret123 # Create account, print token
    todoapi login me@example.com -p Secret123    # Print a token
    export TODOAPI_TOKEN=<token>
    todoapi list                                 # Your todos
    todoapi add "Buy milk"                       # Create a todo
    todoapi done 3                               # Mark #3 complete
    todoapi rm 3                                 # Delete #3
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import json
import os
import secrets
import sys
from typing import Optional

import click
import httpx

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:8000"


def _api_url() -> str:
    return os.environ.get("TODOAPI_API_URL", DEFAULT_API_URL).rstrip("/")


def _client(token: Optional[str] = None) -> httpx.AsyncClient:
    """Build an async HTTP client pointed at the Todo API."""
    headers = {"Authorization": f"Bearer {token}"} if token else {}
    return httpx.AsyncClient(base_url=_api_url(), headers=headers, timeout=30.0)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from synchronous Click handler.

    Handles nested event loops (e.g. when invoked via Click CliRunner
    inside an existing async context like tests) by offloading to a thread.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        # No running loop — normal CLI invocation
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


def _require_token(token: Optional[str]) -> str:
    """Resolve the bearer token from --token or TODOAPI_TOKEN."""
    tok = token or os.environ.get("TODOAPI_TOKEN")
    if not tok:
        click.secho(
            "Error: --token required (or set TODOAPI_TOKEN env var)",
            fg="red",
            err=True,
        )
        sys.exit(1)
    return tok


def _error_message(r: httpx.Response) -> str:
    try:
        body = r.json()
    except ValueError:
        return r.text or r.reason_phrase
    if isinstance(body, dict):
        if "errors" in body:
            return "; ".join(
                f"{field}: {msg}" for field, msgs in body["errors"].items() for msg in msgs
            )
        return str(body.get("detail") or body.get("title") or body)
    return str(body)


def _check(r: httpx.Response) -> httpx.Response:
    """Exit with the API's error message on any non-2xx response."""
    if r.is_success:
        return r
    click.secho(f"Error {r.status_code}: {_error_message(r)}", fg="red", err=True)
    sys.exit(1)


def _print_todo(todo: dict) -> None:
    mark = click.style("[x]", fg="green") if todo["isComplete"] else "[ ]"
    click.echo(f"  #{todo['id']:<5d} {mark} {todo['name']}")


token_option = click.option(
    "--token", "-T", help="Bearer token (or set TODOAPI_TOKEN)"
)


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="todo-api", prog_name="todoapi")
def main():
    """todoapi — a private todo list behind bearer-token auth."""


# ---------------------------------------------------------------------------
# Server commands
# ---------------------------------------------------------------------------


@main.command()
@click.option("--host", default=None, help="Bind address (default from TODOAPI_HOST)")
@click.option("--port", default=None, type=int, help="Port (default from TODOAPI_PORT)")
@click.option("--reload", is_flag=True, help="Restart on code changes")
def serve(host: Optional[str], port: Optional[int], reload: bool):
    """Run the API server with uvicorn."""
    import uvicorn

    from todoapi.config import settings

    uvicorn.run(
        "todoapi.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


@main.command("init-db")
def init_db():
    """Create database tables that do not exist yet."""
    from todoapi.db.engine import engine, init_models

    async def _impl():
        await init_models()
        await engine.dispose()

    _run(_impl())
    click.secho("Database tables ready.", fg="green")


@main.command("gen-secret")
def gen_secret():
    """Print a random secret suitable for TODOAPI_JWT_SECRET."""
    click.echo(secrets.token_urlsafe(48))


# ---------------------------------------------------------------------------
# Account commands
# ---------------------------------------------------------------------------


@main.command()
@click.argument("email")
@click.option("--password", "-p", prompt=True, hide_input=True,
              confirmation_prompt=True)
def register(email: str, password: str):
    """Create an account and print its token."""
    _run(_auth_impl("/api/auth/register", email, password))


@main.command()
@click.argument("email")
@click.option("--password", "-p", prompt=True, hide_input=True)
def login(email: str, password: str):
    """Log in and print a token."""
    _run(_auth_impl("/api/auth/login", email, password))


async def _auth_impl(path: str, email: str, password: str):
    async with _client() as c:
        r = _check(await c.post(path, json={"email": email, "password": password}))
        click.echo(r.json()["token"])


# ---------------------------------------------------------------------------
# Todo commands
# ---------------------------------------------------------------------------


@main.command("list")
@token_option
@click.option("--json", "as_json", is_flag=True, help="Print raw JSON")
def list_todos(token: Optional[str], as_json: bool):
    """List your todos."""
    _run(_list_impl(_require_token(token), as_json))


async def _list_impl(token: str, as_json: bool):
    async with _client(token) as c:
        todos = _check(await c.get("/api/todos")).json()

    if as_json:
        click.echo(json.dumps(todos, indent=2))
        return
    if not todos:
        click.echo("No todos yet.")
        return
    click.secho(f"Todos ({len(todos)}):", bold=True)
    for t in todos:
        _print_todo(t)


@main.command()
@click.argument("name")
@click.option("--done", is_flag=True, help="Create it already completed")
@token_option
def add(name: str, done: bool, token: Optional[str]):
    """Create a todo."""
    _run(_add_impl(_require_token(token), name, done))


async def _add_impl(token: str, name: str, done: bool):
    async with _client(token) as c:
        r = _check(await c.post("/api/todos", json={"name": name, "isComplete": done}))
    todo = r.json()
    click.secho(f"Todo #{todo['id']} created", fg="green")


@main.command()
@click.argument("todo_id", type=int)
@token_option
def show(todo_id: int, token: Optional[str]):
    """Show one todo."""
    _run(_show_impl(_require_token(token), todo_id))


async def _show_impl(token: str, todo_id: int):
    async with _client(token) as c:
        todo = _check(await c.get(f"/api/todos/{todo_id}")).json()
    _print_todo(todo)


@main.command()
@click.argument("todo_id", type=int)
@click.argument("name")
@click.option("--done/--not-done", default=False, help="Completion flag to store")
@token_option
def update(todo_id: int, name: str, done: bool, token: Optional[str]):
    """Replace a todo's name and completion flag."""
    _run(_update_impl(_require_token(token), todo_id, name, done))


async def _update_impl(token: str, todo_id: int, name: str, done: bool):
    async with _client(token) as c:
        _check(await c.put(
            f"/api/todos/{todo_id}", json={"name": name, "isComplete": done}
        ))
    click.secho(f"Todo #{todo_id} updated", fg="green")


@main.command()
@click.argument("todo_id", type=int)
@token_option
def done(todo_id: int, token: Optional[str]):
    """Mark a todo complete (keeps its name)."""
    _run(_done_impl(_require_token(token), todo_id))


async def _done_impl(token: str, todo_id: int):
    async with _client(token) as c:
        todo = _check(await c.get(f"/api/todos/{todo_id}")).json()
        _check(await c.put(
            f"/api/todos/{todo_id}", json={"name": todo["name"], "isComplete": True}
        ))
    click.secho(f"Todo #{todo_id} done", fg="green")


@main.command()
@click.argument("todo_id", type=int)
@token_option
def rm(todo_id: int, token: Optional[str]):
    """Delete a todo."""
    _run(_rm_impl(_require_token(token), todo_id))


async def _rm_impl(token: str, todo_id: int):
    async with _client(token) as c:
        _check(await c.delete(f"/api/todos/{todo_id}"))
    click.secho(f"Todo #{todo_id} deleted", fg="green")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    main()
