"""Invoke tasks for the TubeShelf development workflow.

Each task shells out to ``uv`` so local runs match CI: ``invoke sync``,
``invoke tests``, ``invoke lint``, ``invoke mypy`` and ``invoke ci``.
"""

from __future__ import annotations

import shlex
import shutil
from collections.abc import Sequence
from pathlib import Path

from invoke import Collection, Context, task

PROJECT_ROOT = Path(__file__).parent
DIST_DIR = PROJECT_ROOT / "dist"
SOURCE_PATHS = ("src", "tests", "tasks.py")


def _uv(ctx: Context, args: Sequence[str], *, dry_run: bool = False) -> None:
    """Run ``uv`` with the given arguments.

    Args:
        ctx: Invoke execution context.
        args: Arguments appended after the ``uv`` executable.
        dry_run: Print the command instead of running it.
    """
    command = shlex.join(("uv", *args))
    if dry_run:
        print(f"[dry-run] {command}")
        return
    ctx.run(command, echo=True, pty=True)


@task(help={"dev": "Install the dev extra (pytest, ruff, mypy, invoke)."})
def sync(ctx: Context, dev: bool = True) -> None:
    """Synchronize the virtual environment with pyproject.toml."""
    _uv(ctx, ["sync", "--extra", "dev"] if dev else ["sync"])


@task(help={"clean": "Remove dist/ before building."})
def build(ctx: Context, clean: bool = False) -> None:
    """Build the sdist and wheel into dist/."""
    if clean and DIST_DIR.exists():
        shutil.rmtree(DIST_DIR)
    _uv(ctx, ["build"])


@task(
    help={
        "k": "pytest -k expression for test selection.",
        "path": "Test path or module (defaults to tests/).",
        "options": "Extra flags forwarded verbatim to pytest.",
    }
)
def tests(ctx: Context, k: str = "", path: str = "tests", options: str = "") -> None:
    """Run the pytest suite."""
    args = ["run", "pytest"]
    if k:
        args.extend(["-k", k])
    if options:
        args.extend(shlex.split(options))
    args.append(path)
    _uv(ctx, args)


@task(help={"fix": "Apply ruff auto-fixes.", "check_format": "Also run ruff format --check."})
def lint(ctx: Context, fix: bool = False, check_format: bool = False) -> None:
    """Run ruff over the sources and tests."""
    if check_format:
        _uv(ctx, ["run", "ruff", "format", "--check", *SOURCE_PATHS])
    args = ["run", "ruff", "check", *SOURCE_PATHS]
    if fix:
        args.append("--fix")
    _uv(ctx, args)


@task
def mypy(ctx: Context) -> None:
    """Type-check the package."""
    _uv(ctx, ["run", "mypy", "src"])


@task
def ci(ctx: Context) -> None:
    """Run lint, type checks and tests in CI order."""
    ctx.invoke(lint, check_format=True)
    ctx.invoke(mypy)
    ctx.invoke(tests)


namespace = Collection(sync, build, tests, lint, mypy, ci)
