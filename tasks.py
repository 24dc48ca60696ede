"""Invoke tasks for WineCellar application management."""

import sys
from pathlib import Path

from invoke import task
from invoke.context import Context

# Must match winecellar.cli.server
LOG_FILE = Path("data/winecellar.log")
DEFAULT_DB = Path("data/winecellar.db")


@task
def start(ctx: Context, host: str = "0.0.0.0", port: int = 20000, reload: bool = False) -> None:
    """Start the WineCellar server in the foreground.

    Args:
        ctx: Invoke context
        host: Host to bind to (default: 0.0.0.0)
        port: Port to bind to (default: 20000)
        reload: Enable auto-reload for development
    """
    cmd = f"winecellar-server start --host {host} --port {port} --foreground"
    if reload:
        cmd += " --reload"

    try:
        ctx.run(cmd, pty=True)
    except KeyboardInterrupt:
        print("\nServer stopped")
        sys.exit(0)


@task(name="start-background")
def start_background(ctx: Context, host: str = "0.0.0.0", port: int = 20000) -> None:
    """Start the WineCellar server in the background."""
    ctx.run(f"winecellar-server start --host {host} --port {port}")


@task
def stop(ctx: Context) -> None:
    """Stop the WineCellar server."""
    ctx.run("winecellar-server stop")


@task
def restart(ctx: Context, host: str = "0.0.0.0", port: int = 20000) -> None:
    """Restart the WineCellar server."""
    ctx.run(f"winecellar-server restart --host {host} --port {port}")


@task
def status(ctx: Context) -> None:
    """Check the status of the WineCellar server."""
    ctx.run("winecellar-server status")


@task
def logs(ctx: Context, follow: bool = False, lines: int = 50) -> None:
    """View the server log written in background mode.

    Args:
        ctx: Invoke context
        follow: Follow log output (like tail -f)
        lines: Number of lines to show (default: 50)
    """
    if not LOG_FILE.exists():
        print("No log file found. Server may not have been started in background mode.")
        return

    if follow:
        ctx.run(f"tail -f {LOG_FILE}", pty=True)
    else:
        ctx.run(f"tail -n {lines} {LOG_FILE}")


@task(name="seed-grapes")
def seed_grapes(ctx: Context, dry_run: bool = False) -> None:
    """Fill the grape catalog with the built-in list of varietals.

    Args:
        ctx: Invoke context
        dry_run: Only show what would be added
    """
    cmd = "winecellar-grapes"
    if dry_run:
        cmd += " --dry-run"
    ctx.run(cmd)


@task
def test(ctx: Context, verbose: bool = False, coverage: bool = False) -> None:
    """Run the test suite.

    Args:
        ctx: Invoke context
        verbose: Enable verbose output
        coverage: Run with coverage report
    """
    cmd = "pytest"
    if verbose:
        cmd += " -v"
    if coverage:
        cmd += " --cov=winecellar --cov-report=term-missing"
    ctx.run(cmd, pty=True)


@task
def clean(ctx: Context, all: bool = False) -> None:
    """Clean up temporary files.

    Args:
        ctx: Invoke context
        all: Also remove the default SQLite database
    """
    for pattern in ["__pycache__", "*.pyc", "*.pyo", ".pytest_cache"]:
        ctx.run(f"find . -name '{pattern}' -exec rm -rf {{}} + 2>/dev/null || true", warn=True)

    for path in ["build", "dist", "*.egg-info", ".eggs"]:
        ctx.run(f"rm -rf {path} 2>/dev/null || true", warn=True)

    if all and DEFAULT_DB.exists():
        print(f"Removing {DEFAULT_DB}...")
        DEFAULT_DB.unlink()

    print("Cleanup complete")
