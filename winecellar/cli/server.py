"""WineCellar server control script.

Usage:
    winecellar-server start [--host HOST] [--port PORT] [--reload] [--foreground]
    winecellar-server stop
    winecellar-server restart [--host HOST] [--port PORT]
    winecellar-server status

Host and port default to the configured listen address
(``WINECELLAR_LISTEN``, ``[server]`` in config.toml, or 0.0.0.0:20000).
"""

import argparse
import json
import os
import signal
import subprocess
import sys
import time
import urllib.error
import urllib.request
from pathlib import Path

from winecellar.config import get_settings

DATA_DIR = Path("data")
PID_FILE = DATA_DIR / "winecellar.pid"
LOG_FILE = DATA_DIR / "winecellar.log"
APP_PATH = "winecellar.main:app"


def ensure_directories() -> None:
    """Ensure the data directory exists."""
    DATA_DIR.mkdir(parents=True, exist_ok=True)


def get_pid() -> int | None:
    """Get the PID of the running server, if any."""
    if not PID_FILE.exists():
        return None

    try:
        pid = int(PID_FILE.read_text().strip())
        os.kill(pid, 0)
        return pid
    except (ValueError, ProcessLookupError, PermissionError):
        # Stale PID file
        PID_FILE.unlink(missing_ok=True)
        return None


def find_running_server() -> int | None:
    """Find a uvicorn process serving WineCellar that has no PID file."""
    try:
        result = subprocess.run(
            ["pgrep", "-f", f"uvicorn {APP_PATH}"],
            capture_output=True,
            text=True,
        )
    except OSError:
        return None
    if result.returncode == 0 and result.stdout.strip():
        return int(result.stdout.strip().split()[0])
    return None


def start_server(host: str, port: int, reload: bool = False, foreground: bool = False) -> bool:
    """Start the WineCellar server.

    Args:
        host: Host to bind to
        port: Port to bind to
        reload: Enable auto-reload for development
        foreground: Run in foreground (blocking)

    Returns:
        True if server started successfully
    """
    pid = get_pid() or find_running_server()
    if pid:
        print(f"Server is already running (PID: {pid})")
        return False

    ensure_directories()

    cmd = [
        sys.executable, "-m", "uvicorn",
        APP_PATH,
        "--host", host,
        "--port", str(port),
    ]
    if reload:
        cmd.append("--reload")

    print(f"Starting WineCellar server on http://{host}:{port}")

    if foreground:
        print("Press Ctrl+C to stop the server")
        try:
            subprocess.run(cmd)
        except KeyboardInterrupt:
            print("\nServer stopped")
        return True

    with open(LOG_FILE, "w") as log:
        process = subprocess.Popen(
            cmd,
            stdout=log,
            stderr=subprocess.STDOUT,
            start_new_session=True,
        )

    # Startup fails fast on a bad database URL, so a short wait catches it
    time.sleep(1)
    if process.poll() is None:
        PID_FILE.write_text(str(process.pid))
        print(f"Server started with PID: {process.pid}")
        print(f"Logs available at: {LOG_FILE}")
        return True

    print(f"Failed to start server. Check {LOG_FILE} for details.")
    return False


def stop_server() -> bool:
    """Stop the WineCellar server.

    Returns:
        True if server was stopped
    """
    pid = get_pid() or find_running_server()
    if not pid:
        print("Server is not running")
        return False

    print(f"Stopping server (PID: {pid})...")

    try:
        os.kill(pid, signal.SIGTERM)

        for _ in range(10):
            time.sleep(0.5)
            try:
                os.kill(pid, 0)
            except ProcessLookupError:
                break
        else:
            print("Server didn't stop gracefully, forcing...")
            os.kill(pid, signal.SIGKILL)

        print("Server stopped")
        PID_FILE.unlink(missing_ok=True)
        return True

    except ProcessLookupError:
        print("Server was not running")
        PID_FILE.unlink(missing_ok=True)
        return False
    except PermissionError:
        print(f"Permission denied to stop process {pid}")
        return False


def restart_server(host: str, port: int) -> bool:
    """Restart the WineCellar server."""
    print("Restarting WineCellar server...")
    stop_server()
    time.sleep(1)
    return start_server(host=host, port=port)


def server_status(port: int) -> None:
    """Print the server status, including /health when reachable."""
    pid = get_pid() or find_running_server()

    if not pid:
        print("WineCellar server is not running")
        return

    print(f"WineCellar server is running (PID: {pid})")
    try:
        with urllib.request.urlopen(f"http://localhost:{port}/health", timeout=2) as response:
            data = json.loads(response.read().decode())
        print(f"  Status: {data.get('status', 'unknown')}")
        print(f"  Version: {data.get('version', 'unknown')}")
    except (urllib.error.URLError, OSError, ValueError):
        print("  (Could not fetch health status)")


def build_parser(default_host: str, default_port: int) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="WineCellar server control script",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Examples:
  %(prog)s start                  Start server on {default_host}:{default_port}
  %(prog)s start --port 8080      Start server on port 8080
  %(prog)s start --reload         Start with auto-reload for development
  %(prog)s start --foreground     Start in foreground (blocking)
  %(prog)s stop                   Stop the server
  %(prog)s restart                Restart the server
  %(prog)s status                 Check server status
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    start_parser = subparsers.add_parser("start", help="Start the server")
    restart_parser = subparsers.add_parser("restart", help="Restart the server")
    for sub in (start_parser, restart_parser):
        sub.add_argument(
            "--port", "-p",
            type=int,
            default=default_port,
            help=f"Port to bind to (default: {default_port})",
        )
        sub.add_argument(
            "--host",
            default=default_host,
            help=f"Host to bind to (default: {default_host})",
        )
    start_parser.add_argument(
        "--reload", "-r",
        action="store_true",
        help="Enable auto-reload for development",
    )
    start_parser.add_argument(
        "--foreground", "-f",
        action="store_true",
        help="Run in foreground (blocking)",
    )

    subparsers.add_parser("stop", help="Stop the server")
    subparsers.add_parser("status", help="Check server status")

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    app_settings = get_settings()
    parser = build_parser(app_settings.host, app_settings.port)
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        if args.command == "start":
            success = start_server(
                host=args.host,
                port=args.port,
                reload=args.reload,
                foreground=args.foreground,
            )
            return 0 if success else 1

        elif args.command == "stop":
            return 0 if stop_server() else 1

        elif args.command == "restart":
            return 0 if restart_server(host=args.host, port=args.port) else 1

        elif args.command == "status":
            server_status(app_settings.port)
            return 0

    except KeyboardInterrupt:
        print("\nInterrupted")
        return 130

    return 0


if __name__ == "__main__":
    sys.exit(main())
