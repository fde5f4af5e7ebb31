"""Web server entry point for the docsite viewer"""

import os
import socket
import sys

import uvicorn

# Load environment variables from .env file BEFORE importing anything else
from dotenv import load_dotenv
load_dotenv()


def _port_in_use(host: str, port: int) -> bool:
    """Return True if the given port is already in use."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        try:
            s.bind((host, port))
            return False
        except OSError:
            return True


def _get_available_port(host: str, preferred: int, max_tries: int = 10) -> int:
    """Return preferred port if free, otherwise the first free port in [preferred, preferred+max_tries)."""
    for p in range(preferred, preferred + max_tries):
        if not _port_in_use(host, p):
            return p
    raise RuntimeError(
        f"None of the ports {preferred}-{preferred + max_tries - 1} are available. "
        "Stop the process using the port or set WEB_PORT to a different number."
    )


def main() -> int:
    host = os.getenv("WEB_HOST", "0.0.0.0")
    preferred_port = int(os.getenv("WEB_PORT", os.getenv("PORT", "8000")))
    port = _get_available_port(host, preferred_port)
    if port != preferred_port:
        print(f"Port {preferred_port} is in use; using port {port} instead.")

    print("Starting Docsite viewer...")
    print(f"Local server will be available at: http://localhost:{port}")
    if not os.getenv("SITE_PASSWORD") and not os.getenv("ADMIN_PASSWORD"):
        print("No SITE_PASSWORD/ADMIN_PASSWORD set: passwords must already exist in the site configuration.")
    print()

    try:
        workers = int(os.getenv("WEB_WORKERS", "1"))
        uvicorn.run(
            "web.main:app",
            host=host,
            port=port,
            workers=workers,
            reload=False,
        )
    except KeyboardInterrupt:
        print("\nShutting down...")
    return 0


if __name__ == "__main__":
    sys.exit(main())
