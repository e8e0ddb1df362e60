#!/usr/bin/env python3
"""
Relay server entrypoint - connects to the chain once, then serves the API.
Exits non-zero if the chain connection cannot be established.
"""

import sys
import argparse
from pathlib import Path

# Load environment variables from .env file first
import dotenv
dotenv.load_dotenv()

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import uvicorn

from trusttrack.api import main as api
from trusttrack.core.config import PORT
from trusttrack.core.errors import RelayError
from trusttrack.core.service import RelayService


def main():
    parser = argparse.ArgumentParser(description="Run the TrustTrack relay API")
    parser.add_argument("--host", default="0.0.0.0", help="Interface to bind")
    parser.add_argument("--port", type=int, default=PORT, help="Port to listen on")
    args = parser.parse_args()

    try:
        service = RelayService.from_config()
    except (RelayError, ValueError) as e:
        print(f"❌ Failed to initialize blockchain connection: {e}")
        return 1

    api.set_service(service)
    print(f"🚀 Server running on port {args.port}")
    print(f"🔗 API: http://localhost:{args.port}/api")

    try:
        uvicorn.run(api.app, host=args.host, port=args.port)
    finally:
        service.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
