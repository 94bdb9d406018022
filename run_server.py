"""ThermaCore API server"""

import logging
import os
import sys

if sys.platform == "win32":
    sys.stdout.reconfigure(encoding="utf-8")

from thermacore import create_app

logger = logging.getLogger("thermacore.server")


def main() -> None:
    app = create_app()

    host = os.environ.get("THERMACORE_HOST", "0.0.0.0")
    port = int(os.environ.get("FLASK_RUN_PORT", 8000))

    print(f"Server starting on http://{host}:{port}")
    print("Press Ctrl+C to stop\n")

    try:
        app.run(host=host, port=port, debug=app.config.get("DEBUG", False), use_reloader=False)
    except KeyboardInterrupt:
        print("\nServer stopped by user")
    finally:
        app.config["CONTAINER"].shutdown()


if __name__ == "__main__":
    main()
