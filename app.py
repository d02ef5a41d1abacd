"""WSGI-friendly entrypoint for the radio globe."""

from __future__ import annotations

import os

from globe_radio import create_app

app = create_app()


if __name__ == "__main__":
    port = int(os.getenv("PORT", "5000"))
    app.run(host="0.0.0.0", port=port, debug=False, threaded=True)


__all__ = ["app", "create_app"]
