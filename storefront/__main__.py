"""Entry point: python -m storefront."""

import os

from aiohttp import web

from storefront.main import create_app

if __name__ == "__main__":
    app = create_app()
    port = int(os.environ.get("PORT", "8080"))
    web.run_app(app, host="0.0.0.0", port=port)  # noqa: S104  # nosec B104 -- container requires bind to all interfaces
