"""HTTP server entrypoint.

Run with: python -m stl_upload (or python -m stl_upload.server)
"""

import uvicorn

from stl_upload.config import settings


def main() -> None:
    """Serve the API with uvicorn on the configured host and port."""
    uvicorn.run("stl_upload.main:app", host=settings.api_host, port=settings.api_port)


if __name__ == "__main__":
    main()
