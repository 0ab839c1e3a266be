"""Allow ``python -m stl_upload`` to start the API server."""

from stl_upload.server import main

main()
