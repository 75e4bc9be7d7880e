"""Entry point for running the API via `python -m usergate`."""

from urllib.parse import urlparse

import uvicorn

from usergate.api import create_app
from usergate.core import get_usergate_config


def main() -> None:
    config = get_usergate_config()
    url = urlparse(config.USERGATE.URL)

    print(f"Starting Usergate at {config.USERGATE.URL}...")
    print("Press Ctrl+C to stop.")

    uvicorn.run(create_app(), host=url.hostname or "0.0.0.0", port=url.port or 3000)


if __name__ == "__main__":
    main()
