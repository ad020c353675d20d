"""Run the gateway with uvicorn: ``python -m noter_gateway``."""

import uvicorn

from .main import app, settings


def main() -> None:
    uvicorn.run(app, host=settings.host, port=settings.port, server_header=False)


if __name__ == "__main__":
    main()
