"""Application entry point for the SessionManager server."""

from sessionmanager.app import App
from sessionmanager.config import Config
from sessionmanager.logging import setup_logging
from sessionmanager.web.runner import run_server


def main() -> None:
    config = Config()  # type: ignore[call-arg]
    setup_logging(config.debug)
    app = App(config)
    run_server(app, config)


if __name__ == "__main__":
    main()
