# tems/cli.py
import argparse
import logging

import uvicorn

from .config import DEFAULT_CONFIG_PATH, ConfigError, load_config
from .main import create_app

logger = logging.getLogger("tems")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(log_level: str = "INFO") -> None:
    root = logging.getLogger()
    root.setLevel(getattr(logging, log_level.upper()))
    root.handlers.clear()
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(prog="tems", description="telemetry aggregation endpoint")
    parser.add_argument("--config", type=str, default=DEFAULT_CONFIG_PATH)
    parser.add_argument("--log-level", type=str, default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    args = parser.parse_args(argv)

    setup_logging(args.log_level)
    try:
        config = load_config(args.config)
    except ConfigError as e:
        logger.error("%s", e)
        return 1

    host, port = config.bind()
    app = create_app(config)
    logger.info("dashboard : http://%s:%s/web/", "localhost" if host == "0.0.0.0" else host, port)
    logger.info("TEMS %s ready | /metrics (Agent) | /web (Dashboard) -> TEPS %s",
                config.tems_name, config.teps_url)
    uvicorn.run(app, host=host, port=port, log_config=None, log_level=args.log_level.lower())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
