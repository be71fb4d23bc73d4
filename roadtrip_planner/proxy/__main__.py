"""Run the proxy layer with Flask's development server."""

import logging

from roadtrip_planner.constants import ProxyConfig
from roadtrip_planner.proxy.server import create_app


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    create_app().run(host=ProxyConfig.HOST, port=ProxyConfig.PORT)


if __name__ == "__main__":
    main()
