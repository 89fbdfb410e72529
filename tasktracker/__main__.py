"""入口：``python -m tasktracker`` 或 ``tasktracker``。"""

import asyncio
import sys

from tasktracker.config.loader import load_config
from tasktracker.context import utc_now
from tasktracker.supervisor import run, setup_logging


def main() -> None:
    start_time = utc_now()
    config = load_config()
    setup_logging(config.log_level)
    sys.exit(asyncio.run(run(config, start_time=start_time)))


if __name__ == "__main__":
    main()
