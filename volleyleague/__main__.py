"""Run the API server: python -m volleyleague"""
from __future__ import annotations

import uvicorn

from volleyleague import config


def main() -> None:
    uvicorn.run("volleyleague.api:app", host=config.HOST, port=config.PORT, log_level=config.LOG_LEVEL.lower())


if __name__ == "__main__":
    main()
