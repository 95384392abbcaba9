import logging

import uvicorn

from bistro.config import settings


def main() -> None:
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )

    uvicorn.run("bistro.web.main:app", host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
