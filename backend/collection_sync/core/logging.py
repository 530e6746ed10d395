import sys
from pathlib import Path

from loguru import logger

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{line} | {message}"


def setup_logging(level: str = "INFO", log_file: Path | None = None) -> None:
    """
    Replace loguru's default sink with a stderr sink at ``level``.

    When ``log_file`` is given, a rotating file sink is added as well.
    """
    logger.remove()
    logger.add(sys.stderr, level=level.upper(), format=LOG_FORMAT)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            rotation="10 MB",
            retention=5,
            level=level.upper(),
            format=LOG_FORMAT,
            enqueue=False,
        )

    logger.debug(f"Logging configured (level={level}, file={log_file})")
