"""Loguru setup. Logs go to a file only; the terminal belongs to the dashboard."""

from pathlib import Path

from loguru import logger


def setup_logging(log_file: Path, level: str = "INFO") -> None:
    """Replace loguru's stderr handler with a rotating file sink."""
    logger.remove()
    log_file = Path(log_file).expanduser()
    log_file.parent.mkdir(parents=True, exist_ok=True)
    logger.add(
        log_file,
        rotation="10 MB",
        retention=5,
        level=level,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{line} | {message}",
    )
    logger.info(f"Logging to {log_file} (level={level})")
