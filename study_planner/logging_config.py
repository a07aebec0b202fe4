import logging

from rich.logging import RichHandler

from study_planner.config import settings

_configured = False


def setup_logging(level: str = None):
    """Install a Rich handler on the root logger once per process"""
    global _configured
    if _configured:
        return

    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )
    _configured = True
