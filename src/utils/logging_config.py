"""
Logging setup shared by the import services.
"""
import logging
import logging.config
import os

_configured = False


def configure_logging() -> None:
    """
    Configure root logging once per process.

    ``LOGGING_CONFIG`` may name a fileConfig-style file; otherwise basicConfig
    is used with the level from ``LOG_LEVEL`` (default INFO).
    """
    global _configured
    if _configured:
        return
    log_conf = os.environ.get('LOGGING_CONFIG')
    if log_conf:
        logging.config.fileConfig(log_conf, disable_existing_loggers=False)
    else:
        logging.basicConfig(
            level=os.environ.get('LOG_LEVEL', 'INFO'),
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )
    _configured = True
