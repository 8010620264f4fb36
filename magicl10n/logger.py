import logging
import os
from pathlib import Path

LOG_DIR = Path(os.environ.get("MAGICL10N_LOG_DIR", Path(__file__).parent.parent / "logs"))
LOG_FILE = LOG_DIR / "app.log"

DEFAULT_LOG_MODE = 'info'
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Cache for log mode to avoid repeated config reads
_log_mode_cache = None


def _get_log_mode():
    """Get log mode from configuration."""
    global _log_mode_cache
    if _log_mode_cache is not None:
        return _log_mode_cache

    try:
        from magicl10n.config import load_config
    except ImportError:
        # Config module is still being imported; don't cache
        return os.environ.get('MAGICL10N_LOG_MODE', DEFAULT_LOG_MODE)

    try:
        log_mode = load_config().get('log_mode', DEFAULT_LOG_MODE)
    except Exception:
        log_mode = DEFAULT_LOG_MODE
    _log_mode_cache = log_mode
    return log_mode


def _file_handler(log_format: logging.Formatter):
    """Create the shared file handler, or None when the log directory is not writable."""
    try:
        LOG_DIR.mkdir(parents=True, exist_ok=True)
        f_handler = logging.FileHandler(LOG_FILE, encoding='utf-8')
    except OSError:
        return None
    f_handler.setLevel(logging.DEBUG)
    f_handler.setFormatter(log_format)
    return f_handler


def _levels_for(log_mode: str):
    if log_mode == 'debug':
        return logging.DEBUG, logging.DEBUG
    if log_mode == 'off':
        # Higher than CRITICAL disables everything
        return logging.CRITICAL + 1, logging.CRITICAL + 1
    return logging.INFO, logging.INFO


def get_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(name)

    log_mode = _get_log_mode()
    logger_level, console_level = _levels_for(log_mode)
    log_format = logging.Formatter(LOG_FORMAT)

    logger.setLevel(logger_level)

    # Prevent duplicate handlers if logger already configured
    if logger.handlers:
        has_file_handler = any(isinstance(h, logging.FileHandler) for h in logger.handlers)

        if log_mode != 'off' and not has_file_handler:
            f_handler = _file_handler(log_format)
            if f_handler:
                logger.addHandler(f_handler)
        elif log_mode == 'off' and has_file_handler:
            handlers_to_remove = [h for h in logger.handlers if isinstance(h, logging.FileHandler)]
            for handler in handlers_to_remove:
                handler.close()
                logger.removeHandler(handler)

        for handler in logger.handlers:
            if isinstance(handler, logging.StreamHandler) and not isinstance(handler, logging.FileHandler):
                handler.setLevel(console_level)

        return logger

    if log_mode != 'off':
        f_handler = _file_handler(log_format)
        if f_handler:
            logger.addHandler(f_handler)

    c_handler = logging.StreamHandler()
    c_handler.setLevel(console_level)
    c_handler.setFormatter(log_format)
    logger.addHandler(c_handler)

    return logger
