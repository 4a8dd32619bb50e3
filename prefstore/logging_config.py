from __future__ import annotations
import logging
from pathlib import Path
import yaml
from typing import Optional

from .config import DEFAULT_CONFIG_PATH


def configure_logging(config_path: Optional[Path] = None) -> logging.Logger:
    """Configure root logging for an application embedding the store.

    Establishes an early NOTSET basic config so reading the settings file
    can emit, then reconfigures the root logger to the `log_level` found
    in the settings (WARNING when absent). Returns a module logger.
    """
    logging.basicConfig(level=logging.NOTSET, format='%(asctime)s INFO %(message)s')
    DEFAULT_LOG_LEVEL = logging.WARNING

    cfg_path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH
    if cfg_path.exists():
        try:
            with cfg_path.open('r', encoding='utf-8') as _f:
                _cfg = yaml.safe_load(_f) or {}
            _lvl = _cfg.get('log_level') if isinstance(_cfg, dict) else None
            if isinstance(_lvl, str):
                _numeric = getattr(logging, _lvl.upper(), None)
                if isinstance(_numeric, int):
                    DEFAULT_LOG_LEVEL = _numeric
        except (OSError, yaml.YAMLError):
            logging.exception('Failed to read %s for logging setup', cfg_path)

    logging.log(100, f'[prefstore]: Log level set to: {logging.getLevelName(DEFAULT_LOG_LEVEL)}')

    for handler in logging.root.handlers[:]:
        logging.root.removeHandler(handler)
    logging.basicConfig(level=DEFAULT_LOG_LEVEL, format='%(asctime)s %(levelname)s [%(name)s]: %(message)s')
    logger = logging.getLogger(__name__)
    logging.getLogger('asyncio').setLevel(logging.WARNING)
    return logger
