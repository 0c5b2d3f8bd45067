"""
Centralized logging configuration for diagsim.
Loads logging settings from config/logging.json or falls back to defaults.
"""

import logging
import logging.config
import json
import os
import sys
from typing import Optional, Union


def setup_logging(config_path: Optional[str] = None, level: Optional[Union[int, str]] = None) -> None:
    """
    Configure logging from a JSON config file or use defaults.

    Args:
        config_path: Path to logging config JSON file.
                    Defaults to 'config/logging.json' relative to project root.
        level: Optional level (number or name) applied to the 'diagsim' and
               'blocks' loggers after configuration (the CLI passes
               logging.level from the config, or DEBUG for -v).
    """
    if config_path is None:
        # Find config relative to this file's location
        package_dir = os.path.dirname(os.path.abspath(__file__))
        project_root = os.path.dirname(package_dir)
        config_path = os.path.join(project_root, 'config', 'logging.json')

    configured = False
    if os.path.exists(config_path):
        try:
            with open(config_path, 'r') as f:
                config = json.load(f)
            logging.config.dictConfig(config)
            configured = True
        except (json.JSONDecodeError, ValueError, KeyError, TypeError) as e:
            print(f"Warning: Failed to load logging config from {config_path}: {e}",
                  file=sys.stderr)
            print("Falling back to default logging configuration.", file=sys.stderr)

    if not configured:
        _setup_default_logging()

    if level is not None:
        for name in ('diagsim', 'blocks'):
            named_logger = logging.getLogger(name)
            named_logger.setLevel(level)
            for handler in named_logger.handlers:
                handler.setLevel(level)


def _setup_default_logging() -> None:
    """Setup default logging configuration if config file is unavailable."""
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler(sys.stderr)]
    )

    # Per-tick engine logging is noisy at INFO
    quiet_loggers = [
        'diagsim.engine.algebraic',
        'diagsim.engine.simulation_engine',
        'diagsim.plotting',
        'matplotlib',
    ]
    for logger_name in quiet_loggers:
        logging.getLogger(logger_name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger with the specified name.

    Args:
        name: Logger name, typically __name__ from the calling module.

    Returns:
        Configured logger instance.
    """
    return logging.getLogger(name)
