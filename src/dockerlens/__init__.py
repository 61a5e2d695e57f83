"""
dockerlens - ingestion, caching, aggregation and ranking of Docker resource data.

This package turns the raw text of periodic `docker ps`, `docker images`,
`docker stats` and `docker compose ls` runs into typed records, and derives
everything a dashboard needs from them. It does not run commands, render
anything or persist state: an external refresh loop feeds it text and
reads back records, summaries, selections and ranking diffs.

Main Components:
  - units.py: percent / byte-size parsing and byte formatting
  - parser.py: raw table text -> ContainerInfo / ImageInfo / StatInfo / ComposeInfo
  - stats.py: SummaryAggregator (dashboard totals, weighted memory usage)
  - cache.py: RunningSetCache (identity + TTL cache of running container ids)
  - filters.py: per-view search and status filters
  - selection.py: SelectionResolver and the docker action catalog
  - ranking.py: RankEngine (top-N ranking and row reconciliation)
  - state.py: StateManager tying the above together
  - config.py: YAML configuration

Dependencies:
  - PyYAML
  - Python 3.9+
"""

import logging
import os
from pathlib import Path
from typing import Optional

__version__ = "0.1.0"

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'
FALLBACK_LOG_PATH = '/tmp/dockerlens.log'


def get_log_path() -> str:
    """Log file under $XDG_DATA_HOME (default ~/.local/share), creating its directory.

    Falls back to FALLBACK_LOG_PATH when the directory cannot be created.
    """
    data_home = Path(os.environ.get('XDG_DATA_HOME') or Path.home() / '.local' / 'share')
    log_dir = data_home / 'dockerlens' / 'logs'
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
    except OSError:
        return FALLBACK_LOG_PATH
    return str(log_dir / 'dockerlens.log')


def configure_logging(level: Optional[str] = None, log_path: Optional[str] = None) -> str:
    """
    Configure file logging for an application embedding dockerlens.

    Level and path default to the values in the config file. Never called
    at import time.

    Returns:
        str: The log file in use
    """
    from .config import config_manager

    level = (level or config_manager.get_log_level()).upper()
    log_path = log_path or config_manager.get_custom_log_path() or get_log_path()
    logging.basicConfig(filename=log_path, level=getattr(logging, level, logging.INFO),
                        format=LOG_FORMAT)
    return log_path
