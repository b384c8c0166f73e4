"""
Utility Module

Configuration and logging shared by the report pipeline.
"""

from review_sentiment.utils.config import (
    Config,
    DEFAULT_CONFIG_PATH,
    get_config,
    reset_config
)

from review_sentiment.utils.logging import (
    setup_logging,
    log_stage
)

__all__ = [
    'Config',
    'DEFAULT_CONFIG_PATH',
    'get_config',
    'reset_config',
    'setup_logging',
    'log_stage',
]
