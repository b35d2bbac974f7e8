"""
Scheduler settings: a dict of defaults, optionally overridden from YAML.
"""
import logging
import os

import yaml

logger = logging.getLogger(__name__)

INT_SETTINGS = (
    'match_duration_minutes',
    'strict_beam_width',
    'strict_max_depth',
    'relaxed_beam_width',
    'relaxed_max_depth',
    'relaxed_order3_penalty',
    'relaxed_order4_penalty',
    'random_retries',
    'random_seed',
    'beam_width',
    'beam_max_candidates',
    'max_enumeration',
)

# Zero is a meaningful value for these (no retries, seed 0).
ZERO_ALLOWED = ('random_retries', 'random_seed')


def get_default_settings():
    """Return default settings."""
    return {
        'match_duration_minutes': 60,
        'greedy_enabled': True,
        'strict_beam_width': 3,
        'strict_max_depth': 200,
        'relaxed_beam_width': 5,
        'relaxed_max_depth': 1000,
        'relaxed_order3_penalty': 25000,
        'relaxed_order4_penalty': 10000,
        'random_retries': 5,
        'random_seed': 0,
        'beam_width': 10,
        'beam_max_candidates': 30,
        'max_enumeration': 20000,
    }


def validate_settings(settings):
    for key in INT_SETTINGS:
        value = settings.get(key)
        if not isinstance(value, int) or isinstance(value, bool):
            raise ValueError(f"Setting '{key}' must be an integer, got {value!r}")
        minimum = 0 if key in ZERO_ALLOWED else 1
        if value < minimum:
            raise ValueError(f"Setting '{key}' must be at least {minimum}, got {value}")
    if not isinstance(settings.get('greedy_enabled'), bool):
        raise ValueError(f"Setting 'greedy_enabled' must be true or false, got {settings.get('greedy_enabled')!r}")
    return settings


def merge_settings(overrides=None):
    """Defaults updated with `overrides`; unknown keys are dropped with a warning."""
    settings = get_default_settings()
    if overrides:
        for key in overrides:
            if key not in settings:
                logger.warning("Ignoring unknown setting '%s'", key)
        settings.update({k: v for k, v in overrides.items() if k in settings})
    return validate_settings(settings)


def load_settings(path=None):
    """Load settings from a YAML file, merging with defaults."""
    if not path or not os.path.exists(path):
        return merge_settings()
    with open(path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f)
    if data is not None and not isinstance(data, dict):
        raise ValueError(f"Settings file {path} must contain a mapping")
    return merge_settings(data)
