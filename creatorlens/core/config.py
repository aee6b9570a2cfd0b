"""
Configuration management for CreatorLens
"""

import os
import yaml
from pathlib import Path
from typing import Optional, Dict, Union
from dataclasses import dataclass, field
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


class Config:
    """Application configuration"""

    # Supabase
    SUPABASE_URL: str = os.getenv('SUPABASE_URL', '')
    SUPABASE_SERVICE_KEY: str = os.getenv('SUPABASE_SERVICE_KEY', '')
    VIDEOS_TABLE: str = os.getenv('VIDEOS_TABLE', 'videos')

    # Dashboard defaults
    DEFAULT_DATE_RANGE: str = os.getenv('DEFAULT_DATE_RANGE', '30d')
    DEFAULT_CHART_METRIC: str = os.getenv('DEFAULT_CHART_METRIC', 'engagement_rate')

    # Period comparison
    NEUTRAL_CHANGE_THRESHOLD: float = float(os.getenv('NEUTRAL_CHANGE_THRESHOLD', '5.0'))
    TREND_WINDOW_DAYS: int = int(os.getenv('TREND_WINDOW_DAYS', '7'))

    @classmethod
    def validate(cls) -> bool:
        """Validate required configuration"""
        required = {
            'SUPABASE_URL': cls.SUPABASE_URL,
            'SUPABASE_SERVICE_KEY': cls.SUPABASE_SERVICE_KEY,
        }

        missing = [k for k, v in required.items() if not v]

        if missing:
            raise ValueError(f"Missing required configuration: {', '.join(missing)}")

        return True

    @classmethod
    def get(cls, key: str, default: Optional[str] = None) -> Optional[str]:
        """Get configuration value"""
        return getattr(cls, key, default)


# Scoring weights (overridable per call or via load_scoring_config)
GROWTH_SCORE_WEIGHTS: Dict[str, float] = {
    'engagement_rate': 0.4,
    'saves_per_1k': 0.3,
    'completion_rate': 0.3,
}

# log_views weights log10(views + 1); the rest weight z-scores within the library
VIRAL_INDEX_WEIGHTS: Dict[str, float] = {
    'log_views': 1.0,
    'retention_rate': 1.0,
    'saves_per_1k': 0.75,
    'followers_per_1k': 0.75,
    'for_you_percentage': 0.5,
}


@dataclass
class ScoringConfig:
    """Weights table for the composite scorers"""
    growth_weights: Dict[str, float] = field(default_factory=lambda: dict(GROWTH_SCORE_WEIGHTS))
    viral_index_weights: Dict[str, float] = field(default_factory=lambda: dict(VIRAL_INDEX_WEIGHTS))
    neutral_change_threshold: float = Config.NEUTRAL_CHANGE_THRESHOLD


def load_scoring_config(path: Optional[Union[str, Path]] = None) -> ScoringConfig:
    """
    Load scoring weights from a YAML file.

    Keys missing from the file fall back to the module defaults, so a file
    may override a single weight.

    Args:
        path: Path to a YAML file, or None for the defaults

    Returns:
        ScoringConfig instance

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file isn't a mapping or a weight isn't numeric
    """
    if path is None:
        return ScoringConfig()

    config_path = Path(path)

    if not config_path.exists():
        raise FileNotFoundError(f"Scoring configuration not found at {config_path}")

    with open(config_path, 'r') as f:
        raw_config = yaml.safe_load(f) or {}

    if not isinstance(raw_config, dict):
        raise ValueError(f"Scoring configuration must be a mapping: {config_path}")

    growth_weights = dict(GROWTH_SCORE_WEIGHTS)
    growth_weights.update(_parse_weights(raw_config.get('growth_weights', {}), 'growth_weights'))

    viral_index_weights = dict(VIRAL_INDEX_WEIGHTS)
    viral_index_weights.update(_parse_weights(raw_config.get('viral_index_weights', {}), 'viral_index_weights'))

    threshold = raw_config.get('neutral_change_threshold', Config.NEUTRAL_CHANGE_THRESHOLD)
    try:
        threshold = float(threshold)
    except (TypeError, ValueError):
        raise ValueError(f"neutral_change_threshold must be numeric, got {threshold!r}")

    return ScoringConfig(
        growth_weights=growth_weights,
        viral_index_weights=viral_index_weights,
        neutral_change_threshold=threshold
    )


def _parse_weights(raw: object, section: str) -> Dict[str, float]:
    if not isinstance(raw, dict):
        raise ValueError(f"{section} must be a mapping of metric -> weight")

    weights = {}
    for key, value in raw.items():
        try:
            weights[str(key)] = float(value)
        except (TypeError, ValueError):
            raise ValueError(f"{section}.{key} must be numeric, got {value!r}")
    return weights
