"""
Core module - Database, configuration, and observability
"""

from .database import get_supabase_client
from .config import Config, ScoringConfig, load_scoring_config

__all__ = ['get_supabase_client', 'Config', 'ScoringConfig', 'load_scoring_config']
