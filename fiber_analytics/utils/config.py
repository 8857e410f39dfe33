"""Configuration management for Fiber network analytics"""

import os
from typing import Optional, Dict, Any
from pathlib import Path
from dataclasses import dataclass, asdict
import json
from dotenv import load_dotenv


NETWORKS = ("mainnet", "testnet")
PAGINATION_MODES = ("heuristic", "cursor")


@dataclass
class APIConfig:
    """Dashboard API connection configuration"""
    base_url: str = "http://localhost:8080"
    network: str = "mainnet"
    timeout: int = 30
    max_concurrent: int = 10


@dataclass
class AnalyticsConfig:
    """Collection and aggregation parameters"""
    # Records requested per listing page
    page_size: int = 500

    # Termination protocol for node/channel listings
    listing_pagination: str = "heuristic"

    # Safety bound on pages per collection (0 = unbounded)
    max_pages: int = 1000

    # Rankings
    isp_top_n: int = 10
    top_nodes: int = 20

    # History analysis defaults
    history_range: str = "1M"
    history_interval: str = "day"


@dataclass
class Config:
    """Main configuration"""
    api: APIConfig
    analytics: AnalyticsConfig

    # Runtime options
    verbose: bool = False

    def __init__(self, config_file: Optional[str] = None):
        # Load defaults
        self.api = APIConfig()
        self.analytics = AnalyticsConfig()
        self.verbose = False

        # Load from environment
        self._load_from_env()

        # Load from config file if provided
        if config_file:
            self._load_from_file(config_file)

        self._validate()

    def _load_from_env(self):
        """Load configuration from environment variables"""
        load_dotenv()

        # API configuration
        if os.getenv('FIBER_API_URL'):
            self.api.base_url = os.getenv('FIBER_API_URL')
        if os.getenv('FIBER_NETWORK'):
            self.api.network = os.getenv('FIBER_NETWORK').lower()
        if os.getenv('FIBER_API_TIMEOUT'):
            self.api.timeout = int(os.getenv('FIBER_API_TIMEOUT'))

        # Collection parameters
        if os.getenv('FIBER_PAGE_SIZE'):
            self.analytics.page_size = int(os.getenv('FIBER_PAGE_SIZE'))
        if os.getenv('FIBER_PAGINATION'):
            self.analytics.listing_pagination = os.getenv('FIBER_PAGINATION').lower()
        if os.getenv('FIBER_MAX_PAGES'):
            self.analytics.max_pages = int(os.getenv('FIBER_MAX_PAGES'))

        # Runtime options
        if os.getenv('FIBER_VERBOSE'):
            self.verbose = os.getenv('FIBER_VERBOSE').lower() in ('true', '1', 'yes')

    def _load_from_file(self, config_file: str):
        """Load configuration from JSON file"""
        path = Path(config_file)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {config_file}")

        with open(path, 'r') as f:
            data = json.load(f)

        # Update API config
        if 'api' in data:
            for key, value in data['api'].items():
                if hasattr(self.api, key):
                    setattr(self.api, key, value)

        # Update analytics config
        if 'analytics' in data:
            for key, value in data['analytics'].items():
                if hasattr(self.analytics, key):
                    setattr(self.analytics, key, value)

        if 'verbose' in data:
            self.verbose = data['verbose']

    def _validate(self):
        if self.api.network not in NETWORKS:
            raise ValueError(f"Unknown network '{self.api.network}', expected one of {NETWORKS}")
        if self.analytics.listing_pagination not in PAGINATION_MODES:
            raise ValueError(
                f"Unknown pagination mode '{self.analytics.listing_pagination}', "
                f"expected one of {PAGINATION_MODES}"
            )
        if self.analytics.page_size <= 0:
            raise ValueError("page_size must be positive")

    def save_to_file(self, config_file: str):
        """Save configuration to JSON file"""
        path = Path(config_file)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def load(cls, config_file: Optional[str] = None) -> 'Config':
        """Load configuration from file or environment"""
        return cls(config_file)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary"""
        return {
            'api': asdict(self.api),
            'analytics': asdict(self.analytics),
            'verbose': self.verbose
        }
