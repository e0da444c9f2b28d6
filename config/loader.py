from pathlib import Path
import yaml
from typing import Dict, Any, List
import structlog

logger = structlog.get_logger()

DEFAULT_WEIGHTS: List[Dict[str, Any]] = [
    {"key": "future_booking_weight", "label": "关注远期预定",
     "description": "重视提前预订和长期收益", "value": 7},
    {"key": "cost_optimization_weight", "label": "关注成本最小",
     "description": "优化佣金成本和运营支出", "value": 6},
    {"key": "visibility_optimization_weight", "label": "关注展示最优",
     "description": "最大化在平台上的展示和排名", "value": 8},
    {"key": "daily_occupancy_weight", "label": "关注当日OCC",
     "description": "优先考虑提高当前入住率", "value": 5},
    {"key": "long_short_balance_weight", "label": "平衡长短期收益",
     "description": "在长期战略和短期收益之间取得平衡", "value": 6},
]

DEFAULT_PREFERENCES: Dict[str, str] = {
    "balanced": "平衡收益与流量，兼顾短期入住率和长期价格体系",
    "revenue": "优先提升收益和利润率，控制折扣和佣金成本",
    "traffic": "优先提升曝光和预订量，可接受较低的单间利润",
}


class StrategyDefaultsConfig:
    _instance = None
    _config: Dict[str, Any] = {}

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(StrategyDefaultsConfig, cls).__new__(cls)
            cls._instance._load_config()
        return cls._instance

    def _load_config(self):
        """Loads default weights and preference texts from YAML file."""
        config_path = Path(__file__).parent / "strategy_defaults.yaml"
        if not config_path.exists():
            config_path = Path("config/strategy_defaults.yaml")

        try:
            if config_path.exists():
                with open(config_path, "r", encoding="utf-8") as f:
                    self._config = yaml.safe_load(f) or {}
                logger.info("Loaded strategy defaults", path=str(config_path))
            else:
                logger.warning("Strategy defaults not found, using built-ins", path=str(config_path))
                self._config = {}
        except (OSError, yaml.YAMLError) as e:
            logger.error("Failed to load strategy defaults", path=str(config_path), error=str(e))
            self._config = {}

    @property
    def weights(self) -> List[Dict[str, Any]]:
        return self._config.get("weights") or DEFAULT_WEIGHTS

    @property
    def preferences(self) -> Dict[str, str]:
        merged = dict(DEFAULT_PREFERENCES)
        merged.update(self._config.get("preferences") or {})
        return merged


# Global instance
strategy_defaults = StrategyDefaultsConfig()
