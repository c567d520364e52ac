from .strategy_config import StrategyConfig

__all__ = ['StrategyConfig']
