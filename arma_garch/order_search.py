"""
Brute-force ARMA order selection by AIC.
"""

from typing import List
import numpy as np
import logging
from models import ModelOrder, OrderSearchResult
from .estimator import ArmaGarchEstimator

logger = logging.getLogger(__name__)


class OrderSearcher:
    """Searches the (p, q) grid for the lowest-AIC ARMA mean model"""

    def __init__(self, estimator: ArmaGarchEstimator, p_max: int = 5, q_max: int = 5):
        if p_max < 0 or q_max < 0 or (p_max == 0 and q_max == 0):
            raise ValueError(f"Order grid must contain a non-null order: p_max={p_max}, q_max={q_max}")
        self.estimator = estimator
        self.p_max = p_max
        self.q_max = q_max
        self.logger = logging.getLogger('arma_garch.order_search')

    def candidate_orders(self) -> List[ModelOrder]:
        """Grid orders in enumeration order: p ascending, then q ascending, (0, 0) excluded"""
        return [
            ModelOrder(p, q)
            for p in range(self.p_max + 1)
            for q in range(self.q_max + 1)
            if not (p == 0 and q == 0)
        ]

    def search(self, returns: np.ndarray) -> OrderSearchResult:
        """Fit every candidate order and keep the first one with the lowest AIC"""
        best_aic = np.inf
        best_order = None
        n_failed = 0
        candidates = self.candidate_orders()

        for order in candidates:
            outcome = self.estimator.fit_mean_model(returns, order)
            if outcome.status.is_failure:
                n_failed += 1
                self.logger.debug(f"Order {order} rejected ({outcome.status.value}): "
                                  f"{'; '.join(outcome.messages)}")
                continue

            # Strict comparison keeps the earliest order on ties
            if outcome.aic < best_aic:
                best_aic = outcome.aic
                best_order = order

        if best_order is None:
            self.logger.info(f"No order fitted out of {len(candidates)} candidates")
            return OrderSearchResult(order=None, aic=None,
                                     n_candidates=len(candidates), n_failed=n_failed)

        return OrderSearchResult(order=best_order, aic=float(best_aic),
                                 n_candidates=len(candidates), n_failed=n_failed)
