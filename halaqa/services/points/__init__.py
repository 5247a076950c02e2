"""
Points services - balances, rewards catalog and store purchases.
"""

from halaqa.services.points.points_service import PointsService, calculate_points_for_log
from halaqa.services.points.rewards import get_reward, list_rewards

__all__ = ["PointsService", "calculate_points_for_log", "get_reward", "list_rewards"]
