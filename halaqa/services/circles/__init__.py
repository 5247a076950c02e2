"""
Circle services - circles, co-sheikhs and membership.
"""

from halaqa.services.circles.circle_service import CircleService
from halaqa.services.circles.membership_service import MembershipService

__all__ = ["CircleService", "MembershipService"]
