"""Business-intelligence aggregation over a store's transactional records.

Six read-only computations, each fanning its reads out concurrently:
- compute_overview: growth, AOV, top products, stock and fulfilment
- compute_revenue: channel, category and weekly breakdowns
- compute_customer_insights: repeat rate, CLV segments, geography
- compute_inventory_health: velocity, stockout forecast, reorder list
- compute_marketing_insights: coupon ROI, expiring coupons, feature candidates
- compute_actionable_insights: ranked action items
"""

from storeforge.analytics.actionable import compute_actionable_insights
from storeforge.analytics.context import AnalyticsContext, Read, ReadResults, gather_reads
from storeforge.analytics.customers import compute_customer_insights
from storeforge.analytics.inventory import compute_inventory_health
from storeforge.analytics.marketing import compute_marketing_insights
from storeforge.analytics.overview import compute_overview
from storeforge.analytics.period import PeriodWindow, growth_pct
from storeforge.analytics.ranker import Insight, Priority, RankedInsights, rank_insights
from storeforge.analytics.revenue import compute_revenue

__all__ = [
    "AnalyticsContext",
    "Insight",
    "PeriodWindow",
    "Priority",
    "RankedInsights",
    "Read",
    "ReadResults",
    "compute_actionable_insights",
    "compute_customer_insights",
    "compute_inventory_health",
    "compute_marketing_insights",
    "compute_overview",
    "compute_revenue",
    "gather_reads",
    "growth_pct",
    "rank_insights",
]
