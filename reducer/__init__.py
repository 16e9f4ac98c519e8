"""
Spark Metrics Reducer - 指标聚合与资源消耗计算
"""

from .pipeline import AppSnapshot, RunFacts, reduce_snapshot
from .query_reducer import calculate_sql_query_level_metrics, filter_displayable_sqls
from .resource_usage import ResourceUsageCalculator, calculate_wasted_cores_rate

__all__ = [
    'AppSnapshot', 'RunFacts', 'reduce_snapshot',
    'calculate_sql_query_level_metrics', 'filter_displayable_sqls',
    'ResourceUsageCalculator', 'calculate_wasted_cores_rate'
]
