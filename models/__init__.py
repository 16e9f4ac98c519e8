"""
Spark Metrics Reducer - 数据模型
"""

from .app_metrics import ExecutorMetrics, ExecutorRole, RunStatus
from .stage_metrics import Metrics, SparkStage, PartitionSkew, StageMetrics, SparkJob, JobMetrics
from .sql_metrics import SQLMetrics, ResourceUsage, ResourceUsageStore

__all__ = [
    'ExecutorMetrics', 'ExecutorRole', 'RunStatus',
    'Metrics', 'SparkStage', 'PartitionSkew', 'StageMetrics', 'SparkJob', 'JobMetrics',
    'SQLMetrics', 'ResourceUsage', 'ResourceUsageStore'
]
