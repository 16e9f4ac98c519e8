"""
SQL和资源消耗指标数据模型
"""

from dataclasses import dataclass
from typing import Any, Optional, Tuple

from .stage_metrics import Metrics


@dataclass(frozen=True)
class ResourceUsage:
    """按时间区间计算出的资源消耗"""
    core_usage_ms: float = 0
    core_hour: float = 0
    memory_hour: float = 0
    total_dcu: float = 0

    @classmethod
    def zero(cls):
        return cls()

    def __add__(self, other):
        if not isinstance(other, ResourceUsage):
            return NotImplemented
        return ResourceUsage(
            core_usage_ms=self.core_usage_ms + other.core_usage_ms,
            core_hour=self.core_hour + other.core_hour,
            memory_hour=self.memory_hour + other.memory_hour,
            total_dcu=self.total_dcu + other.total_dcu
        )


@dataclass(frozen=True)
class ResourceUsageStore:
    """对外输出的SQL资源消耗（百分比字段均限制在 [0, 100]）"""
    core_hour_usage: float
    memory_gb_hour_usage: float
    dcu: float
    wasted_cores_rate: float
    dcu_percentage: float
    duration_percentage: float

    def to_dict(self):
        """转换为字典，确保类型正确"""
        return {
            'core_hour_usage': float(self.core_hour_usage),
            'memory_gb_hour_usage': float(self.memory_gb_hour_usage),
            'dcu': float(self.dcu),
            'wasted_cores_rate': float(self.wasted_cores_rate),
            'dcu_percentage': float(self.dcu_percentage),
            'duration_percentage': float(self.duration_percentage)
        }


@dataclass(frozen=True)
class SQLMetrics:
    """SQL执行指标模型"""
    execution_id: int
    description: str
    submission_time: int
    duration: int
    status: str = 'RUNNING'
    success_job_ids: Tuple[int, ...] = ()
    failed_job_ids: Tuple[int, ...] = ()
    running_job_ids: Tuple[int, ...] = ()
    is_sql_command: bool = False
    stage_metrics: Optional[Metrics] = None
    resource_metrics: Optional[ResourceUsageStore] = None
    failure_reason: Optional[str] = None
    # 外部按执行计划节点拆分的Stage信息，本模块不解释其内容
    node_stages: Optional[Any] = None

    @property
    def all_job_ids(self):
        return self.success_job_ids + self.failed_job_ids + self.running_job_ids

    def to_dict(self):
        """转换为字典，确保类型正确"""
        return {
            'execution_id': int(self.execution_id),
            'description': str(self.description) if self.description else '',
            'submission_time': int(self.submission_time) if self.submission_time is not None else None,
            'duration_ms': int(self.duration) if self.duration is not None else 0,
            'status': str(self.status) if self.status else 'UNKNOWN',
            'success_job_ids': list(self.success_job_ids),
            'failed_job_ids': list(self.failed_job_ids),
            'running_job_ids': list(self.running_job_ids),
            'is_sql_command': bool(self.is_sql_command),
            'stage_metrics': self.stage_metrics.to_dict() if self.stage_metrics else None,
            'resource_metrics': self.resource_metrics.to_dict() if self.resource_metrics else None,
            'failure_reason': str(self.failure_reason) if self.failure_reason else None
        }
