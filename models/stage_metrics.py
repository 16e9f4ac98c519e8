"""
Job和Stage级别指标数据模型
"""

from dataclasses import dataclass, fields
from typing import Iterable, Optional, Tuple


@dataclass(frozen=True)
class Metrics:
    """Stage/Job/SQL通用的累加指标"""
    executor_run_time: int = 0
    disk_bytes_spilled: int = 0
    input_bytes: int = 0
    output_bytes: int = 0
    shuffle_read_bytes: int = 0
    shuffle_write_bytes: int = 0
    total_tasks: int = 0

    @classmethod
    def zero(cls):
        """全零指标（求和的单位元）"""
        return cls()

    @classmethod
    def sum(cls, metrics_list: Iterable['Metrics']) -> 'Metrics':
        """逐字段求和，空列表返回全零指标"""
        total = cls.zero()
        for metrics in metrics_list:
            total = total + metrics
        return total

    def __add__(self, other):
        if not isinstance(other, Metrics):
            return NotImplemented
        return Metrics(**{
            f.name: getattr(self, f.name) + getattr(other, f.name)
            for f in fields(self)
        })

    def to_dict(self):
        """转换为字典，确保类型正确"""
        return {f.name: int(getattr(self, f.name) or 0) for f in fields(self)}


@dataclass(frozen=True)
class SparkStage:
    """引擎上报的原始Stage信息"""
    stage_id: int
    name: str
    status: str
    num_tasks: int = 0
    executor_run_time: int = 0
    disk_bytes_spilled: int = 0
    input_bytes: int = 0
    output_bytes: int = 0
    shuffle_read_bytes: int = 0
    shuffle_write_bytes: int = 0
    failure_reason: Optional[str] = None
    # executorRunTime的五数概括: min, p25, median, p75, max
    task_duration_distribution: Optional[Tuple[float, ...]] = None


@dataclass(frozen=True)
class PartitionSkew:
    """分区倾斜检测结果"""
    has_partition_skew: bool
    median_task_duration: Optional[float] = None
    max_task_duration: Optional[float] = None


@dataclass(frozen=True)
class StageMetrics:
    """Stage指标模型"""
    stage_id: int
    name: str
    status: str
    num_tasks: int
    metrics: Metrics
    failure_reason: Optional[str] = None
    # None 表示无法判断（没有Task时长分布），不等同于 False
    has_partition_skew: Optional[bool] = None
    median_task_duration: Optional[float] = None
    max_task_duration: Optional[float] = None

    def to_dict(self):
        """转换为字典，确保类型正确"""
        return {
            'stage_id': int(self.stage_id),
            'stage_name': str(self.name) if self.name else '',
            'status': str(self.status) if self.status else 'UNKNOWN',
            'num_tasks': int(self.num_tasks) if self.num_tasks is not None else 0,
            'failure_reason': str(self.failure_reason) if self.failure_reason else None,
            'has_partition_skew': self.has_partition_skew,
            'median_task_duration': self.median_task_duration,
            'max_task_duration': self.max_task_duration,
            'metrics': self.metrics.to_dict()
        }


@dataclass(frozen=True)
class SparkJob:
    """引擎上报的原始Job信息"""
    job_id: int
    name: str
    status: str
    stage_ids: Tuple[int, ...] = ()
    description: Optional[str] = None


@dataclass(frozen=True)
class JobMetrics:
    """Job指标模型"""
    job_id: int
    name: str
    status: str
    stage_ids: Tuple[int, ...]
    metrics: Metrics
    description: Optional[str] = None

    def to_dict(self):
        """转换为字典，确保类型正确"""
        return {
            'job_id': int(self.job_id),
            'job_name': str(self.name) if self.name else '',
            'description': str(self.description) if self.description else None,
            'status': str(self.status) if self.status else 'UNKNOWN',
            'stage_ids': [int(stage_id) for stage_id in self.stage_ids],
            'metrics': self.metrics.to_dict()
        }
