"""
应用级别指标数据模型
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


DRIVER_EXECUTOR_ID = 'driver'


class ExecutorRole(Enum):
    """Executor角色，决定使用哪一项内存配置"""
    DRIVER = 'driver'
    EXECUTOR = 'executor'

    @classmethod
    def from_executor_id(cls, executor_id):
        return cls.DRIVER if executor_id == DRIVER_EXECUTOR_ID else cls.EXECUTOR


@dataclass(frozen=True)
class ExecutorMetrics:
    """Executor指标模型，生命周期为 [add_time, end_time) 毫秒"""
    executor_id: str
    add_time: int
    end_time: int
    total_cores: int
    # 未指定时按executor_id推导
    role: Optional[ExecutorRole] = None

    def __post_init__(self):
        if self.role is None:
            object.__setattr__(self, 'role', ExecutorRole.from_executor_id(self.executor_id))

    @property
    def is_driver(self):
        return self.role is ExecutorRole.DRIVER

    def to_dict(self):
        """转换为字典，确保类型正确"""
        return {
            'executor_id': str(self.executor_id) if self.executor_id else '',
            'add_time': int(self.add_time) if self.add_time is not None else None,
            'end_time': int(self.end_time) if self.end_time is not None else None,
            'total_cores': int(self.total_cores) if self.total_cores is not None else 0,
            'role': self.role.value
        }


@dataclass(frozen=True)
class RunStatus:
    """整个应用的运行汇总，作为百分比计算的分母"""
    duration: Optional[int] = None
    total_dcu: Optional[float] = None

    def to_dict(self):
        """转换为字典，确保类型正确"""
        return {
            'duration_ms': int(self.duration) if self.duration is not None else None,
            'total_dcu': float(self.total_dcu) if self.total_dcu is not None else None
        }
