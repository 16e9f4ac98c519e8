"""
资源消耗计算模块

查询的执行时间窗口与每个Executor的存活时间窗口求交集，
按重叠时长计算核时、内存GB时与DCU。
"""

from typing import List, Sequence

from models.app_metrics import ExecutorMetrics
from models.sql_metrics import ResourceUsage, SQLMetrics
from reducer.metrics_calculator import MetricsCalculator


# DCU计费权重，属于外部成本模型，修改即改变计费结果
DCU_PER_CORE_HOUR = 0.05
DCU_PER_MEMORY_GB_HOUR = 0.005


class ResourceUsageCalculator:
    """资源消耗计算器"""

    def __init__(self, config):
        """
        :param config: 提供 driver_memory_bytes 与 executor_container_memory_bytes 的配置对象
        """
        self.config = config

    def memory_gb(self, executor: ExecutorMetrics):
        """Driver与普通Executor分别使用各自的内存配置"""
        if executor.is_driver:
            memory_bytes = self.config.driver_memory_bytes
        else:
            memory_bytes = self.config.executor_container_memory_bytes
        return MetricsCalculator.bytes_to_gb(memory_bytes)

    def executor_usage(self, start_time, end_time, executor: ExecutorMetrics) -> ResourceUsage:
        """单个Executor在 [start_time, end_time) 内的资源消耗"""
        overlap_ms = MetricsCalculator.intersect_duration(
            start_time, end_time, executor.add_time, executor.end_time
        )
        if overlap_ms == 0:
            return ResourceUsage.zero()

        core_usage_ms = overlap_ms * executor.total_cores
        core_hour = MetricsCalculator.ms_to_hours(core_usage_ms)
        memory_hour = MetricsCalculator.ms_to_hours(overlap_ms * self.memory_gb(executor))
        return ResourceUsage(
            core_usage_ms=core_usage_ms,
            core_hour=core_hour,
            memory_hour=memory_hour,
            total_dcu=core_hour * DCU_PER_CORE_HOUR + memory_hour * DCU_PER_MEMORY_GB_HOUR
        )

    def calculate_window_usage(self, start_time, end_time, executors: Sequence[ExecutorMetrics]) -> ResourceUsage:
        """所有Executor在时间窗口内的资源消耗之和"""
        total = ResourceUsage.zero()
        for executor in executors:
            total = total + self.executor_usage(start_time, end_time, executor)
        return total

    def calculate_sql_usage(self, sql: SQLMetrics, executors: Sequence[ExecutorMetrics]) -> ResourceUsage:
        """SQL执行窗口 [submission_time, submission_time + duration) 内的资源消耗"""
        return self.calculate_window_usage(
            sql.submission_time, sql.submission_time + sql.duration, executors
        )

    def calculate_sql_usage_variants(self, sql: SQLMetrics, executors: Sequence[ExecutorMetrics]):
        """
        计算两种口径的资源消耗
        :return: (包含Driver, 仅Executor)；只有一个Executor时两者相同
        """
        with_driver = self.calculate_sql_usage(sql, executors)
        if len(executors) == 1:
            return with_driver, with_driver
        executors_only = self.calculate_sql_usage(sql, executors_without_driver(executors))
        return with_driver, executors_only

    def calculate_run_usage(self, start_time, end_time, executors: Sequence[ExecutorMetrics]) -> ResourceUsage:
        """整个应用运行期间的资源消耗，用于推导RunStatus.total_dcu"""
        if start_time is None or end_time is None:
            return ResourceUsage.zero()
        return self.calculate_window_usage(start_time, end_time, executors)


def executors_without_driver(executors: Sequence[ExecutorMetrics]) -> List[ExecutorMetrics]:
    return [executor for executor in executors if not executor.is_driver]


def calculate_wasted_cores_rate(total_task_run_time, executors_core_usage_ms):
    """
    计算核浪费率：已分配的核时中没有被Task执行时间占用的比例
    :param total_task_run_time: Task执行总时长（毫秒）
    :param executors_core_usage_ms: 仅Executor口径的核使用毫秒数
    :return: [0, 100] 的百分比；分母为0时返回0
    """
    if not executors_core_usage_ms:
        return 0.0
    rate = (1 - (total_task_run_time or 0) / executors_core_usage_ms) * 100
    return MetricsCalculator.clamp_percentage(rate)
