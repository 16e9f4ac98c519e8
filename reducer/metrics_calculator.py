"""
指标计算模块
"""

from typing import Optional, Sequence, Tuple

from models.stage_metrics import PartitionSkew


MAX_TASK_DURATION_THRESHOLD_MS = 5000
PARTITION_SKEW_RATIO = 10

MS_PER_HOUR = 3600000
BYTES_PER_GB = 1024 ** 3

DISTRIBUTION_QUANTILES = (0.0, 0.25, 0.5, 0.75, 1.0)


class MetricsCalculator:
    """指标计算器"""

    @staticmethod
    def calculate_percentile(values, percentile):
        """
        计算百分位数
        :param values: 数值列表
        :param percentile: 百分位（0.0-1.0）
        :return: 百分位值
        """
        if not values:
            return 0

        sorted_values = sorted(values)
        if len(sorted_values) == 1:
            return sorted_values[0]

        index = int((len(sorted_values) - 1) * percentile)
        index = max(0, min(index, len(sorted_values) - 1))

        return sorted_values[index]

    @staticmethod
    def calculate_distribution(values) -> Optional[Tuple[float, ...]]:
        """
        由Task时长列表计算五数概括 (min, p25, median, p75, max)
        :param values: Task时长列表（毫秒）
        :return: 五元组；没有Task时返回None
        """
        if not values:
            return None
        return tuple(MetricsCalculator.calculate_percentile(values, q) for q in DISTRIBUTION_QUANTILES)

    @staticmethod
    def calculate_partition_skew(distribution: Optional[Sequence[float]]) -> Optional[PartitionSkew]:
        """
        根据Task时长分布判断分区倾斜
        只使用中位数(下标2)和最大值(下标4)：最大值超过5秒且为中位数的10倍以上即视为倾斜。
        :param distribution: 五数概括 (min, p25, median, p75, max)
        :return: PartitionSkew；没有分布或分布不是五个值时返回None（无法判断）
        """
        if distribution is None or len(distribution) != len(DISTRIBUTION_QUANTILES):
            return None

        median_task_duration = distribution[2]
        max_task_duration = distribution[4]

        has_skew = (
            max_task_duration > MAX_TASK_DURATION_THRESHOLD_MS
            and median_task_duration != 0
            and max_task_duration / median_task_duration > PARTITION_SKEW_RATIO
        )
        return PartitionSkew(
            has_partition_skew=has_skew,
            median_task_duration=median_task_duration,
            max_task_duration=max_task_duration
        )

    @staticmethod
    def calculate_duration(start_time, end_time):
        """计算时长（毫秒）"""
        if end_time is None or start_time is None:
            return 0
        return max(0, end_time - start_time)

    @staticmethod
    def intersect_duration(start_a, end_a, start_b, end_b):
        """
        计算两个半开区间 [start, end) 的重叠时长（毫秒）
        :return: 不相交时返回0
        """
        start = max(start_a, start_b)
        end = min(end_a, end_b)
        if start >= end:
            return 0
        return end - start

    @staticmethod
    def safe_divide(numerator, denominator):
        """安全除法，避免除零"""
        if denominator == 0:
            return 0.0
        return numerator / denominator

    @staticmethod
    def clamp_percentage(value):
        """限制百分比在 [0, 100]"""
        return max(0.0, min(100.0, value))

    @staticmethod
    def calculate_percentage(value, total):
        """
        计算占比百分比
        :param total: 分母未知(None)或为0时返回0
        """
        if total is None or value is None:
            return 0.0
        return MetricsCalculator.clamp_percentage(MetricsCalculator.safe_divide(value, total) * 100)

    @staticmethod
    def ms_to_hours(ms):
        """毫秒转小时"""
        return ms / MS_PER_HOUR

    @staticmethod
    def bytes_to_gb(size_bytes):
        """字节转GB"""
        return size_bytes / BYTES_PER_GB
