"""
Stage指标聚合模块
"""

from typing import Iterable, List

from models.stage_metrics import Metrics, SparkStage, StageMetrics
from reducer.metrics_calculator import MetricsCalculator


STAGE_STATUS_SKIPPED = 'SKIPPED'
STAGE_STATUS_FAILED = 'FAILED'


def to_stage_metrics(stage: SparkStage) -> StageMetrics:
    """单个原始Stage转换为Stage指标"""
    partition_skew = MetricsCalculator.calculate_partition_skew(stage.task_duration_distribution)

    return StageMetrics(
        stage_id=stage.stage_id,
        name=stage.name,
        status=stage.status,
        num_tasks=stage.num_tasks,
        failure_reason=stage.failure_reason,
        has_partition_skew=None if partition_skew is None else partition_skew.has_partition_skew,
        median_task_duration=None if partition_skew is None else partition_skew.median_task_duration,
        max_task_duration=None if partition_skew is None else partition_skew.max_task_duration,
        metrics=Metrics(
            executor_run_time=stage.executor_run_time,
            disk_bytes_spilled=stage.disk_bytes_spilled,
            input_bytes=stage.input_bytes,
            output_bytes=stage.output_bytes,
            shuffle_read_bytes=stage.shuffle_read_bytes,
            shuffle_write_bytes=stage.shuffle_write_bytes,
            total_tasks=stage.num_tasks
        )
    )


def calculate_stages_store(stages: Iterable[SparkStage]) -> List[StageMetrics]:
    """
    计算Stage指标列表
    SKIPPED状态的Stage没有有效指标（numTasks也不准确），直接过滤掉
    :param stages: 原始Stage列表
    :return: Stage指标列表
    """
    return [
        to_stage_metrics(stage)
        for stage in stages
        if stage.status != STAGE_STATUS_SKIPPED
    ]
