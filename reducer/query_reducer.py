"""
SQL查询级别指标计算模块
"""

from dataclasses import replace
from typing import Callable, Iterable, List, Optional, Sequence

from models.app_metrics import ExecutorMetrics, RunStatus
from models.sql_metrics import ResourceUsageStore, SQLMetrics
from models.stage_metrics import JobMetrics, Metrics, StageMetrics
from reducer.metrics_calculator import MetricsCalculator
from reducer.resource_usage import ResourceUsageCalculator, calculate_wasted_cores_rate
from reducer.stage_aggregator import STAGE_STATUS_FAILED


NodeStageCalculator = Callable[[SQLMetrics, Sequence[StageMetrics], Sequence[JobMetrics]], SQLMetrics]


def replace_if_changed(sql: SQLMetrics, **changes) -> SQLMetrics:
    """字段值都没变时返回原对象，避免下游收到无意义的更新"""
    if all(getattr(sql, name) == value for name, value in changes.items()):
        return sql
    return replace(sql, **changes)


def calculate_sql_stage_metrics(sql: SQLMetrics, jobs_store: Iterable[JobMetrics]) -> SQLMetrics:
    """汇总SQL关联的所有Job（成功/失败/运行中）的指标"""
    job_ids = set(sql.all_job_ids)
    sql_metrics = Metrics.sum(job.metrics for job in jobs_store if job.job_id in job_ids)
    return replace_if_changed(sql, stage_metrics=sql_metrics)


def calculate_sql_resource_metrics(
    calculator: ResourceUsageCalculator,
    sql: SQLMetrics,
    run_status: RunStatus,
    executors: Sequence[ExecutorMetrics],
) -> SQLMetrics:
    """计算SQL的资源消耗及其占整个应用的百分比"""
    with_driver, executors_only = calculator.calculate_sql_usage_variants(sql, executors)
    total_tasks_time = sql.stage_metrics.executor_run_time if sql.stage_metrics else 0

    resource_metrics = ResourceUsageStore(
        core_hour_usage=with_driver.core_hour,
        memory_gb_hour_usage=with_driver.memory_hour,
        dcu=with_driver.total_dcu,
        wasted_cores_rate=calculate_wasted_cores_rate(total_tasks_time, executors_only.core_usage_ms),
        dcu_percentage=MetricsCalculator.calculate_percentage(with_driver.total_dcu, run_status.total_dcu),
        duration_percentage=MetricsCalculator.calculate_percentage(sql.duration, run_status.duration)
    )
    return replace_if_changed(sql, resource_metrics=resource_metrics)


def calculate_sql_failure_reason(
    sql: SQLMetrics,
    jobs_store: Iterable[JobMetrics],
    stages_store: Iterable[StageMetrics],
) -> SQLMetrics:
    """
    失败原因取失败Job下第一个FAILED状态Stage的failure_reason
    默认一个SQL只有一个根因，多个失败Stage时以先出现者为准
    """
    failed_job_ids = set(sql.failed_job_ids)
    failed_stage_ids = {
        stage_id
        for job in jobs_store if job.job_id in failed_job_ids
        for stage_id in job.stage_ids
    }
    failure_reason = next(
        (stage.failure_reason for stage in stages_store
         if stage.stage_id in failed_stage_ids and stage.status == STAGE_STATUS_FAILED),
        None
    )
    return replace_if_changed(sql, failure_reason=failure_reason)


def calculate_sql_query_level_metrics(
    config,
    sqls: Iterable[SQLMetrics],
    run_status: RunStatus,
    jobs_store: Sequence[JobMetrics],
    stages_store: Sequence[StageMetrics],
    executors: Sequence[ExecutorMetrics],
    node_stage_calculator: Optional[NodeStageCalculator] = None,
) -> List[SQLMetrics]:
    """
    计算SQL查询级别指标
    :param config: 提供Driver/Executor内存大小的配置对象
    :param sqls: 当前SQL列表（可能带有上一次计算的结果）
    :param run_status: 应用运行汇总（时长、总DCU）
    :param jobs_store: Job指标列表
    :param stages_store: Stage指标列表
    :param executors: Executor列表
    :param node_stage_calculator: 可选，按执行计划节点拆分Stage信息的外部计算
    :return: 刷新后的SQL列表；输入未变化的SQL保持原对象
    """
    calculator = ResourceUsageCalculator(config)
    new_sqls = []
    for sql in sqls:
        new_sql = calculate_sql_stage_metrics(sql, jobs_store)
        new_sql = calculate_sql_resource_metrics(calculator, new_sql, run_status, executors)
        new_sql = calculate_sql_failure_reason(new_sql, jobs_store, stages_store)
        if node_stage_calculator is not None:
            new_sql = node_stage_calculator(new_sql, stages_store, jobs_store)
        new_sqls.append(new_sql)
    return new_sqls


def filter_displayable_sqls(sqls: Iterable[SQLMetrics]) -> List[SQLMetrics]:
    """展示用列表：排除SQL命令以及尚未计算出指标的SQL"""
    return [
        sql for sql in sqls
        if not sql.is_sql_command
        and sql.stage_metrics is not None
        and sql.resource_metrics is not None
    ]
