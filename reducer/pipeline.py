"""
快照计算流水线

reduce_snapshot(上一次快照, 新的原始数据) -> 新快照，无副作用
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from models.app_metrics import ExecutorMetrics, RunStatus
from models.sql_metrics import SQLMetrics
from models.stage_metrics import JobMetrics, SparkJob, SparkStage, StageMetrics
from reducer.job_aggregator import calculate_jobs_store
from reducer.query_reducer import NodeStageCalculator, calculate_sql_query_level_metrics, replace_if_changed
from reducer.stage_aggregator import calculate_stages_store


# 原始数据中描述SQL本身的字段，其余字段由计算得出
SQL_FACT_FIELDS = (
    'description', 'submission_time', 'duration', 'status',
    'success_job_ids', 'failed_job_ids', 'running_job_ids', 'is_sql_command'
)


@dataclass(frozen=True)
class RunFacts:
    """一次计算所需的全部原始数据"""
    stages: Tuple[SparkStage, ...] = ()
    jobs: Tuple[SparkJob, ...] = ()
    executors: Tuple[ExecutorMetrics, ...] = ()
    sqls: Tuple[SQLMetrics, ...] = ()
    run_status: RunStatus = field(default_factory=RunStatus)
    start_time: Optional[int] = None
    end_time: Optional[int] = None


@dataclass(frozen=True)
class AppSnapshot:
    """一次计算输出的完整快照"""
    stages: Tuple[StageMetrics, ...] = ()
    jobs: Tuple[JobMetrics, ...] = ()
    sqls: Tuple[SQLMetrics, ...] = ()
    run_status: RunStatus = field(default_factory=RunStatus)
    executors: Tuple[ExecutorMetrics, ...] = ()

    def sql_by_id(self, execution_id) -> Optional[SQLMetrics]:
        return next((sql for sql in self.sqls if sql.execution_id == execution_id), None)

    def changed_sqls(self, previous: Optional['AppSnapshot']) -> List[int]:
        """与上一次快照相比发生变化（不再是同一对象）的SQL ID"""
        if previous is None:
            return [sql.execution_id for sql in self.sqls]
        previous_by_id = {sql.execution_id: sql for sql in previous.sqls}
        return [
            sql.execution_id for sql in self.sqls
            if previous_by_id.get(sql.execution_id) is not sql
        ]


def merge_sql_facts(previous: Optional[SQLMetrics], sql: SQLMetrics) -> SQLMetrics:
    """以上一次的SQL结果为基础，刷新原始字段，保留已计算字段用于变化抑制"""
    if previous is None:
        return sql
    return replace_if_changed(previous, **{name: getattr(sql, name) for name in SQL_FACT_FIELDS})


def reduce_snapshot(
    previous: Optional[AppSnapshot],
    facts: RunFacts,
    config,
    node_stage_calculator: Optional[NodeStageCalculator] = None,
) -> AppSnapshot:
    """
    由原始数据计算新快照
    :param previous: 上一次的快照，首次计算传None
    :param facts: 当前的原始数据
    :param config: 提供Driver/Executor内存大小的配置对象
    :param node_stage_calculator: 可选，按执行计划节点拆分Stage信息的外部计算
    :return: 新快照
    """
    stages_store = calculate_stages_store(facts.stages)
    jobs_store = calculate_jobs_store(stages_store, facts.jobs)

    previous_sqls = {sql.execution_id: sql for sql in previous.sqls} if previous else {}
    sqls = [merge_sql_facts(previous_sqls.get(sql.execution_id), sql) for sql in facts.sqls]

    new_sqls = calculate_sql_query_level_metrics(
        config,
        sqls,
        facts.run_status,
        jobs_store,
        stages_store,
        list(facts.executors),
        node_stage_calculator
    )
    return AppSnapshot(
        stages=tuple(stages_store),
        jobs=tuple(jobs_store),
        sqls=tuple(new_sqls),
        run_status=facts.run_status,
        executors=tuple(facts.executors)
    )
