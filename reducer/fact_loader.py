"""
原始数据加载模块 - 读取引擎状态存储导出的JSON
"""

import json
import os

from models.app_metrics import ExecutorMetrics, ExecutorRole, RunStatus
from models.sql_metrics import SQLMetrics
from models.stage_metrics import SparkJob, SparkStage
from reducer.metrics_calculator import DISTRIBUTION_QUANTILES, MetricsCalculator
from reducer.pipeline import RunFacts


DISTRIBUTION_SIZE = len(DISTRIBUTION_QUANTILES)


def _int_or_zero(value):
    try:
        return int(value) if value is not None else 0
    except (ValueError, TypeError):
        return 0


def _ids(values):
    return tuple(int(v) for v in (values or []))


class FactLoader:
    """原始数据加载器"""

    @staticmethod
    def load(file_path):
        """
        加载原始数据文件
        :param file_path: JSON文件路径
        :return: (RunFacts, Spark配置字典)
        """
        if not os.path.exists(file_path):
            raise FileNotFoundError(f"原始数据文件不存在: {file_path}")

        with open(file_path, 'r', encoding='utf-8') as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise ValueError(f"解析文件失败: {file_path}, 错误: {e}") from e

        return FactLoader.from_dict(data), dict(data.get('sparkProperties') or {})

    @staticmethod
    def from_dict(data):
        """由JSON字典构建RunFacts"""
        application = data.get('application') or {}
        start_time = application.get('startTime')
        # 运行中的应用没有endTime，以数据中最后已知的时间作为结束
        end_time = application.get('endTime')
        if end_time is None:
            end_time = FactLoader.last_known_time(data)

        duration = application.get('duration')
        if duration is None and start_time is not None and end_time is not None:
            duration = MetricsCalculator.calculate_duration(start_time, end_time)

        return RunFacts(
            stages=tuple(FactLoader.parse_stage(s) for s in data.get('stages') or []),
            jobs=tuple(FactLoader.parse_job(j) for j in data.get('jobs') or []),
            executors=tuple(FactLoader.parse_executor(e, end_time) for e in data.get('executors') or []),
            sqls=tuple(FactLoader.parse_sql(s) for s in data.get('sqls') or []),
            run_status=RunStatus(duration=duration, total_dcu=application.get('totalDCU')),
            start_time=start_time,
            end_time=end_time
        )

    @staticmethod
    def last_known_time(data):
        """
        数据中最后已知的时间点（毫秒）
        依次取 application.lastUpdated、SQL结束时间、Executor的addTime/removeTime 中的最大值
        """
        application = data.get('application') or {}
        candidates = [application.get('lastUpdated'), application.get('startTime')]
        for sql in data.get('sqls') or []:
            if sql.get('submissionTime') is not None:
                candidates.append(_int_or_zero(sql.get('submissionTime')) + _int_or_zero(sql.get('duration')))
        for executor in data.get('executors') or []:
            candidates.append(executor.get('addTime'))
            candidates.append(executor.get('removeTime'))
        known = [int(t) for t in candidates if t is not None]
        return max(known) if known else None

    @staticmethod
    def parse_stage(stage):
        """解析Stage，Task时长分布优先使用taskMetricsDistributions，其次由taskDurations计算"""
        distribution = None
        distributions = stage.get('taskMetricsDistributions')
        if distributions and distributions.get('executorRunTime'):
            # 只接受五数概括，其他分位数个数视为无法判断
            if len(distributions['executorRunTime']) == DISTRIBUTION_SIZE:
                distribution = tuple(distributions['executorRunTime'])
        elif stage.get('taskDurations'):
            distribution = MetricsCalculator.calculate_distribution(stage['taskDurations'])

        return SparkStage(
            stage_id=int(stage.get('stageId')),
            name=stage.get('name') or f"Stage {stage.get('stageId')}",
            status=stage.get('status') or 'UNKNOWN',
            num_tasks=_int_or_zero(stage.get('numTasks')),
            executor_run_time=_int_or_zero(stage.get('executorRunTime')),
            disk_bytes_spilled=_int_or_zero(stage.get('diskBytesSpilled')),
            input_bytes=_int_or_zero(stage.get('inputBytes')),
            output_bytes=_int_or_zero(stage.get('outputBytes')),
            shuffle_read_bytes=_int_or_zero(stage.get('shuffleReadBytes')),
            shuffle_write_bytes=_int_or_zero(stage.get('shuffleWriteBytes')),
            failure_reason=stage.get('failureReason'),
            task_duration_distribution=distribution
        )

    @staticmethod
    def parse_job(job):
        return SparkJob(
            job_id=int(job.get('jobId')),
            name=job.get('name') or '',
            description=job.get('description'),
            status=job.get('status') or 'UNKNOWN',
            stage_ids=_ids(job.get('stageIds'))
        )

    @staticmethod
    def parse_executor(executor, app_end_time=None):
        """仍存活的Executor（没有removeTime）以应用结束时间（或最后已知时间）作为结束"""
        executor_id = str(executor.get('id'))
        add_time = _int_or_zero(executor.get('addTime'))
        end_time = executor.get('removeTime')
        if end_time is None:
            end_time = app_end_time if app_end_time is not None else add_time

        return ExecutorMetrics(
            executor_id=executor_id,
            add_time=add_time,
            end_time=int(end_time),
            total_cores=_int_or_zero(executor.get('totalCores')),
            role=ExecutorRole.from_executor_id(executor_id)
        )

    @staticmethod
    def parse_sql(sql):
        return SQLMetrics(
            execution_id=int(sql.get('id')),
            description=sql.get('description') or '',
            submission_time=_int_or_zero(sql.get('submissionTime')),
            duration=_int_or_zero(sql.get('duration')),
            status=sql.get('status') or 'RUNNING',
            success_job_ids=_ids(sql.get('successJobIds')),
            failed_job_ids=_ids(sql.get('failedJobIds')),
            running_job_ids=_ids(sql.get('runningJobIds')),
            is_sql_command=bool(sql.get('isSqlCommand', False))
        )
