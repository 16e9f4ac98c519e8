"""
快照导出模块 - 写入本地JSON文件
"""

import json
import os

from models.app_metrics import RunStatus
from models.sql_metrics import ResourceUsageStore, SQLMetrics
from models.stage_metrics import Metrics
from reducer.pipeline import AppSnapshot
from reducer.query_reducer import filter_displayable_sqls


class SnapshotWriter:
    """快照写入器"""

    def __init__(self, config):
        self.config = config

    def build_rows(self, snapshot: AppSnapshot):
        """
        构建导出内容
        SQL列表完整导出，display_sql_ids 标出可展示的SQL（排除SQL命令及指标未算出的SQL）
        """
        return {
            'stages': [stage.to_dict() for stage in snapshot.stages],
            'jobs': [job.to_dict() for job in snapshot.jobs],
            'executors': [executor.to_dict() for executor in snapshot.executors],
            'sqls': [sql.to_dict() for sql in snapshot.sqls],
            'display_sql_ids': [sql.execution_id for sql in filter_displayable_sqls(snapshot.sqls)],
            'run_status': snapshot.run_status.to_dict()
        }

    def write_all(self, snapshot: AppSnapshot, output_path=None):
        """
        写入快照文件
        :param snapshot: 计算得到的快照
        :param output_path: 输出路径（可选，默认取配置）
        :return: 实际写入的路径
        """
        output_path = output_path or self.config.output_path
        rows = self.build_rows(snapshot)

        print(f"准备写入 {len(rows['stages'])} 条Stage、{len(rows['jobs'])} 条Job、{len(rows['executors'])} 条Executor、{len(rows['sqls'])} 条SQL数据...")

        output_dir = os.path.dirname(output_path)
        if output_dir:
            os.makedirs(output_dir, exist_ok=True)

        with open(output_path, 'w', encoding='utf-8') as f:
            json.dump(rows, f, ensure_ascii=False, indent=2)

        print(f"快照写入完成: {output_path}")
        return output_path


def load_snapshot(file_path):
    """
    读取之前导出的快照，用于变化抑制
    只恢复SQL与RunStatus，Stage/Job每次都会重新计算
    """
    if not os.path.exists(file_path):
        raise FileNotFoundError(f"快照文件不存在: {file_path}")

    with open(file_path, 'r', encoding='utf-8') as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"解析文件失败: {file_path}, 错误: {e}") from e

    sqls = []
    for row in data.get('sqls') or []:
        stage_metrics = row.get('stage_metrics')
        resource_metrics = row.get('resource_metrics')
        sqls.append(SQLMetrics(
            execution_id=int(row['execution_id']),
            description=row.get('description') or '',
            submission_time=row.get('submission_time'),
            duration=row.get('duration_ms') or 0,
            status=row.get('status') or 'RUNNING',
            success_job_ids=tuple(row.get('success_job_ids') or []),
            failed_job_ids=tuple(row.get('failed_job_ids') or []),
            running_job_ids=tuple(row.get('running_job_ids') or []),
            is_sql_command=bool(row.get('is_sql_command', False)),
            stage_metrics=Metrics(**stage_metrics) if stage_metrics else None,
            resource_metrics=ResourceUsageStore(**resource_metrics) if resource_metrics else None,
            failure_reason=row.get('failure_reason')
        ))

    run_status = data.get('run_status') or {}
    return AppSnapshot(
        sqls=tuple(sqls),
        run_status=RunStatus(duration=run_status.get('duration_ms'), total_dcu=run_status.get('total_dcu'))
    )
