#!/usr/bin/env python3
"""
Spark 运行指标计算主程序

使用方式:
    python reduce_spark_metrics.py run_facts.json \
      --config config.yaml \
      --previous /tmp/spark-metrics-export/snapshot.json \
      --output /tmp/spark-metrics-export/snapshot.json
"""

import argparse
import sys
import time
from dataclasses import replace

from models.app_metrics import RunStatus
from reducer.config_loader import ConfigLoader
from reducer.fact_loader import FactLoader
from reducer.pipeline import reduce_snapshot
from reducer.query_reducer import filter_displayable_sqls
from reducer.resource_usage import ResourceUsageCalculator
from reducer.snapshot_writer import SnapshotWriter, load_snapshot


TOP_SQL_COUNT = 5


class ReduceStatistics:
    """计算统计信息"""

    def __init__(self, snapshot, previous=None):
        self.snapshot = snapshot
        self.total_stages = len(snapshot.stages)
        self.total_jobs = len(snapshot.jobs)
        self.total_sqls = len(snapshot.sqls)
        self.skewed_stages = [s for s in snapshot.stages if s.has_partition_skew]
        self.unknown_skew_stages = sum(1 for s in snapshot.stages if s.has_partition_skew is None)
        self.changed_sqls = snapshot.changed_sqls(previous)

    def print_summary(self):
        """打印统计摘要"""
        run_status = self.snapshot.run_status

        print("\n" + "="*60)
        print("指标计算统计摘要")
        print("="*60)
        print(f"Stage数: {self.total_stages}")
        print(f"Job数: {self.total_jobs}")
        print(f"SQL数: {self.total_sqls}")
        print(f"有变化的SQL数: {len(self.changed_sqls)}")
        print(f"-" * 60)
        print(f"分区倾斜Stage数: {len(self.skewed_stages)}")
        print(f"无法判断倾斜的Stage数: {self.unknown_skew_stages}")
        print(f"应用时长: {run_status.duration if run_status.duration is not None else '未知'} ms")
        print(f"应用总DCU: {run_status.total_dcu:.4f}" if run_status.total_dcu is not None else "应用总DCU: 未知")
        print("="*60 + "\n")

        for stage in self.skewed_stages[:10]:
            print(f"  - Stage {stage.stage_id} ({stage.name}): "
                  f"中位Task时长 {stage.median_task_duration} ms, 最大Task时长 {stage.max_task_duration} ms")

        top_sqls = sorted(
            filter_displayable_sqls(self.snapshot.sqls),
            key=lambda sql: sql.resource_metrics.dcu,
            reverse=True
        )[:TOP_SQL_COUNT]
        if top_sqls:
            print(f"DCU最高的 {len(top_sqls)} 个SQL:")
            for sql in top_sqls:
                metrics = sql.resource_metrics
                print(f"  - SQL {sql.execution_id}: DCU {metrics.dcu:.4f} ({metrics.dcu_percentage:.2f}%), "
                      f"核浪费率 {metrics.wasted_cores_rate:.2f}%, 时长占比 {metrics.duration_percentage:.2f}%")
                if sql.failure_reason:
                    print(f"    失败原因: {sql.failure_reason}")
            print()


def fill_run_status(facts, config):
    """原始数据中没有应用总DCU时，按应用运行窗口计算"""
    if facts.run_status.total_dcu is not None:
        return facts
    if facts.start_time is None or facts.end_time is None:
        return facts
    usage = ResourceUsageCalculator(config).calculate_run_usage(
        facts.start_time, facts.end_time, facts.executors
    )
    return replace(facts, run_status=RunStatus(duration=facts.run_status.duration, total_dcu=usage.total_dcu))


def reduce_metrics(facts_path, config_path=None, previous_path=None, output_path=None):
    """
    计算并导出指标快照
    :return: (快照, 统计信息)
    """
    print("\n" + "="*60)
    print("Spark 运行指标计算程序")
    print("="*60)

    # 1. 加载原始数据
    print("步骤 1: 加载原始数据...")
    facts, spark_conf = FactLoader.load(facts_path)
    print(f"加载 {len(facts.stages)} 个Stage、{len(facts.jobs)} 个Job、"
          f"{len(facts.executors)} 个Executor、{len(facts.sqls)} 个SQL\n")

    # 2. 加载配置
    config = ConfigLoader.load(config_path, spark_conf)
    print(config)

    previous = None
    if previous_path:
        print(f"读取上一次快照: {previous_path}")
        previous = load_snapshot(previous_path)

    # 3. 计算
    print("步骤 2: 计算指标...")
    facts = fill_run_status(facts, config)
    snapshot = reduce_snapshot(previous, facts, config)

    stats = ReduceStatistics(snapshot, previous)
    stats.print_summary()

    # 4. 导出
    print("步骤 3: 导出快照...")
    SnapshotWriter(config).write_all(snapshot, output_path)

    return snapshot, stats


def main(argv=None):
    """主函数"""
    arg_parser = argparse.ArgumentParser(description="Spark 运行指标计算")
    arg_parser.add_argument('facts', help="引擎状态存储导出的JSON文件")
    arg_parser.add_argument('--config', default=None, help="YAML配置文件路径")
    arg_parser.add_argument('--previous', default=None, help="上一次导出的快照，用于变化抑制")
    arg_parser.add_argument('--output', default=None, help="快照输出路径")
    args = arg_parser.parse_args(argv)

    start_time = time.time()
    try:
        reduce_metrics(args.facts, args.config, args.previous, args.output)
        print(f"程序执行成功! 耗时 {time.time() - start_time:.2f} 秒")
        return 0

    except Exception as e:
        print(f"程序执行失败: {e}")
        import traceback
        traceback.print_exc()
        return 1


if __name__ == '__main__':
    sys.exit(main())
