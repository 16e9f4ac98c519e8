"""
指标计算单元测试
"""

import random
import unittest

from models.app_metrics import ExecutorMetrics, ExecutorRole
from models.sql_metrics import SQLMetrics
from models.stage_metrics import Metrics, SparkJob, SparkStage, StageMetrics
from reducer.job_aggregator import calculate_jobs_metrics, calculate_jobs_store
from reducer.metrics_calculator import MetricsCalculator
from reducer.resource_usage import (
    DCU_PER_CORE_HOUR, DCU_PER_MEMORY_GB_HOUR,
    ResourceUsageCalculator, calculate_wasted_cores_rate
)
from reducer.stage_aggregator import calculate_stages_store


GB = 1024 ** 3


class FakeConfig:
    """测试用内存配置"""
    driver_memory_bytes = 2 * GB
    executor_container_memory_bytes = 4 * GB


def make_metrics(seed):
    rnd = random.Random(seed)
    return Metrics(
        executor_run_time=rnd.randint(0, 10 ** 6),
        disk_bytes_spilled=rnd.randint(0, 10 ** 9),
        input_bytes=rnd.randint(0, 10 ** 9),
        output_bytes=rnd.randint(0, 10 ** 9),
        shuffle_read_bytes=rnd.randint(0, 10 ** 9),
        shuffle_write_bytes=rnd.randint(0, 10 ** 9),
        total_tasks=rnd.randint(0, 1000)
    )


def make_stage_metrics(stage_id, metrics, status='COMPLETE'):
    return StageMetrics(
        stage_id=stage_id,
        name=f'Stage {stage_id}',
        status=status,
        num_tasks=metrics.total_tasks,
        metrics=metrics
    )


class TestMetricsCalculator(unittest.TestCase):
    """指标计算器测试"""

    def test_percentile(self):
        """测试百分位数计算"""
        values = [1, 2, 3, 4, 5, 6, 7, 8, 9, 10]

        p50 = MetricsCalculator.calculate_percentile(values, 0.5)
        p95 = MetricsCalculator.calculate_percentile(values, 0.95)

        self.assertEqual(p50, 5)
        self.assertEqual(p95, 9)

    def test_distribution(self):
        """测试五数概括"""
        distribution = MetricsCalculator.calculate_distribution([5, 1, 3, 2, 4])
        self.assertEqual(distribution, (1, 2, 3, 4, 5))
        self.assertIsNone(MetricsCalculator.calculate_distribution([]))

    def test_partition_skew_detected(self):
        """最大值12000超过5000且为中位数的12倍"""
        skew = MetricsCalculator.calculate_partition_skew([0, 0, 1000, 0, 12000])
        self.assertTrue(skew.has_partition_skew)
        self.assertEqual(skew.median_task_duration, 1000)
        self.assertEqual(skew.max_task_duration, 12000)

    def test_partition_skew_below_ratio(self):
        """9000/1000=9，未超过10倍"""
        skew = MetricsCalculator.calculate_partition_skew([0, 0, 1000, 0, 9000])
        self.assertFalse(skew.has_partition_skew)
        self.assertEqual(skew.median_task_duration, 1000)
        self.assertEqual(skew.max_task_duration, 9000)

    def test_partition_skew_short_stage(self):
        """最大值不超过5000ms时不判定倾斜"""
        skew = MetricsCalculator.calculate_partition_skew([0, 0, 10, 0, 5000])
        self.assertFalse(skew.has_partition_skew)

    def test_partition_skew_zero_median(self):
        skew = MetricsCalculator.calculate_partition_skew([0, 0, 0, 0, 60000])
        self.assertFalse(skew.has_partition_skew)

    def test_partition_skew_unknown(self):
        """没有分布时无法判断，返回None而不是False"""
        self.assertIsNone(MetricsCalculator.calculate_partition_skew(None))

    def test_partition_skew_malformed_distribution(self):
        """分布不是五个值时同样无法判断"""
        self.assertIsNone(MetricsCalculator.calculate_partition_skew([1, 2, 3]))
        self.assertIsNone(MetricsCalculator.calculate_partition_skew([]))
        self.assertIsNone(MetricsCalculator.calculate_partition_skew([0, 0, 10, 0, 60000, 1]))

    def test_intersect_duration(self):
        self.assertEqual(MetricsCalculator.intersect_duration(0, 1000, 500, 1500), 500)
        self.assertEqual(MetricsCalculator.intersect_duration(500, 1500, 0, 1000), 500)
        self.assertEqual(MetricsCalculator.intersect_duration(0, 1000, 1000, 2000), 0)
        self.assertEqual(MetricsCalculator.intersect_duration(0, 1000, 2000, 3000), 0)
        self.assertEqual(MetricsCalculator.intersect_duration(0, 5000, 1000, 2000), 1000)

    def test_percentage(self):
        """测试百分比限制"""
        self.assertEqual(MetricsCalculator.calculate_percentage(150, 100), 100.0)
        self.assertEqual(MetricsCalculator.calculate_percentage(50, 200), 25.0)
        self.assertEqual(MetricsCalculator.calculate_percentage(50, None), 0.0)
        self.assertEqual(MetricsCalculator.calculate_percentage(50, 0), 0.0)

    def test_duration_calculation(self):
        """测试时长计算"""
        self.assertEqual(MetricsCalculator.calculate_duration(1000000, 2000000), 1000000)
        self.assertEqual(MetricsCalculator.calculate_duration(1000000, None), 0)


class TestMetricsSum(unittest.TestCase):
    """累加指标测试"""

    def test_empty_sum(self):
        self.assertEqual(Metrics.sum([]), Metrics.zero())
        self.assertEqual(Metrics.zero().to_dict()['input_bytes'], 0)

    def test_fieldwise_sum(self):
        a = Metrics(1, 2, 3, 4, 5, 6, 7)
        b = Metrics(10, 20, 30, 40, 50, 60, 70)
        self.assertEqual(Metrics.sum([a, b]), Metrics(11, 22, 33, 44, 55, 66, 77))

    def test_commutative_and_associative(self):
        for seed in range(20):
            a, b, c = make_metrics(seed), make_metrics(seed + 100), make_metrics(seed + 200)
            self.assertEqual(a + b, b + a)
            self.assertEqual((a + b) + c, a + (b + c))
            self.assertEqual(a + Metrics.zero(), a)
            self.assertEqual(Metrics.sum([c, a, b]), Metrics.sum([a, b, c]))


class TestStageAggregator(unittest.TestCase):
    """Stage汇总测试"""

    def setUp(self):
        self.stages = [
            SparkStage(
                stage_id=0, name='scan', status='COMPLETE', num_tasks=4,
                executor_run_time=4000, input_bytes=100, shuffle_write_bytes=50,
                task_duration_distribution=(500, 800, 1000, 1100, 12000)
            ),
            SparkStage(
                stage_id=1, name='cached', status='SKIPPED', num_tasks=200,
                executor_run_time=999, input_bytes=999
            ),
            SparkStage(
                stage_id=2, name='write', status='FAILED', num_tasks=2,
                executor_run_time=300, output_bytes=20, failure_reason='OOM'
            ),
        ]

    def test_skipped_stages_filtered(self):
        store = calculate_stages_store(self.stages)
        self.assertEqual([s.stage_id for s in store], [0, 2])
        self.assertNotIn('SKIPPED', [s.status for s in store])

    def test_metrics_copied(self):
        stage = calculate_stages_store(self.stages)[0]
        self.assertEqual(stage.metrics, Metrics(
            executor_run_time=4000, input_bytes=100, shuffle_write_bytes=50, total_tasks=4
        ))
        self.assertEqual(stage.num_tasks, 4)
        self.assertEqual(stage.name, 'scan')

    def test_skew_fields(self):
        scan, write = calculate_stages_store(self.stages)
        self.assertTrue(scan.has_partition_skew)
        self.assertEqual(scan.median_task_duration, 1000)
        self.assertEqual(scan.max_task_duration, 12000)
        self.assertIsNone(write.has_partition_skew)
        self.assertIsNone(write.max_task_duration)
        self.assertEqual(write.failure_reason, 'OOM')

    def test_malformed_distribution_is_unknown(self):
        stage = SparkStage(
            stage_id=5, name='short', status='COMPLETE', num_tasks=3,
            executor_run_time=100, task_duration_distribution=(1, 2, 3)
        )
        result = calculate_stages_store([stage])[0]
        self.assertIsNone(result.has_partition_skew)
        self.assertIsNone(result.median_task_duration)
        self.assertIsNone(result.max_task_duration)

    def test_empty_input(self):
        self.assertEqual(calculate_stages_store([]), [])


class TestJobAggregator(unittest.TestCase):
    """Job汇总测试"""

    def setUp(self):
        self.m1, self.m2, self.m3 = make_metrics(1), make_metrics(2), make_metrics(3)
        self.stages_store = [
            make_stage_metrics(1, self.m1),
            make_stage_metrics(2, self.m2),
            make_stage_metrics(3, self.m3),
        ]

    def test_sum_of_owned_stages(self):
        metrics = calculate_jobs_metrics([1, 3], self.stages_store)
        self.assertEqual(metrics, self.m1 + self.m3)

    def test_order_independent(self):
        expected = calculate_jobs_metrics([1, 3], self.stages_store)
        self.assertEqual(calculate_jobs_metrics([3, 1], list(reversed(self.stages_store))), expected)

    def test_missing_stage_contributes_zero(self):
        self.assertEqual(calculate_jobs_metrics([1, 42], self.stages_store), self.m1)
        self.assertEqual(calculate_jobs_metrics([], self.stages_store), Metrics.zero())

    def test_jobs_store(self):
        jobs = [SparkJob(job_id=7, name='collect', status='SUCCEEDED', stage_ids=(2, 3))]
        store = calculate_jobs_store(self.stages_store, jobs)
        self.assertEqual(len(store), 1)
        self.assertEqual(store[0].job_id, 7)
        self.assertEqual(store[0].stage_ids, (2, 3))
        self.assertEqual(store[0].metrics, self.m2 + self.m3)


class TestResourceUsageCalculator(unittest.TestCase):
    """资源消耗计算测试"""

    def setUp(self):
        self.calculator = ResourceUsageCalculator(FakeConfig())
        self.executor = ExecutorMetrics(executor_id='1', add_time=0, end_time=1000, total_cores=4)
        self.driver = ExecutorMetrics(
            executor_id='driver', add_time=0, end_time=1000, total_cores=1, role=ExecutorRole.DRIVER
        )

    def test_overlap_usage(self):
        usage = self.calculator.calculate_window_usage(500, 1500, [self.executor])

        core_hour = 2000 / 3600000
        memory_hour = 500 * 4 / 3600000
        self.assertEqual(usage.core_usage_ms, 2000)
        self.assertAlmostEqual(usage.core_hour, core_hour)
        self.assertAlmostEqual(usage.memory_hour, memory_hour)
        self.assertAlmostEqual(
            usage.total_dcu, core_hour * DCU_PER_CORE_HOUR + memory_hour * DCU_PER_MEMORY_GB_HOUR
        )

    def test_dcu_weights(self):
        self.assertEqual(DCU_PER_CORE_HOUR, 0.05)
        self.assertEqual(DCU_PER_MEMORY_GB_HOUR, 0.005)

    def test_driver_memory(self):
        self.assertEqual(self.calculator.memory_gb(self.driver), 2)
        self.assertEqual(self.calculator.memory_gb(self.executor), 4)

    def test_role_derived_from_executor_id(self):
        """未指定role时，executor_id为driver即按Driver内存计算"""
        driver = ExecutorMetrics(executor_id='driver', add_time=0, end_time=1000, total_cores=1)
        self.assertIs(driver.role, ExecutorRole.DRIVER)
        self.assertTrue(driver.is_driver)
        self.assertEqual(self.calculator.memory_gb(driver), 2)
        self.assertIs(self.executor.role, ExecutorRole.EXECUTOR)

        overridden = ExecutorMetrics(
            executor_id='driver', add_time=0, end_time=1000, total_cores=1, role=ExecutorRole.EXECUTOR
        )
        self.assertFalse(overridden.is_driver)
        self.assertEqual(self.calculator.memory_gb(overridden), 4)

    def test_no_overlap(self):
        usage = self.calculator.calculate_window_usage(1000, 2000, [self.executor])
        self.assertEqual(usage.core_usage_ms, 0)
        self.assertEqual(usage.total_dcu, 0)

    def test_variants(self):
        sql = SQLMetrics(execution_id=0, description='q', submission_time=0, duration=1000)

        with_driver, executors_only = self.calculator.calculate_sql_usage_variants(
            sql, [self.driver, self.executor]
        )
        self.assertEqual(with_driver.core_usage_ms, 5000)
        self.assertEqual(executors_only.core_usage_ms, 4000)

        with_driver, executors_only = self.calculator.calculate_sql_usage_variants(sql, [self.driver])
        self.assertEqual(with_driver, executors_only)
        self.assertEqual(executors_only.core_usage_ms, 1000)

    def test_run_usage(self):
        usage = self.calculator.calculate_run_usage(0, 1000, [self.driver, self.executor])
        self.assertEqual(usage.core_usage_ms, 5000)
        self.assertEqual(self.calculator.calculate_run_usage(None, 1000, [self.executor]).total_dcu, 0)


class TestWastedCoresRate(unittest.TestCase):
    """核浪费率测试"""

    def test_rate(self):
        self.assertAlmostEqual(calculate_wasted_cores_rate(2500, 10000), 75.0)

    def test_zero_core_usage(self):
        self.assertEqual(calculate_wasted_cores_rate(2500, 0), 0)

    def test_task_time_exceeds_core_usage(self):
        self.assertEqual(calculate_wasted_cores_rate(20000, 10000), 0.0)

    def test_bounds(self):
        rnd = random.Random(7)
        for _ in range(200):
            rate = calculate_wasted_cores_rate(rnd.randint(0, 10 ** 7), rnd.randint(0, 10 ** 7))
            self.assertGreaterEqual(rate, 0)
            self.assertLessEqual(rate, 100)


if __name__ == '__main__':
    unittest.main()
