"""
Job指标聚合模块
"""

from typing import Iterable, List, Sequence

from models.stage_metrics import JobMetrics, Metrics, SparkJob, StageMetrics


def calculate_jobs_metrics(stage_ids: Sequence[int], stages_store: Iterable[StageMetrics]) -> Metrics:
    """
    汇总Job下所有Stage的指标
    不在stages_store中的Stage（未上报或已跳过）不参与计算
    :param stage_ids: Job包含的Stage ID
    :param stages_store: Stage指标列表
    :return: 求和后的指标
    """
    stage_id_set = set(stage_ids)
    return Metrics.sum(
        stage.metrics for stage in stages_store
        if stage.stage_id in stage_id_set
    )


def calculate_jobs_store(stages_store: Sequence[StageMetrics], jobs: Iterable[SparkJob]) -> List[JobMetrics]:
    """转换为Job指标列表"""
    return [
        JobMetrics(
            job_id=job.job_id,
            name=job.name,
            description=job.description,
            status=job.status,
            stage_ids=tuple(job.stage_ids),
            metrics=calculate_jobs_metrics(job.stage_ids, stages_store)
        )
        for job in jobs
    ]
