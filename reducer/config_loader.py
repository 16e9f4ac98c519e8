"""
配置加载模块
"""

import os
import re
from typing import Any, Dict

import yaml


DEFAULT_CONFIG_PATH = './config.yaml'
DEFAULT_OUTPUT_PATH = '/tmp/spark-metrics-export/snapshot.json'

DEFAULT_DRIVER_MEMORY = '1g'
DEFAULT_EXECUTOR_MEMORY = '1g'
MEMORY_OVERHEAD_FACTOR = 0.1
MIN_MEMORY_OVERHEAD_BYTES = 384 * 1024 * 1024

_MEMORY_UNITS = {
    '': 1,
    'b': 1,
    'k': 1024,
    'm': 1024 ** 2,
    'g': 1024 ** 3,
    't': 1024 ** 4,
    'p': 1024 ** 5,
}
_MEMORY_PATTERN = re.compile(r'^\s*(\d+(?:\.\d+)?)\s*([kmgtp]?b?)\s*$', re.IGNORECASE)


def parse_memory_string(value, default_unit='') -> int:
    """
    解析JVM风格的内存配置（如 512m、4g、1t，纯数字按default_unit）
    :return: 字节数
    """
    if isinstance(value, (int, float)):
        return int(value * _MEMORY_UNITS[default_unit])
    match = _MEMORY_PATTERN.match(str(value))
    if not match:
        raise ValueError(f"内存配置格式错误: {value}")
    number, unit = match.groups()
    unit = unit.lower()
    if not unit:
        unit = default_unit
    elif unit != 'b':
        unit = unit.rstrip('b')
    return int(float(number) * _MEMORY_UNITS[unit])


class ReducerConfig:
    """指标计算配置类"""

    def __init__(self, config_dict: Dict[str, Any], spark_conf: Dict[str, str]):
        """
        初始化配置
        :param config_dict: YAML配置字典
        :param spark_conf: 被分析应用的Spark配置字典
        """
        self.config = config_dict
        self.spark_conf = spark_conf

        # 内存配置：YAML显式指定优先，否则按Spark配置推导
        memory_config = config_dict.get('memory', {}) or {}
        if memory_config.get('driver_memory_bytes') is not None:
            self.driver_memory_bytes = int(memory_config['driver_memory_bytes'])
        else:
            self.driver_memory_bytes = self._driver_memory_from_spark_conf()

        if memory_config.get('executor_container_memory_bytes') is not None:
            self.executor_container_memory_bytes = int(memory_config['executor_container_memory_bytes'])
        else:
            self.executor_container_memory_bytes = self._executor_container_memory_from_spark_conf()

        # 导出配置
        export_config = config_dict.get('export', {}) or {}
        self.output_path = export_config.get('output_path', DEFAULT_OUTPUT_PATH)

    def _driver_memory_from_spark_conf(self):
        # spark.driver.memory 不带单位时按MB解释
        return parse_memory_string(self.spark_conf.get('spark.driver.memory', DEFAULT_DRIVER_MEMORY), 'm')

    def _executor_container_memory_from_spark_conf(self):
        """Executor容器内存 = 堆内存 + overhead + PySpark内存"""
        executor_memory = parse_memory_string(
            self.spark_conf.get('spark.executor.memory', DEFAULT_EXECUTOR_MEMORY), 'm'
        )
        overhead_factor = float(self.spark_conf.get('spark.executor.memoryOverheadFactor', MEMORY_OVERHEAD_FACTOR))
        if self.spark_conf.get('spark.executor.memoryOverhead'):
            overhead = parse_memory_string(self.spark_conf['spark.executor.memoryOverhead'], 'm')
        else:
            overhead = max(MIN_MEMORY_OVERHEAD_BYTES, int(executor_memory * overhead_factor))
        pyspark_memory = 0
        if self.spark_conf.get('spark.executor.pyspark.memory'):
            pyspark_memory = parse_memory_string(self.spark_conf['spark.executor.pyspark.memory'], 'm')
        return executor_memory + overhead + pyspark_memory

    def validate(self):
        """验证配置完整性"""
        errors = []

        if self.driver_memory_bytes <= 0:
            errors.append("Driver内存必须大于0（driver_memory_bytes）")

        if self.executor_container_memory_bytes <= 0:
            errors.append("Executor容器内存必须大于0（executor_container_memory_bytes）")

        if not self.output_path:
            errors.append("缺少导出路径配置（output_path）")

        if errors:
            raise ValueError(f"配置验证失败:\n" + "\n".join(errors))

        return True

    def __str__(self):
        """打印配置信息"""
        return f"""
=== 指标计算配置 ===
Driver内存: {self.driver_memory_bytes} bytes
Executor容器内存: {self.executor_container_memory_bytes} bytes
导出路径: {self.output_path}
================
"""


class ConfigLoader:
    """配置加载器"""

    @staticmethod
    def load(config_path=None, spark_conf=None):
        """
        加载配置
        :param config_path: 配置文件路径（可选，缺省时使用 ./config.yaml，不存在则全部取默认值）
        :param spark_conf: 被分析应用的Spark配置
        :return: ReducerConfig对象
        """
        if config_path:
            config_dict = ConfigLoader._load_yaml(config_path)
        elif os.path.exists(DEFAULT_CONFIG_PATH):
            config_dict = ConfigLoader._load_yaml(DEFAULT_CONFIG_PATH)
        else:
            config_dict = {}

        config = ReducerConfig(config_dict or {}, spark_conf or {})

        # 验证配置
        config.validate()

        return config

    @staticmethod
    def _load_yaml(file_path):
        """加载YAML配置文件"""
        if not os.path.exists(file_path):
            raise FileNotFoundError(f"配置文件不存在: {file_path}")

        with open(file_path, 'r', encoding='utf-8') as f:
            return yaml.safe_load(f)
