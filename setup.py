"""
Spark Metrics Reducer - 安装配置
"""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as f:
    long_description = f.read()

setup(
    name="spark-metrics-reducer",
    version="1.0.0",
    author="Asp BigData Team",
    description="Spark运行指标聚合工具，用于计算SQL级别的资源消耗、DCU与数据倾斜",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["reduce_spark_metrics"],
    python_requires=">=3.7",
    install_requires=[
        "pyyaml>=5.4.0",
    ],
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Topic :: Software Development :: Libraries",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.7",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
    ],
    entry_points={
        'console_scripts': [
            'reduce-spark-metrics=reduce_spark_metrics:main',
        ],
    },
)
