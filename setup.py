"""
Setup script for GCSkewFinder.

Installs the SkewFinder package:
- SequenceSource / skew_engine / CacheStore / BatchDispatcher core
- matplotlib skew plot renderer
- pandas batch summaries

Usage:
    pip install .
    pip install -e ".[test]"
"""

from setuptools import setup, find_packages

setup(
    name='GCSkewFinder',
    version='2025.1',
    description='Cached, concurrent cumulative G-C skew curves for DNA sequences',
    author='Dr. Venkata Rajesh Yella',
    license='MIT',
    packages=find_packages(include=['SkewFinder', 'SkewFinder.*']),
    py_modules=['benchmark_parallel_skew'],
    python_requires='>=3.8',
    install_requires=[
        'numpy>=1.24',
        'pandas>=1.5',
        'matplotlib>=3.6',
        'requests>=2.28',
    ],
    extras_require={
        'test': ['pytest>=7.0'],
    },
    zip_safe=False,
)
