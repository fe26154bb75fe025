from .benchmark_utils import BenchmarkResult, run_benchmark

__all__ = ["BenchmarkResult", "run_benchmark"]
