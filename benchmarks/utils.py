# benchmarks/utils.py
import os
import sys
import time
import threading
import psutil

# Add the project root to the Python path to allow importing 'tensorlab'
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
from tensorlab import random


def create_operands(shape_left, shape_right, seed=0):
    """Creates the pair of random operands a benchmark multiplies."""
    print(f"Creating operands with shapes {shape_left} @ {shape_right}...")
    left = random(shape_left, seed=seed)
    right = random(shape_right, seed=seed + 1)
    return left, right


class ResourceMonitor(threading.Thread):
    """A thread that monitors CPU and memory usage of a process."""
    def __init__(self, process, interval=0.1):
        super().__init__(daemon=True)
        self.process = process
        self.interval = interval
        self.running = True
        self.peak_memory_mb = 0
        self.cpu_percents = []

    def run(self):
        while self.running:
            try:
                # Resident Set Size
                memory_mb = self.process.memory_info().rss / (1024 * 1024)
                self.peak_memory_mb = max(self.peak_memory_mb, memory_mb)

                # cpu_percent blocks for `interval`, so no extra sleep is needed
                self.cpu_percents.append(self.process.cpu_percent(interval=self.interval))
            except (psutil.NoSuchProcess, psutil.AccessDenied):
                break

    def stop(self):
        self.running = False
        self.join()
        avg_cpu = sum(self.cpu_percents) / len(self.cpu_percents) if self.cpu_percents else 0
        return self.peak_memory_mb, avg_cpu


class Benchmark:
    """A context manager to handle timing and resource monitoring for a benchmark run."""
    def __init__(self, description):
        self.description = description
        self.monitor = None
        self.start_time = 0
        self.elapsed = 0
        self.peak_mem = 0
        self.avg_cpu = 0

    def __enter__(self):
        print(f"\n--- Starting: {self.description} ---")
        self.monitor = ResourceMonitor(psutil.Process(os.getpid()))
        self.monitor.start()
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.elapsed = time.perf_counter() - self.start_time
        self.peak_mem, self.avg_cpu = self.monitor.stop()
        print(f"--- Finished: {self.description} in {self.elapsed:.4f} seconds ---")
