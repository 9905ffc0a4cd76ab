"""nvidia_exporter
Prometheus exporter for `nvidia-smi` GPU statistics.
"""

__version__ = "0.1.0"
