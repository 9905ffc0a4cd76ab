"""nvidia_exporter.collector
nvidia-smi sampling and the gauges it feeds.

Modules
-------
stats   : the fixed list of nvidia-smi fields and the gauges they map to
parsers : helpers to build the nvidia-smi command and turn its CSV lines into samples
registry: thread-safe gauge store shared by the sampler and the HTTP app
poller  : the sampler thread that owns the `nvidia-smi -l` subprocess
"""

__all__ = ["stats", "parsers", "registry", "poller"]
