"""
speedrank - Rank endpoints by measured latency.

Probe a list of domains, keep the fastest first, read it back later
without probing again.
"""

from speedrank.config import SpeedTestConfig, load_config
from speedrank.manager import SpeedTestManager
from speedrank.models.result import ProbeOutcome, ProbeResult, ProbeStatus

__version__ = "0.1.0"
__all__ = [
    "ProbeOutcome",
    "ProbeResult",
    "ProbeStatus",
    "SpeedTestConfig",
    "SpeedTestManager",
    "__version__",
    "load_config",
]
