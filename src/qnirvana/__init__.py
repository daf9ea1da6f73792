"""
Q Nirvana core - patient queue ordering and ambulance routing.

Priority-ordered consultation queues and shortest-path routing over a
road graph whose travel times change with simulated traffic.
"""

__version__ = "0.1.0"

from qnirvana.core.config import CoreConfig
from qnirvana.service import HospitalCore

__all__ = ["CoreConfig", "HospitalCore", "__version__"]
