# =======================================================================================
# keycustody/workers/__init__.py - Workers Package
# =======================================================================================
from .scan_worker import ScanStation, get_scan_station, start_scan_worker, stop_scan_worker

__all__ = ["ScanStation", "get_scan_station", "start_scan_worker", "stop_scan_worker"]
