# =======================================================================================
# keycustody/views/__init__.py - View Models Package
# =======================================================================================
from .dashboard import DashboardView
from .logs import LogsView
from .registration import RegistrationView

__all__ = ["DashboardView", "LogsView", "RegistrationView"]
