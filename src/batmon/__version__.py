"""Version information for batmon"""

__version__ = "1.1.0"
__version_info__ = (1, 1, 0)
__release_date__ = "2026-10-12"
