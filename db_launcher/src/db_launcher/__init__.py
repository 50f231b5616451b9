"""
Database Service Launcher

Bootstraps the storage file of a pre-built database service binary,
hands the container's primary process over to it, and assembles the
two-stage container image that ships both.
"""

__version__ = "0.1.0"
__author__ = "Systems Engineering Portfolio"
