"""reqflow: employee/manager request approval workflow."""

__version__ = "0.1.0"
