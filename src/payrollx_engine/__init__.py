"""PayrollX payroll run processing engine."""

__version__ = "1.0.0"
