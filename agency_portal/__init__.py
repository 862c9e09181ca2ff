"""Agency portal back office: tabular client/employee import and idle session logout."""

__version__ = "0.1.0"
