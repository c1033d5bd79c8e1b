"""SecOps Warden: scheduled security analysis with human-in-the-loop approval."""

__version__ = "0.1.0"
