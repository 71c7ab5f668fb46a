"""Azure Pipelines template actions for the scaffolder."""

__version__ = "0.1.0"
