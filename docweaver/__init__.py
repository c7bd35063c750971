"""docweaver: LLM-generated Javadoc comments, merged safely into source."""

__version__ = "0.1.0"
