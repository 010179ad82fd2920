"""AIA: an AI-powered terminal assistant that suggests, explains and runs shell commands."""

__version__ = "0.1.0"
