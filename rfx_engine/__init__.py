"""RFx Engine: summarization and citation-grounded generation for RFI/RFP responses."""

__version__ = "0.1.0"
