"""linkscan: submit URLs to a malware-scanning service and summarise the verdict."""

__version__ = "0.1.0"
