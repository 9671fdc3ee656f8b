"""keyrotator - cloud service-account key rotation."""

__version__ = "0.1.0"
__author__ = "keyrotator maintainers"
