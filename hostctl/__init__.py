"""
hostctl.

Command line client for the cloud hosting API.

Packages:
- core: configuration, logging, exceptions, translation
- sdk: HTTP client, endpoints and resource model
- cli: command definitions, input resolution, completion polling, output
"""

__version__ = "0.3.0"
