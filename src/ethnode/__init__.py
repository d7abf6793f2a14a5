"""ethnode - Ethereum node provisioning"""

__version__ = "0.1.0"
