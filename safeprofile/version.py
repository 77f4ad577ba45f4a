# Package version, shared by the CLI and the SARIF tool driver.

__version__ = "0.1.0"
