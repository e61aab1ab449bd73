"""
ATP Explorer - interactive AT Protocol XRPC client

Terminal client for browsing the XRPC command catalog, entering parameters,
dispatching requests and reviewing past invocations.
"""

__version__ = "0.1.0"
__author__ = "ATP Explorer Contributors"

from atp_explorer.session import SessionContext, SessionController

__all__ = ["SessionContext", "SessionController", "__version__"]
