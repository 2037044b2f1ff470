"""Service Management long-running operation toolkit.

Tracks asynchronous management operations to completion and uploads
payloads through a register-then-upload flow that rolls back the
registered entity when the upload fails.
"""

__version__ = "0.1.0"
