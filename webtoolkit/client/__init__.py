"""Outbound HTTP helpers.

Security notes:
- Treat remote responses as untrusted input.
- Callers own (and must close) responses returned by push_json_to_remote.
"""

from .http import default_opener, push_json_to_remote

__all__ = ["default_opener", "push_json_to_remote"]
