"""Domain entities for internal representation.

These are pure dataclasses (frozen) used by the registry and the
coordinator. They are NOT used for API contracts - use DTOs from the dto
package for that.

Entities should have:
- No JSON serialization logic
- No Pydantic validation
- No I/O
- Pure domain logic only
"""

from .expiry import effective_expiry, extract_timestamp, is_fresh
from .handler import FALLBACK_HANDLER_NAME, Handler, HandlerDefinition, compile_matcher, is_undefined
from .result import GetResult

__all__ = [
    "FALLBACK_HANDLER_NAME",
    "GetResult",
    "Handler",
    "HandlerDefinition",
    "compile_matcher",
    "effective_expiry",
    "extract_timestamp",
    "is_fresh",
    "is_undefined",
]
