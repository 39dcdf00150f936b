"""Handler registry.

Holds named handler definitions and resolves each key to exactly one
handler: the first registered handler whose matcher accepts the key, or
the fallback handler ``"none"`` when nothing matches.
"""

import re
from dataclasses import replace

import structlog

from stash_cache.codecs import codec_for
from stash_cache.config import settings
from stash_cache.entities import FALLBACK_HANDLER_NAME, Handler, HandlerDefinition, compile_matcher
from stash_cache.errors import InvalidHandlerError, UnknownCodecError, UnroutableKeyError

logger = structlog.get_logger(__name__)


class HandlerRegistry:
    """Registry of key handlers, resolved in registration order.

    The fallback handler always exists. It has no matcher and no refresh
    method, so a miss on an unclassified key is a terminal failure. A
    caller may replace it by registering a handler named ``"none"``.

    Example:
        ```python
        registry = HandlerRegistry()
        registry.register(
            "user",
            HandlerDefinition(matcher=r"^user:", type="json", expiry_seconds=100),
        )
        registry.resolve("user:1").name   # "user"
        registry.resolve("x:1").name      # "none"
        ```
    """

    def __init__(self, strict_codecs: bool | None = None) -> None:
        """Initialize the registry with only the fallback handler.

        Args:
            strict_codecs: Reject unknown codec type tags instead of falling
                back to verbatim storage. Defaults to settings.
        """
        self._strict_codecs = settings.strict_codecs if strict_codecs is None else strict_codecs
        self._handlers: dict[str, Handler] = {}
        self._fallback: Handler | None = Handler(name=FALLBACK_HANDLER_NAME)

    def register(
        self,
        name: str,
        definition: HandlerDefinition | None = None,
        **fields,
    ) -> None:
        """Store or replace a named handler.

        Re-registering an existing name replaces its definition but keeps
        its original position in resolution order.

        Args:
            name: Unique handler name ("none" replaces the fallback)
            definition: The handler definition. If None, one is built from
                the keyword arguments.
            **fields: HandlerDefinition fields, used when definition is None

        Raises:
            TypeError: If both a definition and keyword fields are given, or
                the matcher is neither a regex nor a callable
            InvalidHandlerError: If the matcher regex does not compile or
                expiry_seconds is negative
            UnknownCodecError: If strict codecs are enabled and the
                definition names an unknown codec type
        """
        if definition is None:
            definition = HandlerDefinition(**fields)
        elif fields:
            raise TypeError("pass either a HandlerDefinition or keyword fields, not both")

        handler = self._build(name, definition)

        if name == FALLBACK_HANDLER_NAME:
            if handler.matcher is not None:
                logger.warning("fallback_matcher_ignored", handler=name)
                handler = replace(handler, matcher=None)
            self._fallback = handler
        else:
            self._handlers[name] = handler

        logger.debug(
            "handler_registered",
            handler=name,
            codec=handler.codec,
            can_refresh=handler.can_refresh,
        )

    def _build(self, name: str, definition: HandlerDefinition) -> Handler:
        if definition.expiry_seconds is not None and definition.expiry_seconds < 0:
            raise InvalidHandlerError(name, f"expiry_seconds must be >= 0, got {definition.expiry_seconds}")

        try:
            matcher = compile_matcher(definition.matcher)
        except re.error as e:
            raise InvalidHandlerError(name, f"bad matcher pattern: {e}") from e

        encode = definition.encode
        decode = definition.decode
        codec_name: str | None = None

        if definition.type is not None:
            codec = codec_for(definition.type)
            if codec is None:
                tag = getattr(definition.type, "value", definition.type)
                if self._strict_codecs:
                    raise UnknownCodecError(name, str(tag))
                logger.warning("unknown_codec", handler=name, type=str(tag))
            else:
                codec_name = codec.name
                encode = encode or codec.encode
                decode = decode or codec.decode

        return Handler(
            name=name,
            matcher=matcher,
            encode=encode,
            decode=decode,
            expiry_seconds=definition.expiry_seconds,
            expiry_field=definition.expiry_field,
            allow_undefined=definition.allow_undefined,
            refresh=definition.refresh,
            codec=codec_name,
        )

    def resolve(self, key: str) -> Handler:
        """Find the handler for a key.

        Args:
            key: The cache key

        Returns:
            The first registered handler whose matcher accepts the key,
            otherwise the fallback handler

        Raises:
            UnroutableKeyError: If nothing matches and no fallback exists
        """
        for handler in self._handlers.values():
            if handler.matches(key):
                return handler

        if self._fallback is None:
            raise UnroutableKeyError(key)
        return self._fallback

    def get(self, name: str) -> Handler | None:
        """Look up a handler by name (including the fallback)."""
        if name == FALLBACK_HANDLER_NAME:
            return self._fallback
        return self._handlers.get(name)

    def names(self) -> list[str]:
        """Return registered handler names in resolution order, fallback last."""
        return [*self._handlers, FALLBACK_HANDLER_NAME]

    @property
    def fallback(self) -> Handler | None:
        """Get the fallback handler."""
        return self._fallback

    def __contains__(self, name: object) -> bool:
        return name == FALLBACK_HANDLER_NAME or name in self._handlers

    def __len__(self) -> int:
        return len(self._handlers) + 1
