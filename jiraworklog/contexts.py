"""Selection of the active context."""
from __future__ import annotations

import logging
from typing import Optional

from .errors import AmbiguousContextError, ContextNameMismatchError, ContextNotFoundError
from .models import Config, Context

LOGGER = logging.getLogger(__name__)


def resolve(config: Config, requested_name: Optional[str] = None) -> Context:
    """Pick the context a command should run against.

    A config written as a single mapping always yields its context; a name,
    when given, has to match it. A list needs a name unless it holds exactly
    one context. The first context carrying the requested name wins.
    """
    if config.single:
        context = config.contexts[0]
        if requested_name is not None and requested_name != context.name:
            raise ContextNameMismatchError(requested_name, context.name)
        return context

    if requested_name is None:
        if len(config.contexts) == 1:
            return config.contexts[0]
        raise AmbiguousContextError(config.names())

    for context in config.contexts:
        if context.name == requested_name:
            LOGGER.debug("Using context %s (%s)", context.name, context.jira_domain)
            return context
    raise ContextNotFoundError(requested_name)
