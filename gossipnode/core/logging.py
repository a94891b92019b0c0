"""Central logging configuration helpers for gossipnode.

Stdout carries the wire protocol, so every handler installed here writes to
stderr. Each record carries the id of the node that emitted it in
``extra["node"]`` so the interleaved output of a local cluster stays readable.
"""

from __future__ import annotations

import sys
from collections.abc import Iterable, Mapping
from typing import TextIO

from loguru import logger

UNASSIGNED_NODE = "-"

DEFAULT_LOG_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {extra[node]: <6} | "
    "{name}:{function}:{line} - {message}"
)


def node_logger(node_id: str | None):
    """Return a logger bound to ``node_id`` (or the unassigned marker)."""
    return logger.bind(node=node_id or UNASSIGNED_NODE)


def _in_scopes(record_name: str, scopes: tuple[str, ...]) -> bool:
    for scope in scopes:
        if record_name.startswith(scope):
            return True
        if not scope.startswith("gossipnode.") and record_name.startswith(
            f"gossipnode.{scope}"
        ):
            return True
    return False


def configure_logging(
    level: str,
    *,
    debug_scopes: Iterable[str] = (),
    colorize: bool = False,
    sink: TextIO | None = None,
) -> tuple[int, ...]:
    """Configure loguru for a node process.

    ``debug_scopes`` enables DEBUG output for selected module prefixes
    (``"gossip"`` matches ``gossipnode.gossip.*``) without lowering the
    global level.
    """
    logger.remove()
    logger.configure(extra={"node": UNASSIGNED_NODE})
    target = sink if sink is not None else sys.stderr

    handler_ids: list[int] = [
        logger.add(
            target,
            level=level,
            format=DEFAULT_LOG_FORMAT,
            colorize=colorize,
        )
    ]

    scopes = tuple(scope.strip() for scope in debug_scopes if scope.strip())
    if scopes and level.upper() != "DEBUG":

        def _debug_filter(record: object) -> bool:
            if not isinstance(record, Mapping):
                return False
            if getattr(record.get("level"), "name", None) != "DEBUG":
                return False
            return _in_scopes(record.get("name", "") or "", scopes)

        handler_ids.append(
            logger.add(
                target,
                level="DEBUG",
                format=DEFAULT_LOG_FORMAT,
                colorize=colorize,
                filter=_debug_filter,
            )
        )

    return tuple(handler_ids)
