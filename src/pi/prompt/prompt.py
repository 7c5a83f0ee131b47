"""Public entry point: ``create_prompt`` and the :class:`Prompt` callable.

Typical use::

    prompt = create_prompt({"sigint": True})
    name = prompt("Name: ", "anonymous")
    password = prompt.hide("Password: ")
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from pi.prompt.config import (
    DEFAULT_CONFIG,
    ConfigLike,
    PromptConfig,
    merge_config,
    resolve_config,
)
from pi.prompt.editor import LineEditor
from pi.prompt.history import HistoryProvider
from pi.prompt.table import TableRenderer
from pi.prompt.terminal import TerminalIO, TtyTerminal

logger = logging.getLogger(__name__)


class Prompt:
    """Blocking line reader. Call it with a question to get the answer.

    ``prompt(question, default)`` returns *default* for an empty answer;
    ``prompt(question, overrides)`` or ``prompt(question, default, overrides)``
    applies per-call configuration on top of the prompt's own.
    """

    def __init__(
        self,
        config: PromptConfig,
        terminal: TerminalIO | None = None,
        table_renderer: TableRenderer | None = None,
    ) -> None:
        self.config = config
        self.terminal = terminal if terminal is not None else TtyTerminal()
        self.table_renderer = table_renderer
        # Last history provider a call ran with, for callers that want to save()
        self.history: HistoryProvider | None = config.history

    def __call__(
        self,
        question: str = "",
        default_or_config: str | ConfigLike = None,
        config_override: ConfigLike = None,
    ) -> str | None:
        default: str | None = None
        layers: list[PromptConfig] = []
        if config_override is not None:
            layers.append(resolve_config(config_override))
        if isinstance(default_or_config, str):
            default = default_or_config
        elif default_or_config is not None:
            layers.append(resolve_config(default_or_config))

        config = self.config
        for layer in reversed(layers):
            config = merge_config(layer, config)

        if config.history is not None:
            self.history = config.history

        answer = LineEditor(self.terminal, question, config, self.table_renderer).run()
        if answer is None:
            return None
        return answer or default or config.default_response or ""

    def hide(self, question: str = "") -> str | None:
        """Ask *question* without showing what is typed."""
        return self(question, {"echo": ""})


def create_prompt(
    config: PromptConfig | Mapping[str, Any] | None = None,
    *,
    terminal: TerminalIO | None = None,
    table_renderer: TableRenderer | None = None,
) -> Prompt:
    """Build a :class:`Prompt` whose unset options fall back to the defaults.

    Raises :class:`~pi.prompt.config.ConfigError` if *config* is invalid.
    """
    resolved = merge_config(resolve_config(config), DEFAULT_CONFIG)
    logger.debug("Created prompt with config %r", resolved)
    return Prompt(resolved, terminal=terminal, table_renderer=table_renderer)
