"""pi-prompt: Synchronous terminal prompt with in-place line editing."""

# Autocomplete
from pi.prompt.autocomplete import (
    AutocompleteBehavior,
    AutocompleteEngine,
    common_starting_substring,
    layout_results,
)

# Configuration
from pi.prompt.config import (
    DEFAULT_CONFIG,
    AutocompleteConfig,
    ConfigError,
    PromptConfig,
    merge_config,
    resolve_config,
)

# Cursor tracking
from pi.prompt.cursor import CursorPosition, CursorTracker

# Line editor
from pi.prompt.editor import EditorState, LineEditor

# History
from pi.prompt.history import FileHistory, HistoryNavigator, HistoryProvider

# Key codes
from pi.prompt.keys import Key, KeyCode

# Prompt
from pi.prompt.prompt import Prompt, create_prompt

# Table rendering
from pi.prompt.table import ColumnTableRenderer, TableRenderer

# Terminal
from pi.prompt.terminal import TerminalIO, TtyTerminal

__all__ = [
    # Autocomplete
    "AutocompleteBehavior",
    "AutocompleteEngine",
    "common_starting_substring",
    "layout_results",
    # Configuration
    "DEFAULT_CONFIG",
    "AutocompleteConfig",
    "ConfigError",
    "PromptConfig",
    "merge_config",
    "resolve_config",
    # Cursor tracking
    "CursorPosition",
    "CursorTracker",
    # Line editor
    "EditorState",
    "LineEditor",
    # History
    "FileHistory",
    "HistoryNavigator",
    "HistoryProvider",
    # Key codes
    "Key",
    "KeyCode",
    # Prompt
    "Prompt",
    "create_prompt",
    # Table rendering
    "ColumnTableRenderer",
    "TableRenderer",
    # Terminal
    "TerminalIO",
    "TtyTerminal",
]
