"""Prompt configuration models.

Every field is optional: ``None`` means *not set here*, and
:func:`merge_config` fills unset fields from a fallback. The usual chain
is per-call override, then the ``create_prompt`` config, then
:data:`DEFAULT_CONFIG`.

Field names are snake_case; the camelCase spellings (``defaultResponse``,
``searchFn``, ``suggestColCount``, ``triggerKey``) are accepted as aliases.
"""

from __future__ import annotations

from typing import Any, Callable, Mapping, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from pi.prompt.autocomplete import AutocompleteBehavior
from pi.prompt.history import HistoryProvider
from pi.prompt.keys import KeyCode, normalize_key_code


class ConfigError(ValueError):
    """Raised when a prompt configuration fails validation."""


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class AutocompleteConfig(BaseModel):
    model_config = ConfigDict(
        populate_by_name=True,
        arbitrary_types_allowed=True,
        extra="forbid",
    )

    search_fn: Optional[Callable[[str], Sequence[str]]] = Field(
        default=None, alias="searchFn"
    )
    behavior: Optional[AutocompleteBehavior] = None
    fill: Optional[bool] = None
    sticky: Optional[bool] = None
    suggest_col_count: Optional[int] = Field(
        default=None, ge=1, alias="suggestColCount"
    )
    trigger_key: Optional[int] = Field(default=None, alias="triggerKey")

    @field_validator("behavior", mode="before")
    @classmethod
    def _lowercase_behavior(cls, value: Any) -> Any:
        if isinstance(value, str) and not isinstance(value, AutocompleteBehavior):
            return value.lower()
        return value

    @field_validator("trigger_key", mode="before")
    @classmethod
    def _normalize_trigger_key(cls, value: Any) -> Any:
        if value is None or isinstance(value, bool):
            return value
        if isinstance(value, (int, str)):
            return normalize_key_code(value)
        return value


class PromptConfig(BaseModel):
    model_config = ConfigDict(
        populate_by_name=True,
        arbitrary_types_allowed=True,
        extra="forbid",
    )

    # Mask string drawn once per typed character; "" hides input entirely
    echo: Optional[str] = None
    eot: Optional[bool] = None
    sigint: Optional[bool] = None
    default_response: Optional[str] = Field(default=None, alias="defaultResponse")
    history: Any = None
    autocomplete: Optional[AutocompleteConfig] = None

    @field_validator("history")
    @classmethod
    def _check_history(cls, value: Any) -> Any:
        if value is not None and not isinstance(value, HistoryProvider):
            raise ValueError(
                "history must provide at_start, at_penultimate, past_end, at_end, "
                "prev, next, reset, push and save"
            )
        return value

    @property
    def masked(self) -> bool:
        return self.echo is not None


ConfigLike = Union[PromptConfig, Mapping[str, Any], None]

DEFAULT_CONFIG = PromptConfig(
    eot=False,
    sigint=False,
    autocomplete=AutocompleteConfig(
        behavior=AutocompleteBehavior.CYCLE,
        fill=False,
        sticky=False,
        suggest_col_count=3,
        trigger_key=int(KeyCode.TAB),
    ),
)


# ---------------------------------------------------------------------------
# Resolution and merging
# ---------------------------------------------------------------------------


def resolve_config(config: ConfigLike) -> PromptConfig:
    """Validate *config* into a :class:`PromptConfig`.

    Accepts ``None``, a mapping (snake_case or camelCase keys) or a model.
    """
    if config is None:
        return PromptConfig()
    if isinstance(config, PromptConfig):
        return config
    if not isinstance(config, Mapping):
        raise ConfigError(
            f"config must be a PromptConfig or a mapping, got {type(config).__name__}"
        )
    try:
        return PromptConfig.model_validate(dict(config))
    except ValidationError as exc:
        raise ConfigError(str(exc)) from exc


def _pick(primary: Any, fallback: Any) -> Any:
    return primary if primary is not None else fallback


def merge_autocomplete(
    primary: AutocompleteConfig | None,
    fallback: AutocompleteConfig | None,
) -> AutocompleteConfig | None:
    if primary is None:
        return fallback
    if fallback is None:
        return primary
    return AutocompleteConfig(
        search_fn=_pick(primary.search_fn, fallback.search_fn),
        behavior=_pick(primary.behavior, fallback.behavior),
        fill=_pick(primary.fill, fallback.fill),
        sticky=_pick(primary.sticky, fallback.sticky),
        suggest_col_count=_pick(primary.suggest_col_count, fallback.suggest_col_count),
        trigger_key=_pick(primary.trigger_key, fallback.trigger_key),
    )


def merge_config(primary: PromptConfig, fallback: PromptConfig) -> PromptConfig:
    """Field-wise merge: *primary* wins wherever it is not ``None``."""
    return PromptConfig(
        echo=_pick(primary.echo, fallback.echo),
        eot=_pick(primary.eot, fallback.eot),
        sigint=_pick(primary.sigint, fallback.sigint),
        default_response=_pick(primary.default_response, fallback.default_response),
        history=_pick(primary.history, fallback.history),
        autocomplete=merge_autocomplete(primary.autocomplete, fallback.autocomplete),
    )
