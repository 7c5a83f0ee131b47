"""CLI entry point for pi-prompt. Uses Click for argument parsing."""

from __future__ import annotations

import logging
import sys

import click

from pi.prompt.autocomplete import AutocompleteBehavior
from pi.prompt.config import ConfigError
from pi.prompt.editor import EXIT_SIGINT
from pi.prompt.history import FileHistory
from pi.prompt.prompt import create_prompt


def prefix_search(words: tuple[str, ...]):
    """Search function matching *words* that start with the query."""

    def search(query: str) -> list[str]:
        return [word for word in words if word.startswith(query)]

    return search


@click.command()
@click.argument("question", default="")
@click.option("--default", "default", default=None, help="Answer used when the input is empty")
@click.option("--hide", is_flag=True, help="Do not show what is typed")
@click.option("--echo", default=None, help="Mask each typed character with this string")
@click.option(
    "--history-file",
    type=click.Path(dir_okay=False),
    default=None,
    help="Load history from this file and save the answer to it",
)
@click.option(
    "--complete",
    "words",
    multiple=True,
    help="Autocomplete candidate (repeatable)",
)
@click.option(
    "--behavior",
    type=click.Choice([b.value for b in AutocompleteBehavior], case_sensitive=False),
    default=None,
    help="Autocomplete behavior",
)
@click.option("--fill", is_flag=True, help="Fill in the common prefix of suggestions")
@click.option("--sticky", is_flag=True, help="Suggest on every keystroke")
@click.option("--columns", type=click.IntRange(min=1), default=None, help="Suggestion table columns")
@click.option("--sigint/--no-sigint", default=False, help="Exit with status 130 on Ctrl-C")
@click.option("--eot/--no-eot", default=False, help="Exit on Ctrl-D at an empty line")
@click.option(
    "--log-level",
    default="warning",
    type=click.Choice(["debug", "info", "warning", "error"]),
)
def main(
    question,
    default,
    hide,
    echo,
    history_file,
    words,
    behavior,
    fill,
    sticky,
    columns,
    sigint,
    eot,
    log_level,
):
    """Ask QUESTION on the terminal and print the answer."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    config: dict = {"sigint": sigint, "eot": eot}
    if hide:
        config["echo"] = ""
    elif echo is not None:
        config["echo"] = echo

    history = FileHistory(history_file) if history_file else None
    if history is not None:
        config["history"] = history

    if words:
        config["autocomplete"] = {
            "search_fn": prefix_search(words),
            "behavior": behavior,
            "fill": fill,
            "sticky": sticky,
            "suggest_col_count": columns,
        }

    try:
        prompt = create_prompt(config)
    except ConfigError as exc:
        click.echo(f"Invalid configuration: {exc}", err=True)
        sys.exit(2)

    answer = prompt(question, default)
    if answer is None:
        sys.exit(EXIT_SIGINT)

    if history is not None:
        history.save()
    click.echo(answer)


if __name__ == "__main__":
    main()
