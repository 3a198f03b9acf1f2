"""Config commands -- view and modify global configuration.

Provides the ``articlesearch config`` sub-command group for reading,
updating, and resetting the user's configuration file
(:class:`~articlesearch.models.GlobalConfig`).  The most common use is
flipping the article cache switch::

    articlesearch config set cache_enabled false
"""

from __future__ import annotations

import typer

from articlesearch.exit_codes import EXIT_INVALID_USAGE
from articlesearch.output import error, info, print_json, success


config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show() -> None:
    """Show current configuration.

    Example::

        articlesearch config show
        articlesearch --json config show
    """
    from articlesearch.config import get_config_dir, load_global_config

    config = load_global_config()
    info(f"Config directory: {get_config_dir()}")
    print_json(config.model_dump(mode="json"))


@config_app.command("set")
def config_set(
    key: str = typer.Argument(
        help="Config key (dot notation, e.g., 'api.timeout')."
    ),
    value: str = typer.Argument(help="Value to set."),
) -> None:
    """Set a configuration value.

    Uses dot notation for nested keys.  The value is coerced to the type
    of the existing field (bool, int, float or str) and the result is
    validated against :class:`~articlesearch.models.GlobalConfig` before
    saving.

    Raises:
        typer.Exit: With code 2 if the key path is invalid, the value
            cannot be coerced, or validation fails.

    Example::

        articlesearch config set cache_enabled false
        articlesearch config set api.timeout 10
        articlesearch config set connectivity.poll_interval 30
    """
    from pydantic import ValidationError

    from articlesearch.config import load_global_config, parse_bool, save_global_config
    from articlesearch.exceptions import ConfigError
    from articlesearch.models import GlobalConfig

    data = load_global_config().model_dump(mode="json")

    keys = key.split(".")
    target = data
    for k in keys[:-1]:
        if k not in target or not isinstance(target[k], dict):
            error(f"Invalid config key: {key}")
            raise typer.Exit(code=EXIT_INVALID_USAGE)
        target = target[k]

    final_key = keys[-1]
    if final_key not in target or isinstance(target[final_key], dict):
        error(f"Unknown config key: {key}")
        raise typer.Exit(code=EXIT_INVALID_USAGE)

    current = target[final_key]
    try:
        if isinstance(current, bool):
            coerced: object = parse_bool(value)
        elif isinstance(current, int):
            coerced = int(value)
        elif isinstance(current, float):
            coerced = float(value)
        else:
            coerced = value
    except (ConfigError, ValueError):
        error(f"Expected {type(current).__name__} for {key}, got: {value}")
        raise typer.Exit(code=EXIT_INVALID_USAGE) from None

    target[final_key] = coerced

    try:
        new_config = GlobalConfig.model_validate(data)
    except ValidationError as exc:
        error(f"Validation error: {exc}")
        raise typer.Exit(code=EXIT_INVALID_USAGE) from None

    save_global_config(new_config)
    success(f"Set {key} = {coerced}")


@config_app.command("reset")
def config_reset(ctx: typer.Context) -> None:
    """Reset configuration to defaults.

    Asks for confirmation unless ``--force`` is active.

    Example::

        articlesearch config reset
        articlesearch --force config reset
    """
    from articlesearch.config import save_global_config
    from articlesearch.models import GlobalConfig

    force = ctx.obj.get("force", False) if ctx.obj else False
    if not force:
        confirmed = typer.confirm("Reset all config to defaults?")
        if not confirmed:
            info("Cancelled.")
            raise typer.Exit()

    save_global_config(GlobalConfig())
    success("Configuration reset to defaults.")
