from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

import typer

from .config import TestEnvConfig
from .errors import SetupError, TestEnvError
from .testenv import new_test_env

app = typer.Typer(help="Provision and tear down namespace-isolated operator sandboxes.")


def _resolve_config(
    config_file: Optional[Path],
    operator_image: Optional[str],
    splunk_image: Optional[str],
    spark_image: Optional[str],
    skip_teardown: Optional[bool],
    kubectl_cmd: Optional[str],
) -> TestEnvConfig:
    config = TestEnvConfig.from_env()
    if config_file is not None:
        try:
            config = TestEnvConfig.from_file(config_file, base=config)
        except FileNotFoundError as exc:
            raise typer.BadParameter(f"Config file not found: {config_file}") from exc
        except (ValueError, TypeError) as exc:
            raise typer.BadParameter(str(exc)) from exc
    return config.with_overrides(
        operator_image=operator_image,
        splunk_image=splunk_image,
        spark_image=spark_image,
        skip_teardown=skip_teardown,
        kubectl_cmd=kubectl_cmd,
    )


@app.command("config")
def show_config(
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="YAML file with testenv settings."),
    operator_image: Optional[str] = typer.Option(None, help="Operator image to use."),
    splunk_image: Optional[str] = typer.Option(None, help="Splunk enterprise (splunkd) image to use."),
    spark_image: Optional[str] = typer.Option(None, help="Spark image to use."),
    skip_teardown: Optional[bool] = typer.Option(None, "--skip-teardown/--teardown", help="Leave the sandbox in place after use."),
    kubectl_cmd: Optional[str] = typer.Option(None, "--kubectl", help="Kubectl binary to use."),
) -> None:
    config = _resolve_config(config_file, operator_image, splunk_image, spark_image, skip_teardown, kubectl_cmd)
    typer.echo(json.dumps(config.to_dict(), indent=2))


@app.command()
def smoke(
    name: str = typer.Argument(..., help="Base name of the sandbox (DNS-1123 label)."),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="YAML file with testenv settings."),
    operator_image: Optional[str] = typer.Option(None, help="Operator image to use."),
    splunk_image: Optional[str] = typer.Option(None, help="Splunk enterprise (splunkd) image to use."),
    spark_image: Optional[str] = typer.Option(None, help="Spark image to use."),
    skip_teardown: Optional[bool] = typer.Option(None, "--skip-teardown/--teardown", help="Leave the sandbox in place after use."),
    kubectl_cmd: Optional[str] = typer.Option(None, "--kubectl", help="Kubectl binary to use."),
) -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    config = _resolve_config(config_file, operator_image, splunk_image, spark_image, skip_teardown, kubectl_cmd)
    try:
        testenv = new_test_env(name, config)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    except SetupError as exc:
        typer.echo(f"Sandbox {name} failed to provision: {exc.__cause__}", err=True)
        exc.testenv.teardown()
        raise typer.Exit(code=1)
    except TestEnvError as exc:
        typer.echo(f"Sandbox {name} could not be created: {exc}", err=True)
        raise typer.Exit(code=1)

    typer.echo(f"Sandbox {testenv.name} ready in namespace {testenv.namespace}")
    testenv.teardown()
    if config.skip_teardown:
        typer.echo(f"Left namespace {testenv.namespace} in place")


if __name__ == "__main__":  # pragma: no cover
    app()
