"""Command-line interface for the closefit regression pipeline."""

from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

if TYPE_CHECKING:
    from closefit.config.settings import PipelineConfig

app = typer.Typer(
    name="closefit",
    help="Linear regression analysis of closing prices.",
    no_args_is_help=True,
)

console = Console()

ConfigOption = Annotated[
    Path | None,
    typer.Option(
        "--config",
        "-c",
        help="Path to configuration YAML file.",
        exists=True,
        dir_okay=False,
    ),
]
InputOption = Annotated[
    Path | None,
    typer.Option(
        "--input",
        "-i",
        help="Input table (CSV, Excel or Parquet). Overrides data.input_path.",
    ),
]
TargetOption = Annotated[
    str | None,
    typer.Option("--target", "-t", help="Target column. Overrides data.target_column."),
]
LogLevelOption = Annotated[
    str | None,
    typer.Option("--log-level", help="Log level (DEBUG, INFO, WARNING, ERROR)."),
]


def _resolve_config(
    config: Path | None,
    input_path: Path | None,
    **overrides: object,
) -> "PipelineConfig":
    """Load the YAML config (or start from defaults) and apply CLI overrides."""
    from closefit.config.loader import build_config, load_config
    from closefit.utils.logging import configure_logging

    if config is not None:
        pipeline_config = load_config(config)
    elif input_path is not None:
        pipeline_config = build_config({"data": {"input_path": input_path}})
    else:
        console.print("[red]Error: provide --config or --input.[/red]")
        raise typer.Exit(code=1)

    pipeline_config = pipeline_config.with_overrides(
        **{"data.input_path": input_path}, **overrides
    )
    configure_logging(
        level=pipeline_config.logging.level,
        json_output=pipeline_config.logging.json_output,
    )
    return pipeline_config


@app.command()
def run(
    config: ConfigOption = None,
    input_path: InputOption = None,
    target: TargetOption = None,
    train_proportion: Annotated[
        float | None,
        typer.Option("--train-proportion", "-p", help="Training share in (0, 1)."),
    ] = None,
    seed: Annotated[
        int | None,
        typer.Option("--seed", "-s", help="Random seed for the train/test split."),
    ] = None,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Root directory for outputs."),
    ] = None,
    mlflow: Annotated[
        bool | None,
        typer.Option("--mlflow/--no-mlflow", help="Log the run to MLflow."),
    ] = None,
    log_level: LogLevelOption = None,
) -> None:
    """Fit the regression model and write predictions, statistics and report."""
    from closefit.errors import ClosefitError
    from closefit.pipeline import run_pipeline

    try:
        pipeline_config = _resolve_config(
            config,
            input_path,
            **{
                "data.target_column": target,
                "split.train_proportion": train_proportion,
                "split.seed": seed,
                "output.output_root": output,
                "mlflow.enabled": mlflow,
                "logging.level": log_level,
            },
        )
    except (ValueError, KeyError) as e:
        console.print(f"[red]Invalid configuration: {escape(str(e))}[/red]")
        raise typer.Exit(code=1) from e

    console.print(f"[blue]Running pipeline on {pipeline_config.data.input_path}[/blue]")
    console.print(f"[dim]Target: {pipeline_config.target_column}[/dim]")

    try:
        result = run_pipeline(pipeline_config)
    except ClosefitError as e:
        console.print(f"[red]Pipeline failed: {escape(str(e))}[/red]")
        raise typer.Exit(code=1) from e

    cleaning = result.prepared.cleaning
    metrics = result.evaluation.metrics

    console.print()
    table = Table(title="Regression Results")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Rows (raw / cleaned)", f"{cleaning.n_input} / {cleaning.n_output}")
    table.add_row("Train / test rows", f"{len(result.split.train)} / {len(result.split.test)}")
    table.add_row("Features", ", ".join(result.features))
    table.add_row("R² (test)", f"{metrics.r2:.4f}")
    table.add_row("RMSE (test)", f"{metrics.rmse:.4f}")
    table.add_row("MAE (test)", f"{metrics.mae:.4f}")
    table.add_row("RMSE (original units)", f"{result.evaluation.original_metrics.rmse:.4f}")
    table.add_row("Prediction at feature means", f"{result.example.value:.4f}")
    console.print(table)

    if cleaning.excessive_loss:
        console.print(
            f"[yellow]⚠ Only {cleaning.retention_ratio:.1%} of rows survived cleaning[/yellow]"
        )
    if result.paths is not None:
        console.print(f"\n[green]Report saved to: {result.paths.report}[/green]")
        console.print(f"[green]Model saved to: {result.paths.model}[/green]")
    if result.mlflow_run_id:
        console.print(f"[dim]MLflow run: {result.mlflow_run_id}[/dim]")


def _parse_values(values: list[str]) -> dict[str, float]:
    record: dict[str, float] = {}
    for item in values:
        name, sep, raw = item.partition("=")
        if not sep or not name.strip():
            msg = f"Expected name=number, got {item!r}"
            raise typer.BadParameter(msg, param_hint="--value")
        try:
            record[name.strip()] = float(raw)
        except ValueError as e:
            msg = f"Value for {name.strip()!r} is not a number: {raw!r}"
            raise typer.BadParameter(msg, param_hint="--value") from e
    return record


@app.command()
def predict(
    model: Annotated[
        Path,
        typer.Option("--model", "-m", help="Path to a saved .joblib model."),
    ],
    value: Annotated[
        list[str] | None,
        typer.Option("--value", "-v", help="Feature value as name=number (repeatable)."),
    ] = None,
    input_path: Annotated[
        Path | None,
        typer.Option("--input", "-i", help="Table of records to predict."),
    ] = None,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="CSV path for table predictions."),
    ] = None,
    log_level: LogLevelOption = None,
) -> None:
    """Predict the target, in original units, for new feature values."""
    from closefit.errors import ClosefitError
    from closefit.ingestion.table import read_table
    from closefit.modeling.persistence import load_model
    from closefit.utils.logging import configure_logging

    configure_logging(level=log_level or "WARNING")

    if bool(value) == (input_path is not None):
        console.print("[red]Error: provide either --value options or --input.[/red]")
        raise typer.Exit(code=1)

    record = _parse_values(value) if value else None

    try:
        predictor = load_model(model).predictor()
        console.print(f"[dim]Model features: {', '.join(predictor.features)}[/dim]")

        if record is not None:
            prediction = predictor.predict(record)
            table = Table(title="Prediction")
            table.add_column("Input", style="cyan")
            table.add_column("Value", style="green")
            for name, number in prediction.inputs.items():
                table.add_row(name, f"{number:.4f}")
            table.add_row(f"{predictor.target} (predicted)", f"{prediction.value:.4f}")
            table.add_row("normalized", f"{prediction.normalized:.4f}")
            console.print(table)
            return

        predictions = predictor.predict_frame(read_table(input_path))
    except ClosefitError as e:
        console.print(f"[red]Prediction failed: {escape(str(e))}[/red]")
        raise typer.Exit(code=1) from e

    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        predictions.to_csv(output, index_label="row")
        console.print(f"[green]Saved {len(predictions)} predictions to: {output}[/green]")
    else:
        console.print(predictions.to_string())


@app.command()
def describe(
    config: ConfigOption = None,
    input_path: InputOption = None,
    target: TargetOption = None,
    log_level: LogLevelOption = None,
) -> None:
    """Show cleaning summary and descriptive statistics without fitting."""
    from closefit.errors import ClosefitError
    from closefit.pipeline import prepare_data

    try:
        pipeline_config = _resolve_config(
            config,
            input_path,
            **{"data.target_column": target, "logging.level": log_level},
        )
        prepared = prepare_data(pipeline_config)
    except (ClosefitError, ValueError, KeyError) as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(code=1) from e

    cleaning = prepared.cleaning
    console.print(
        f"Rows: {cleaning.n_input} raw, {cleaning.n_output} after cleaning "
        f"({cleaning.n_missing_dropped} incomplete, "
        f"{cleaning.n_duplicates_dropped} duplicates removed)"
    )

    table = Table(title="Descriptive Statistics")
    table.add_column("Variable", style="cyan")
    for col in ["mean", "sd", "min", "median", "max", "missing"]:
        table.add_column(col, justify="right")
    for _, row in prepared.statistics.iterrows():
        table.add_row(
            row["variable"],
            f"{row['mean']:.4f}",
            f"{row['sd']:.4f}",
            f"{row['min']:.4f}",
            f"{row['median']:.4f}",
            f"{row['max']:.4f}",
            str(row["missing"]),
        )
    console.print(table)

    if prepared.correlations is not None:
        corr = Table(title="Correlation Matrix")
        corr.add_column("")
        for col in prepared.correlations.columns:
            corr.add_column(str(col), justify="right")
        for name, row in prepared.correlations.iterrows():
            corr.add_row(str(name), *[f"{v:.3f}" for v in row])
        console.print(corr)


@app.command()
def version() -> None:
    """Show version information."""
    from closefit import __version__

    console.print(f"closefit version {__version__}")


if __name__ == "__main__":
    app()
