# 02_tourism_benchmark.py
import marimo

__generated_with = "0.1.0"
app = marimo.App(width="medium")

@app.cell
def __():
    import marimo as mo
    import logging
    import os
    from pathlib import Path
    import matplotlib.pyplot as plt

    from forecastxgb.data.loaders import DataLoader
    from forecastxgb.evaluation.benchmark import DEFAULT_METHODS, BenchmarkRunner
    from forecastxgb.evaluation.plots import plot_benchmark_results
    from forecastxgb.utils.logging_config import setup_logging

    project_root = Path(__file__).parent.parent.resolve()
    setup_logging(log_level="INFO", log_dir=str(project_root / "logs"))
    logger = logging.getLogger("notebook_02")

    mo.md("# Tourism competition benchmark")
    return BenchmarkRunner, DEFAULT_METHODS, DataLoader, Path, logger, logging, mo, os, plot_benchmark_results, plt, project_root, setup_logging


@app.cell
def __(mo):
    mo.md(
        """
        ## 1. Configuration & Data Loading

        The collection is a long CSV with one row per observation:
        `series_id, frequency, horizon, split, value`. Each series is forecast
        by xgbar (x), ARIMA (a), Theta (f) and a neural network (n), and by
        every average of those four.
        """
    )
    return


@app.cell
def __(os, project_root):
    CONFIG = {
        "data_path": project_root / "data/tourism.csv",
        "max_series": None,
        "n_jobs": max(1, (os.cpu_count() or 2) - 1),
        "backend": "process",
    }
    return CONFIG,


@app.cell
def __(CONFIG, DataLoader, mo):
    if not CONFIG["data_path"].exists():
        mo.md(f"**Error**: Data file not found at {CONFIG['data_path']}.")
        raise FileNotFoundError(f"Data file not found: {CONFIG['data_path']}")

    collection = DataLoader().load_competition_csv(
        str(CONFIG["data_path"]), max_series=CONFIG["max_series"]
    )
    print(f"Loaded {len(collection)} series.")
    return collection,


@app.cell
def __(mo):
    mo.md("## 2. Run")
    return


@app.cell
def __(BenchmarkRunner, CONFIG, DEFAULT_METHODS, collection, logger):
    runner = BenchmarkRunner(
        methods=DEFAULT_METHODS, n_jobs=CONFIG["n_jobs"], backend=CONFIG["backend"]
    )
    results = runner.run(collection)
    if results.failures:
        logger.warning(f"{len(results.failures)} series failed")
    results.summary()
    return results, runner


@app.cell
def __(mo):
    mo.md("## 3. Results")
    return


@app.cell
def __(plot_benchmark_results, plt, results):
    fig, axes = plt.subplots(2, 1, figsize=(12, 10))
    plot_benchmark_results(results, metric="mase", ax=axes[0])
    plot_benchmark_results(results, metric="mape", ax=axes[1])
    fig.tight_layout()
    plt.show()
    return axes, fig


@app.cell
def __(results):
    # failed series, if any
    [f.context.to_dict() for f in results.failures]
    return


if __name__ == "__main__":
    app.run()
