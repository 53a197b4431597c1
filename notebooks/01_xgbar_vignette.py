# 01_xgbar_vignette.py
import marimo

__generated_with = "0.1.0"
app = marimo.App(width="medium")

@app.cell
def __():
    import marimo as mo
    import logging
    import numpy as np
    import pandas as pd
    import matplotlib.pyplot as plt

    from forecastxgb import TimeSeries, xgbar
    from forecastxgb.evaluation.plots import plot_forecast
    from forecastxgb.utils.logging_config import setup_logging

    setup_logging(log_level="INFO", to_file=False)
    logger = logging.getLogger("notebook_01")

    mo.md("# Autoregressive boosting for time series")
    return TimeSeries, logger, logging, mo, np, pd, plot_forecast, plt, setup_logging, xgbar


@app.cell
def __(mo):
    mo.md(
        """
        ## 1. Univariate series

        A monthly series with a trend and a yearly cycle. Lags of the series,
        plus one dummy per month, become the features of a boosted tree model.
        The number of boosting rounds is chosen by cross-validation.
        """
    )
    return


@app.cell
def __(TimeSeries, np):
    rng = np.random.default_rng(2016)
    t = np.arange(144)
    gas = TimeSeries(
        200 + 2.5 * t + 40 * np.sin(2 * np.pi * t / 12) + rng.normal(0, 8, len(t)),
        frequency=12,
        name="gas",
    )
    return gas, rng, t


@app.cell
def __(gas, xgbar):
    gas_model = xgbar(gas)
    gas_model.summary()
    return gas_model,


@app.cell
def __(gas_model, plot_forecast, plt):
    gas_fc = gas_model.forecast(24)
    plot_forecast(gas_fc)
    plt.show()
    return gas_fc,


@app.cell
def __(gas_model):
    gas_model.importance().head(10)
    return


@app.cell
def __(mo):
    mo.md(
        """
        ## 2. Seasonality and trend options

        Trees cannot extrapolate beyond the range of the training targets, so a
        trending series is better differenced first. Seasonality can be encoded
        with dummies, Fourier terms, or removed by classical decomposition.
        """
    )
    return


@app.cell
def __(gas, plot_forecast, plt, xgbar):
    fig, axes = plt.subplots(3, 1, figsize=(12, 10))
    for ax, seas_method in zip(axes, ["dummies", "fourier", "decompose"]):
        fitted = xgbar(gas, seas_method=seas_method, trend_method="differencing")
        plot_forecast(fitted.forecast(24), ax=ax)
    fig.tight_layout()
    plt.show()
    return ax, axes, fig, fitted, seas_method


@app.cell
def __(gas, plot_forecast, plt, xgbar):
    # lambda 0 is a log transform; "auto" estimates it
    transformed = xgbar(gas, lam="auto", trend_method="differencing")
    plot_forecast(transformed.forecast(24))
    plt.show()
    transformed.transform.lam
    return transformed,


@app.cell
def __(mo):
    mo.md(
        """
        ## 3. External regressors

        Regressors enter the model with the same lags as the response. Their
        future values have to be supplied for every forecast step.
        """
    )
    return


@app.cell
def __(TimeSeries, np, pd, rng):
    n = 100
    consumption_x = pd.DataFrame({
        "income": 0.5 + np.cumsum(rng.normal(0, 0.3, n + 12)) / 10,
        "unemployment": rng.normal(0, 0.5, n + 12),
    })
    consumption = TimeSeries(
        0.7 * consumption_x["income"].shift(1).fillna(0.5).to_numpy()[:n]
        - 0.3 * consumption_x["unemployment"].to_numpy()[:n]
        + rng.normal(0, 0.1, n),
        frequency=4,
        name="consumption",
    )
    return consumption, consumption_x, n


@app.cell
def __(consumption, consumption_x, n, plot_forecast, plt, xgbar):
    cons_model = xgbar(consumption, xreg=consumption_x.iloc[:n], maxlag=4)
    cons_fc = cons_model.forecast(xreg=consumption_x.iloc[n:])
    plot_forecast(cons_fc)
    plt.show()
    return cons_fc, cons_model


if __name__ == "__main__":
    app.run()
