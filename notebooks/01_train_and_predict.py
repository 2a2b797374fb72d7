
# 01_train_and_predict.py
import marimo

__generated_with = "0.6.0"
app = marimo.App(width="medium")


@app.cell
def __():
    import marimo as mo
    from pathlib import Path
    import sys
    import matplotlib.pyplot as plt

    # Add project root to path
    project_root = Path(__file__).parent.parent.resolve()
    if str(project_root) not in sys.path:
        sys.path.insert(0, str(project_root))

    from aqforecast.data.loaders import generate_sample_series, unit_for
    from aqforecast.evaluation.metrics import MetricsCalculator
    from aqforecast.pipeline import Predictor, Trainer
    from aqforecast.utils.config_manager import ConfigManager
    from aqforecast.utils.logging_config import setup_logging
    from aqforecast.utils.state_persistence import KeyValueStore, save_pipeline, save_series

    setup_logging("INFO", log_dir=str(project_root / "logs"))

    mo.md("# Air Quality Forecast: Train, Predict, Score")
    return (ConfigManager, KeyValueStore, MetricsCalculator, Path, Predictor, Trainer,
            generate_sample_series, mo, plt, project_root, save_pipeline, save_series,
            setup_logging, sys, unit_for)


@app.cell
def __(mo):
    mo.md("## 1. Configuration & Data")
    return


@app.cell
def __(ConfigManager, generate_sample_series):
    # Small epoch count for the walkthrough
    config = ConfigManager().load_pipeline_config(overrides={"forecaster": {"epochs": 20}})
    series = generate_sample_series("beijing", periods=365, seed=42)

    print(f"Loaded {len(series)} days from {series.metadata['location']}")
    print(f"Target: {config.target}, features: {config.features}, window: {config.window_size}")
    return config, series


@app.cell
def __(mo):
    mo.md("## 2. Training")
    return


@app.cell
async def __(Trainer, config, series):
    trainer = Trainer(config)
    session = trainer.train(series)

    losses = []
    async for progress in session:
        losses.append((progress.training_loss, progress.validation_loss))
    state = await session.result()

    print(f"Final Train Loss: {losses[-1][0]:.4f}")
    print(f"Final Val Loss: {losses[-1][1]:.4f}")
    print(f"Validation MAE: {state.summary.denormalized_mae:.2f}")
    return losses, progress, session, state, trainer


@app.cell
def __(losses, plt):
    plt.figure(figsize=(10, 4))
    plt.plot([l[0] for l in losses], label="Training Loss")
    plt.plot([l[1] for l in losses], label="Validation Loss")
    plt.xlabel("Epoch")
    plt.legend()
    plt.show()
    return


@app.cell
def __(mo):
    mo.md("## 3. Predictions & Scores")
    return


@app.cell
def __(MetricsCalculator, Predictor, config, plt, series, state, unit_for):
    predictor = Predictor(state)

    historical = predictor.historical(series, 30)
    scores = MetricsCalculator().score(historical)
    for name, value in scores.metrics.items():
        print(f"{name}: {value:.3f}")

    future = predictor.future(series, 7)
    print(f"Next 7 days: {future.summary()}")

    frame = historical.to_frame()
    unit = unit_for(config.target)
    plt.figure(figsize=(12, 5))
    plt.plot(frame.index, frame[f"actual_{config.target}"], label="Actual", alpha=0.7)
    plt.plot(frame.index, frame[f"predicted_{config.target}"], label="Predicted", alpha=0.7)
    plt.plot(future.to_frame().index, future.predictions, "r--", label="Forecast")
    plt.ylabel(f"{config.target} ({unit})" if unit else config.target)
    plt.legend()
    plt.show()
    return frame, future, historical, name, predictor, scores, unit, value


@app.cell
def __(KeyValueStore, project_root, save_pipeline, save_series, series, state):
    store = KeyValueStore(project_root / "logs" / "pipeline_state")
    save_series(store, series)
    save_pipeline(store, state)
    state.forecaster.save_model(project_root / "models" / state.forecaster.model_id)
    print(f"Saved keys: {list(store.keys())}")
    return store,


if __name__ == "__main__":
    app.run()
