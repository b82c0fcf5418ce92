"""Command line entry point for netopt training runs."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Iterable, List

from loguru import logger

from netopt.core.activations import FAMILIES, get_activation
from netopt.models import NeuralNetXL
from netopt.reporting import CsvSink, JsonlSink, PlotAdapter
from netopt.training.config import DEFAULT_HPARAMS, HyperParameters, load_hyperparameters
from netopt.training.optimizers import OPTIMIZERS, build_optimizer
from netopt.utils import make_dataset


def _format_result(result, run_dir: Path, model) -> str:
    payload = {
        "loss": result.loss,
        "epochs": result.epochs,
        "eta": result.eta,
        "run_dir": str(run_dir),
        "model": model.model_name,
        "metrics": str(run_dir / "metrics.jsonl"),
    }
    return json.dumps(payload, sort_keys=True)


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--optimizer",
        choices=sorted(OPTIMIZERS),
        default="sgdm",
        help="Update rule used by the optimizer",
    )
    parser.add_argument(
        "--hidden",
        type=int,
        nargs="+",
        default=[8],
        help="Hidden layer sizes",
    )
    parser.add_argument(
        "--activation",
        nargs="+",
        default=None,
        help=f"Activation family per parameter layer ({', '.join(sorted(FAMILIES))})",
    )
    parser.add_argument("--eta", type=float, help="Initial learning rate")
    parser.add_argument("--batch-size", type=int, help="Mini-batch size")
    parser.add_argument("--max-epochs", type=int, help="Maximum number of epochs")
    parser.add_argument(
        "--auto", action="store_true", help="Search the learning rate around --eta"
    )
    parser.add_argument(
        "--config", type=Path, help="Optional JSON/YAML hyper-parameter file"
    )
    parser.add_argument(
        "--dataset", choices=["sine", "linear"], default="sine", help="Synthetic dataset"
    )
    parser.add_argument("--n-points", type=int, default=200, help="Number of instances")
    parser.add_argument("--seed", type=int, default=0, help="Seed for data and training")
    parser.add_argument(
        "--run-dir", type=Path, default=Path("runs/netopt"), help="Output directory"
    )
    parser.add_argument(
        "--enable-plots", action="store_true", help="Write the loss curve as loss.png"
    )
    parser.add_argument(
        "--log-level", default="WARNING", help="loguru level for messages on stderr"
    )
    return parser.parse_args(argv)


def _resolve_hparams(args: argparse.Namespace) -> HyperParameters:
    hparams = DEFAULT_HPARAMS
    if args.config:
        hparams = load_hyperparameters(args.config)
    overrides = {
        "eta": args.eta,
        "batch_size": args.batch_size,
        "max_epochs": args.max_epochs,
    }
    overrides = {key: value for key, value in overrides.items() if value is not None}
    return hparams.replace(**overrides).validate()


def _families(args: argparse.Namespace) -> List:
    n_layers = len(args.hidden) + 1
    names = args.activation or ["sigmoid"] * len(args.hidden) + ["id"]
    if len(names) != n_layers:
        raise SystemExit(
            f"expected {n_layers} activation names for {len(args.hidden)} hidden layers, got {len(names)}"
        )
    try:
        return [get_activation(name) for name in names]
    except KeyError as exc:
        raise SystemExit(str(exc)) from None


def _build_model(args, x, y, families, hparams, callbacks) -> NeuralNetXL:
    optimizer = build_optimizer(
        args.optimizer, hparams=hparams, seed=args.seed, callbacks=callbacks
    )
    return NeuralNetXL(
        x, y, families=families, nz=args.hidden, hparams=hparams, optimizer=optimizer, seed=args.seed
    )


def main(argv: Iterable[str] | None = None) -> None:
    args = parse_args(argv)
    logger.remove()
    logger.add(sys.stderr, level=args.log_level.upper())

    hparams = _resolve_hparams(args)
    families = _families(args)
    x, y = make_dataset(args.dataset, n=args.n_points, seed=args.seed)

    if args.auto:
        # search without sinks, then record a single run at the chosen rate
        search = _build_model(args, x, y, families, hparams, callbacks=[]).train2()
        hparams = hparams.replace(eta=search.eta).validate()
        logger.info("Retrain with eta = {} (search sse = {})", search.eta, search.loss)

    run_dir = Path(args.run_dir)
    run_dir.mkdir(parents=True, exist_ok=True)
    plotter = PlotAdapter(run_dir, enable_plots=args.enable_plots)
    callbacks = [
        JsonlSink(run_dir / "metrics.jsonl", seed=args.seed, optimizer=args.optimizer),
        CsvSink(run_dir / "metrics.csv"),
        plotter,
    ]
    model = _build_model(args, x, y, families, hparams, callbacks)

    result = model.train()
    plotter.close()
    (run_dir / "hparams.json").write_text(json.dumps(hparams.to_dict(), indent=2, sort_keys=True))
    print(_format_result(result, run_dir, model))


if __name__ == "__main__":
    main()
