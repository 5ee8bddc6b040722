import argparse
from dataclasses import dataclass, field
from typing import Optional, Sequence, Tuple

from .errors import ParameterRangeError
from .network import MAX_EPOCHS, MIN_EPOCHS


@dataclass
class TrainConfig:
    # defaults reproduce the classic 784-30-10 MNIST run
    layer_sizes: Tuple[int, ...] = field(default_factory=lambda: (784, 30, 10))
    epochs: int = 30
    mini_batch_size: int = 10
    eta: float = 3.0
    seed: int = 12345
    train_size: int = 50000
    data_dir: str = "./data"
    images_path: Optional[str] = None
    labels_path: Optional[str] = None
    progress: bool = True
    plot_path: Optional[str] = None

    def validate(self) -> "TrainConfig":
        if len(self.layer_sizes) < 2:
            raise ParameterRangeError("need at least an input and an output layer")
        if any(s <= 0 for s in self.layer_sizes):
            raise ParameterRangeError("layer sizes must be positive")
        if not MIN_EPOCHS <= self.epochs <= MAX_EPOCHS:
            raise ParameterRangeError(f"epochs must be in range {MIN_EPOCHS}..{MAX_EPOCHS}")
        if self.mini_batch_size < 1:
            raise ParameterRangeError("mini_batch_size must be at least 1")
        if self.eta <= 0:
            raise ParameterRangeError("eta must be positive")
        if self.train_size < 1:
            raise ParameterRangeError("train_size must be at least 1")
        if (self.images_path is None) != (self.labels_path is None):
            raise ParameterRangeError("images_path and labels_path must be given together")
        return self


def build_parser() -> argparse.ArgumentParser:
    d = TrainConfig()
    ap = argparse.ArgumentParser(description="Train a sigmoid feedforward network on MNIST with mini-batch SGD.")
    ap.add_argument("--layers", type=int, nargs="+", default=list(d.layer_sizes),
                    help="layer sizes, input first (default: 784 30 10)")
    ap.add_argument("--epochs", type=int, default=d.epochs)
    ap.add_argument("--batch-size", type=int, default=d.mini_batch_size)
    ap.add_argument("--eta", type=float, default=d.eta, help="learning rate")
    ap.add_argument("--seed", type=int, default=d.seed)
    ap.add_argument("--train-size", type=int, default=d.train_size,
                    help="examples used for training; the rest are held out for evaluation")
    ap.add_argument("--data", type=str, default=d.data_dir, help="torchvision download directory")
    ap.add_argument("--images", type=str, default=None, help="IDX image file (skips torchvision)")
    ap.add_argument("--labels", type=str, default=None, help="IDX label file")
    ap.add_argument("--no-progress", action="store_true")
    ap.add_argument("--plot", type=str, default=None, help="save accuracy-per-epoch figure here")
    return ap


def parse_args(argv: Optional[Sequence[str]] = None) -> TrainConfig:
    args = build_parser().parse_args(argv)
    return TrainConfig(
        layer_sizes=tuple(args.layers),
        epochs=args.epochs,
        mini_batch_size=args.batch_size,
        eta=args.eta,
        seed=args.seed,
        train_size=args.train_size,
        data_dir=args.data,
        images_path=args.images,
        labels_path=args.labels,
        progress=not args.no_progress,
        plot_path=args.plot,
    ).validate()
