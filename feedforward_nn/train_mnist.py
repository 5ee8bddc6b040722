import logging
import time

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np

from .config import TrainConfig, parse_args
from .logging_utils import setup_logging
from .mnist import load_idx_dataset, load_torchvision_mnist, train_test_split
from .network import network_t

logger = logging.getLogger(__name__)


def load_data(cfg: TrainConfig):
    if cfg.images_path is not None:
        logger.info("Reading IDX files %s / %s", cfg.images_path, cfg.labels_path)
        return load_idx_dataset(cfg.images_path, cfg.labels_path)
    logger.info("Loading MNIST through torchvision into %s", cfg.data_dir)
    return load_torchvision_mnist(cfg.data_dir, train=True, download=True)


def plot_history(history, outpath: str):
    epochs = [r.epoch for r in history if r.accuracy is not None]
    acc = [r.accuracy for r in history if r.accuracy is not None]
    plt.figure(figsize=(6, 4))
    plt.plot(epochs, acc, marker='o')
    plt.xlabel('epoch'); plt.ylabel('held-out accuracy'); plt.title('Accuracy vs Epochs')
    plt.grid(True, alpha=0.3)
    plt.tight_layout()
    plt.savefig(outpath, dpi=150)
    plt.close()
    logger.info("Saved accuracy plot to %s", outpath)


def run(cfg: TrainConfig):
    data = load_data(cfg)
    training_data, test_data = train_test_split(data, cfg.train_size)
    logger.info("Train: %d | Held out: %d", training_data.get_size(), test_data.get_size())

    # one generator for init and shuffling keeps whole runs reproducible
    rng = np.random.default_rng(cfg.seed)
    net = network_t(*cfg.layer_sizes)
    net.init(rng)

    t0 = time.time()
    history = net.sgd(training_data, cfg.epochs, cfg.mini_batch_size, cfg.eta,
                      rng=rng, test_data=test_data, progress=cfg.progress)
    last = history[-1]
    print(f"Done {cfg.epochs} epochs in {time.time() - t0:.1f}s | "
          f"held-out accuracy {last.correct}/{last.total} ({last.accuracy * 100:.2f}%)")

    if cfg.plot_path:
        plot_history(history, cfg.plot_path)
    return net, history


def main(argv=None):
    cfg = parse_args(argv)
    setup_logging()
    run(cfg)


if __name__ == "__main__":
    main()
