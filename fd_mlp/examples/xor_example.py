import os
import sys
import time
import argparse
import logging
import numpy as np
import matplotlib.pyplot as plt

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from network import random_network
from training_data import TrainingData
from gradient import network_cost, train

# XOR truth table
X = np.array([[0, 0], [0, 1], [1, 0], [1, 1]])
y = np.array([[0], [1], [1], [0]])


def plot_history(history):
    """Plots the cost after every iteration."""
    plt.figure("XOR Training History", figsize=(8, 5))
    plt.plot(history['iteration'], history['cost'], label='Cost (MSE)')
    plt.xlabel('Iteration')
    plt.ylabel('Cost')
    plt.title('XOR Training History')
    plt.legend()
    plt.grid(True, alpha=0.3)
    plt.ylim(bottom=0)
    plt.tight_layout()


def xor_example(iterations: int, learning_rate: float, eps: float, seed, log_every: int, plot: bool):
    """Trains a [2, 2, 1] sigmoid network on XOR with finite-difference gradients."""
    logger = logging.getLogger("XORExample")
    logger.setLevel(logging.INFO)

    logger.info("--- Running XOR Example ---")
    train_data = TrainingData.from_arrays(X, y)

    rng = np.random.default_rng(seed)
    network = random_network(2, [2, 2, 1], rng=rng, learning_rate=learning_rate, eps=eps)
    print(network.summary())
    print(network)
    logger.info(f"Cost before training: {network_cost(network, train_data):.6f}")

    start_time = time.time()
    history = train(network, train_data, iterations=iterations, log_every=log_every)
    logger.info(f"Training finished in {time.time() - start_time:.2f} seconds")

    print(f"\nCOST AFTER: {network_cost(network, train_data):f}\n")
    print(network)

    print("\nValues for training set:")
    correct = 0
    for sample in train_data:
        prediction = network.forward(sample.input)
        pred_class = prediction[0] >= 0.5
        is_correct = pred_class == (sample.output[0] >= 0.5)
        if is_correct: correct += 1
        print(f"{sample.input} -> {prediction} {'(Correct)' if is_correct else '(Incorrect)'}")
    logger.info(f"XOR Accuracy: {correct / train_data.n:.2%}")

    if plot:
        plot_history(history)
        plt.show()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description='XOR with finite-difference gradient descent')
    parser.add_argument('--iterations', type=int, default=20000, help='Number of gradient steps')
    parser.add_argument('--learning-rate', type=float, default=1e-1, help='Gradient descent step size')
    parser.add_argument('--eps', type=float, default=1e-1, help='Finite-difference perturbation')
    parser.add_argument('--seed', type=int, default=None, help='Seed for the weight initialization')
    parser.add_argument('--log-every', type=int, default=1000, help='Print progress every N iterations')
    parser.add_argument('--plot', action='store_true', help='Plot the cost history when done')
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    xor_example(args.iterations, args.learning_rate, args.eps, args.seed, args.log_every, args.plot)
