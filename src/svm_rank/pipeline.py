"""
End-to-end ranking SVM training: load a dataset, train, evaluate and report.
"""

import json
import time
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from .data_loading import load_ranking_dataset
from .decision_function import DecisionFunction
from .evaluation import cross_validate_ranking_trainer, test_ranking_function
from .ranking_pair import count_ranking_pairs, max_index_plus_one
from .trainer import RankingSVMTrainer


def train_ranking_svm(
    dataset_path: str,
    output_dir: Optional[str] = None,
    data_format: Optional[str] = None,
    C: float = 1.0,
    epsilon: float = 0.001,
    max_iterations: int = 10000,
    learns_nonnegative_weights: bool = False,
    folds: Optional[int] = None,
    verbose: bool = False,
    metrics_name: str = 'rank_svm_metrics.json'
) -> Tuple[DecisionFunction, Dict[str, Any]]:
    """
    Train a ranking SVM on a dataset file.

    Args:
        dataset_path: Path to a JSON or SVMrank dataset
        output_dir: Directory for the metrics JSON (nothing is written when None)
        data_format: 'json' or 'svmlight' (default: guessed from the suffix)
        C: Regularization parameter (normalized by the number of pairs)
        epsilon: Stopping tolerance in ranking accuracy units
        max_iterations: Optimizer iteration cap
        learns_nonnegative_weights: Constrain the learned weights to be >= 0
        folds: Number of cross-validation folds (None = no cross-validation)
        verbose: Print optimizer progress
        metrics_name: File name of the metrics JSON

    Returns:
        Tuple of (decision_function, metrics)
    """
    print(f"Loading ranking dataset from: {dataset_path}")
    samples = load_ranking_dataset(dataset_path, data_format=data_format)
    num_pairs = count_ranking_pairs(samples)
    print(f"Loaded {len(samples)} query groups ({num_pairs} ranking pairs, "
          f"dimension {max_index_plus_one(samples)})")

    trainer = RankingSVMTrainer(
        C=C,
        epsilon=epsilon,
        max_iterations=max_iterations,
        verbose=verbose,
        learns_nonnegative_weights=learns_nonnegative_weights
    )

    print(f"\nTraining ranking SVM with C={C}, epsilon={epsilon}...")
    training_start = time.perf_counter()
    decision_function, result = trainer.train_with_status(samples)
    training_time = time.perf_counter() - training_start

    train_accuracy, train_map = test_ranking_function(decision_function, samples)

    metrics: Dict[str, Any] = {
        'train_ranking_accuracy': float(train_accuracy),
        'train_mean_average_precision': float(train_map),
        'termination_status': result.status.value,
        'iterations': int(result.iterations),
        'final_gap': float(result.gap),
        'objective_upper_bound': float(result.upper_bound),
        'objective_lower_bound': float(result.lower_bound),
        'groups': len(samples),
        'pairs': int(num_pairs),
        'dimension': int(decision_function.weights.shape[0]),
        'C': float(C),
        'epsilon': float(epsilon),
        'learns_nonnegative_weights': bool(learns_nonnegative_weights),
        'training_time_seconds': float(training_time)
    }

    print(f"\nTraining Results:")
    print(f"  Status: {result.status.value} after {result.iterations} iterations")
    print(f"  Final Risk Gap: {result.gap:.6f}")
    print(f"  Train Ranking Accuracy: {train_accuracy:.4f}")
    print(f"  Train Mean Average Precision: {train_map:.4f}")

    if folds is not None:
        print(f"\nRunning {folds}-fold cross-validation...")
        trainer.be_quiet()
        cv_accuracy, cv_map = cross_validate_ranking_trainer(trainer, samples, folds)
        metrics['cv_folds'] = int(folds)
        metrics['cv_ranking_accuracy'] = float(cv_accuracy)
        metrics['cv_mean_average_precision'] = float(cv_map)
        print(f"  CV Ranking Accuracy: {cv_accuracy:.4f}")
        print(f"  CV Mean Average Precision: {cv_map:.4f}")

    if output_dir is not None:
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        metrics_path = output_dir / metrics_name
        with open(metrics_path, 'w', encoding='utf-8') as f:
            json.dump(metrics, f, indent=2)
        print(f"Training metrics saved to: {metrics_path}")

    return decision_function, metrics


def main(argv=None):
    import argparse

    parser = argparse.ArgumentParser(description='Train a linear ranking SVM')
    parser.add_argument('--data', type=str, required=True,
                        help='Path to a JSON or SVMrank (qid:) dataset')
    parser.add_argument('--format', type=str, default=None, choices=['json', 'svmlight'],
                        help='Dataset format (default: guessed from the file suffix)')
    parser.add_argument('--C', type=float, default=1.0,
                        help='Regularization parameter, normalized by the number of pairs (default: 1.0)')
    parser.add_argument('--epsilon', type=float, default=0.001,
                        help='Stopping tolerance in ranking accuracy units (default: 0.001)')
    parser.add_argument('--max-iterations', type=int, default=10000,
                        help='Maximum number of optimizer iterations')
    parser.add_argument('--nonnegative', action='store_true',
                        help='Constrain the learned weights to be non-negative')
    parser.add_argument('--folds', type=int, default=None,
                        help='Number of cross-validation folds (default: no cross-validation)')
    parser.add_argument('--output', type=str, default=None,
                        help='Output directory for the metrics JSON')
    parser.add_argument('--verbose', action='store_true',
                        help='Print optimizer progress')

    args = parser.parse_args(argv)

    decision_function, metrics = train_ranking_svm(
        dataset_path=args.data,
        output_dir=args.output,
        data_format=args.format,
        C=args.C,
        epsilon=args.epsilon,
        max_iterations=args.max_iterations,
        learns_nonnegative_weights=args.nonnegative,
        folds=args.folds,
        verbose=args.verbose
    )

    print("\n" + "="*80)
    print("Ranking SVM Training Complete!")
    print("="*80)
    return decision_function, metrics


if __name__ == '__main__':
    main()
