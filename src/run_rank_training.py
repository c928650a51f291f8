#!/usr/bin/env python3
"""
Train a Ranking SVM

Trains a linear ranking SVM on ranking_dataset.json in the project root and
writes the training metrics next to this script.
"""

import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent))

from svm_rank.pipeline import train_ranking_svm


def main():
    """Main function to train the ranking SVM."""
    project_root = Path(__file__).parent.parent

    # Paths
    dataset_path = project_root / 'ranking_dataset.json'
    output_dir = Path(__file__).parent / 'output'

    print("="*80)
    print("RANKING SVM TRAINING")
    print("="*80)
    print()
    print(f"Using ranking dataset: {dataset_path}")
    print(f"  - C = 1.0 (normalized by the number of ranking pairs)")
    print(f"  - epsilon = 0.001")
    print(f"  - 5-fold cross-validation")
    print(f"Output directory: {output_dir}")
    print()

    train_ranking_svm(
        dataset_path=str(dataset_path),
        output_dir=str(output_dir),
        C=1.0,
        epsilon=0.001,
        folds=5
    )

    print()
    print("="*80)
    print("Training Complete!")
    print("="*80)
    print(f"Metrics saved to: {output_dir / 'rank_svm_metrics.json'}")


if __name__ == '__main__':
    main()
